"""
Media inspection for media compiler module.

Reads container duration and audio stream presence with ffprobe.

A failed duration query raises ProbeError. A failed audio query is reported
as "no audio" and never raised.
"""
from pathlib import Path
from typing import Optional

from shared.config import Settings, settings as default_settings
from shared.errors import ProbeError
from shared.logging import get_logger
from shared.models.compile import MediaProbe
from .utils import CommandRunner, run_command

logger = get_logger("media_compiler.prober")


def duration_args(path: Path) -> list:
    return [
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(path)
    ]


def audio_stream_args(path: Path) -> list:
    return [
        "-v", "error",
        "-select_streams", "a",
        "-show_entries", "stream=index",
        "-of", "csv=p=0",
        str(path)
    ]


def parse_duration(output: str) -> float:
    """
    Parse ffprobe's duration output.

    Missing or unparsable values (e.g. "N/A" for a still image) count as 0.
    """
    try:
        duration = float(output.strip())
    except ValueError:
        return 0.0
    if duration != duration:  # NaN
        return 0.0
    return max(0.0, duration)


async def probe_duration(
    path: Path,
    runner: CommandRunner = run_command,
    settings: Optional[Settings] = None
) -> float:
    """
    Get container duration in seconds.

    Raises:
        ProbeError: If ffprobe fails
    """
    settings = settings or default_settings
    result = await runner(settings.ffprobe_binary, duration_args(path), timeout=settings.process_timeout)
    if not result.ok:
        logger.error(
            f"Duration probe failed for {Path(path).name}",
            extra={"path": str(path), "returncode": result.returncode, "stderr": result.stderr_tail()}
        )
        raise ProbeError(
            f"Could not read duration of {Path(path).name}",
            detail=result.stderr_tail()
        )
    return parse_duration(result.stdout)


async def probe_has_audio(
    path: Path,
    runner: CommandRunner = run_command,
    settings: Optional[Settings] = None
) -> bool:
    """
    Check whether a file has at least one audio stream.

    Any failure of the query is treated as "no audio" and never raised.
    """
    settings = settings or default_settings
    try:
        result = await runner(settings.ffprobe_binary, audio_stream_args(path), timeout=settings.process_timeout)
    except Exception as e:
        logger.warning(
            f"Audio probe raised for {Path(path).name}, assuming no audio: {e}",
            extra={"path": str(path), "error": str(e)}
        )
        return False

    if not result.ok:
        logger.warning(
            f"Audio probe failed for {Path(path).name}, assuming no audio",
            extra={"path": str(path), "returncode": result.returncode, "stderr": result.stderr_tail()}
        )
        return False
    return len(result.stdout.strip()) > 0


async def probe_media(
    path: Path,
    runner: CommandRunner = run_command,
    settings: Optional[Settings] = None
) -> MediaProbe:
    """
    Inspect a media file.

    Args:
        path: Media file path
        runner: Command runner (injectable for tests)
        settings: Tool binaries and timeout (default: module settings)

    Returns:
        MediaProbe with audio presence and duration

    Raises:
        ProbeError: If the duration query fails
    """
    duration = await probe_duration(path, runner=runner, settings=settings)
    has_audio = await probe_has_audio(path, runner=runner, settings=settings)
    probe = MediaProbe(has_audio=has_audio, duration=duration)
    logger.info(
        f"Probed {Path(path).name}: duration={probe.duration:.2f}s audio={probe.has_audio}",
        extra={"path": str(path), "duration": probe.duration, "has_audio": probe.has_audio}
    )
    return probe
