"""
Clip normalization for media compiler module.

Re-encodes every clip into the canonical profile (1280x720 letterboxed,
24 FPS, H.264/yuv420p, 44.1kHz stereo AAC) so clips can be joined with
stream copy. Clips without audio get a synthesized silent track.
"""
from pathlib import Path
from typing import Optional

from shared.config import Settings, settings as default_settings
from shared.errors import EncodeError
from shared.logging import get_logger
from shared.models.compile import MediaProbe
from .config import (
    DEFAULT_SILENT_AUDIO_DURATION,
    MIN_SILENT_AUDIO_DURATION,
    OUTPUT_AUDIO_CODEC,
    OUTPUT_FPS,
    OUTPUT_HEIGHT,
    OUTPUT_PIX_FMT,
    OUTPUT_WIDTH,
    build_audio_filter,
    build_silent_audio_source,
    build_video_filter,
    video_encode_args
)
from .prober import probe_media
from .utils import CommandRunner, run_command

logger = get_logger("media_compiler.normalizer")


def silent_audio_duration(probe: MediaProbe) -> float:
    """Length of the synthesized track for a clip without audio."""
    return max(MIN_SILENT_AUDIO_DURATION, probe.duration or DEFAULT_SILENT_AUDIO_DURATION)


def build_normalize_args(input_path: Path, output_path: Path, probe: MediaProbe) -> list:
    """
    Build FFmpeg arguments for one clip.

    Video always comes from input 0. Audio comes from input 0 when the clip
    has its own track, otherwise from a silent lavfi source added as input 1.
    """
    args = ["-y", "-i", str(input_path)]

    if not probe.has_audio:
        args.extend([
            "-f", "lavfi",
            "-t", str(silent_audio_duration(probe)),
            "-i", build_silent_audio_source()
        ])

    args.extend([
        "-map", "0:v:0",
        "-vf", build_video_filter(),
        *video_encode_args(),
        "-pix_fmt", OUTPUT_PIX_FMT,
        "-movflags", "+faststart",
    ])

    if probe.has_audio:
        args.extend(["-map", "0:a:0", "-af", build_audio_filter(), "-c:a", OUTPUT_AUDIO_CODEC])
    else:
        args.extend(["-map", "1:a:0", "-c:a", OUTPUT_AUDIO_CODEC])

    args.append(str(output_path))
    return args


async def normalize_clip(
    input_path: Path,
    output_path: Path,
    runner: CommandRunner = run_command,
    settings: Optional[Settings] = None
) -> Path:
    """
    Normalize a clip to the canonical video and audio profile.

    Args:
        input_path: Animated image clip or raw video
        output_path: Normalized clip to write
        runner: Command runner (injectable for tests)
        settings: Tool binaries and timeout (default: module settings)

    Returns:
        output_path

    Raises:
        ProbeError: If the input's duration cannot be read
        EncodeError: If ffmpeg fails
    """
    settings = settings or default_settings
    input_path = Path(input_path)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    probe = await probe_media(input_path, runner=runner, settings=settings)

    logger.info(
        f"Normalizing {input_path.name} -> {OUTPUT_WIDTH}x{OUTPUT_HEIGHT} @ {OUTPUT_FPS}fps "
        f"({'native' if probe.has_audio else 'silent'} audio)",
        extra={
            "input_path": str(input_path),
            "output_path": str(output_path),
            "has_audio": probe.has_audio,
            "duration": probe.duration
        }
    )

    result = await runner(
        settings.ffmpeg_binary,
        build_normalize_args(input_path, output_path, probe),
        timeout=settings.process_timeout
    )
    if not result.ok:
        logger.error(
            f"Failed to normalize {input_path.name}",
            extra={"input_path": str(input_path), "returncode": result.returncode, "stderr": result.stderr_tail()}
        )
        raise EncodeError(
            f"Failed to normalize clip {input_path.name} (ffmpeg exited {result.returncode})",
            detail=result.stderr_tail()
        )

    if not output_path.exists():
        raise EncodeError(f"Normalized clip not created: {output_path.name}")

    logger.info(f"Normalized {input_path.name}", extra={"output_path": str(output_path)})
    return output_path
