"""
Image animation for media compiler module.

Turns a still image into a fixed-duration clip with a silent stereo track.
"""
import math
from pathlib import Path
from typing import Optional

from shared.config import Settings, settings as default_settings
from shared.errors import EncodeError
from shared.logging import get_logger
from shared.models.compile import DEFAULT_IMAGE_DURATION_SEC
from .config import (
    OUTPUT_AUDIO_CODEC,
    OUTPUT_PIX_FMT,
    build_silent_audio_source,
    build_video_filter,
    video_encode_args
)
from .utils import CommandRunner, run_command

logger = get_logger("media_compiler.animator")


def build_animate_args(image_path: Path, output_path: Path, duration: float) -> list:
    """FFmpeg arguments looping one image over a silent track of `duration` seconds."""
    return [
        "-y",
        "-loop", "1",
        "-i", str(image_path),
        "-f", "lavfi", "-t", str(duration),
        "-i", build_silent_audio_source(),
        "-shortest",
        "-vf", build_video_filter(),
        *video_encode_args(),
        "-c:a", OUTPUT_AUDIO_CODEC,
        "-pix_fmt", OUTPUT_PIX_FMT,
        "-movflags", "+faststart",
        str(output_path)
    ]


async def image_to_clip(
    image_path: Path,
    output_path: Path,
    duration: float = DEFAULT_IMAGE_DURATION_SEC,
    runner: CommandRunner = run_command,
    settings: Optional[Settings] = None
) -> Path:
    """
    Render a still image as a letterboxed 1280x720 24fps clip.

    The clip lasts exactly `duration` seconds: the silent audio input is
    limited to that length and -shortest stops the looped image with it.

    Args:
        image_path: Source image
        output_path: Clip to write; parent directories are created
        duration: Clip length in seconds (default: 5)
        runner: Command runner (injectable for tests)
        settings: Tool binaries and timeout (default: module settings)

    Returns:
        output_path

    Raises:
        EncodeError: If duration is not a positive finite number or ffmpeg fails
    """
    if not math.isfinite(duration) or duration <= 0:
        raise EncodeError(f"Image duration must be positive and finite, got {duration}")
    settings = settings or default_settings

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(
        f"Animating {Path(image_path).name} for {duration}s",
        extra={"image_path": str(image_path), "output_path": str(output_path), "duration": duration}
    )

    result = await runner(
        settings.ffmpeg_binary,
        build_animate_args(image_path, output_path, duration),
        timeout=settings.process_timeout
    )
    if not result.ok:
        logger.error(
            f"Failed to animate {Path(image_path).name}",
            extra={"image_path": str(image_path), "returncode": result.returncode, "stderr": result.stderr_tail()}
        )
        raise EncodeError(
            f"Failed to animate image {Path(image_path).name} (ffmpeg exited {result.returncode})",
            detail=result.stderr_tail()
        )

    if not output_path.exists():
        raise EncodeError(f"Image clip not created: {output_path.name}")

    return output_path
