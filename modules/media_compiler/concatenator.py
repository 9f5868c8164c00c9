"""
Clip concatenation for media compiler module.

Joins normalized clips with the ffmpeg concat demuxer and stream copy.
All inputs must already share the canonical profile; nothing is re-encoded.
"""
from pathlib import Path
from typing import List, Optional, Sequence

from shared.config import Settings, settings as default_settings
from shared.errors import ConcatError
from shared.logging import get_logger
from .config import MANIFEST_FILENAME
from .utils import CommandRunner, run_command

logger = get_logger("media_compiler.concatenator")

# The demuxer reads one directive per line; these cannot appear inside a quoted path
UNREPRESENTABLE_CHARS = ("\n", "\r", "\0")


def escape_manifest_path(path: Path) -> str:
    """
    Render one concat manifest line for a clip.

    Paths are absolute and single-quoted. A literal quote closes the quoted
    string, adds an escaped quote, and reopens it: ' becomes '\\''.

    Raises:
        ConcatError: If the path contains a line break or NUL
    """
    text = str(Path(path).absolute())
    if any(ch in text for ch in UNREPRESENTABLE_CHARS):
        raise ConcatError(f"Clip path cannot be written to concat manifest: {text!r}")
    return "file '" + text.replace("'", "'\\''") + "'"


def write_concat_manifest(clip_paths: Sequence[Path], manifest_path: Path) -> Path:
    """
    Write the concat demuxer input list, one clip per line, in scene order.

    Raises:
        ConcatError: If any path cannot be represented or the file cannot be written
    """
    lines = [escape_manifest_path(p) for p in clip_paths]
    try:
        manifest_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError as e:
        raise ConcatError(f"Failed to write concat manifest: {e}") from e
    return manifest_path


def build_concat_args(manifest_path: Path, output_path: Path) -> List[str]:
    return [
        "-y",
        "-f", "concat",
        "-safe", "0",
        "-i", str(manifest_path),
        "-c", "copy",  # Stream copy (no re-encoding)
        "-movflags", "+faststart",
        str(output_path)
    ]


async def concat_clips(
    clip_paths: Sequence[Path],
    output_path: Path,
    manifest_path: Optional[Path] = None,
    runner: CommandRunner = run_command,
    settings: Optional[Settings] = None
) -> Path:
    """
    Concatenate normalized clips into one MP4.

    Args:
        clip_paths: Normalized clips in scene order
        output_path: Final video to write
        manifest_path: Where to write the input list (default: concat.txt beside output)
        runner: Command runner (injectable for tests)
        settings: Tool binaries and timeout (default: module settings)

    Returns:
        output_path

    Raises:
        ConcatError: If there are no clips, the manifest is invalid, or ffmpeg fails
    """
    if not clip_paths:
        raise ConcatError("No clips to concatenate")

    settings = settings or default_settings
    output_path = Path(output_path)
    manifest_path = Path(manifest_path) if manifest_path else output_path.parent / MANIFEST_FILENAME
    write_concat_manifest(clip_paths, manifest_path)

    logger.info(
        f"Concatenating {len(clip_paths)} clips",
        extra={"clip_count": len(clip_paths), "manifest_path": str(manifest_path)}
    )

    result = await runner(
        settings.ffmpeg_binary,
        build_concat_args(manifest_path, output_path),
        timeout=settings.process_timeout
    )
    if not result.ok:
        logger.error(
            "Failed to concatenate clips",
            extra={"returncode": result.returncode, "stderr": result.stderr_tail()}
        )
        raise ConcatError(
            f"Failed to concatenate {len(clip_paths)} clips (ffmpeg exited {result.returncode})",
            detail=result.stderr_tail()
        )

    if not output_path.exists():
        raise ConcatError(f"Concatenated video not created: {output_path.name}")

    return output_path
