"""
Media compiler configuration.

Canonical output profile every clip is normalized to before concatenation.
Concatenation uses stream copy, so every value here must be identical for all clips.
"""

# Video output settings
OUTPUT_WIDTH = 1280
OUTPUT_HEIGHT = 720
OUTPUT_FPS = 24
OUTPUT_PIX_FMT = "yuv420p"
OUTPUT_VIDEO_CODEC = "libx264"
FFMPEG_PRESET = "veryfast"
FFMPEG_CRF = 21

# Audio output settings
OUTPUT_AUDIO_CODEC = "aac"
OUTPUT_SAMPLE_RATE = 44100
OUTPUT_CHANNEL_LAYOUT = "stereo"

# Silent audio track synthesis
MIN_SILENT_AUDIO_DURATION = 0.01  # Avoids a zero-length lavfi stream
DEFAULT_SILENT_AUDIO_DURATION = 5.0  # Used when the source reports no duration

# Output container
OUTPUT_MEDIA_TYPE = "video/mp4"
FINAL_FILENAME = "final.mp4"
MANIFEST_FILENAME = "concat.txt"


def build_video_filter(
    width: int = OUTPUT_WIDTH,
    height: int = OUTPUT_HEIGHT,
    fps: int = OUTPUT_FPS
) -> str:
    """
    Build the letterboxing filter chain for the canonical video profile.

    Scales to fit inside width x height preserving aspect ratio, pads the
    remainder with black bars centred on the frame, and fixes fps and pixel format.
    """
    return (
        f"fps={fps},"
        f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
        f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2:color=black,"
        f"format={OUTPUT_PIX_FMT}"
    )


def build_silent_audio_source() -> str:
    """lavfi source for a silent track in the canonical audio profile."""
    return f"anullsrc=channel_layout={OUTPUT_CHANNEL_LAYOUT}:sample_rate={OUTPUT_SAMPLE_RATE}"


def build_audio_filter() -> str:
    """Resample native audio into the canonical audio profile."""
    return f"aformat=sample_rates={OUTPUT_SAMPLE_RATE}:channel_layouts={OUTPUT_CHANNEL_LAYOUT}"


def video_encode_args() -> list:
    """Encoder arguments shared by the animator and the normalizer."""
    return [
        "-c:v", OUTPUT_VIDEO_CODEC,
        "-preset", FFMPEG_PRESET,
        "-crf", str(FFMPEG_CRF),
    ]
