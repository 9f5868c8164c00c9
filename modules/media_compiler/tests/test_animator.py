"""
Unit tests for image animator.
"""
import pytest

from modules.media_compiler.animator import image_to_clip
from shared.errors import EncodeError


class TestImageToClip:
    """Tests for image_to_clip function."""

    @pytest.mark.asyncio
    async def test_image_to_clip_command(self, tmp_path, fake_runner):
        """Test the exact ffmpeg invocation for a 3 second clip."""
        runner = fake_runner()
        image = tmp_path / "img_0.png"
        output = tmp_path / "clips" / "imgclip_0.mp4"

        result = await image_to_clip(image, output, 3, runner=runner)

        assert result == output
        assert output.exists()
        assert runner.ffmpeg_calls() == [[
            "-y",
            "-loop", "1",
            "-i", str(image),
            "-f", "lavfi", "-t", "3",
            "-i", "anullsrc=channel_layout=stereo:sample_rate=44100",
            "-shortest",
            "-vf",
            "fps=24,scale=1280:720:force_original_aspect_ratio=decrease,"
            "pad=1280:720:(ow-iw)/2:(oh-ih)/2:color=black,format=yuv420p",
            "-c:v", "libx264", "-preset", "veryfast", "-crf", "21",
            "-c:a", "aac",
            "-pix_fmt", "yuv420p",
            "-movflags", "+faststart",
            str(output)
        ]]

    @pytest.mark.asyncio
    async def test_default_duration(self, tmp_path, fake_runner):
        """Test clips default to 5 seconds."""
        runner = fake_runner()

        await image_to_clip(tmp_path / "img_0.png", tmp_path / "imgclip_0.mp4", runner=runner)

        args = runner.ffmpeg_calls()[0]
        assert args[args.index("-t") + 1] == "5.0"

    @pytest.mark.asyncio
    async def test_non_positive_duration(self, tmp_path, fake_runner):
        """Test zero duration is rejected before ffmpeg runs."""
        runner = fake_runner()

        with pytest.raises(EncodeError, match="must be positive"):
            await image_to_clip(tmp_path / "img_0.png", tmp_path / "imgclip_0.mp4", 0, runner=runner)

        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_ffmpeg_failure(self, tmp_path, fake_runner):
        """Test ffmpeg failure raises EncodeError without leaking stderr."""
        runner = fake_runner(fail_when=lambda args: True)

        with pytest.raises(EncodeError, match="Failed to animate image img_0.png") as exc_info:
            await image_to_clip(tmp_path / "img_0.png", tmp_path / "imgclip_0.mp4", 2, runner=runner)

        assert "secret stderr line" not in str(exc_info.value)
        assert "secret stderr line" in exc_info.value.detail
        assert exc_info.value.stage == "encode"

    @pytest.mark.asyncio
    async def test_output_not_created(self, tmp_path):
        """Test success exit without an output file is an error."""
        from modules.media_compiler.utils import CommandResult

        async def runner(command, args, cwd=None, timeout=None):
            return CommandResult(returncode=0)

        with pytest.raises(EncodeError, match="Image clip not created"):
            await image_to_clip(tmp_path / "img_0.png", tmp_path / "imgclip_0.mp4", 2, runner=runner)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("duration", [float("inf"), float("nan")])
    async def test_non_finite_duration(self, tmp_path, fake_runner, duration):
        """Test an unbounded duration never reaches ffmpeg."""
        runner = fake_runner()

        with pytest.raises(EncodeError, match="finite"):
            await image_to_clip(tmp_path / "img_0.png", tmp_path / "imgclip_0.mp4", duration, runner=runner)

        assert runner.calls == []
