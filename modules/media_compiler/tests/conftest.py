"""
Pytest fixtures for media compiler tests.
"""
import json
import re
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest

from shared.config import Settings, settings
from modules.media_compiler.utils import CommandResult


class FakeRunner:
    """
    Stand-in for run_command.

    ffprobe answers from `duration_for` / `audio_for`; ffmpeg writes a dummy
    file at its output path (last argument) unless `fail_when` matches.
    `tools` names the binaries to expect (default: module settings).
    """

    def __init__(
        self,
        audio_for: Callable[[str], bool] = lambda path: True,
        duration_for: Callable[[str], str] = lambda path: "5.000000",
        fail_when: Optional[Callable[[List[str]], bool]] = None,
        duration_returncode: int = 0,
        audio_returncode: int = 0,
        tools: Optional[Settings] = None
    ):
        self.audio_for = audio_for
        self.duration_for = duration_for
        self.fail_when = fail_when
        self.duration_returncode = duration_returncode
        self.audio_returncode = audio_returncode
        self.tools = tools or settings
        self.calls: List[Tuple[str, List[str]]] = []
        self.timeouts: List[Optional[float]] = []

    async def __call__(self, command, args, cwd=None, timeout=None) -> CommandResult:
        args = [str(a) for a in args]
        self.calls.append((command, args))
        self.timeouts.append(timeout)

        if command == self.tools.ffprobe_binary:
            target = args[-1]
            if "format=duration" in args:
                if self.duration_returncode != 0:
                    return CommandResult(returncode=self.duration_returncode, stderr="Invalid data found")
                return CommandResult(returncode=0, stdout=self.duration_for(target) + "\n")
            if self.audio_returncode != 0:
                return CommandResult(returncode=self.audio_returncode, stderr="Invalid data found")
            return CommandResult(returncode=0, stdout="1\n" if self.audio_for(target) else "")

        if self.fail_when and self.fail_when(args):
            return CommandResult(returncode=1, stderr="Conversion failed!\nsecret stderr line")

        Path(args[-1]).write_bytes(b"x" * 2048)
        return CommandResult(returncode=0)

    def ffmpeg_calls(self) -> List[List[str]]:
        return [args for command, args in self.calls if command == self.tools.ffmpeg_binary]

    def ffprobe_calls(self) -> List[List[str]]:
        return [args for command, args in self.calls if command == self.tools.ffprobe_binary]


@pytest.fixture
def fake_runner():
    """Factory for FakeRunner instances."""
    return FakeRunner


@pytest.fixture
def test_settings(tmp_path):
    """Settings rooted in a per-test workspace directory."""
    return Settings(_env_file=None, workspace_root=str(tmp_path / "jobs"))


def create_test_video(
    output_path: Path,
    duration: float = 1.0,
    width: int = 640,
    height: int = 480,
    fps: int = 30,
    with_audio: bool = False
) -> Path:
    """
    Create a minimal valid video file for testing.

    Args:
        output_path: Path to output video file
        duration: Duration in seconds (default: 1.0)
        width: Video width (default: 640)
        height: Video height (default: 480)
        fps: Frame rate (default: 30)
        with_audio: Add a 440Hz mono tone at 48kHz (default: False)
    """
    cmd = [
        "ffmpeg", "-y",
        "-f", "lavfi",
        "-i", f"testsrc=size={width}x{height}:rate={fps}:duration={duration}",
    ]
    if with_audio:
        cmd.extend(["-f", "lavfi", "-i", f"sine=frequency=440:sample_rate=48000:duration={duration}"])
    cmd.extend(["-c:v", "libx264", "-preset", "ultrafast", "-pix_fmt", "yuv420p"])
    if with_audio:
        cmd.extend(["-c:a", "aac", "-shortest"])
    cmd.append(str(output_path))
    subprocess.run(cmd, capture_output=True, timeout=60, check=True)
    return output_path


def create_test_image(output_path: Path, width: int = 320, height: int = 240, color: str = "red") -> Path:
    """Create a single-frame PNG for testing."""
    cmd = [
        "ffmpeg", "-y",
        "-f", "lavfi",
        "-i", f"color=c={color}:s={width}x{height}",
        "-frames:v", "1",
        str(output_path)
    ]
    subprocess.run(cmd, capture_output=True, timeout=60, check=True)
    return output_path


def ffprobe_streams(path: Path) -> List[dict]:
    """Stream descriptions of a media file as ffprobe JSON."""
    result = subprocess.run(
        [
            "ffprobe", "-v", "error",
            "-show_entries", "stream=codec_type,codec_name,width,height,r_frame_rate,sample_rate,channels",
            "-of", "json",
            str(path)
        ],
        capture_output=True,
        text=True,
        check=True,
        timeout=30
    )
    return json.loads(result.stdout).get("streams", [])


def ffprobe_duration(path: Path) -> float:
    result = subprocess.run(
        ["ffprobe", "-v", "error", "-show_entries", "format=duration",
         "-of", "default=noprint_wrappers=1:nokey=1", str(path)],
        capture_output=True,
        text=True,
        check=True,
        timeout=30
    )
    return float(result.stdout.strip())


def mean_volume(path: Path, start: float, duration: Optional[float] = None) -> float:
    """Mean audio level in dB of a time window, from ffmpeg volumedetect."""
    cmd = ["ffmpeg", "-hide_banner", "-nostats", "-ss", str(start)]
    if duration is not None:
        cmd.extend(["-t", str(duration)])
    cmd.extend(["-i", str(path), "-vn", "-af", "volumedetect", "-f", "null", "-"])
    result = subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=60)
    match = re.search(r"mean_volume:\s*(-?inf|-?[\d.]+) dB", result.stderr)
    assert match, result.stderr
    return float(match.group(1))


@pytest.fixture
def media_factory():
    """Helpers for building and inspecting real media files."""
    class _Media:
        video = staticmethod(create_test_video)
        image = staticmethod(create_test_image)
        streams = staticmethod(ffprobe_streams)
        duration = staticmethod(ffprobe_duration)
        mean_volume = staticmethod(mean_volume)
    return _Media
