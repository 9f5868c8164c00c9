"""
Utility functions for media compiler module.

External command execution and tool availability checks.
"""
import asyncio
import shutil
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from shared.config import settings
from shared.logging import get_logger

logger = get_logger("media_compiler.utils")

# Exit status reported when the executable cannot be spawned (shell convention)
COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    """Exit status and captured output of one external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    def stderr_tail(self, lines: int = 20) -> str:
        """Last lines of stderr, for logs and error details."""
        return "\n".join(self.stderr.strip().splitlines()[-lines:])


CommandRunner = Callable[..., Awaitable[CommandResult]]


def check_ffmpeg_available() -> bool:
    """
    Check if FFmpeg and FFprobe are installed and available in PATH.

    Returns:
        True if both tools are available, False otherwise
    """
    return (
        shutil.which(settings.ffmpeg_binary) is not None
        and shutil.which(settings.ffprobe_binary) is not None
    )


async def run_command(
    command: str,
    args: Sequence[str],
    cwd: Optional[str] = None,
    timeout: Optional[float] = None
) -> CommandResult:
    """
    Run an external command and capture its output.

    The command is spawned directly with an argument list, never through a shell.
    Failures are reported through the returned exit status; callers decide
    which error to raise.

    Args:
        command: Executable name or path
        args: Arguments passed to the executable
        cwd: Working directory (default: current directory)
        timeout: Seconds to wait before killing the process (default: no limit)

    Returns:
        CommandResult with exit status and decoded stdout/stderr
    """
    cmd: List[str] = [command, *[str(a) for a in args]]
    logger.info(
        f"Running command: {' '.join(cmd)}",
        extra={"command": cmd, "cwd": cwd}
    )

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd
        )
    except FileNotFoundError as e:
        logger.error(f"Executable not found: {command}", extra={"command": cmd})
        return CommandResult(returncode=COMMAND_NOT_FOUND, stderr=str(e))

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        stdout, stderr = await process.communicate()
        logger.error(
            f"Command timed out after {timeout}s: {command}",
            extra={"command": cmd, "timeout": timeout}
        )
        return CommandResult(
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode(errors="replace") if stdout else "",
            stderr=f"{command} timed out after {timeout}s",
            timed_out=True
        )
    except asyncio.CancelledError:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        await process.wait()
        logger.warning(
            f"Command cancelled, process killed: {command}",
            extra={"command": cmd, "returncode": process.returncode}
        )
        raise

    result = CommandResult(
        returncode=process.returncode,
        stdout=stdout.decode(errors="replace") if stdout else "",
        stderr=stderr.decode(errors="replace") if stderr else ""
    )
    if not result.ok:
        logger.warning(
            f"Command exited with status {result.returncode}: {command}",
            extra={"command": cmd, "returncode": result.returncode, "stderr": result.stderr_tail()}
        )
    return result
