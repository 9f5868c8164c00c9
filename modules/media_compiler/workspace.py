"""
Job workspace management for media compiler module.

Each compile job owns one uniquely-named scratch directory under the
configured workspace root. The pipeline never deletes it; the caller decides.
"""
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from shared.config import settings
from shared.logging import get_logger

logger = get_logger("media_compiler.workspace")

WORKSPACE_PREFIX = "job-"


def create_workspace(root: Optional[str] = None) -> Path:
    """
    Create a fresh job workspace.

    Args:
        root: Parent directory (default: settings.workspace_root)

    Returns:
        Path to the new, empty directory
    """
    base = Path(root or settings.workspace_root)
    base.mkdir(parents=True, exist_ok=True)
    workspace = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=base))
    logger.info(f"Created workspace {workspace}", extra={"workspace": str(workspace)})
    return workspace


def cleanup_workspace(workspace: Path) -> None:
    """Remove a job workspace and everything in it."""
    shutil.rmtree(workspace, ignore_errors=True)
    logger.info(f"Removed workspace {workspace}", extra={"workspace": str(workspace)})
