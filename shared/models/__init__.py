"""
Data models for the compile pipeline.

This module exports all Pydantic models used across pipeline modules.
"""

from .compile import (
    CompileRequest,
    CompileResult,
    JobState,
    MediaProbe,
    DEFAULT_IMAGE_DURATION_SEC
)

__all__ = [
    "CompileRequest",
    "CompileResult",
    "JobState",
    "MediaProbe",
    "DEFAULT_IMAGE_DURATION_SEC",
]
