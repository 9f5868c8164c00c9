"""
Error taxonomy.

Typed exceptions shared by the compile pipeline and the HTTP layer.
"""

from typing import Optional


class ConfigError(Exception):
    """Raised when settings are missing or invalid."""


class ValidationError(Exception):
    """Raised when an inbound request is malformed."""


class PipelineError(Exception):
    """
    Base class for compile pipeline failures.

    Attributes:
        stage: Pipeline stage that failed (fetch, probe, encode, concat)
        detail: Raw tool output for server-side logs; never part of the message
    """

    stage = "pipeline"

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class FetchError(PipelineError):
    """Raised when a remote asset cannot be retrieved."""

    stage = "fetch"

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        reason: Optional[str] = None
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.reason = reason


class ProbeError(PipelineError):
    """Raised when the duration of a media file cannot be inspected."""

    stage = "probe"


class EncodeError(PipelineError):
    """Raised when animating or normalizing a clip fails."""

    stage = "encode"


class ConcatError(PipelineError):
    """Raised when joining clips fails or the manifest cannot be written."""

    stage = "concat"
