"""
Validation utilities.

Request validation performed at the transport boundary, before the pipeline runs.
"""

from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from shared.errors import ValidationError
from shared.models.compile import CompileRequest

MISSING_ASSETS_MESSAGE = "Provide images[] and/or videos[] URLs."


def validate_compile_request(payload: Dict[str, Any]) -> CompileRequest:
    """
    Parse and validate a compile request body.

    Args:
        payload: Decoded JSON body

    Returns:
        Validated CompileRequest

    Raises:
        ValidationError: If the body is malformed or names no assets
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    try:
        request = CompileRequest.model_validate(payload)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(f"Invalid field '{location}': {first.get('msg')}") from e

    if not request.image_urls and not request.video_urls:
        raise ValidationError(MISSING_ASSETS_MESSAGE)

    for url in request.image_urls + request.video_urls:
        if not isinstance(url, str) or not url.startswith(("http://", "https://")):
            raise ValidationError(f"Asset URL must be a valid HTTP/HTTPS URL: {url}")

    return request
