"""
Compile endpoint.

Validates a compile request, runs the pipeline, and streams the final MP4.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import FileResponse, JSONResponse
from starlette.background import BackgroundTask

from shared.config import settings
from shared.errors import PipelineError, ValidationError
from shared.logging import get_logger
from shared.validation import validate_compile_request
from modules.media_compiler import process
from modules.media_compiler.workspace import cleanup_workspace

logger = get_logger(__name__)

router = APIRouter()

STAGE_MESSAGES = {
    "fetch": "Downloading an asset failed",
    "probe": "Inspecting a clip failed",
    "encode": "Encoding a clip failed",
    "concat": "Joining clips failed",
}


@router.post("/compile")
async def compile_video(request: Request):
    """
    Compile images and videos into one MP4.

    Body: {"images": [url], "videos": [url], "imageDurationSec": 5, "voiceoverUrl": url}

    Returns:
        The final video inline as video/mp4
    """
    try:
        payload = await request.json()
    except ValueError:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Request body must be valid JSON"}
        )

    try:
        compile_request = validate_compile_request(payload)
    except ValidationError as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(e)})

    try:
        result = await process(compile_request)
    except PipelineError as e:
        # Tool stderr stays in the server logs
        logger.error(
            f"compile error: {e.message}",
            extra={"stage": e.stage, "detail": e.detail}
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": f"{STAGE_MESSAGES.get(e.stage, 'Compile failed')}: {e.message}",
                "stage": e.stage
            }
        )
    except Exception as e:
        logger.error(f"compile error: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Compile failed"}
        )

    background = None
    if settings.cleanup_workspace:
        background = BackgroundTask(cleanup_workspace, result.workspace)

    return FileResponse(
        result.output_path,
        media_type=result.media_type,
        filename=result.filename,
        content_disposition_type="inline",
        background=background
    )
