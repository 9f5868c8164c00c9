"""
FastAPI application.

HTTP entry point for the media compiler.
"""

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from shared.config import settings
from shared.logging import get_logger
from api_gateway.routes import compile as compile_routes

logger = get_logger(__name__)

app = FastAPI(title="Media Compiler", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(compile_routes.router)


@app.get("/healthz", response_class=PlainTextResponse)
async def healthz() -> str:
    """Liveness probe."""
    return "ok"


def run() -> None:
    """Start the HTTP server."""
    logger.info(f"Worker listening on :{settings.port}", extra={"port": settings.port})
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
