"""
File download logic for media compiler module.

Fetches remote image and video assets into the job workspace.
"""
from pathlib import Path
from typing import Optional

import httpx

from shared.config import settings
from shared.errors import FetchError
from shared.logging import get_logger

logger = get_logger("media_compiler.downloader")

CHUNK_SIZE = 1024 * 1024


def create_http_client(timeout: Optional[float] = None) -> httpx.AsyncClient:
    """HTTP client used for asset downloads within one job."""
    timeout = httpx.Timeout(timeout or settings.fetch_timeout, connect=30.0)
    return httpx.AsyncClient(timeout=timeout, follow_redirects=True)


async def fetch_to_file(
    url: str,
    dest: Path,
    client: Optional[httpx.AsyncClient] = None
) -> Path:
    """
    Download a URL and write the body byte-for-byte to dest.

    Args:
        url: HTTP(S) URL of the asset
        dest: Destination file path; parent directories are created
        client: Shared HTTP client (a private one is created when omitted)

    Returns:
        dest

    Raises:
        FetchError: On a non-2xx response or a transport failure
    """
    dest = Path(dest)
    if client is None:
        async with create_http_client() as own_client:
            return await fetch_to_file(url, dest, client=own_client)

    logger.info(f"Downloading {url}", extra={"url": url, "dest": str(dest)})

    try:
        async with client.stream("GET", url) as response:
            if not response.is_success:
                reason = response.reason_phrase
                logger.error(
                    f"Fetch failed: {response.status_code} {reason}",
                    extra={"url": url, "status_code": response.status_code}
                )
                raise FetchError(
                    f"Fetch failed: {response.status_code} {reason}",
                    url=url,
                    status_code=response.status_code,
                    reason=reason
                )

            dest.parent.mkdir(parents=True, exist_ok=True)
            size = 0
            with dest.open("wb") as f:
                async for chunk in response.aiter_bytes(CHUNK_SIZE):
                    f.write(chunk)
                    size += len(chunk)
    except FetchError:
        raise
    except (httpx.HTTPError, OSError) as e:
        dest.unlink(missing_ok=True)
        logger.error(f"Error downloading {url}: {e}", extra={"url": url, "error": str(e)})
        raise FetchError(f"Fetch failed: {type(e).__name__}", url=url) from e

    logger.info(
        f"Downloaded {size / 1024:.1f} KB to {dest.name}",
        extra={"url": url, "dest": str(dest), "size_bytes": size}
    )
    return dest
