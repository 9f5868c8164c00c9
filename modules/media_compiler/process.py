"""
Main entry point for media compiler module.

Orchestrates one compile job: fetches assets, animates images, normalizes
all clips, and concatenates them into a single MP4.
"""
import asyncio
import time
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar
from uuid import uuid4

import httpx

from shared.config import Settings, settings as default_settings
from shared.errors import PipelineError
from shared.logging import get_logger, set_job_id
from shared.models.compile import CompileRequest, CompileResult, JobState

from .animator import image_to_clip
from .concatenator import concat_clips
from .config import FINAL_FILENAME, MANIFEST_FILENAME, OUTPUT_MEDIA_TYPE
from .downloader import create_http_client, fetch_to_file
from .normalizer import normalize_clip
from .utils import CommandRunner, run_command
from .workspace import create_workspace

logger = get_logger("media_compiler.process")

T = TypeVar("T")

# Allowed forward transitions; FAILED is reachable from any non-terminal state
STATE_ORDER = [
    JobState.CREATED,
    JobState.FETCHING,
    JobState.ANIMATING,
    JobState.NORMALIZING,
    JobState.CONCATENATING,
    JobState.DONE,
]


class JobStateMachine:
    """Tracks a job through its states. No state is entered twice."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        self.state = JobState.CREATED
        self.history: List[JobState] = [JobState.CREATED]

    def advance(self, state: JobState) -> None:
        if self.state in (JobState.DONE, JobState.FAILED):
            raise RuntimeError(f"Job {self.job_id} already finished in state {self.state.value}")
        if state == JobState.FAILED:
            self._enter(state)
            return
        expected = STATE_ORDER[STATE_ORDER.index(self.state) + 1]
        if state != expected:
            raise RuntimeError(
                f"Invalid transition for job {self.job_id}: {self.state.value} -> {state.value}"
            )
        self._enter(state)

    def _enter(self, state: JobState) -> None:
        logger.info(
            f"Job state {self.state.value} -> {state.value}",
            extra={"from_state": self.state.value, "to_state": state.value}
        )
        self.state = state
        self.history.append(state)


async def run_bounded(
    factories: Sequence[Callable[[], Awaitable[T]]],
    limit: int
) -> List[T]:
    """
    Run independent stage items with at most `limit` in flight.

    Results come back in input order. The first failure cancels the
    remaining items and is re-raised; items still waiting for a slot never
    start.
    """
    semaphore = asyncio.Semaphore(limit)
    failed = asyncio.Event()

    async def guarded(factory: Callable[[], Awaitable[T]]) -> Optional[T]:
        async with semaphore:
            if failed.is_set():
                # An earlier item failed; gather re-raises that error
                return None
            try:
                return await factory()
            except BaseException:
                failed.set()
                raise

    tasks = [asyncio.ensure_future(guarded(f)) for f in factories]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def process(
    request: CompileRequest,
    settings: Optional[Settings] = None,
    runner: CommandRunner = run_command,
    client: Optional[httpx.AsyncClient] = None
) -> CompileResult:
    """
    Compile the requested images and videos into one MP4.

    Scene order is every image in request order, then every video in request
    order. The workspace is left in place for the caller to stream from and
    reclaim.

    Args:
        request: Validated compile request (at least one asset)
        settings: Settings override for workspace, concurrency, timeouts and tool binaries
            (default: module settings)
        runner: Command runner for ffmpeg/ffprobe (injectable for tests)
        client: HTTP client for downloads (a private one is created when omitted)

    Returns:
        CompileResult with the final video path

    Raises:
        FetchError, ProbeError, EncodeError, ConcatError: First failure, job aborted
    """
    settings = settings or default_settings
    job_id = uuid4().hex
    set_job_id(job_id)
    job = JobStateMachine(job_id)
    start_time = time.time()
    limit = settings.max_concurrency

    timings: Dict[str, float] = {
        "fetch": 0.0,
        "animate": 0.0,
        "normalize": 0.0,
        "concat": 0.0,
        "total": 0.0
    }

    image_urls = request.image_urls
    video_urls = request.video_urls

    if request.voiceover_url:
        logger.info(
            "voiceoverUrl is reserved and ignored",
            extra={"voiceover_url": request.voiceover_url}
        )

    try:
        workspace = create_workspace(settings.workspace_root)
        logger.info(
            f"Starting compile: {len(image_urls)} images, {len(video_urls)} videos",
            extra={
                "workspace": str(workspace),
                "image_count": len(image_urls),
                "video_count": len(video_urls),
                "image_duration_sec": request.image_duration_sec
            }
        )

        # Step 1: Download images and videos into two ordered lists
        job.advance(JobState.FETCHING)
        step_start = time.time()
        image_dests = [workspace / f"img_{i}.png" for i in range(len(image_urls))]
        video_dests = [workspace / f"vid_{i}.mp4" for i in range(len(video_urls))]
        downloads = list(zip(image_urls, image_dests)) + list(zip(video_urls, video_dests))

        async def fetch_all(http: httpx.AsyncClient) -> None:
            await run_bounded(
                [lambda u=url, d=dest: fetch_to_file(u, d, client=http) for url, dest in downloads],
                limit
            )

        if client is None:
            async with create_http_client(settings.fetch_timeout) as own_client:
                await fetch_all(own_client)
        else:
            await fetch_all(client)
        timings["fetch"] = time.time() - step_start

        # Step 2: Animate images
        job.advance(JobState.ANIMATING)
        step_start = time.time()
        image_clips = await run_bounded(
            [
                lambda src=src, i=i: image_to_clip(
                    src, workspace / f"imgclip_{i}.mp4", request.image_duration_sec,
                    runner=runner, settings=settings
                )
                for i, src in enumerate(image_dests)
            ],
            limit
        )
        timings["animate"] = time.time() - step_start

        # Step 3: Image clips first, then raw videos
        clip_paths: List[Path] = list(image_clips) + video_dests

        # Step 4: Normalize every clip
        job.advance(JobState.NORMALIZING)
        step_start = time.time()
        normalized_paths = await run_bounded(
            [
                lambda src=src, i=i: normalize_clip(
                    src, workspace / f"norm_{i}.mp4", runner=runner, settings=settings
                )
                for i, src in enumerate(clip_paths)
            ],
            limit
        )
        timings["normalize"] = time.time() - step_start

        # Step 5: Concatenate
        job.advance(JobState.CONCATENATING)
        step_start = time.time()
        final_path = await concat_clips(
            normalized_paths,
            workspace / FINAL_FILENAME,
            manifest_path=workspace / MANIFEST_FILENAME,
            runner=runner,
            settings=settings
        )
        timings["concat"] = time.time() - step_start

        job.advance(JobState.DONE)
    except PipelineError as e:
        job.advance(JobState.FAILED)
        logger.error(
            f"Compile failed at {e.stage} stage: {e.message}",
            extra={"stage": e.stage, "state": job.history[-2].value, "detail": e.detail}
        )
        raise
    except Exception as e:
        job.advance(JobState.FAILED)
        logger.error(
            f"Compile failed unexpectedly: {e}",
            extra={"state": job.history[-2].value, "error": str(e)},
            exc_info=True
        )
        raise
    finally:
        set_job_id(None)

    timings["total"] = time.time() - start_time
    logger.info(
        f"Compiled {len(normalized_paths)} clips in {timings['total']:.2f}s",
        extra={"output_path": str(final_path), "clip_count": len(normalized_paths), "timings": timings, "job_id": job_id}
    )

    return CompileResult(
        job_id=job_id,
        output_path=final_path,
        workspace=workspace,
        media_type=OUTPUT_MEDIA_TYPE,
        filename=FINAL_FILENAME,
        clip_count=len(normalized_paths),
        timings=timings
    )


async def run_pipeline(
    request: CompileRequest,
    settings: Optional[Settings] = None,
    runner: CommandRunner = run_command,
    client: Optional[httpx.AsyncClient] = None
) -> Path:
    """Compile a request and return only the final video path."""
    result = await process(request, settings=settings, runner=runner, client=client)
    return result.output_path
