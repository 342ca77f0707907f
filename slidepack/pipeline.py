"""
Conversion orchestrator: sequences conversion, composition, compression,
delivery and cleanup for one uploaded slide deck.

Stages run strictly in order for a job:

    received -> converting -> [composing] -> compressing -> delivering -> cleaned

Any fatal error moves the job to ``failed``. Every artifact a job creates is
tracked, and each tracked path is deleted exactly once when the job ends.
"""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from . import config
from .composer import compose_file
from .compression import compress_pdf
from .converter import convert_to_pdf
from .errors import InvalidRequestError, PipelineError
from .models import (
    DEFAULT_SLIDES_PER_PAGE,
    CanvasConfig,
    JobStage,
    is_supported_slides_per_page,
)
from .tools import SubprocessToolRunner, ToolRunner
from .utils import PathLike, base_name, cleanup_file, ensure_directory, pdf_download_name, \
    remove_directory, safe_name, scrub_paths

logger = logging.getLogger(__name__)

INVALID_SLIDES_PER_PAGE = "Invalid slidesPerPage. Must be 1, 2, 3, 4, 6, or 9."

# Allowed stage transitions; FAILED is reachable from every non-terminal stage.
TRANSITIONS: Dict[str, tuple] = {
    JobStage.RECEIVED: (JobStage.CONVERTING,),
    JobStage.CONVERTING: (JobStage.COMPOSING, JobStage.COMPRESSING),
    JobStage.COMPOSING: (JobStage.COMPRESSING,),
    JobStage.COMPRESSING: (JobStage.DELIVERING,),
    JobStage.DELIVERING: (JobStage.CLEANED,),
    JobStage.CLEANED: (),
    JobStage.FAILED: (),
}


def validate_slides_per_page(value: Union[str, int, None]) -> int:
    """
    Parse and check the requested slides-per-page count.

    Args:
        value: Raw value from the request; None or "" means the default (1)

    Returns:
        A supported slides-per-page count

    Raises:
        InvalidRequestError: If the value is not an integer in the supported set
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_SLIDES_PER_PAGE
    try:
        slides_per_page = int(value)
    except (TypeError, ValueError):
        raise InvalidRequestError(INVALID_SLIDES_PER_PAGE)
    if not is_supported_slides_per_page(slides_per_page):
        raise InvalidRequestError(INVALID_SLIDES_PER_PAGE)
    return slides_per_page


class ConversionJob:
    """Transient state of one request, from upload to cleanup."""

    def __init__(self, original_filename: str, slides_per_page: int,
                 upload_dir: PathLike, work_dir: PathLike, job_id: Optional[str] = None):
        self.id = job_id or uuid.uuid4().hex
        self.original_filename = original_filename
        self.slides_per_page = slides_per_page
        self.base_name = safe_name(base_name(original_filename))
        self.upload_dir = Path(upload_dir)
        self.work_dir = Path(work_dir)

        suffix = Path(original_filename).suffix.lower()
        self.input_path = self.upload_dir / f"{self.base_name}{suffix}"

        self.stage = JobStage.RECEIVED
        self.history: List[str] = [JobStage.RECEIVED]
        self.final_path: Optional[Path] = None
        self.error: Optional[str] = None
        self._artifacts: Dict[Path, None] = {}
        self.track(self.input_path)

    @property
    def temp_pdf_path(self) -> Path:
        return self.work_dir / f"{self.base_name}_temp.pdf"

    @property
    def final_pdf_path(self) -> Path:
        return self.work_dir / f"{self.base_name}_optimized.pdf"

    @property
    def download_name(self) -> str:
        return pdf_download_name(self.original_filename)

    @property
    def artifacts(self) -> List[Path]:
        """Tracked paths not yet cleaned up."""
        return list(self._artifacts)

    @property
    def is_terminal(self) -> bool:
        return self.stage in JobStage.TERMINAL

    def track(self, path: PathLike) -> Path:
        path = Path(path)
        self._artifacts.setdefault(path, None)
        return path

    def transition(self, stage: str) -> None:
        if stage != JobStage.FAILED and stage not in TRANSITIONS[self.stage]:
            raise RuntimeError(f"Job {self.id}: invalid transition {self.stage} -> {stage}")
        if stage == JobStage.FAILED and self.is_terminal:
            raise RuntimeError(f"Job {self.id}: already finished as {self.stage}")
        logger.info(f"Job {self.id}: {self.stage} -> {stage}")
        self.stage = stage
        self.history.append(stage)

    def cleanup(self, keep: Iterable[PathLike] = ()) -> List[Path]:
        """
        Delete tracked artifacts, except those in keep.

        Each path leaves the tracked set before deletion is attempted, so
        calling this again never touches the same path twice.

        Returns:
            Paths for which deletion was attempted
        """
        kept = {Path(p) for p in keep}
        attempted = []
        for path in list(self._artifacts):
            if path in kept:
                continue
            del self._artifacts[path]
            cleanup_file(path)
            attempted.append(path)
        return attempted

    def release(self) -> None:
        """Delete every remaining artifact and the job's directories."""
        self.cleanup()
        remove_directory(self.work_dir)
        remove_directory(self.upload_dir)

    def fail(self, error: str) -> None:
        self.error = error
        self.transition(JobStage.FAILED)
        self.release()

    def __repr__(self) -> str:
        return f"ConversionJob(id={self.id!r}, stage={self.stage!r}, slides_per_page={self.slides_per_page})"


class ConversionPipeline:
    """
    Runs conversion jobs against the external converter and compressor.

    The pipeline holds no per-job state; each job owns its own upload and
    work directories named after the job id.
    """

    def __init__(self, runner: Optional[ToolRunner] = None, *,
                 upload_dir: Optional[PathLike] = None,
                 output_dir: Optional[PathLike] = None,
                 canvas: Optional[CanvasConfig] = None,
                 convert_timeout: Optional[float] = None,
                 compress_timeout: Optional[float] = None,
                 max_concurrent_jobs: Optional[int] = None,
                 libreoffice_cmd: Optional[str] = None,
                 ghostscript_cmd: Optional[str] = None):
        self.runner = runner or SubprocessToolRunner()
        self.upload_dir = Path(upload_dir or config.UPLOAD_DIR)
        self.output_dir = Path(output_dir or config.OUTPUT_DIR)
        self.canvas = canvas or CanvasConfig()
        self.convert_timeout = config.CONVERT_TIMEOUT_SEC if convert_timeout is None else convert_timeout
        self.compress_timeout = config.COMPRESS_TIMEOUT_SEC if compress_timeout is None else compress_timeout
        self.libreoffice_cmd = libreoffice_cmd
        self.ghostscript_cmd = ghostscript_cmd
        self.max_concurrent_jobs = max_concurrent_jobs or config.MAX_CONCURRENT_JOBS
        self._slots: Optional[asyncio.Semaphore] = None

    @property
    def slots(self) -> asyncio.Semaphore:
        """Job slots, created inside the first event loop that runs a job."""
        if self._slots is None:
            self._slots = asyncio.Semaphore(self.max_concurrent_jobs)
        return self._slots

    def ensure_directories(self) -> None:
        ensure_directory(self.upload_dir)
        ensure_directory(self.output_dir)

    def create_job(self, original_filename: str, slides_per_page: int) -> ConversionJob:
        """
        Create a job with its own upload and work directories.

        Raises:
            InvalidRequestError: If slides_per_page is not supported
        """
        if not is_supported_slides_per_page(slides_per_page):
            raise InvalidRequestError(INVALID_SLIDES_PER_PAGE)

        self.ensure_directories()
        job_id = uuid.uuid4().hex
        job = ConversionJob(
            original_filename,
            slides_per_page,
            upload_dir=ensure_directory(self.upload_dir / job_id),
            work_dir=ensure_directory(self.output_dir / job_id),
            job_id=job_id,
        )
        logger.info(f"Job {job.id}: received {original_filename} ({slides_per_page} slides per page)")
        return job

    async def run(self, job: ConversionJob) -> Path:
        """
        Convert, compose and compress the job's input.

        On success the job is left in the delivering stage with only the
        deliverable still on disk. On failure the job is failed, every
        artifact is removed, and the stage's error is raised.

        Returns:
            Path of the PDF to deliver

        Raises:
            PipelineError: If conversion or composition fails
        """
        async with self.slots:
            try:
                final_path = await self._run_stages(job)
            except PipelineError as e:
                logger.error(f"Job {job.id}: {e.stage} failed: {str(e)}")
                job.fail(str(e))
                raise
            except Exception as e:
                stage = job.stage
                message = scrub_paths(f"{stage.capitalize()} failed: {str(e)}",
                                      job.work_dir, job.upload_dir)
                logger.exception(f"Job {job.id}: unexpected error while {stage}")
                job.fail(message)
                raise PipelineError(message, stage=stage) from e
            except asyncio.CancelledError:
                logger.warning(f"Job {job.id}: cancelled while {job.stage}")
                job.fail("Request cancelled")
                raise

        job.final_path = final_path
        job.cleanup(keep=[final_path])
        job.transition(JobStage.DELIVERING)
        return final_path

    async def _run_stages(self, job: ConversionJob) -> Path:
        job.transition(JobStage.CONVERTING)
        converted = job.track(await convert_to_pdf(
            job.input_path,
            job.work_dir,
            self.runner,
            alternate_names=[job.original_filename],
            timeout=self.convert_timeout,
            command=self.libreoffice_cmd,
        ))

        pdf_to_compress = converted
        if job.slides_per_page > 1:
            job.transition(JobStage.COMPOSING)
            temp_path = job.track(job.temp_pdf_path)
            page_count = await asyncio.to_thread(
                compose_file, converted, temp_path, job.slides_per_page, self.canvas
            )
            logger.info(f"Job {job.id}: composed {page_count} pages")
            pdf_to_compress = temp_path

        job.transition(JobStage.COMPRESSING)
        final_path = job.track(job.final_pdf_path)
        return await compress_pdf(
            pdf_to_compress,
            final_path,
            self.runner,
            timeout=self.compress_timeout,
            command=self.ghostscript_cmd,
        )

    async def finish(self, job: ConversionJob, error: Optional[BaseException] = None) -> None:
        """
        Completion signal from the transfer: end the job and remove what is left.

        Args:
            job: Job whose response has finished streaming
            error: Exception raised while sending, if any
        """
        if error is not None:
            logger.warning(f"Job {job.id}: delivery interrupted: {str(error) or type(error).__name__}")
        if job.stage == JobStage.DELIVERING:
            job.transition(JobStage.CLEANED)
        await asyncio.to_thread(job.release)

    def abort(self, job: ConversionJob, message: str) -> None:
        """Fail a job that never reached the pipeline (e.g. a rejected upload)."""
        if not job.is_terminal:
            job.fail(message)
        else:
            job.release()
