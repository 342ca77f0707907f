"""
FastAPI web service that turns slide decks into compact N-up PDF handouts.
"""

import asyncio
from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
import logging
from typing import Optional

from . import __version__, config
from .converter import inspect_deck, needs_validation
from .errors import InvalidRequestError, PipelineError
from .models import DECK_EXTENSIONS, SUPPORTED_SLIDES_PER_PAGE, is_deck_filename
from .pipeline import ConversionJob, ConversionPipeline, validate_slides_per_page
from .tools import SubprocessToolRunner, find_ghostscript, find_libreoffice, tool_available

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

UPLOAD_CHUNK_SIZE = 1024 * 1024

app = FastAPI(
    title="Slide Deck to PDF Handout Converter",
    description="Converts presentations to PDF with optional multiple slides per page",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

PIPELINE = ConversionPipeline(SubprocessToolRunner())


def get_pipeline() -> ConversionPipeline:
    return PIPELINE


class DeliveryResponse(FileResponse):
    """
    File response that reports back once the body has been sent.

    The completion callback runs after the last chunk is written or after
    the transfer fails, never while the file is still being read.
    """

    def __init__(self, path, *, job: ConversionJob, pipeline: ConversionPipeline, **kwargs):
        super().__init__(path, **kwargs)
        self.job = job
        self.pipeline = pipeline

    async def __call__(self, scope, receive, send) -> None:
        error = None
        try:
            await super().__call__(scope, receive, send)
        except Exception as e:
            error = e
            raise
        finally:
            await self.pipeline.finish(self.job, error)


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(InvalidRequestError)
async def invalid_request_handler(request: Request, exc: InvalidRequestError):
    return error_response(str(exc), exc.status_code)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    return error_response(str(exc) or "Conversion failed.", 500)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response("Invalid request: " + "; ".join(err.get("msg", "") for err in exc.errors()), 400)


@app.on_event("startup")
async def startup_event():
    """Create storage directories and report which tools were found."""
    logger.info("Starting slide deck converter service")
    PIPELINE.ensure_directories()

    libreoffice = find_libreoffice()
    if tool_available(libreoffice):
        logger.info(f"LibreOffice is available: {libreoffice}")
    else:
        logger.warning("LibreOffice not found - make sure it is installed and on PATH")

    ghostscript = find_ghostscript()
    if not tool_available(ghostscript):
        logger.warning("Ghostscript not found - PDFs will be delivered uncompressed")


@app.get("/", response_class=HTMLResponse)
async def root():
    """Return service usage instructions."""
    options = "".join(
        f'<option value="{n}">{n}</option>' for n in SUPPORTED_SLIDES_PER_PAGE
    )
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>Slide Deck to PDF Handout Converter</title>
        <style>
            body {{ font-family: Arial, sans-serif; margin: 40px; background: #f5f5f5; }}
            .container {{ max-width: 800px; margin: 0 auto; background: white; padding: 30px; border-radius: 12px; }}
            label {{ display: block; margin: 16px 0 8px; font-weight: bold; color: #555; }}
            pre {{ background: #f8f8f8; padding: 15px; border-radius: 6px; overflow-x: auto; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1>Slide Deck to PDF Handout Converter</h1>
            <form action="/convert" method="post" enctype="multipart/form-data">
                <label for="file">Presentation ({", ".join(DECK_EXTENSIONS)}):</label>
                <input type="file" id="file" name="file" required>
                <label for="slidesPerPage">Slides per page:</label>
                <select id="slidesPerPage" name="slidesPerPage">{options}</select>
                <p><button type="submit">Convert to PDF</button></p>
            </form>
            <h2>API</h2>
            <pre>
curl -X POST "http://localhost:{config.PORT}/convert" \\
     -F "file=@lecture.pptx" \\
     -F "slidesPerPage=4" \\
     --output "lecture.pdf"
            </pre>
            <p><a href="/docs">API Documentation</a> | <a href="/health">Health</a></p>
        </div>
    </body>
    </html>
    """


@app.post("/convert")
async def convert_deck(
    request: Request,
    file: Optional[UploadFile] = File(None),
    slidesPerPage: Optional[str] = Form(None),
    pipeline: ConversionPipeline = Depends(get_pipeline),
):
    """
    Convert a slide deck to PDF, optionally with several slides per page.

    Args:
        file: Presentation to convert
        slidesPerPage: 1, 2, 3, 4, 6 or 9 (form field, or query parameter)

    Returns:
        The PDF as an attachment named after the uploaded file

    Raises:
        InvalidRequestError: Missing file, bad slide count, unsupported or invalid deck
        PipelineError: Conversion or composition failed
    """
    if file is None or not file.filename:
        raise InvalidRequestError("No file uploaded.")

    raw_slides = slidesPerPage if slidesPerPage is not None else request.query_params.get("slidesPerPage")
    slides_per_page = validate_slides_per_page(raw_slides)

    if not is_deck_filename(file.filename):
        raise InvalidRequestError(
            f"Please upload a presentation file ({', '.join(DECK_EXTENSIONS)})"
        )

    logger.info(f"Received file: {file.filename}, slides per page: {slides_per_page}")

    job = pipeline.create_job(file.filename, slides_per_page)
    try:
        size_bytes = await save_upload(file, job)
        if size_bytes == 0:
            raise InvalidRequestError("Empty file uploaded")
        if needs_validation(file.filename):
            deck_info = await asyncio.to_thread(inspect_deck, job.input_path)
            if deck_info is None:
                raise InvalidRequestError("Invalid presentation file")
            logger.info(f"Job {job.id}: {deck_info['slide_count']} slides, {size_bytes} bytes")
    except Exception as e:
        pipeline.abort(job, str(e))
        raise

    final_path = await pipeline.run(job)

    logger.info(f"Job {job.id}: conversion complete, sending {job.download_name}")
    return DeliveryResponse(
        final_path,
        job=job,
        pipeline=pipeline,
        media_type="application/pdf",
        filename=job.download_name,
    )


async def save_upload(file: UploadFile, job: ConversionJob) -> int:
    """
    Stream an upload into the job's input path, enforcing the size limit.

    Returns:
        Number of bytes written

    Raises:
        InvalidRequestError: If the upload exceeds the configured limit (413)
    """
    max_bytes = config.MAX_UPLOAD_MB * 1024 * 1024
    size_bytes = 0
    with job.input_path.open("wb") as f_out:
        while True:
            chunk = await file.read(UPLOAD_CHUNK_SIZE)
            if not chunk:
                break
            size_bytes += len(chunk)
            if size_bytes > max_bytes:
                raise InvalidRequestError(f"Upload exceeds {config.MAX_UPLOAD_MB} MB", status_code=413)
            f_out.write(chunk)
    return size_bytes


@app.get("/health")
async def health_check():
    """
    Check service health and external tool availability.

    Returns:
        Dictionary with health status
    """
    libreoffice = find_libreoffice()
    ghostscript = find_ghostscript()
    health_status = {
        "status": "healthy",
        "service": "Slide Deck to PDF Handout Converter",
        "version": __version__,
        "dependencies": {
            "libreoffice": tool_available(libreoffice),
            "libreoffice_command": libreoffice,
            "ghostscript": tool_available(ghostscript),
            "ghostscript_command": ghostscript,
        }
    }

    warnings = []
    if not health_status["dependencies"]["libreoffice"]:
        warnings.append("LibreOffice not available - conversions will fail")
    if not health_status["dependencies"]["ghostscript"]:
        warnings.append("Ghostscript not available - PDFs are delivered uncompressed")
    if warnings:
        health_status["status"] = "degraded"
        health_status["warnings"] = warnings

    return health_status


def run() -> None:
    """Run a development server with uvicorn."""
    import uvicorn

    uvicorn.run("slidepack.main:app", host=config.HOST, port=config.PORT, reload=config.RELOAD)


if __name__ == "__main__":
    run()
