"""
Slide deck to PDF conversion with LibreOffice, plus deck inspection.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from pptx import Presentation

from . import config
from .errors import ConversionError
from .models import OOXML_DECK_EXTENSIONS, PDF_EXTENSION
from .tools import ToolRunner, find_libreoffice
from .utils import PathLike, find_newest_file, scrub_paths

logger = logging.getLogger(__name__)


def libreoffice_args(input_path: PathLike, output_dir: PathLike) -> List[str]:
    return [
        "--headless",
        "--nologo",
        "--nolockcheck",
        "--nodefault",
        "--nofirststartwizard",
        "--convert-to", "pdf",
        "--outdir", str(output_dir),
        str(input_path),
    ]


def candidate_pdf_names(input_path: PathLike, *alternate_names: str) -> List[str]:
    """
    Filenames LibreOffice may have given the converted PDF, most likely first.

    Args:
        input_path: File handed to LibreOffice
        alternate_names: Other base names to try (e.g. the client's original name)

    Returns:
        Distinct candidate filenames ending in .pdf
    """
    names = [Path(input_path).stem + PDF_EXTENSION]
    for alternate in alternate_names:
        if not alternate:
            continue
        name = Path(alternate).stem + PDF_EXTENSION
        if name not in names:
            names.append(name)
    return names


def locate_converted_pdf(output_dir: PathLike, candidates: Iterable[str]) -> Optional[Path]:
    """
    Find the PDF produced by the converter.

    Candidate names are checked first; if none exists the directory is
    scanned and the most recently modified PDF wins.

    Args:
        output_dir: Directory passed to the converter
        candidates: Filenames to check, in order

    Returns:
        Path to the converted PDF, or None if nothing was produced
    """
    output_dir = Path(output_dir)
    for name in candidates:
        path = output_dir / name
        if path.is_file():
            logger.info(f"Found converted PDF: {name}")
            return path

    logger.info("Searching for PDF files in output directory")
    newest = find_newest_file(output_dir, PDF_EXTENSION)
    if newest is not None:
        logger.info(f"Using most recent PDF: {newest.name}")
    return newest


async def convert_to_pdf(input_path: PathLike, output_dir: PathLike, runner: ToolRunner, *,
                         alternate_names: Iterable[str] = (), timeout: Optional[float] = None,
                         command: Optional[str] = None) -> Path:
    """
    Convert a slide deck to PDF with headless LibreOffice.

    Args:
        input_path: Uploaded slide deck
        output_dir: Directory that receives the PDF
        runner: External tool runner
        alternate_names: Extra base names to look for in the output directory
        timeout: Seconds before the conversion is abandoned
        command: LibreOffice executable (default: located automatically)

    Returns:
        Path to the converted PDF

    Raises:
        ConversionError: If LibreOffice fails or no PDF can be found
    """
    input_path = Path(input_path)
    output_dir = Path(output_dir)
    timeout = config.CONVERT_TIMEOUT_SEC if timeout is None else timeout
    command = command or find_libreoffice()

    result = await runner.run(command, libreoffice_args(input_path, output_dir), timeout=timeout)
    if not result.success:
        diagnostic = scrub_paths(result.diagnostic, output_dir, input_path.parent)
        raise ConversionError(f"LibreOffice conversion failed: {diagnostic}")

    candidates = candidate_pdf_names(input_path, *alternate_names)
    converted = locate_converted_pdf(output_dir, candidates)
    if converted is None:
        raise ConversionError(f"Converted PDF not found. Searched for: {', '.join(candidates)}")

    logger.info("LibreOffice conversion successful")
    return converted


def needs_validation(filename: str) -> bool:
    """Only Office Open XML presentations can be inspected before conversion."""
    return filename.lower().endswith(OOXML_DECK_EXTENSIONS)


def inspect_deck(path: PathLike) -> Optional[dict]:
    """
    Open a PowerPoint presentation once and extract basic information.

    Args:
        path: Path to a .pptx or .pptm file

    Returns:
        Dictionary with slide count and slide size, or None if the file is
        not a readable presentation
    """
    try:
        presentation = Presentation(str(path))
        width_pts = presentation.slide_width.pt if presentation.slide_width is not None else 0.0
        height_pts = presentation.slide_height.pt if presentation.slide_height is not None else 0.0
        return {
            'slide_count': len(presentation.slides),
            'slide_width_points': width_pts,
            'slide_height_points': height_pts,
            'slide_aspect_ratio': width_pts / height_pts if height_pts else 1.0,
        }
    except Exception as e:
        logger.error(f"Presentation validation failed: {str(e)}")
        return None
