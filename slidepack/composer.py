"""
N-up page composition: draws several source PDF pages onto each output page.
"""

import fitz  # PyMuPDF
from pathlib import Path
from typing import Optional, Union
import logging

from .errors import CompositionError
from .layout import plan_pages
from .models import CanvasConfig

logger = logging.getLogger(__name__)


def compose(source: fitz.Document, slides_per_page: int,
            canvas: Optional[CanvasConfig] = None) -> fitz.Document:
    """
    Build a new document with slides_per_page source pages on each page.

    Source pages are embedded with show_pdf_page, so their vector content is
    kept and the source document is left untouched.

    Args:
        source: Open source document
        slides_per_page: Number of source pages per output page
        canvas: Output page configuration (defaults from settings)

    Returns:
        New in-memory document; the caller owns and must close it

    Raises:
        CompositionError: If the source is empty or has a page with no area
    """
    canvas = canvas or CanvasConfig()
    page_sizes = [(page.rect.width, page.rect.height) for page in source]
    plans = plan_pages(page_sizes, slides_per_page, canvas)

    output = fitz.open()
    try:
        for plan in plans:
            out_page = output.new_page(width=canvas.width, height=canvas.height)
            for placement in plan:
                target = fitz.Rect(placement.x, placement.y, placement.x1, placement.y1)
                out_page.show_pdf_page(target, source, placement.source_index)
    except Exception:
        output.close()
        raise

    logger.info(f"Composed {len(page_sizes)} pages into {len(plans)} pages")
    return output


def compose_file(source_path: Union[str, Path], output_path: Union[str, Path],
                 slides_per_page: int, canvas: Optional[CanvasConfig] = None) -> int:
    """
    Compose a PDF file into an N-up PDF file.

    Args:
        source_path: Converted slide deck PDF
        output_path: Where to write the composed PDF
        slides_per_page: Number of source pages per output page
        canvas: Output page configuration

    Returns:
        Number of pages in the composed document

    Raises:
        CompositionError: If the source cannot be read or the output cannot be written
    """
    try:
        source = fitz.open(str(source_path))
    except Exception as e:
        logger.error(f"Could not open {Path(source_path).name}: {str(e)}")
        raise CompositionError(f"Converted PDF could not be read: {str(e)}")

    try:
        output = compose(source, slides_per_page, canvas)
        try:
            output.save(str(output_path), garbage=3, deflate=True)
            page_count = len(output)
        finally:
            output.close()
    except CompositionError:
        raise
    except Exception as e:
        logger.error(f"Slide composition failed: {str(e)}")
        raise CompositionError(f"Slide composition failed: {str(e)}")
    finally:
        source.close()

    return page_count
