"""
Slide Deck Handout Converter Package

A web service that converts presentations to PDF, optionally placing
several slides on each page, and compresses the result.
"""

__version__ = "1.0.0"
__description__ = "Convert slide decks to compact multi-slide PDF handouts"

from .composer import compose, compose_file
from .layout import plan_pages, resolve_grid
from .models import CanvasConfig, GridSpec, Placement, SUPPORTED_SLIDES_PER_PAGE
from .pipeline import ConversionJob, ConversionPipeline, validate_slides_per_page

__all__ = [
    'compose',
    'compose_file',
    'plan_pages',
    'resolve_grid',
    'CanvasConfig',
    'GridSpec',
    'Placement',
    'SUPPORTED_SLIDES_PER_PAGE',
    'ConversionJob',
    'ConversionPipeline',
    'validate_slides_per_page',
]
