"""
Data models and type definitions for the slide deck handout service.
"""

from typing import List, NamedTuple, Optional, Tuple

from . import config

PageDimensions = Tuple[float, float]
"""Page dimensions: (width_pts, height_pts) in PDF points"""

# Constants
DEFAULT_SLIDES_PER_PAGE = 1
SUPPORTED_SLIDES_PER_PAGE = (1, 2, 3, 4, 6, 9)
PDF_EXTENSION = ".pdf"
DECK_EXTENSIONS = (".ppt", ".pptx", ".pptm", ".pps", ".ppsx", ".odp", ".key")
OOXML_DECK_EXTENSIONS = (".pptx", ".pptm")


class GridSpec(NamedTuple):
    """Grid arrangement of cells on one output page."""
    columns: int
    rows: int

    @property
    def capacity(self) -> int:
        return self.columns * self.rows


class Placement(NamedTuple):
    """Position of one source page on an output page (top-left origin, points)."""
    source_index: int
    cell_index: int
    x: float
    y: float
    width: float
    height: float
    scale: float

    @property
    def x1(self) -> float:
        return self.x + self.width

    @property
    def y1(self) -> float:
        return self.y + self.height


PagePlan = List[Placement]
"""Ordered placements for a single output page"""


class ToolResult(NamedTuple):
    """Outcome of one external tool invocation."""
    success: bool
    returncode: int
    stdout: str
    stderr: str

    @property
    def diagnostic(self) -> str:
        """Best human-readable explanation of what the tool reported."""
        return (self.stderr or self.stdout or f"exit code {self.returncode}").strip()


class CanvasConfig:
    """Output page size and the padding kept between and around grid cells."""

    def __init__(self, width: Optional[float] = None, height: Optional[float] = None,
                 padding: Optional[float] = None):
        self.width = config.PAGE_WIDTH if width is None else width
        self.height = config.PAGE_HEIGHT if height is None else height
        self.padding = config.PADDING if padding is None else padding
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid canvas size {self.width}x{self.height}")
        if self.padding < 0:
            raise ValueError(f"Padding must not be negative, got {self.padding}")

    @property
    def size(self) -> PageDimensions:
        return self.width, self.height

    def __repr__(self) -> str:
        return f"CanvasConfig(width={self.width}, height={self.height}, padding={self.padding})"


class JobStage:
    RECEIVED = "received"
    CONVERTING = "converting"
    COMPOSING = "composing"
    COMPRESSING = "compressing"
    DELIVERING = "delivering"
    CLEANED = "cleaned"
    FAILED = "failed"

    TERMINAL = (CLEANED, FAILED)


def is_supported_slides_per_page(slides_per_page: int) -> bool:
    """
    Check whether a slides-per-page value has a grid layout.

    Args:
        slides_per_page: Requested number of slides on each output page

    Returns:
        True if supported, False otherwise
    """
    return slides_per_page in SUPPORTED_SLIDES_PER_PAGE


def is_deck_filename(filename: str) -> bool:
    """Return True when the filename carries a supported slide deck extension."""
    return bool(filename) and filename.lower().endswith(DECK_EXTENSIONS)
