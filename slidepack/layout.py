"""
Grid layout engine for packing several source pages onto one output page.

All coordinates are PDF points with a top-left origin, which is the
coordinate system PyMuPDF uses for page rectangles.
"""

import math
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from .errors import CompositionError
from .models import CanvasConfig, GridSpec, PageDimensions, PagePlan, Placement

logger = logging.getLogger(__name__)

GRID_LAYOUTS: Dict[int, GridSpec] = {
    1: GridSpec(1, 1),
    2: GridSpec(1, 2),
    3: GridSpec(1, 3),
    4: GridSpec(2, 2),
    6: GridSpec(2, 3),
    9: GridSpec(3, 3),
}
DEFAULT_GRID = GridSpec(1, 1)


def resolve_grid(slides_per_page: int) -> GridSpec:
    """
    Map a slides-per-page count to its (columns, rows) grid.

    Unknown counts fall back to a single cell; callers are expected to
    validate the count before getting here.

    Args:
        slides_per_page: Number of source pages per output page

    Returns:
        Grid specification
    """
    return GRID_LAYOUTS.get(slides_per_page, DEFAULT_GRID)


def calculate_cell_size(grid: GridSpec, canvas: CanvasConfig) -> Tuple[float, float]:
    """
    Calculate the size of one grid cell after padding is taken out.

    Args:
        grid: Grid specification
        canvas: Output page configuration

    Returns:
        Tuple of (cell_width, cell_height) in points

    Raises:
        ValueError: If padding leaves no room for the cells
    """
    cell_width = (canvas.width - canvas.padding * (grid.columns + 1)) / grid.columns
    cell_height = (canvas.height - canvas.padding * (grid.rows + 1)) / grid.rows
    if cell_width <= 0 or cell_height <= 0:
        raise ValueError(f"Padding {canvas.padding} leaves no room for a {grid.columns}x{grid.rows} grid")
    return cell_width, cell_height


def cell_origin(cell_index: int, grid: GridSpec,
                cell_width: float, cell_height: float, padding: float) -> Tuple[float, float]:
    """
    Top-left corner of a cell, filling the grid row by row from the top.

    Args:
        cell_index: Zero-based cell index within the page
        grid: Grid specification
        cell_width, cell_height: Cell dimensions
        padding: Gap between cells and around the border

    Returns:
        Tuple of (x, y) in points
    """
    column = cell_index % grid.columns
    row = cell_index // grid.columns
    x = padding + column * (cell_width + padding)
    y = padding + row * (cell_height + padding)
    return x, y


def fit_in_cell(source_width: float, source_height: float,
                cell_width: float, cell_height: float) -> Tuple[float, float, float, float, float]:
    """
    Scale a page uniformly to fit a cell and center it.

    Args:
        source_width, source_height: Source page size
        cell_width, cell_height: Available cell size

    Returns:
        Tuple of (scale, scaled_width, scaled_height, offset_x, offset_y)

    Raises:
        ValueError: If the source page has no area
    """
    if source_width <= 0 or source_height <= 0:
        raise ValueError(f"Cannot scale a {source_width}x{source_height} page")

    scale = min(cell_width / source_width, cell_height / source_height)
    scaled_width = source_width * scale
    scaled_height = source_height * scale
    offset_x = (cell_width - scaled_width) / 2
    offset_y = (cell_height - scaled_height) / 2
    return scale, scaled_width, scaled_height, offset_x, offset_y


def batch_indices(total_pages: int, slides_per_page: int) -> List[range]:
    """
    Split page indices into consecutive batches, one per output page.

    The last batch may be shorter than slides_per_page.
    """
    if slides_per_page < 1:
        raise ValueError(f"slides_per_page must be positive, got {slides_per_page}")
    return [range(start, min(start + slides_per_page, total_pages))
            for start in range(0, total_pages, slides_per_page)]


def output_page_count(total_pages: int, slides_per_page: int) -> int:
    return math.ceil(total_pages / slides_per_page)


def plan_pages(page_sizes: Sequence[PageDimensions], slides_per_page: int,
               canvas: Optional[CanvasConfig] = None) -> List[PagePlan]:
    """
    Compute where every source page lands on the output pages.

    Args:
        page_sizes: (width, height) of each source page, in document order
        slides_per_page: Number of source pages per output page
        canvas: Output page configuration (defaults from settings)

    Returns:
        One list of placements per output page

    Raises:
        CompositionError: If the document is empty or a page has no area
        ValueError: If slides_per_page has no grid layout
    """
    canvas = canvas or CanvasConfig()
    if not page_sizes:
        raise CompositionError("Source document has no pages")

    grid = resolve_grid(slides_per_page)
    if slides_per_page > grid.capacity:
        raise ValueError(f"No grid layout for {slides_per_page} slides per page")
    cell_width, cell_height = calculate_cell_size(grid, canvas)

    logger.info(f"Planning {len(page_sizes)} pages at {slides_per_page} per page "
                f"({grid.columns}x{grid.rows}, cell {cell_width:.1f}x{cell_height:.1f})")

    plans = []
    for batch in batch_indices(len(page_sizes), slides_per_page):
        plan = []
        for cell_index, source_index in enumerate(batch):
            width, height = page_sizes[source_index]
            try:
                scale, scaled_width, scaled_height, offset_x, offset_y = fit_in_cell(
                    width, height, cell_width, cell_height
                )
            except ValueError:
                raise CompositionError(f"Page {source_index + 1} has zero width or height")

            x, y = cell_origin(cell_index, grid, cell_width, cell_height, canvas.padding)
            plan.append(Placement(
                source_index=source_index,
                cell_index=cell_index,
                x=x + offset_x,
                y=y + offset_y,
                width=scaled_width,
                height=scaled_height,
                scale=scale,
            ))
        plans.append(plan)

    return plans
