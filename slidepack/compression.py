"""
PDF compression with Ghostscript, falling back to an uncompressed copy.
"""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Optional

from . import config
from .tools import ToolRunner, find_ghostscript
from .utils import PathLike

logger = logging.getLogger(__name__)

PDF_PRESETS = {
    "screen": "/screen",    # 72 dpi
    "ebook": "/ebook",      # 150 dpi
    "printer": "/printer",  # 300 dpi
    "prepress": "/prepress",
}
DEFAULT_PRESET = "ebook"


def ghostscript_args(input_path: PathLike, output_path: PathLike, preset: str = DEFAULT_PRESET) -> list:
    """Build the Ghostscript pdfwrite arguments for the given quality preset."""
    gs_preset = PDF_PRESETS.get(preset, PDF_PRESETS[DEFAULT_PRESET])
    return [
        "-sDEVICE=pdfwrite",
        "-dCompatibilityLevel=1.4",
        f"-dPDFSETTINGS={gs_preset}",
        "-dNOPAUSE",
        "-dQUIET",
        "-dBATCH",
        f"-sOutputFile={output_path}",
        str(input_path),
    ]


async def compress_pdf(input_path: PathLike, output_path: PathLike, runner: ToolRunner, *,
                       preset: Optional[str] = None, timeout: Optional[float] = None,
                       command: Optional[str] = None) -> Path:
    """
    Compress a PDF into output_path.

    Compression is best effort: if Ghostscript fails, times out, is missing,
    or leaves no usable output, the input is copied byte for byte instead.
    The input file is never modified.

    Args:
        input_path: PDF to compress
        output_path: Destination for the compressed (or copied) PDF
        runner: External tool runner
        preset: Ghostscript quality preset name (default from settings)
        timeout: Seconds before the compressor is abandoned
        command: Ghostscript executable (default: located on PATH)

    Returns:
        output_path

    Raises:
        OSError: If the fallback copy itself cannot be written
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    preset = preset or config.COMPRESSION_PRESET
    timeout = config.COMPRESS_TIMEOUT_SEC if timeout is None else timeout
    command = command or find_ghostscript()

    result = await runner.run(command, ghostscript_args(input_path, output_path, preset), timeout=timeout)

    if result.success and _has_content(output_path):
        logger.info(f"PDF compressed: {input_path.stat().st_size} -> {output_path.stat().st_size} bytes")
        return output_path

    if result.success:
        logger.warning("Ghostscript reported success but produced no output, using uncompressed PDF")
    else:
        logger.warning(f"Ghostscript compression failed, using uncompressed PDF: {result.diagnostic}")

    await asyncio.to_thread(shutil.copyfile, input_path, output_path)
    return output_path


def _has_content(path: Path) -> bool:
    try:
        return path.stat().st_size > 0
    except FileNotFoundError:
        return False
