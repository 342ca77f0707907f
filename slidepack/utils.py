"""
Filesystem and naming helpers shared by the pipeline stages.
"""

import logging
import os
import re
import shutil
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def ensure_directory(path: PathLike) -> Path:
    """Create a directory (and parents) if missing; safe to call repeatedly."""
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def cleanup_file(path: PathLike) -> bool:
    """
    Delete a file, tolerating it already being gone.

    Args:
        path: File to delete

    Returns:
        True if the file was removed, False if it was absent or could not be removed
    """
    try:
        os.unlink(path)
        return True
    except FileNotFoundError:
        return False
    except IsADirectoryError:
        shutil.rmtree(path, ignore_errors=True)
        return True
    except OSError as e:
        logger.warning(f"Failed to clean up {path}: {str(e)}")
        return False


def remove_directory(path: PathLike) -> None:
    """Remove a directory tree if it exists."""
    shutil.rmtree(path, ignore_errors=True)


def base_name(filename: str) -> str:
    """
    Strip the directory part and the last extension from an uploaded filename.

    Args:
        filename: Client supplied filename, e.g. "Lecture 1.pptx"

    Returns:
        Base name, e.g. "Lecture 1"; "presentation" if nothing is left
    """
    name = os.path.basename(filename.replace("\\", "/")) if filename else ""
    stem = name.rsplit(".", 1)[0] if "." in name else name
    stem = stem.strip()
    return stem or "presentation"


def safe_name(name: str) -> str:
    """Reduce a name to characters that are safe in a local filename."""
    cleaned = re.sub(r"[^A-Za-z0-9._ -]+", "_", name).strip(" .")
    return cleaned or "presentation"


def pdf_download_name(filename: str) -> str:
    """Attachment name for the delivered PDF: the original name with a .pdf extension."""
    return f"{base_name(filename)}.pdf"


def find_newest_file(directory: PathLike, extension: str) -> Optional[Path]:
    """
    Find the most recently modified file with the given extension.

    Args:
        directory: Directory to scan (not recursive)
        extension: Extension to match, case-insensitive, e.g. ".pdf"

    Returns:
        Path of the newest match, or None
    """
    candidates = [
        p for p in Path(directory).iterdir()
        if p.is_file() and p.suffix.lower() == extension.lower()
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.stat().st_mtime)


def scrub_paths(message: str, *directories: PathLike) -> str:
    """
    Remove directory prefixes from a message so it can be shown to clients.

    Args:
        message: Diagnostic text, typically tool stderr
        directories: Directories whose absolute paths must not leak

    Returns:
        Message with each directory prefix removed
    """
    for directory in directories:
        prefix = str(Path(directory).resolve())
        message = message.replace(prefix + os.sep, "").replace(prefix, "")
    return message.strip()
