"""
External tool invocation (LibreOffice, Ghostscript) behind a narrow interface.
"""

import asyncio
import logging
import os
import shutil
import sys
from typing import Optional, Protocol, Sequence

from . import config
from .models import ToolResult

logger = logging.getLogger(__name__)

MAC_LIBREOFFICE_PATHS = (
    "/Applications/LibreOffice.app/Contents/MacOS/soffice",
    "/opt/homebrew/bin/soffice",
    "/usr/local/bin/soffice",
)


class ToolRunner(Protocol):
    async def run(self, cmd: str, args: Sequence[str],
                  timeout: Optional[float] = None) -> ToolResult:
        """Run cmd with args and report success, stdout and stderr."""


class SubprocessToolRunner:
    """Runs tools as child processes without blocking the event loop."""

    async def run(self, cmd: str, args: Sequence[str],
                  timeout: Optional[float] = None) -> ToolResult:
        return await run_external_tool(cmd, args, timeout)


async def run_external_tool(cmd: str, args: Sequence[str],
                            timeout: Optional[float] = None) -> ToolResult:
    """
    Run an external command and capture its output.

    A missing executable or an expired timeout is reported as a failed
    result rather than raised. A cancelled call kills the process before the
    cancellation propagates.

    Args:
        cmd: Executable name or path
        args: Command arguments
        timeout: Seconds to wait before killing the process (None waits forever)

    Returns:
        ToolResult with the exit status and decoded output
    """
    logger.info(f"Running {cmd} {' '.join(args)}")
    try:
        proc = await asyncio.create_subprocess_exec(
            cmd, *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError) as e:
        logger.warning(f"{cmd} could not be started: {str(e)}")
        return ToolResult(False, 127, "", f"{os.path.basename(cmd)} is not available")

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        logger.warning(f"{cmd} timed out after {timeout}s")
        return ToolResult(False, -1, "", f"{os.path.basename(cmd)} timed out after {timeout:g}s")
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
            logger.warning(f"{cmd} killed after cancellation")
        raise

    result = ToolResult(
        success=proc.returncode == 0,
        returncode=proc.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
    if not result.success:
        logger.warning(f"{cmd} exited with {result.returncode}: {result.diagnostic}")
    return result


def find_libreoffice() -> str:
    """
    Locate the LibreOffice executable.

    Order: explicit setting, macOS application bundle paths, soffice or
    libreoffice on PATH, then plain "libreoffice".
    """
    if config.LIBREOFFICE_PATH:
        return config.LIBREOFFICE_PATH

    if sys.platform == "darwin":
        for mac_path in MAC_LIBREOFFICE_PATHS:
            if os.path.exists(mac_path):
                return mac_path

    for name in ("soffice", "libreoffice"):
        found = shutil.which(name)
        if found:
            return found

    return "libreoffice"


def find_ghostscript() -> str:
    return shutil.which(config.GHOSTSCRIPT_PATH) or config.GHOSTSCRIPT_PATH


def tool_available(cmd: str) -> bool:
    """Check whether a command resolves to an executable."""
    return shutil.which(cmd) is not None or (os.path.isfile(cmd) and os.access(cmd, os.X_OK))
