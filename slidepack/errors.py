"""
Exception types raised by the conversion pipeline and the HTTP layer.
"""

from typing import Optional


class SlidepackError(Exception):
    """Base class for all service errors."""


class InvalidRequestError(SlidepackError):
    """Request rejected before any external tool runs (client error)."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class PipelineError(SlidepackError):
    """A stage failed and the job cannot produce a deliverable."""

    stage = "pipeline"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class ConversionError(PipelineError):
    stage = "converting"


class CompositionError(PipelineError):
    stage = "composing"
