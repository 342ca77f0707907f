"""
Unit tests for the data models.
"""

import pytest

from slidepack.models import (
    CanvasConfig, GridSpec, Placement, ToolResult, is_deck_filename,
    is_supported_slides_per_page
)


class TestGridSpec:
    """Test GridSpec model."""

    def test_capacity(self):
        """Test capacity is columns times rows."""
        assert GridSpec(2, 3).capacity == 6
        assert GridSpec(1, 1).capacity == 1


class TestPlacement:
    """Test Placement model."""

    def test_far_corner(self):
        """Test x1 and y1 add the size to the origin."""
        placement = Placement(0, 0, x=10, y=20, width=100, height=50, scale=0.5)
        assert placement.x1 == 110
        assert placement.y1 == 70


class TestToolResult:
    """Test ToolResult diagnostics."""

    def test_prefers_stderr(self):
        """Test stderr is the preferred diagnostic."""
        assert ToolResult(False, 1, "out", " err \n").diagnostic == "err"

    def test_falls_back_to_stdout_and_code(self):
        """Test stdout, then the exit code, are used when stderr is empty."""
        assert ToolResult(False, 1, "out", "").diagnostic == "out"
        assert ToolResult(False, 2, "", "").diagnostic == "exit code 2"


class TestCanvasConfig:
    """Test CanvasConfig validation."""

    def test_defaults(self):
        """Test the default canvas is US Letter with 10pt padding."""
        canvas = CanvasConfig()
        assert canvas.size == (612, 792)
        assert canvas.padding == 10

    def test_zero_padding_allowed(self):
        """Test padding may be zero."""
        assert CanvasConfig(612, 792, 0).padding == 0

    def test_invalid(self):
        """Test non-positive sizes and negative padding are rejected."""
        with pytest.raises(ValueError):
            CanvasConfig(0, 792)
        with pytest.raises(ValueError):
            CanvasConfig(612, -1)
        with pytest.raises(ValueError):
            CanvasConfig(612, 792, -5)


class TestValidation:
    """Test request value helpers."""

    def test_supported_slides_per_page(self):
        """Test the supported set."""
        assert [k for k in range(12) if is_supported_slides_per_page(k)] == [1, 2, 3, 4, 6, 9]

    def test_deck_filename(self):
        """Test presentation extensions are recognized case-insensitively."""
        for name in ("a.ppt", "a.pptx", "A.PPTM", "a.pps", "a.ppsx", "a.odp", "a.key"):
            assert is_deck_filename(name)
        for name in ("a.pdf", "a.docx", "pptx", ""):
            assert not is_deck_filename(name)
