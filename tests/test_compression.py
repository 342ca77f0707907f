"""
Unit tests for PDF compression and its copy fallback.
"""

import asyncio

from slidepack.compression import DEFAULT_PRESET, compress_pdf, ghostscript_args
from slidepack.tools import SubprocessToolRunner


class TestGhostscriptArgs:
    """Test Ghostscript command construction."""

    def test_default_preset(self, tmp_path):
        """Test the ebook preset and output path are passed."""
        args = ghostscript_args(tmp_path / "in.pdf", tmp_path / "out.pdf")
        assert DEFAULT_PRESET == "ebook"
        assert "-sDEVICE=pdfwrite" in args
        assert "-dPDFSETTINGS=/ebook" in args
        assert f"-sOutputFile={tmp_path / 'out.pdf'}" in args
        assert args[-1] == str(tmp_path / "in.pdf")

    def test_named_and_unknown_presets(self, tmp_path):
        """Test known presets map through and unknown ones use the default."""
        assert "-dPDFSETTINGS=/screen" in ghostscript_args("in.pdf", "out.pdf", "screen")
        assert "-dPDFSETTINGS=/ebook" in ghostscript_args("in.pdf", "out.pdf", "tiny")


class TestCompressPdf:
    """Test compress_pdf outcomes."""

    def test_success(self, sample_pdf, tmp_path, runner_factory):
        """Test a successful run leaves the compressor's output."""
        runner = runner_factory(compress="ok")
        output_path = tmp_path / "out.pdf"
        result = asyncio.run(compress_pdf(sample_pdf, output_path, runner, command="gs", timeout=5))
        assert result == output_path
        assert output_path.stat().st_size > 0
        assert len(runner.compressor_calls) == 1
        assert runner.compressor_calls[0][2] == 5

    def test_failure_falls_back_to_copy(self, sample_pdf, tmp_path, runner_factory):
        """Test a failed compressor yields a byte-identical copy."""
        runner = runner_factory(compress="fail")
        output_path = tmp_path / "out.pdf"
        original = sample_pdf.read_bytes()
        asyncio.run(compress_pdf(sample_pdf, output_path, runner, command="gs"))
        assert output_path.read_bytes() == original
        assert sample_pdf.read_bytes() == original

    def test_missing_output_falls_back_to_copy(self, sample_pdf, tmp_path, runner_factory):
        """Test a success status without an output file still yields a copy."""
        runner = runner_factory(compress="no_output")
        output_path = tmp_path / "out.pdf"
        asyncio.run(compress_pdf(sample_pdf, output_path, runner, command="gs"))
        assert output_path.read_bytes() == sample_pdf.read_bytes()

    def test_missing_executable_falls_back_to_copy(self, sample_pdf, tmp_path, runner_factory):
        """Test a compressor that is not installed yields a copy."""
        output_path = tmp_path / "out.pdf"
        asyncio.run(compress_pdf(sample_pdf, output_path, SubprocessToolRunner(),
                                 command="slidepack-no-such-gs"))
        assert output_path.read_bytes() == sample_pdf.read_bytes()
