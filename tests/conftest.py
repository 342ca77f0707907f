"""
Shared fixtures: sample documents and a fake external tool runner.
"""

import io
from pathlib import Path

import fitz  # PyMuPDF
import pytest
from pptx import Presentation

from slidepack.models import ToolResult
from slidepack.pipeline import ConversionPipeline

SLIDE_WIDTH = 720.0   # 10in, python-pptx default
SLIDE_HEIGHT = 540.0  # 7.5in


def make_pdf(path, page_count, width=SLIDE_WIDTH, height=SLIDE_HEIGHT):
    """Write a PDF whose pages are labelled "Slide 01", "Slide 02", ..."""
    doc = fitz.open()
    for i in range(page_count):
        page = doc.new_page(width=width, height=height)
        page.insert_text((72, 144), f"Slide {i + 1:02d}", fontsize=48)
    doc.save(str(path))
    doc.close()
    return Path(path)


def make_deck(slide_count) -> bytes:
    """Build a .pptx with the given number of blank slides."""
    prs = Presentation()
    for _ in range(slide_count):
        prs.slides.add_slide(prs.slide_layouts[6])
    buffer = io.BytesIO()
    prs.save(buffer)
    return buffer.getvalue()


class FakeToolRunner:
    """
    Stands in for LibreOffice and Ghostscript.

    convert: "ok", "fail", "timeout", "no_output", "renamed" or "corrupt"
    compress: "ok", "fail" or "no_output"
    """

    def __init__(self, convert="ok", compress="ok", page_count=5):
        self.convert = convert
        self.compress = compress
        self.page_count = page_count
        self.calls = []

    @property
    def converter_calls(self):
        return [c for c in self.calls if "--convert-to" in c[1]]

    @property
    def compressor_calls(self):
        return [c for c in self.calls if "-sDEVICE=pdfwrite" in c[1]]

    async def run(self, cmd, args, timeout=None):
        args = list(args)
        self.calls.append((cmd, args, timeout))
        if "--convert-to" in args:
            return self._convert(args)
        return self._compress(args)

    def _convert(self, args):
        output_dir = Path(args[args.index("--outdir") + 1])
        input_path = Path(args[-1])

        if self.convert == "fail":
            return ToolResult(False, 1, "", f"Error: source file could not be loaded: {input_path}")
        if self.convert == "timeout":
            return ToolResult(False, -1, "", "soffice timed out after 120s")
        if self.convert == "no_output":
            return ToolResult(True, 0, "convert done", "")

        name = "converted-output.pdf" if self.convert == "renamed" else input_path.stem + ".pdf"
        if self.convert == "corrupt":
            (output_dir / name).write_bytes(b"%PDF-1.4 this is not really a pdf")
        else:
            make_pdf(output_dir / name, self._slide_count(input_path))
        return ToolResult(True, 0, f"convert {input_path.name} -> {name}", "")

    def _slide_count(self, input_path):
        if input_path.suffix.lower() == ".pptx":
            return len(Presentation(str(input_path)).slides)
        return self.page_count

    def _compress(self, args):
        output_path = Path(next(a for a in args if a.startswith("-sOutputFile="))[len("-sOutputFile="):])
        input_path = Path(args[-1])

        if self.compress == "fail":
            return ToolResult(False, 1, "", "GPL Ghostscript: Unrecoverable error, exit code 1")
        if self.compress == "no_output":
            return ToolResult(True, 0, "", "")

        doc = fitz.open(str(input_path))
        doc.save(str(output_path), garbage=4, deflate=True)
        doc.close()
        return ToolResult(True, 0, "", "")


@pytest.fixture
def sample_pdf(tmp_path):
    return make_pdf(tmp_path / "slides.pdf", 10)


@pytest.fixture
def fake_runner():
    return FakeToolRunner()


@pytest.fixture
def storage(tmp_path):
    return {"upload_dir": tmp_path / "uploads", "output_dir": tmp_path / "converted"}


@pytest.fixture
def make_pipeline(storage):
    def factory(runner):
        return ConversionPipeline(
            runner,
            upload_dir=storage["upload_dir"],
            output_dir=storage["output_dir"],
            libreoffice_cmd="soffice",
            ghostscript_cmd="gs",
        )
    return factory


@pytest.fixture
def deck_file():
    return make_deck


@pytest.fixture
def pdf_file():
    return make_pdf


@pytest.fixture
def runner_factory():
    return FakeToolRunner
