"""
Pytest configuration for pdf_tables
"""

import logging
import sys
from io import BytesIO

import pytest
from PIL import Image

from pdf_tables.document import PdfDocument
from pdf_tables.fonts import FontMetrics


class FixedWidthMetrics(FontMetrics):
    """Every character is `ratio * font_size` wide; text encodes as UTF-16BE."""

    def __init__(self, ratio: float = 0.6):
        self.ratio = ratio
        self.calls = 0

    def char_width(self, ch, font_size):
        self.calls += 1
        return font_size * self.ratio

    def encode_text(self, text):
        return text.encode("utf-16-be")


@pytest.fixture(autouse=True)
def configure_logging():
    """Console-only logging at WARNING for the duration of a test."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter('%(name)s - %(levelname)s - %(message)s'))

    root_logger.addHandler(console_handler)
    root_logger.setLevel(logging.WARNING)

    yield

    root_logger.handlers.clear()


@pytest.fixture
def metrics():
    return FixedWidthMetrics(0.6)


@pytest.fixture
def bold_metrics():
    return FixedWidthMetrics(0.9)


@pytest.fixture
def document():
    """Empty PDF document."""
    return PdfDocument()


@pytest.fixture
def a4_page(document):
    """An A4 page carrying the built-in fonts."""
    return document.add_page()


def _image_bytes(mode, size, color, fmt):
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    """A 4x2 opaque PNG."""
    return _image_bytes("RGB", (4, 2), (200, 30, 30), "PNG")


@pytest.fixture
def rgba_png_bytes():
    """A 2x2 PNG with an alpha channel."""
    return _image_bytes("RGBA", (2, 2), (0, 0, 255, 128), "PNG")


@pytest.fixture
def jpeg_bytes():
    """A 3x3 JPEG."""
    return _image_bytes("RGB", (3, 3), (10, 120, 10), "JPEG")
