"""Font metrics used for text measurement and glyph encoding."""

import struct
from abc import ABC, abstractmethod
from io import BytesIO
from pathlib import Path
from typing import Dict, Union

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFontFile

from .constants import DEFAULT_CHAR_WIDTH_RATIO
from .errors import TextRenderingError


# Built-in Type1 resource names; the bold variant appends "-Bold"
STANDARD_FONT_RESOURCES: Dict[str, str] = {
    "Helvetica": "F1",
    "Courier": "F2",
    "Times-Roman": "F3",
}

# Base fonts behind each built-in resource name
STANDARD_BASE_FONTS: Dict[str, str] = {
    "F1": "Helvetica",
    "F1-Bold": "Helvetica-Bold",
    "F2": "Courier",
    "F2-Bold": "Courier-Bold",
    "F3": "Times-Roman",
    "F3-Bold": "Times-Bold",
}


def standard_font_resource(font_name: str, bold: bool = False) -> str:
    """Map a standard font name to its built-in resource name (F1 fallback)."""
    base = STANDARD_FONT_RESOURCES.get(font_name, "F1")
    return f"{base}-Bold" if bold else base


class FontMetrics(ABC):
    """Measures text and encodes it for the Tj operator."""

    @abstractmethod
    def char_width(self, ch: str, font_size: float) -> float:
        """Width of a single character in points."""

    def text_width(self, text: str, font_size: float) -> float:
        """Width of a string in points."""
        return sum(self.char_width(ch, font_size) for ch in text)

    @abstractmethod
    def encode_text(self, text: str) -> bytes:
        """Bytes to place in the content stream for this text."""


class StandardFontMetrics(FontMetrics):
    """Metrics for the PDF standard 14 fonts, from reportlab's AFM tables."""

    def __init__(self, font_name: str = "Helvetica"):
        try:
            pdfmetrics.getFont(font_name)
        except KeyError as exc:
            raise TextRenderingError(f"Unknown standard font {font_name!r}", cause=exc) from exc
        self.font_name = font_name

    def char_width(self, ch: str, font_size: float) -> float:
        return pdfmetrics.stringWidth(ch, self.font_name, font_size)

    def text_width(self, text: str, font_size: float) -> float:
        return pdfmetrics.stringWidth(text, self.font_name, font_size)

    def encode_text(self, text: str) -> bytes:
        return text.encode("cp1252", errors="replace")

    def __repr__(self) -> str:
        return f"StandardFontMetrics({self.font_name!r})"


class TrueTypeFontMetrics(FontMetrics):
    """
    Metrics for a TrueType font parsed with reportlab.

    Text is encoded as 2-byte big-endian glyph IDs, suitable for a Type0 font
    with Identity-H encoding. Embedding the font into the document is the
    caller's job; this class only measures and encodes.
    """

    def __init__(self, font_data: bytes):
        try:
            face = TTFontFile(BytesIO(font_data), validate=0)
        except (TTFError, struct.error, ValueError, IndexError, KeyError) as exc:
            raise TextRenderingError(f"Failed to parse font: {exc}", cause=exc) from exc

        # reportlab reports advance widths in 1/1000 em
        self._widths: Dict[int, float] = dict(face.charWidths)
        self._glyphs: Dict[int, int] = dict(face.charToGlyph)
        self.name = getattr(face, "name", "")
        self.data_length = len(font_data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "TrueTypeFontMetrics":
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise TextRenderingError(f"Cannot read font file {path}", cause=exc) from exc
        return cls(data)

    def has_glyph(self, ch: str) -> bool:
        return ord(ch) in self._glyphs

    def char_width(self, ch: str, font_size: float) -> float:
        width = self._widths.get(ord(ch))
        if width is None:
            return font_size * DEFAULT_CHAR_WIDTH_RATIO
        return width / 1000.0 * font_size

    def encode_text(self, text: str) -> bytes:
        return b"".join(self._glyphs.get(ord(ch), 0).to_bytes(2, "big") for ch in text)

    def __repr__(self) -> str:
        return f"TrueTypeFontMetrics(name={self.name!r}, data_length={self.data_length})"
