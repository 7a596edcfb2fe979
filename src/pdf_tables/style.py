"""Styling records for tables, rows and cells."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from reportlab.lib import colors as rl_colors

from .constants import (
    DEFAULT_BORDER_WIDTH,
    DEFAULT_FONT_SIZE,
    DEFAULT_MARGIN,
    DEFAULT_PADDING,
)
from .errors import StyleError


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


@dataclass(frozen=True)
class Color:
    """RGB color with components in 0.0-1.0."""
    r: float = 0.0
    g: float = 0.0
    b: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "r", _clamp(self.r))
        object.__setattr__(self, "g", _clamp(self.g))
        object.__setattr__(self, "b", _clamp(self.b))

    @classmethod
    def rgb(cls, r: float, g: float, b: float) -> "Color":
        return cls(r, g, b)

    @classmethod
    def black(cls) -> "Color":
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def white(cls) -> "Color":
        return cls(1.0, 1.0, 1.0)

    @classmethod
    def gray(cls, level: float) -> "Color":
        return cls(level, level, level)

    @classmethod
    def light_gray(cls) -> "Color":
        return cls.gray(0.8)

    @classmethod
    def from_reportlab(cls, color: rl_colors.Color) -> "Color":
        return cls(color.red, color.green, color.blue)

    @classmethod
    def parse(cls, value: Union[str, "Color", rl_colors.Color]) -> "Color":
        """
        Parse a color name, hex string ("#D0D0D0") or reportlab color.

        Raises StyleError for values reportlab cannot interpret.
        """
        if isinstance(value, Color):
            return value
        if isinstance(value, rl_colors.Color):
            return cls.from_reportlab(value)
        try:
            return cls.from_reportlab(rl_colors.toColor(value))
        except ValueError as exc:
            raise StyleError(f"Unrecognized color {value!r}", cause=exc) from exc

    def as_tuple(self):
        return (self.r, self.g, self.b)


class Alignment(Enum):
    """Horizontal text alignment."""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class VerticalAlignment(Enum):
    """Vertical text alignment."""
    TOP = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"


class BorderStyle(Enum):
    """Border line styles."""
    NONE = "none"
    SOLID = "solid"
    DASHED = "dashed"
    DOTTED = "dotted"


@dataclass(frozen=True)
class Border:
    """A single border side: style, line width and color."""
    style: BorderStyle = BorderStyle.SOLID
    width: float = DEFAULT_BORDER_WIDTH
    color: Color = field(default_factory=Color.black)

    @property
    def visible(self) -> bool:
        return self.style != BorderStyle.NONE


@dataclass(frozen=True)
class Padding:
    """Cell padding in points."""
    top: float = DEFAULT_PADDING
    right: float = DEFAULT_PADDING
    bottom: float = DEFAULT_PADDING
    left: float = DEFAULT_PADDING

    @classmethod
    def uniform(cls, value: float) -> "Padding":
        return cls(value, value, value, value)

    @classmethod
    def symmetric(cls, vertical: float, horizontal: float) -> "Padding":
        return cls(top=vertical, right=horizontal, bottom=vertical, left=horizontal)

    @property
    def horizontal(self) -> float:
        return self.left + self.right

    @property
    def vertical(self) -> float:
        return self.top + self.bottom


@dataclass(frozen=True)
class TableStyle:
    """Table-wide style; also the defaults every cell inherits from."""
    border_style: BorderStyle = BorderStyle.SOLID
    border_width: float = DEFAULT_BORDER_WIDTH
    border_color: Color = field(default_factory=Color.black)
    background_color: Optional[Color] = None
    padding: Padding = field(default_factory=Padding)
    font_name: str = "Helvetica"
    default_font_size: float = DEFAULT_FONT_SIZE
    text_color: Color = field(default_factory=Color.black)
    alignment: Alignment = Alignment.LEFT
    vertical_alignment: VerticalAlignment = VerticalAlignment.MIDDLE
    # Pagination; page_height falls back to the page's media box
    page_height: Optional[float] = None
    top_margin: float = DEFAULT_MARGIN
    bottom_margin: float = DEFAULT_MARGIN
    repeat_headers: bool = True
    # Embedded (glyph-encoded) font resources registered by the caller
    embedded_font_resource_name: Optional[str] = None
    embedded_font_resource_name_bold: Optional[str] = None

    def validate(self) -> None:
        if self.default_font_size <= 0:
            raise StyleError(f"Default font size must be positive, got {self.default_font_size}")
        if self.border_width < 0:
            raise StyleError(f"Border width must not be negative, got {self.border_width}")
        _validate_padding(self.padding)
        if self.page_height is not None and self.page_height <= 0:
            raise StyleError(f"Page height must be positive, got {self.page_height}")
        if self.top_margin < 0 or self.bottom_margin < 0:
            raise StyleError("Page margins must not be negative")


@dataclass(frozen=True)
class RowStyle:
    """Per-row style overrides."""
    background_color: Optional[Color] = None
    border_top: Optional[Border] = None
    border_bottom: Optional[Border] = None


@dataclass(frozen=True)
class CellStyle:
    """Per-cell style; None fields inherit from the table style."""
    background_color: Optional[Color] = None
    text_color: Optional[Color] = None
    font_size: Optional[float] = None
    # "Helvetica", "Courier" or "Times-Roman" map to built-in resources
    font_name: Optional[str] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    alignment: Optional[Alignment] = None
    vertical_alignment: Optional[VerticalAlignment] = None
    padding: Optional[Padding] = None
    border_left: Optional[Border] = None
    border_right: Optional[Border] = None
    border_top: Optional[Border] = None
    border_bottom: Optional[Border] = None
    embedded_font_resource_name: Optional[str] = None

    @classmethod
    def header(cls) -> "CellStyle":
        """Bold, centered, light gray background."""
        return cls(
            bold=True,
            alignment=Alignment.CENTER,
            background_color=Color.light_gray(),
        )

    @property
    def has_border_overrides(self) -> bool:
        return any(
            side is not None
            for side in (self.border_left, self.border_right, self.border_top, self.border_bottom)
        )

    def validate(self) -> None:
        if self.font_size is not None and self.font_size <= 0:
            raise StyleError(f"Cell font size must be positive, got {self.font_size}")
        if self.padding is not None:
            _validate_padding(self.padding)
        for side in (self.border_left, self.border_right, self.border_top, self.border_bottom):
            if side is not None and side.width < 0:
                raise StyleError(f"Border width must not be negative, got {side.width}")


@dataclass(frozen=True)
class ResolvedCellStyle:
    """Effective style of one cell after inheriting from the table."""
    font_name: str
    font_size: float
    bold: bool
    italic: bool
    text_color: Color
    alignment: Alignment
    vertical_alignment: VerticalAlignment
    padding: Padding
    embedded_font_resource_name: Optional[str]


def _validate_padding(padding: Padding) -> None:
    if min(padding.top, padding.right, padding.bottom, padding.left) < 0:
        raise StyleError(f"Padding must not be negative: {padding}")


def _pick(value, default):
    return default if value is None else value


def resolve_cell_style(table_style: TableStyle, cell_style: Optional[CellStyle]) -> ResolvedCellStyle:
    """Merge a cell's style over the table style."""
    cs = cell_style or CellStyle()
    return ResolvedCellStyle(
        font_name=_pick(cs.font_name, table_style.font_name),
        font_size=_pick(cs.font_size, table_style.default_font_size),
        bold=_pick(cs.bold, False),
        italic=_pick(cs.italic, False),
        text_color=_pick(cs.text_color, table_style.text_color),
        alignment=_pick(cs.alignment, table_style.alignment),
        vertical_alignment=_pick(cs.vertical_alignment, table_style.vertical_alignment),
        padding=_pick(cs.padding, table_style.padding),
        embedded_font_resource_name=cs.embedded_font_resource_name,
    )
