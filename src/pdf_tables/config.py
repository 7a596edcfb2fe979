"""Configuration dataclasses and YAML loading for table rendering."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml
from reportlab.lib import pagesizes

from .constants import DEFAULT_BORDER_WIDTH, DEFAULT_FONT_SIZE, DEFAULT_MARGIN, DEFAULT_PADDING
from .errors import StyleError
from .style import CellStyle, Color, Padding, TableStyle


PAGE_SIZES: Dict[str, Tuple[float, float]] = {
    "A3": pagesizes.A3,
    "A4": pagesizes.A4,
    "A5": pagesizes.A5,
    "LETTER": pagesizes.LETTER,
    "LEGAL": pagesizes.LEGAL,
}


@dataclass
class RenderConfig:
    """Page geometry and default styling for rendered tables."""

    page_size: str = "A4"
    orientation: str = "portrait"  # "portrait" or "landscape"

    margin_left: float = DEFAULT_MARGIN
    margin_right: float = DEFAULT_MARGIN
    margin_top: float = DEFAULT_MARGIN
    margin_bottom: float = DEFAULT_MARGIN

    font_name: str = "Helvetica"
    font_size: float = DEFAULT_FONT_SIZE
    padding: float = DEFAULT_PADDING
    border_width: float = DEFAULT_BORDER_WIDTH
    border_color: str = "black"
    header_background: str = "#D0D0D0"

    repeat_headers: bool = True
    # Leading rows treated as headers when a table declares none
    header_rows: int = 0

    # Embedded font resources the caller registers on its pages
    embedded_fonts: Dict[str, str] = field(default_factory=dict)

    @property
    def page_dimensions(self) -> Tuple[float, float]:
        try:
            size = PAGE_SIZES[self.page_size.upper()]
        except KeyError as exc:
            raise StyleError(f"Unknown page size {self.page_size!r}", cause=exc) from exc
        if self.orientation == "landscape":
            return pagesizes.landscape(size)
        return pagesizes.portrait(size)

    @property
    def content_width(self) -> float:
        return self.page_dimensions[0] - self.margin_left - self.margin_right

    def table_style(self) -> TableStyle:
        """Table style carrying this config's fonts, borders and page margins."""
        return TableStyle(
            border_width=self.border_width,
            border_color=Color.parse(self.border_color),
            padding=Padding.uniform(self.padding),
            font_name=self.font_name,
            default_font_size=self.font_size,
            page_height=self.page_dimensions[1],
            top_margin=self.margin_top,
            bottom_margin=self.margin_bottom,
            repeat_headers=self.repeat_headers,
            embedded_font_resource_name=self.embedded_fonts.get("regular"),
            embedded_font_resource_name_bold=self.embedded_fonts.get("bold"),
        )

    def header_cell_style(self) -> CellStyle:
        return CellStyle(
            bold=True,
            background_color=Color.parse(self.header_background),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "RenderConfig":
        """Load configuration from a YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        # YAML may give margins and sizes as ints
        for key in ("margin_left", "margin_right", "margin_top", "margin_bottom",
                    "font_size", "padding", "border_width"):
            if key in data:
                data[key] = float(data[key])

        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save configuration to a YAML file."""
        data = {
            "page_size": self.page_size,
            "orientation": self.orientation,
            "margin_left": self.margin_left,
            "margin_right": self.margin_right,
            "margin_top": self.margin_top,
            "margin_bottom": self.margin_bottom,
            "font_name": self.font_name,
            "font_size": self.font_size,
            "padding": self.padding,
            "border_width": self.border_width,
            "border_color": self.border_color,
            "header_background": self.header_background,
            "repeat_headers": self.repeat_headers,
            "header_rows": self.header_rows,
            "embedded_fonts": self.embedded_fonts,
        }
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def load_config(path: Optional[Path] = None) -> RenderConfig:
    """Load config from path or return default config."""
    if path is None:
        return RenderConfig()
    return RenderConfig.from_yaml(path)
