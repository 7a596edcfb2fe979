"""
Tests for render configuration
"""

import pytest
from reportlab.lib.pagesizes import A4, LETTER

from pdf_tables.config import RenderConfig, load_config
from pdf_tables.errors import StyleError
from pdf_tables.style import Color, Padding


class TestRenderConfig:

    def test_defaults(self):
        config = load_config()
        assert config.page_size == "A4"
        assert config.page_dimensions == pytest.approx(A4)
        assert config.content_width == pytest.approx(A4[0] - 100)
        assert config.repeat_headers

    def test_landscape(self):
        config = RenderConfig(page_size="letter", orientation="landscape")
        assert config.page_dimensions == pytest.approx((LETTER[1], LETTER[0]))

    def test_unknown_page_size(self):
        with pytest.raises(StyleError):
            RenderConfig(page_size="B7").page_dimensions

    def test_table_style(self):
        config = RenderConfig(page_size="LETTER", margin_top=36, padding=3, border_color="#FF0000",
                              embedded_fonts={"regular": "F9", "bold": "F9B"})
        style = config.table_style()
        assert style.page_height == pytest.approx(792)
        assert style.top_margin == 36
        assert style.padding == Padding.uniform(3)
        assert style.border_color == Color(1.0, 0.0, 0.0)
        assert style.embedded_font_resource_name == "F9"
        assert style.embedded_font_resource_name_bold == "F9B"

    def test_header_cell_style(self):
        style = RenderConfig(header_background="white").header_cell_style()
        assert style.bold
        assert style.background_color == Color.white()

    def test_bad_color(self):
        with pytest.raises(StyleError):
            RenderConfig(border_color="not-a-color").table_style()


class TestYaml:

    def test_round_trip(self, tmp_path):
        config = RenderConfig(page_size="A5", margin_left=20, font_size=8, header_rows=2,
                              embedded_fonts={"regular": "F4"})
        path = tmp_path / "config.yaml"
        config.to_yaml(path)
        assert load_config(path) == config

    def test_ints_become_floats(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("margin_top: 30\nfont_size: 12\nrepeat_headers: false\n")
        config = RenderConfig.from_yaml(path)
        assert isinstance(config.margin_top, float)
        assert config.font_size == 12.0
        assert not config.repeat_headers
        assert config.margin_left == 50.0

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert RenderConfig.from_yaml(path) == RenderConfig()
