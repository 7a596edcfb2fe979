"""
Tests for row-to-page assignment and paginated drawing.
"""

import pytest

from pdf_tables.content import TaggedCellHook
from pdf_tables.images import TableImage
from pdf_tables.layout import TableLayout, calculate_layout
from pdf_tables.pagination import PageLayout, Paginator, draw_table_paginated
from pdf_tables.primitives import Name, op
from pdf_tables.style import Border, BorderStyle, CellStyle, Color, TableStyle
from pdf_tables.table import Cell, ColumnWidth, Row, Table


class FakeDocument:
    """In-memory document model recording what it is asked to do."""

    def __init__(self, height=842.0):
        self.height = height
        self.pages = ["p0"]
        self.content = {"p0": []}
        self.images = {}

    def create_page(self, source_page_id):
        # Content for the source page must already be written
        assert self.content[source_page_id]
        page_id = f"p{len(self.pages)}"
        self.pages.append(page_id)
        self.content[page_id] = []
        return page_id

    def page_height(self, page_id):
        return self.height

    def page_resources(self, page_id):
        return {}

    def register_images(self, page_id, registry):
        self.images[page_id] = [name for name, _ in registry.entries()]

    def append_content(self, page_id, operations):
        self.content[page_id].extend(operations)


def fixed_rows(count, height=30.0, header_rows=1, style=None, cell_style=None):
    rows = tuple(
        Row((Cell(f"Row {i}", style=cell_style), Cell(str(i))), height=height)
        for i in range(count)
    )
    return Table(
        rows=rows,
        style=style or TableStyle(page_height=842, top_margin=50, bottom_margin=50),
        column_widths=(ColumnWidth.pixels(200), ColumnWidth.pixels(100)),
        header_rows=header_rows,
    )


def rect_extents(operations):
    """(top, bottom) of every rectangle in a list of operations."""
    return [
        (o.operands[1] + o.operands[3], o.operands[1])
        for o in operations
        if o.operator == "re"
    ]


class TestPaginator:
    """Pure page planning."""

    def plan(self, heights, start_y, header_rows=0, repeat=True, page_height=842.0):
        layout = TableLayout(tuple([100.0]), tuple(heights), 100.0, sum(heights))
        page = PageLayout(page_height=page_height, top_margin=50, bottom_margin=50)
        return Paginator(layout, page, header_rows=header_rows, repeat_headers=repeat).paginate(start_y)

    def test_single_page(self):
        groups = self.plan([30.0] * 5, 500)
        assert len(groups) == 1
        assert groups[0].row_indices == [0, 1, 2, 3, 4]
        assert groups[0].top_y == 500

    def test_row_exactly_at_bottom_margin_fits(self):
        # 150 - 100 == 50: still on the page
        groups = self.plan([100.0, 1.0], 150)
        assert [g.row_indices for g in groups] == [[0], [1]]

    def test_continuation_pages_start_at_top_margin(self):
        groups = self.plan([30.0] * 40, 500)
        assert groups[0].top_y == 500
        assert all(g.top_y == 792 for g in groups[1:])

    def test_every_row_exactly_once_in_order(self):
        groups = self.plan([20.0 + (i % 7) for i in range(200)], 600, header_rows=2)
        body = [i for g in groups for i in g.row_indices if i >= 2 or g.page_index == 0]
        assert body == list(range(200))

    def test_headers_are_repeated(self):
        groups = self.plan([30.0] * 100, 500, header_rows=2)
        assert len(groups) > 1
        for group in groups[1:]:
            assert group.row_indices[:2] == [0, 1]
            assert all(i >= 2 for i in group.row_indices[2:])

    def test_headers_not_repeated_when_disabled(self):
        groups = self.plan([30.0] * 100, 500, header_rows=2, repeat=False)
        assert groups[1].row_indices[0] > 1

    def test_oversized_row_is_not_split(self):
        groups = self.plan([30.0, 2000.0, 30.0], 500)
        assert [g.row_indices for g in groups] == [[0], [1], [2]]

    def test_oversized_first_row_stays_on_first_page(self):
        groups = self.plan([2000.0], 500)
        assert [g.row_indices for g in groups] == [[0]]

    def test_no_header_on_page_still_in_header(self):
        # Page 1 only fits one of the two header rows
        groups = self.plan([30.0, 30.0, 30.0], 100, header_rows=2)
        assert groups[1].row_indices[0] == 1
        assert groups[1].row_indices.count(0) == 0


class TestDrawTablePaginated:
    """Paginated drawing through a document model."""

    def test_long_table_spans_pages(self):
        table = fixed_rows(120)
        document = FakeDocument()
        result = draw_table_paginated(document, "p0", table, calculate_layout(table), (50, 500))

        assert result.total_pages >= 3
        assert result.page_ids == document.pages
        assert result.total_pages == len(result.page_ids)

        for page_id in result.page_ids[1:]:
            extents = rect_extents(document.content[page_id])
            assert max(top for top, _ in extents) == pytest.approx(792)
            assert min(bottom for _, bottom in extents) >= 50 - 1e-9

    def test_first_page_starts_at_position(self):
        table = fixed_rows(120)
        document = FakeDocument()
        draw_table_paginated(document, "p0", table, calculate_layout(table), (50, 500))
        extents = rect_extents(document.content["p0"])
        assert max(top for top, _ in extents) == pytest.approx(500)

    def test_headers_drawn_on_every_page(self):
        table = fixed_rows(120)
        document = FakeDocument()
        result = draw_table_paginated(document, "p0", table, calculate_layout(table), (50, 500))
        for page_id in result.page_ids:
            texts = [o.operands[0] for o in document.content[page_id] if o.operator == "Tj"]
            assert texts[:2] == [b"Row 0", b"0"]

    def test_final_position(self):
        table = fixed_rows(10)
        document = FakeDocument()
        result = draw_table_paginated(document, "p0", table, calculate_layout(table), (50, 500))
        assert result.total_pages == 1
        assert result.final_position == (50, pytest.approx(200))

    def test_page_height_falls_back_to_document(self):
        table = fixed_rows(30, style=TableStyle(top_margin=50, bottom_margin=50))
        document = FakeDocument(height=400)
        result = draw_table_paginated(document, "p0", table, calculate_layout(table), (50, 350))
        # 300pt per page: 10 rows on page 1, header + 9 after that
        assert result.total_pages == 4
        extents = rect_extents(document.content[result.page_ids[1]])
        assert max(top for top, _ in extents) == pytest.approx(350)

    def test_border_overrides_on_continuation_pages(self):
        border = Border(BorderStyle.SOLID, 2.0, Color(1, 0, 0))
        table = fixed_rows(120, cell_style=CellStyle(border_bottom=border))
        document = FakeDocument()
        result = draw_table_paginated(document, "p0", table, calculate_layout(table), (50, 500))
        for page_id in result.page_ids:
            assert op("RG", 1.0, 0.0, 0.0) in document.content[page_id]

    def test_hook_sees_header_rows_again(self):
        class Counter(TaggedCellHook):
            def __init__(self):
                self.header_cells = 0

            def begin_cell(self, row, col, is_header):
                self.header_cells += is_header
                return []

            def end_cell(self, row, col, is_header):
                return []

        table = fixed_rows(120)
        hook = Counter()
        result = draw_table_paginated(FakeDocument(), "p0", table, calculate_layout(table), (50, 500), hook=hook)
        assert hook.header_cells == 2 * result.total_pages

    def test_images_registered_per_page(self, png_bytes):
        image = TableImage.from_bytes(png_bytes)
        rows = (Row((Cell.from_image(image), Cell("h")), height=30),) + tuple(
            Row((Cell(str(i)), Cell("x")), height=30) for i in range(60)
        )
        table = Table(
            rows=rows,
            style=TableStyle(page_height=842),
            column_widths=(ColumnWidth.pixels(100), ColumnWidth.pixels(100)),
            header_rows=1,
        )
        document = FakeDocument()
        result = draw_table_paginated(document, "p0", table, calculate_layout(table), (50, 792))
        assert result.total_pages > 1
        for page_id in result.page_ids:
            assert document.images[page_id] == [image.resource_name]
            assert op("Do", Name(image.resource_name)) in document.content[page_id]
