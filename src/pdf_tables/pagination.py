"""Row-to-page assignment for tables taller than one page."""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from .constants import A4_HEIGHT
from .content import ContentEmitter, TaggedCellHook
from .images import ImageRegistry
from .layout import TableLayout
from .table import Table

logger = logging.getLogger(__name__)


@dataclass
class PageLayout:
    """Vertical bounds rows may occupy on a page."""
    page_height: float
    top_margin: float
    bottom_margin: float

    @property
    def content_start_y(self) -> float:
        """Top of content area (PDF coordinates start at bottom)."""
        return self.page_height - self.top_margin


@dataclass
class PageGroup:
    """Rows drawn together on one page, in drawing order."""
    page_index: int
    row_indices: List[int]
    top_y: float


@dataclass
class PagedTableResult:
    """Pages a paginated table touched and where drawing stopped."""
    page_ids: List[Any]
    total_pages: int
    final_position: Tuple[float, float]


class Paginator:
    """
    Packs rows onto pages without splitting any row.

    A row that would cross the bottom margin closes the current page, unless
    the page is still empty, in which case the row overflows in place.
    Continuation pages start at the top margin and, when header repetition
    is on, begin with the leading header rows.
    """

    def __init__(
        self,
        layout: TableLayout,
        page_layout: PageLayout,
        header_rows: int = 0,
        repeat_headers: bool = True,
    ):
        self.layout = layout
        self.page_layout = page_layout
        self.header_rows = header_rows
        self.repeat_headers = repeat_headers
        self.groups: List[PageGroup] = []
        self.current_y = 0.0
        self._rows: List[int] = []

    def _start_page(self, top_y: float) -> None:
        self._rows = []
        self.groups.append(PageGroup(page_index=len(self.groups), row_indices=self._rows, top_y=top_y))
        self.current_y = top_y

    def can_fit_on_current_page(self, height: float) -> bool:
        return self.current_y - height >= self.page_layout.bottom_margin

    def _seed_headers(self) -> None:
        for header_idx in range(self.header_rows):
            self._rows.append(header_idx)
            self.current_y -= self.layout.row_heights[header_idx]

    def paginate(self, start_y: float) -> List[PageGroup]:
        self.groups = []
        self._start_page(start_y)

        for row_idx, row_height in enumerate(self.layout.row_heights):
            if not self.can_fit_on_current_page(row_height) and self._rows:
                logger.debug("Page %d full at row %d (y=%.2f)", len(self.groups) - 1, row_idx, self.current_y)
                self._start_page(self.page_layout.content_start_y)
                if self.repeat_headers and self.header_rows > 0 and row_idx >= self.header_rows:
                    self._seed_headers()

            self._rows.append(row_idx)
            self.current_y -= row_height

        return self.groups


def page_layout_for(table: Table, document, page_id) -> PageLayout:
    """Page bounds from the table style, falling back to the page's own height, then A4."""
    style = table.style
    page_height = style.page_height
    if page_height is None:
        page_height = document.page_height(page_id) or A4_HEIGHT
    return PageLayout(page_height=page_height, top_margin=style.top_margin, bottom_margin=style.bottom_margin)


def draw_table_paginated(
    document,
    page_id,
    table: Table,
    layout: TableLayout,
    position: Tuple[float, float],
    hook: Optional[TaggedCellHook] = None,
) -> PagedTableResult:
    """
    Draw a table across as many pages as it needs.

    Each page's rows are written before the next page is created from the
    previous one, which keeps its media box and resources.
    """
    start_x, start_y = position
    page_layout = page_layout_for(table, document, page_id)
    paginator = Paginator(
        layout,
        page_layout,
        header_rows=table.header_rows,
        repeat_headers=table.style.repeat_headers,
    )
    groups = paginator.paginate(start_y)
    logger.debug(
        "Drawing paginated table with %d rows, %d header rows over %d pages",
        len(table.rows), table.header_rows, len(groups),
    )

    registry = ImageRegistry.from_table(table)
    emitter = ContentEmitter(table, layout, hook=hook, registry=registry)

    page_ids = []
    current_page = page_id
    for group in groups:
        if group.page_index > 0:
            current_page = document.create_page(current_page)
        page_ids.append(current_page)

        if len(registry):
            document.register_images(current_page, registry)
        operations = emitter.generate((start_x, group.top_y), group.row_indices)
        logger.debug("Drawing %d rows on page %d", len(group.row_indices), group.page_index)
        document.append_content(current_page, operations)

    return PagedTableResult(
        page_ids=page_ids,
        total_pages=len(page_ids),
        final_position=(start_x, paginator.current_y),
    )
