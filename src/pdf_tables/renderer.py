"""Caller-facing entry points for drawing tables onto document pages."""

import logging
from dataclasses import replace
from typing import Any, List, Optional, Tuple

from .config import RenderConfig
from .content import ContentEmitter, TaggedCellHook
from .document import DocumentModel
from .images import ImageRegistry
from .layout import TableLayout, calculate_layout
from .pagination import PagedTableResult, draw_table_paginated
from .primitives import Operation
from .table import Table

logger = logging.getLogger(__name__)


class TableRenderer:
    """Lays out tables and writes them into a document."""

    def __init__(self, document: DocumentModel, config: Optional[RenderConfig] = None):
        self.document = document
        self.config = config or RenderConfig()

    def top_left(self, page_id: Any) -> Tuple[float, float]:
        """Table origin at the configured left and top margins of a page."""
        page_height = self.document.page_height(page_id)
        return (self.config.margin_left, page_height - self.config.margin_top)

    def prepare_table(self, table: Table) -> Table:
        """
        Apply config defaults the table leaves unset.

        A table without a total width takes the config's content width, and
        one without header rows takes the configured header row count.
        """
        changes = {}
        if table.total_width is None:
            changes["total_width"] = self.config.content_width
        if table.header_rows == 0 and self.config.header_rows > 0:
            changes["header_rows"] = min(self.config.header_rows, len(table.rows))
        return replace(table, **changes) if changes else table

    def create_table_content(
        self,
        table: Table,
        position: Tuple[float, float],
        hook: Optional[TaggedCellHook] = None,
    ) -> List[Operation]:
        """Operations for a table without touching the document."""
        table = self.prepare_table(table)
        layout = calculate_layout(table)
        registry = ImageRegistry.from_table(table)
        return ContentEmitter(table, layout, hook=hook, registry=registry).generate(position)

    def draw_table(
        self,
        page_id: Any,
        table: Table,
        position: Tuple[float, float],
        hook: Optional[TaggedCellHook] = None,
    ) -> TableLayout:
        """Draw a whole table on one page, overflowing the page if it must."""
        table = self.prepare_table(table)
        layout = calculate_layout(table)
        logger.debug("Drawing table of %d rows at (%.2f, %.2f)", len(table.rows), *position)

        registry = ImageRegistry.from_table(table)
        if len(registry) or registry.needs_overlay_state:
            self.document.register_images(page_id, registry)

        operations = ContentEmitter(table, layout, hook=hook, registry=registry).generate(position)
        self.document.append_content(page_id, operations)
        return layout

    def add_table_to_page(
        self,
        page_id: Any,
        table: Table,
        hook: Optional[TaggedCellHook] = None,
    ) -> TableLayout:
        return self.draw_table(page_id, table, self.top_left(page_id), hook=hook)

    def draw_table_with_pagination(
        self,
        page_id: Any,
        table: Table,
        position: Optional[Tuple[float, float]] = None,
        hook: Optional[TaggedCellHook] = None,
    ) -> PagedTableResult:
        """Draw a table across continuation pages as needed."""
        if position is None:
            position = self.top_left(page_id)
        table = self.prepare_table(table)
        layout = calculate_layout(table)
        result = draw_table_paginated(self.document, page_id, table, layout, position, hook=hook)
        logger.info("Table of %d rows drawn on %d page(s)", len(table.rows), result.total_pages)
        return result
