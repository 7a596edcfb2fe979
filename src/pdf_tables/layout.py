"""Layout engine for resolving column widths and row heights."""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .constants import (
    DEFAULT_LINE_HEIGHT_MULTIPLIER,
    DEFAULT_MARGIN,
    LETTER_WIDTH,
    MIN_COLUMN_WIDTH,
)
from .errors import LayoutError
from .table import Cell, ColumnWidth, Table, WidthKind
from .text import measure_text_width, split_lines, wrap_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableLayout:
    """Resolved geometry of a table."""
    column_widths: Tuple[float, ...]
    row_heights: Tuple[float, ...]
    total_width: float
    total_height: float

    def column_x(self, col: int) -> float:
        """Offset of a column's left edge from the table's left edge."""
        return sum(self.column_widths[:col])

    def rows_height(self, row_indices: Iterable[int]) -> float:
        return sum(self.row_heights[i] for i in row_indices)


@dataclass
class CellPlacement:
    """Describes where a cell is placed."""
    row_index: int
    col_index: int
    x: float
    y_top: float
    width: float
    height: float
    cell: Cell

    @property
    def y_bottom(self) -> float:
        return self.y_top - self.height


def line_height(font_size: float) -> float:
    return font_size * DEFAULT_LINE_HEIGHT_MULTIPLIER


class LayoutEngine:
    """Engine for computing column widths, row heights and cell positions."""

    def __init__(self, table: Table):
        self.table = table

    @property
    def available_width(self) -> float:
        if self.table.total_width is not None:
            return self.table.total_width
        return LETTER_WIDTH - 2 * DEFAULT_MARGIN

    def compute(self) -> TableLayout:
        """Validate the table and resolve its full layout."""
        self.table.validate()

        column_count = self.table.column_count
        if column_count == 0:
            raise LayoutError("No columns in table")

        logger.debug(
            "Calculating layout for table with %d rows and %d columns",
            len(self.table.rows), column_count,
        )

        if self.table.column_widths is not None:
            widths = self.resolve_column_widths(self.table.column_widths, self.available_width)
        else:
            widths = self.compute_content_widths()
        heights = self.compute_row_heights(widths)

        layout = TableLayout(
            column_widths=tuple(widths),
            row_heights=tuple(heights),
            total_width=sum(widths),
            total_height=sum(heights),
        )
        logger.debug("Layout calculated: %.2f x %.2f", layout.total_width, layout.total_height)
        return layout

    def _iter_columns(self, row_cells: Sequence[Cell]):
        """Yield (column index, cell) pairs, advancing by colspan."""
        col = 0
        for cell in row_cells:
            yield col, cell
            col += cell.colspan

    def _cell_text_width(self, cell: Cell) -> float:
        style = self.table.resolve_style(cell)
        metrics = self.table.metrics_for(cell)
        lines = split_lines(cell.content) if cell.content else [""]
        return max(measure_text_width(line, style.font_size, metrics) for line in lines)

    def estimate_column_content_width(self, col_idx: int) -> float:
        """Widest single-column cell in a column, padding included."""
        max_width = 0.0
        for row in self.table.rows:
            for col, cell in self._iter_columns(row.cells):
                if col == col_idx and cell.colspan == 1:
                    padding = self.table.resolve_style(cell).padding
                    max_width = max(max_width, self._cell_text_width(cell) + padding.horizontal)
        return max_width

    def compute_content_widths(self) -> List[float]:
        """Widths straight from content when no width rules were given."""
        widths = [
            max(self.estimate_column_content_width(col), MIN_COLUMN_WIDTH)
            for col in range(self.table.column_count)
        ]
        logger.debug("Content column widths: %s", widths)
        return widths

    def resolve_column_widths(self, specs: Sequence[ColumnWidth], available_width: float) -> List[float]:
        """
        Resolve fixed, percentage and automatic column rules.

        Percentages are taken of the available width. What remains after fixed
        and percentage columns is shared by automatic columns in proportion to
        their content (evenly when they have none). A remainder at or below
        zero leaves automatic columns at the minimum width.
        """
        resolved = [0.0] * len(specs)
        fixed_total = 0.0
        pct_total = 0.0
        auto_columns = []

        for i, spec in enumerate(specs):
            if spec.kind == WidthKind.PIXELS:
                resolved[i] = spec.value
                fixed_total += spec.value
            elif spec.kind == WidthKind.PERCENTAGE:
                resolved[i] = available_width * spec.value / 100.0
                pct_total += spec.value
            else:
                auto_columns.append(i)

        remaining = available_width - fixed_total - available_width * pct_total / 100.0

        if auto_columns:
            if remaining > 0:
                estimates = [self.estimate_column_content_width(col) for col in auto_columns]
                estimate_total = sum(estimates)
                for col, estimate in zip(auto_columns, estimates):
                    if estimate_total > 0:
                        width = remaining * estimate / estimate_total
                    else:
                        width = remaining / len(auto_columns)
                    resolved[col] = max(width, MIN_COLUMN_WIDTH)
            else:
                logger.debug("No width left for %d auto columns (remaining %.2f)", len(auto_columns), remaining)
                for col in auto_columns:
                    resolved[col] = MIN_COLUMN_WIDTH

        logger.debug("Resolved column widths: %s", resolved)
        return resolved

    def cell_content_height(self, cell: Cell, width: float) -> float:
        """Height a cell's content needs, padding excluded."""
        style = self.table.resolve_style(cell)
        if cell.wrap:
            available = width - style.padding.horizontal
            lines = wrap_text(cell.content, available, style.font_size, self.table.metrics_for(cell))
            needed = len(lines) * line_height(style.font_size)
        else:
            needed = line_height(style.font_size)

        for image in cell.images:
            if image.max_height is not None:
                needed = max(needed, image.max_height)
        return needed

    def compute_row_heights(self, column_widths: Sequence[float]) -> List[float]:
        heights = []
        floor = line_height(self.table.style.default_font_size)

        for row in self.table.rows:
            if row.height is not None:
                heights.append(row.height)
                continue

            max_height = 0.0
            for col, cell in self._iter_columns(row.cells):
                width = sum(column_widths[col:col + cell.colspan])
                padding = self.table.resolve_style(cell).padding
                max_height = max(max_height, self.cell_content_height(cell, width) + padding.vertical)

            heights.append(max(max_height, floor))

        logger.debug("Row heights: %s", heights)
        return heights

    def cell_placements(
        self,
        layout: TableLayout,
        origin: Tuple[float, float],
        row_indices: Optional[Sequence[int]] = None,
    ) -> List[CellPlacement]:
        """Cell rectangles for the given rows stacked downward from origin (top-left)."""
        if row_indices is None:
            row_indices = range(len(self.table.rows))

        x0, y = origin
        placements = []
        for row_idx in row_indices:
            row = self.table.rows[row_idx]
            height = layout.row_heights[row_idx]
            for col, cell in self._iter_columns(row.cells):
                placements.append(CellPlacement(
                    row_index=row_idx,
                    col_index=col,
                    x=x0 + layout.column_x(col),
                    y_top=y,
                    width=sum(layout.column_widths[col:col + cell.colspan]),
                    height=height,
                    cell=cell,
                ))
            y -= height
        return placements


def calculate_layout(table: Table) -> TableLayout:
    """Validate a table and compute its layout."""
    return LayoutEngine(table).compute()
