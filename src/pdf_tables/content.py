"""Content emitter: turns a table and its layout into drawing operations."""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from .constants import DEFAULT_LINE_HEIGHT_MULTIPLIER, IMAGE_GAP, OVERLAY_GSTATE_NAME
from .fonts import FontMetrics, standard_font_resource
from .images import ImageBounds, ImageRegistry, TableImage, fit_image
from .layout import CellPlacement, LayoutEngine, TableLayout
from .primitives import (
    Name,
    Operation,
    clip_rect,
    draw_table_borders,
    fill_rect,
    hline,
    op,
    set_fill_color,
    set_stroke_style,
    stroke_rect,
    vline,
    wrap_as_artifact,
)
from .style import (
    Alignment,
    Border,
    CellStyle,
    Color,
    Padding,
    ResolvedCellStyle,
    VerticalAlignment,
)
from .table import Cell, Table
from .text import measure_text_width, split_lines, wrap_text

logger = logging.getLogger(__name__)


class TaggedCellHook(ABC):
    """
    Callbacks around each cell's semantic content.

    Used to inject marked-content sequences (e.g. /TD <</MCID n>> BDC ... EMC)
    for tagged PDF output. When a hook is given, layout-only drawing is
    emitted as /Artifact marked content.
    """

    @abstractmethod
    def begin_cell(self, row: int, col: int, is_header: bool) -> List[Operation]:
        """Operations emitted before a cell's background and content."""

    @abstractmethod
    def end_cell(self, row: int, col: int, is_header: bool) -> List[Operation]:
        """Operations emitted after a cell's content."""


def encode_plain_text(text: str) -> bytes:
    """Bytes for a WinAnsi-encoded standard font; unmappable characters become '?'."""
    return text.encode("cp1252", errors="replace")


def draw_cell_border_overrides(style: CellStyle, x: float, y: float, width: float, height: float) -> List[Operation]:
    """
    Stroke a cell's own borders on top of the grid.

    Four identical sides are stroked as one rectangle so the corners join
    like the table grid; otherwise each visible side is stroked alone.
    """
    sides = (style.border_left, style.border_right, style.border_top, style.border_bottom)
    if all(side is not None for side in sides) and len(set(sides)) == 1:
        border = style.border_top
        if not border.visible:
            return []
        return set_stroke_style(border.color, border.width, border.style) + stroke_rect(x, y - height, width, height)

    ops: List[Operation] = []
    segments = (
        (style.border_left, vline(x, y, y - height)),
        (style.border_right, vline(x + width, y, y - height)),
        (style.border_top, hline(x, x + width, y)),
        (style.border_bottom, hline(x, x + width, y - height)),
    )
    for border, segment in segments:
        if border is None or not border.visible:
            continue
        ops += set_stroke_style(border.color, border.width, border.style)
        ops += segment
    return ops


def _row_border(border: Optional[Border], x: float, y: float, width: float) -> List[Operation]:
    if border is None or not border.visible:
        return []
    return set_stroke_style(border.color, border.width, border.style) + hline(x, x + width, y)


class ContentEmitter:
    """
    Produces the operation list for a table, or a subset of its rows.

    Emission order: table background, then per row the row background and
    each cell (hook begin, background, text, images, hook end), then the
    grid, then cell and row border overrides so they sit on top of it.
    Nothing here touches a document; images are referenced by the names
    held in the registry.
    """

    def __init__(
        self,
        table: Table,
        layout: TableLayout,
        hook: Optional[TaggedCellHook] = None,
        registry: Optional[ImageRegistry] = None,
    ):
        self.table = table
        self.layout = layout
        self.hook = hook
        self.registry = registry
        self._engine = LayoutEngine(table)

    def _layout_only(self, ops: List[Operation]) -> List[Operation]:
        return wrap_as_artifact(ops) if self.hook is not None else ops

    def generate(
        self,
        origin: Tuple[float, float],
        row_indices: Optional[Sequence[int]] = None,
    ) -> List[Operation]:
        """Operations for the table drawn with its top-left corner at origin."""
        subset = row_indices is not None
        rows = list(row_indices) if subset else list(range(len(self.table.rows)))
        if not rows:
            return []

        start_x, start_y = origin
        logger.debug("Generating operations for %d rows at (%.2f, %.2f)", len(rows), start_x, start_y)

        operations: List[Operation] = []
        overlay: List[Operation] = []
        height = self.layout.rows_height(rows) if subset else self.layout.total_height

        background = self.table.style.background_color
        if background is not None and (not subset or 0 in rows):
            operations += self._layout_only(
                fill_rect(start_x, start_y - height, self.layout.total_width, height, background)
            )

        placements = self._engine.cell_placements(self.layout, origin, rows)
        by_row = {}
        for placement in placements:
            by_row.setdefault(placement.row_index, []).append(placement)

        y = start_y
        for row_idx in rows:
            row = self.table.rows[row_idx]
            row_height = self.layout.row_heights[row_idx]

            if row.style is not None and row.style.background_color is not None:
                operations += self._layout_only(
                    fill_rect(start_x, y - row_height, self.layout.total_width, row_height,
                              row.style.background_color)
                )

            for placement in by_row.get(row_idx, []):
                operations += self._emit_cell(placement)
                cell_style = placement.cell.style
                if cell_style is not None and cell_style.has_border_overrides:
                    overlay += self._layout_only(draw_cell_border_overrides(
                        cell_style, placement.x, placement.y_top, placement.width, placement.height,
                    ))

            if row.style is not None:
                row_borders = _row_border(row.style.border_top, start_x, y, self.layout.total_width)
                row_borders += _row_border(row.style.border_bottom, start_x, y - row_height,
                                           self.layout.total_width)
                overlay += self._layout_only(row_borders)

            y -= row_height

        operations += self._layout_only(
            draw_table_borders(self.table, self.layout, origin, rows if subset else None)
        )
        operations += overlay

        logger.debug("Generated %d operations", len(operations))
        return operations

    def _emit_cell(self, placement: CellPlacement) -> List[Operation]:
        cell = placement.cell
        is_header = placement.row_index < self.table.header_rows
        ops: List[Operation] = []

        if self.hook is not None:
            ops += self.hook.begin_cell(placement.row_index, placement.col_index, is_header)

        if cell.style is not None and cell.style.background_color is not None:
            ops += fill_rect(placement.x, placement.y_bottom, placement.width, placement.height,
                             cell.style.background_color)

        ops += self.cell_text(cell, placement.x, placement.y_top, placement.width, placement.height)

        if cell.images and self.registry is not None:
            padding = self.table.resolve_style(cell).padding
            ops += self.cell_images(cell.images, placement.x, placement.y_top,
                                    placement.width, placement.height, padding)

        if self.hook is not None:
            ops += self.hook.end_cell(placement.row_index, placement.col_index, is_header)
        return ops

    # Text

    def font_resource(self, cell: Cell, style: ResolvedCellStyle) -> Tuple[str, bool]:
        """
        Resource name for a cell's text and whether it is an embedded font.

        Priority: the cell's embedded font, the table's bold embedded font
        for bold cells, the table's embedded font, then the built-in
        standard font mapping.
        """
        table_style = self.table.style
        embedded = style.embedded_font_resource_name
        if embedded is None and style.bold:
            embedded = table_style.embedded_font_resource_name_bold
        if embedded is None:
            embedded = table_style.embedded_font_resource_name
        if embedded is not None:
            return embedded, True
        return standard_font_resource(style.font_name, style.bold), False

    def cell_lines(self, cell: Cell, style: ResolvedCellStyle, width: float) -> List[str]:
        if cell.wrap:
            available = width - style.padding.horizontal
            return wrap_text(cell.content, available, style.font_size, self.table.metrics_for(cell))
        return split_lines(cell.content)

    def cell_text(self, cell: Cell, x: float, y: float, width: float, height: float) -> List[Operation]:
        """Clipped text block for one cell; y is the cell's top edge."""
        if not cell.content:
            return []

        style = self.table.resolve_style(cell)
        metrics = self.table.metrics_for(cell)
        font_resource, embedded = self.font_resource(cell, style)
        encoder: Optional[FontMetrics] = metrics if embedded and metrics is not None else None

        lines = self.cell_lines(cell, style, width)
        font_size = style.font_size
        padding = style.padding
        line_height = font_size * DEFAULT_LINE_HEIGHT_MULTIPLIER
        total_height = len(lines) * line_height

        if style.vertical_alignment == VerticalAlignment.TOP:
            baseline = y - padding.top - font_size
        elif style.vertical_alignment == VerticalAlignment.BOTTOM:
            baseline = y - height + padding.bottom + total_height - font_size
        else:
            baseline = y - height / 2 + total_height / 2 - font_size

        def line_x(line: str) -> float:
            text_width = measure_text_width(line, font_size, metrics)
            if style.alignment == Alignment.CENTER:
                return x + width / 2 - text_width / 2
            if style.alignment == Alignment.RIGHT:
                return x + width - padding.right - text_width
            return x + padding.left

        ops = [op("q")] + clip_rect(x, y - height, width, height)
        ops += [
            op("BT"),
            op("Tf", Name(font_resource), font_size),
            set_fill_color(style.text_color),
        ]
        prev_x = None
        for line in lines:
            text_x = line_x(line)
            if prev_x is None:
                ops.append(op("Td", text_x, baseline))
            else:
                ops.append(op("Td", text_x - prev_x, -line_height))
            prev_x = text_x
            encoded = encoder.encode_text(line) if encoder is not None else encode_plain_text(line)
            ops.append(op("Tj", encoded))
        ops += [op("ET"), op("Q")]
        return ops

    # Images

    def cell_images(
        self,
        images: Sequence[TableImage],
        x: float,
        y: float,
        width: float,
        height: float,
        padding: Padding,
    ) -> List[Operation]:
        """
        Images of one cell, side by side.

        A single image fills the padded interior; several images share it in
        equal slots separated by IMAGE_GAP, each slot keeping only the
        vertical padding.
        """
        if len(images) == 1:
            return self._image(images[0], x, y, width, height, padding)

        count = len(images)
        available = width - padding.horizontal
        slot_width = (available - IMAGE_GAP * (count - 1)) / count
        slot_padding = Padding(top=padding.top, right=0.0, bottom=padding.bottom, left=0.0)

        ops: List[Operation] = []
        slot_x = x + padding.left
        for image in images:
            ops += self._image(image, slot_x, y, slot_width, height, slot_padding)
            slot_x += slot_width + IMAGE_GAP
        return ops

    def _image(self, image: TableImage, x: float, y: float, width: float, height: float,
               padding: Padding) -> List[Operation]:
        name = self.registry.resource_name(image)
        if name is None:
            logger.warning("Image %d is not registered; skipping", image.image_id)
            return []
        bounds = fit_image(image, x, y, width, height, padding)
        if bounds is None:
            return []

        ops = [op("q")] + clip_rect(x, y - height, width, height)
        ops += [
            op("cm", bounds.width, 0, 0, bounds.height, bounds.x, bounds.y),
            op("Do", Name(name)),
            op("Q"),
        ]
        if image.overlay is not None and image.overlay.text and self.registry.needs_overlay_state:
            ops += self._overlay(image, bounds)
        return ops

    def _overlay(self, image: TableImage, bounds: ImageBounds) -> List[Operation]:
        overlay = image.overlay
        bar_height = min(overlay.bar_height, bounds.height)
        bar_y = bounds.y + bounds.height - bar_height
        baseline = bar_y + bar_height - overlay.font_size - (bar_height - overlay.font_size) / 2

        font_resource = self.table.style.embedded_font_resource_name
        metrics = self.table.font_metrics
        if font_resource is not None and metrics is not None:
            text = metrics.encode_text(overlay.text)
        else:
            text = encode_plain_text(overlay.text)
        if font_resource is None:
            font_resource = standard_font_resource("Helvetica")

        return [
            op("q"),
            op("gs", Name(OVERLAY_GSTATE_NAME)),
            set_fill_color(Color.black()),
            op("re", bounds.x, bar_y, bounds.width, bar_height),
            op("f"),
            op("Q"),
            op("BT"),
            set_fill_color(Color.white()),
            op("Tf", Name(font_resource), overlay.font_size),
            op("Td", bounds.x + overlay.padding, baseline),
            op("Tj", text),
            op("ET"),
        ]


def generate_table_operations(
    table: Table,
    layout: TableLayout,
    origin: Tuple[float, float],
    hook: Optional[TaggedCellHook] = None,
    registry: Optional[ImageRegistry] = None,
) -> List[Operation]:
    """Operations for a whole table in one go."""
    return ContentEmitter(table, layout, hook=hook, registry=registry).generate(origin)
