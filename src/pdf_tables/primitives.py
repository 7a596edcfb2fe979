"""Content-stream operations and low-level drawing primitives."""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .style import BorderStyle, Color

# Dash arrays for the "d" operator
DASH_PATTERNS = {
    BorderStyle.SOLID: [],
    BorderStyle.DASHED: [3, 3],
    BorderStyle.DOTTED: [1, 2],
}


class Name(str):
    """A PDF name operand, written as /Name."""

    def __repr__(self) -> str:
        return f"Name({str(self)!r})"


@dataclass(frozen=True)
class Operation:
    """A single content-stream operator with its typed operands."""
    operator: str
    operands: Tuple = ()

    def __repr__(self) -> str:
        args = " ".join(repr(o) for o in self.operands)
        return f"<{args} {self.operator}>" if args else f"<{self.operator}>"


def op(operator: str, *operands) -> Operation:
    return Operation(operator, tuple(operands))


def set_fill_color(color: Color) -> Operation:
    return op("rg", color.r, color.g, color.b)


def fill_rect(x: float, y: float, width: float, height: float, color: Color) -> List[Operation]:
    """Filled rectangle with its lower-left corner at (x, y)."""
    return [
        set_fill_color(color),
        op("re", x, y, width, height),
        op("f"),
    ]


def stroke_rect(x: float, y: float, width: float, height: float) -> List[Operation]:
    return [op("re", x, y, width, height), op("S")]


def hline(start_x: float, end_x: float, y: float) -> List[Operation]:
    return [op("m", start_x, y), op("l", end_x, y), op("S")]


def vline(x: float, start_y: float, end_y: float) -> List[Operation]:
    return [op("m", x, start_y), op("l", x, end_y), op("S")]


def set_stroke_style(
    color: Color,
    width: float,
    style: BorderStyle = BorderStyle.SOLID,
) -> List[Operation]:
    """Stroke color, line width and dash pattern."""
    return [
        op("RG", color.r, color.g, color.b),
        op("w", width),
        op("d", list(DASH_PATTERNS.get(style, [])), 0),
    ]


def clip_rect(x: float, y: float, width: float, height: float) -> List[Operation]:
    """Intersect the clipping path with a rectangle (inside q ... Q)."""
    return [op("re", x, y, width, height), op("W"), op("n")]


def wrap_as_artifact(operations: List[Operation]) -> List[Operation]:
    """Mark layout-only drawing as an /Artifact for tagged documents."""
    if not operations:
        return operations
    return (
        [op("BDC", Name("Artifact"), {"Type": Name("Layout")})]
        + operations
        + [op("EMC")]
    )


def cell_width(col: int, colspan: int, column_widths: Sequence[float]) -> float:
    return sum(column_widths[col:col + max(colspan, 1)])


def draw_table_borders(
    table,
    layout,
    origin: Tuple[float, float],
    row_indices: Optional[Sequence[int]] = None,
) -> List[Operation]:
    """
    Outer frame, row separators and column separators for a table.

    With row_indices the frame covers only those rows, stacked in the given
    order, so each page of a paginated table gets a closed grid. Column
    separators are drawn per row and skip boundaries inside a colspan.
    """
    style = table.style
    if style.border_style == BorderStyle.NONE:
        return []

    if row_indices is None:
        row_indices = list(range(len(layout.row_heights)))
        height = layout.total_height
    else:
        height = layout.rows_height(row_indices)

    start_x, start_y = origin
    right_x = start_x + layout.total_width
    ops = set_stroke_style(style.border_color, style.border_width, style.border_style)
    ops += stroke_rect(start_x, start_y - height, layout.total_width, height)

    y = start_y
    for idx, row_idx in enumerate(row_indices):
        if idx > 0:
            ops += hline(start_x, right_x, y)
        y -= layout.row_heights[row_idx]

    y_top = start_y
    for row_idx in row_indices:
        y_bottom = y_top - layout.row_heights[row_idx]
        x = start_x
        col = 0
        for cell in table.rows[row_idx].cells:
            if col > 0:
                ops += vline(x, y_top, y_bottom)
            x += cell_width(col, cell.colspan, layout.column_widths)
            col += max(cell.colspan, 1)
        y_top = y_bottom

    return ops
