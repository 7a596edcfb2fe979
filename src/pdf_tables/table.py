"""Table, row and cell models plus a staged builder."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .errors import DimensionError, InvalidTableError
from .fonts import FontMetrics
from .images import TableImage
from .style import CellStyle, ResolvedCellStyle, RowStyle, TableStyle, resolve_cell_style


class WidthKind(Enum):
    """How a column's width is determined."""
    PIXELS = "pixels"          # Fixed width in points
    PERCENTAGE = "percentage"  # Share of the available width
    AUTO = "auto"              # Derived from content


@dataclass(frozen=True)
class ColumnWidth:
    """Width rule for a single column."""
    kind: WidthKind
    value: float = 0.0

    @classmethod
    def pixels(cls, points: float) -> "ColumnWidth":
        return cls(WidthKind.PIXELS, float(points))

    @classmethod
    def percentage(cls, pct: float) -> "ColumnWidth":
        return cls(WidthKind.PERCENTAGE, float(pct))

    @classmethod
    def auto(cls) -> "ColumnWidth":
        return cls(WidthKind.AUTO)


@dataclass(frozen=True)
class Cell:
    """A table cell: text, optional style, spans, wrapping and images."""
    content: str = ""
    style: Optional[CellStyle] = None
    colspan: int = 1
    rowspan: int = 1  # Stored and validated; does not affect layout
    wrap: bool = False
    images: Tuple[TableImage, ...] = ()

    @classmethod
    def from_image(cls, image: TableImage, **kwargs) -> "Cell":
        return cls(images=(image,), **kwargs)

    @classmethod
    def from_images(cls, images: Sequence[TableImage], **kwargs) -> "Cell":
        return cls(images=tuple(images), **kwargs)

    @property
    def is_bold(self) -> bool:
        return bool(self.style and self.style.bold)


@dataclass(frozen=True)
class Row:
    """An ordered group of cells with an optional fixed height."""
    cells: Tuple[Cell, ...]
    style: Optional[RowStyle] = None
    height: Optional[float] = None  # Overrides the computed height

    @property
    def span(self) -> int:
        return sum(cell.colspan for cell in self.cells)


@dataclass(frozen=True)
class Table:
    """
    Immutable layout input.

    The column count comes from the first row's colspan sum; every other row
    must cover the same number of columns.
    """
    rows: Tuple[Row, ...]
    style: TableStyle = field(default_factory=TableStyle)
    column_widths: Optional[Tuple[ColumnWidth, ...]] = None
    total_width: Optional[float] = None
    header_rows: int = 0
    font_metrics: Optional[FontMetrics] = field(default=None, compare=False)
    bold_font_metrics: Optional[FontMetrics] = field(default=None, compare=False)

    @property
    def column_count(self) -> int:
        if not self.rows:
            return 0
        return self.rows[0].span

    def validate(self) -> None:
        """Check structural invariants; raises InvalidTableError or DimensionError."""
        if not self.rows:
            raise InvalidTableError("Table has no rows")

        columns = self.column_count
        for idx, row in enumerate(self.rows):
            if not row.cells:
                raise InvalidTableError(f"Row {idx} has no cells")
            for cell in row.cells:
                if cell.colspan < 1:
                    raise InvalidTableError(f"Row {idx}: colspan must be at least 1, got {cell.colspan}")
                if cell.rowspan < 1:
                    raise InvalidTableError(f"Row {idx}: rowspan must be at least 1, got {cell.rowspan}")
                if cell.style is not None:
                    cell.style.validate()
            if row.span != columns:
                raise InvalidTableError(
                    f"Row {idx} has {row.span} columns, expected {columns}"
                )
            if row.height is not None and row.height <= 0:
                raise DimensionError(f"Row {idx} height must be positive, got {row.height}")

        if self.column_widths is not None:
            if len(self.column_widths) != columns:
                raise InvalidTableError(
                    f"Column widths count ({len(self.column_widths)}) "
                    f"doesn't match column count ({columns})"
                )
            total_pct = 0.0
            for spec in self.column_widths:
                if spec.value < 0:
                    raise DimensionError(f"Column width must not be negative, got {spec.value}")
                if spec.kind == WidthKind.PERCENTAGE:
                    total_pct += spec.value
            if total_pct > 100.0:
                raise InvalidTableError(f"Total percentage width exceeds 100%: {total_pct}%")

        if self.total_width is not None and self.total_width <= 0:
            raise DimensionError(f"Table width must be positive, got {self.total_width}")
        if self.header_rows < 0:
            raise InvalidTableError(f"Header row count must not be negative, got {self.header_rows}")
        if self.header_rows > len(self.rows):
            raise InvalidTableError(
                f"Header row count ({self.header_rows}) exceeds row count ({len(self.rows)})"
            )

        self.style.validate()

    def resolve_style(self, cell: Cell) -> ResolvedCellStyle:
        return resolve_cell_style(self.style, cell.style)

    def metrics_for(self, cell: Cell) -> Optional[FontMetrics]:
        """Bold cells prefer bold metrics, then regular metrics, then none."""
        if cell.is_bold and self.bold_font_metrics is not None:
            return self.bold_font_metrics
        return self.font_metrics


class TableBuilder:
    """Collects rows and settings, then produces a validated Table."""

    def __init__(self, style: Optional[TableStyle] = None):
        self._rows: List[Row] = []
        self._style = style or TableStyle()
        self._column_widths: Optional[Tuple[ColumnWidth, ...]] = None
        self._total_width: Optional[float] = None
        self._header_rows = 0
        self._font_metrics: Optional[FontMetrics] = None
        self._bold_font_metrics: Optional[FontMetrics] = None

    def style(self, style: TableStyle) -> "TableBuilder":
        self._style = style
        return self

    def row(
        self,
        cells: Sequence,
        style: Optional[RowStyle] = None,
        height: Optional[float] = None,
    ) -> "TableBuilder":
        """Append a row; plain strings are turned into cells."""
        converted = tuple(c if isinstance(c, Cell) else Cell(str(c)) for c in cells)
        self._rows.append(Row(converted, style=style, height=height))
        return self

    def header_row(self, labels: Sequence, style: Optional[CellStyle] = None) -> "TableBuilder":
        """
        Append a row of header cells and count it as a repeating header.

        Headers are the leading rows, so this raises InvalidTableError once a
        data row has been added.
        """
        if len(self._rows) > self._header_rows:
            raise InvalidTableError(
                f"Header row added after {len(self._rows) - self._header_rows} data row(s)"
            )
        header_style = style or CellStyle.header()
        cells = [
            c if isinstance(c, Cell) else Cell(str(c), style=header_style)
            for c in labels
        ]
        self._header_rows += 1
        return self.row(cells)

    def column_widths(self, widths: Sequence[ColumnWidth]) -> "TableBuilder":
        self._column_widths = tuple(widths)
        return self

    def total_width(self, width: float) -> "TableBuilder":
        self._total_width = width
        return self

    def header_rows(self, count: int) -> "TableBuilder":
        self._header_rows = count
        return self

    def font_metrics(
        self,
        regular: Optional[FontMetrics],
        bold: Optional[FontMetrics] = None,
    ) -> "TableBuilder":
        self._font_metrics = regular
        self._bold_font_metrics = bold
        return self

    def build(self) -> Table:
        table = Table(
            rows=tuple(self._rows),
            style=self._style,
            column_widths=self._column_widths,
            total_width=self._total_width,
            header_rows=self._header_rows,
            font_metrics=self._font_metrics,
            bold_font_metrics=self._bold_font_metrics,
        )
        table.validate()
        return table
