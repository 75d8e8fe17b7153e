"""Paginated table with repeated header band and category bands."""

from typing import Literal, Optional

from pydantic import BaseModel, Field
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit

from tkr_receipts.pdf.layout import TEXT_COLOR, LayoutContext
from tkr_receipts.utils.logging import get_logger

logger = get_logger(__name__)

HEADER_HEIGHT = 8
HEADER_FILL = (220, 220, 220)
BAND_HEIGHT = 6
BAND_FILL = (240, 240, 240)
CELL_PADDING = 2
MIN_ROW_HEIGHT = 6
LINE_HEIGHT_FACTOR = 1.2
SEPARATOR_WIDTH = 0.1


class TableColumn(BaseModel):
    """Column definition; width is a fraction of the content width."""

    header: str
    fraction: float = Field(gt=0, le=1)
    align: Literal["left", "center", "right"] = "left"
    header_align: Literal["left", "center"] = "left"


class TableRow(BaseModel):
    """Row to draw; rows with a category get grouped under a band."""

    cells: list[str]
    category: Optional[str] = None


class PreparedRow(BaseModel):
    """Row with every cell wrapped to its column width."""

    lines: list[list[str]]
    height: float
    category: Optional[str] = None


class TableResult(BaseModel):
    """What drawing a table did, for callers and tests."""

    rows_drawn: int = 0
    header_pages: list[int] = []
    band_labels: list[str] = []
    pages_used: int = 1
    end_y: float = 0


def category_label(category: str) -> str:
    """Band text for a category, e.g. facade_element -> 'FACADE ELEMENT WORKS'."""
    return f"{category.upper().replace('_', ' ')} WORKS"


class PaginatedTable:
    """
    Draws rows across as many pages as needed.

    Before each row every cell is wrapped to its column and the row height
    is computed. If the row would cross the bottom limit, the vertical
    column separators are closed for the current page, a new page is
    started and the header band is redrawn. Rows taller than a page are
    continued line by line on the following pages. A category band is drawn
    whenever the category changes, and again at the top of a new page.
    """

    def __init__(
        self,
        ctx: LayoutContext,
        columns: list[TableColumn],
        font_size: float = 8,
        header_font_size: float = 8,
        band_font_size: float = 9,
    ) -> None:
        total = sum(c.fraction for c in columns)
        if total > 1.0001:
            raise ValueError(f"Column fractions add up to {total:.2f}, more than the content width")
        self.ctx = ctx
        self.columns = columns
        self.font_size = font_size
        self.header_font_size = header_font_size
        self.band_font_size = band_font_size
        self.widths = [ctx.content_width * c.fraction for c in columns]
        self.line_height = font_size * 25.4 / 72 * LINE_HEIGHT_FACTOR
        self.result = TableResult()
        self._segment_top = ctx.y
        self._rows_on_page = 0

    def prepare(self, row: TableRow) -> PreparedRow:
        """Wrap each cell and compute the row height."""
        face = self.ctx.fonts.latin_regular.name
        lines = []
        for text, width in zip(row.cells, self.widths):
            wrapped: list[str] = []
            for paragraph in (text or "").split("\n"):
                wrapped.extend(
                    simpleSplit(paragraph, face, self.font_size, (width - 2 * CELL_PADDING) * mm)
                    or [""]
                )
            lines.append(wrapped)
        max_lines = max((len(cell) for cell in lines), default=1)
        height = max(max_lines * self.line_height, MIN_ROW_HEIGHT) + CELL_PADDING * 1.5
        return PreparedRow(lines=lines, height=height, category=row.category)

    def _column_edges(self) -> list[float]:
        edges = [self.ctx.left]
        for width in self.widths:
            edges.append(edges[-1] + width)
        return edges

    def draw_header(self) -> None:
        ctx = self.ctx
        top = ctx.y
        ctx.rect(ctx.left, top, ctx.content_width, HEADER_HEIGHT, fill=HEADER_FILL, stroke=False)
        face = ctx.fonts.latin_bold
        for column, x0, width in zip(self.columns, self._column_edges(), self.widths):
            if column.header_align == "center":
                ctx.text(column.header, x0 + width / 2, top + 5, face, self.header_font_size, (0, 0, 0), align="center")
            else:
                ctx.text(column.header, x0 + CELL_PADDING, top + 5, face, self.header_font_size, (0, 0, 0))
        ctx.advance(HEADER_HEIGHT)
        self.result.header_pages.append(ctx.page_number)

    def draw_band(self, category: str) -> None:
        ctx = self.ctx
        label = category_label(category)
        ctx.rect(ctx.left, ctx.y, ctx.content_width, BAND_HEIGHT, fill=BAND_FILL, stroke=False)
        ctx.text(label, ctx.left + CELL_PADDING, ctx.y + 4, ctx.fonts.latin_bold, self.band_font_size, TEXT_COLOR)
        ctx.advance(BAND_HEIGHT)
        self.result.band_labels.append(label)

    def draw_separators(self) -> None:
        """Vertical column lines from the top of this page's table segment to the cursor."""
        for x in self._column_edges():
            self.ctx.line(x, self._segment_top, x, self.ctx.y, width=SEPARATOR_WIDTH, color=TEXT_COLOR)

    def _break_page(self, category: Optional[str] = None) -> None:
        self.draw_separators()
        self.ctx.new_page()
        self._segment_top = self.ctx.y
        self._rows_on_page = 0
        self.draw_header()
        if category:
            self.draw_band(category)

    def _row_height(self, line_count: int) -> float:
        return max(line_count * self.line_height, MIN_ROW_HEIGHT) + CELL_PADDING * 1.5

    def _fresh_capacity(self) -> float:
        """Height left for rows on a new page below the header and a band."""
        ctx = self.ctx
        return ctx.bottom_limit - ctx.margin_top - HEADER_HEIGHT - BAND_HEIGHT

    def _splittable(self, row: PreparedRow) -> bool:
        """Rows right under a header, or taller than a fresh page, are split instead of moved."""
        return self._rows_on_page == 0 or row.height > self._fresh_capacity()

    def _lines_that_fit(self) -> int:
        available = self.ctx.bottom_limit - self.ctx.y
        count = int((available - CELL_PADDING * 1.5) // self.line_height)
        while count > 0 and self._row_height(count) > available:
            count -= 1
        return max(count, 0)

    def _split(self, row: PreparedRow, count: int) -> tuple[PreparedRow, PreparedRow]:
        head = [cell[:count] for cell in row.lines]
        tail = [cell[count:] for cell in row.lines]
        return (
            PreparedRow(lines=head, height=self._row_height(count), category=row.category),
            PreparedRow(
                lines=tail,
                height=self._row_height(max(len(cell) for cell in tail)),
                category=row.category,
            ),
        )

    def draw_row(self, row: PreparedRow) -> None:
        ctx = self.ctx
        top = ctx.y
        for cell_lines, column, x0, width in zip(row.lines, self.columns, self._column_edges(), self.widths):
            first_baseline = top + CELL_PADDING + self.line_height / 2 / LINE_HEIGHT_FACTOR
            for index, line in enumerate(cell_lines):
                y = first_baseline + index * self.line_height
                if column.align == "center":
                    x, align = x0 + width / 2, "center"
                elif column.align == "right":
                    x, align = x0 + width - CELL_PADDING, "right"
                else:
                    x, align = x0 + CELL_PADDING, "left"
                ctx.text(line, x, y, ctx.fonts.latin_regular, self.font_size, TEXT_COLOR, align=align)
        ctx.line(ctx.left, top + row.height, ctx.right, top + row.height, width=SEPARATOR_WIDTH, color=TEXT_COLOR)
        ctx.advance(row.height)
        self._rows_on_page += 1

    def place_row(self, row: PreparedRow, category: Optional[str] = None) -> None:
        """
        Draw one row, breaking pages as needed.

        A row that fits a fresh page is moved there whole. A row directly
        under the header, or taller than a fresh page, is split by lines;
        the cursor never passes the bottom limit.
        """
        broke = False
        while not self.ctx.fits(row.height):
            count = self._lines_that_fit() if self._splittable(row) else 0
            if count:
                head, row = self._split(row, count)
                self.draw_row(head)
            elif broke:
                # Not even one line fits on an empty page
                break
            self._break_page(category)
            broke = not count
        self.draw_row(row)

    def draw(self, rows: list[TableRow]) -> TableResult:
        """Draw the header, every row, and the closing separators."""
        ctx = self.ctx
        if not ctx.fits(HEADER_HEIGHT + BAND_HEIGHT + self._row_height(1)):
            ctx.new_page()
        start_page = ctx.page_number
        self._segment_top = ctx.y
        self._rows_on_page = 0
        self.draw_header()

        current_category: Optional[str] = None
        for row in rows:
            prepared = self.prepare(row)

            if row.category and row.category != current_category:
                leading = self._row_height(1) if self._splittable(prepared) else prepared.height
                if not ctx.fits(BAND_HEIGHT + leading):
                    self._break_page()
                self.draw_band(row.category)
                current_category = row.category

            self.place_row(prepared, row.category)
            self.result.rows_drawn += 1

        self.draw_separators()
        self.result.pages_used = ctx.page_number - start_page + 1
        self.result.end_y = ctx.y
        logger.debug(
            "Table drawn",
            rows=self.result.rows_drawn,
            pages=self.result.pages_used,
            bands=len(self.result.band_labels),
        )
        return self.result
