"""Multi-page quotation document."""

import asyncio
import io
from typing import Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from tkr_receipts.models.quotation import QuotationItem, QuotationStructure
from tkr_receipts.pdf.layout import PT_TO_MM, LayoutContext, RenderedDocument
from tkr_receipts.pdf.resources import FontFace, FontSet
from tkr_receipts.pdf.table import PaginatedTable, TableColumn, TableResult, TableRow
from tkr_receipts.services.quotation_service import sort_quotation_items
from tkr_receipts.utils.logging import get_logger

logger = get_logger(__name__)

PAGE_MARGIN = 15
FOOTER_HEIGHT = 15
FOOTER_FONT_SIZE = 8
LINE_HEIGHT_MULTIPLIER = 1.3
TABLE_LINE_HEIGHT_MULTIPLIER = 1.2
BLACK = (0, 0, 0)

QUOTATION_COLUMNS = [
    TableColumn(header="ID", fraction=0.05, align="center", header_align="center"),
    TableColumn(header="Description (Category)", fraction=0.30),
    TableColumn(header="Qty / Unit", fraction=0.13, align="center", header_align="center"),
    TableColumn(header="Material/Spec", fraction=0.15),
    TableColumn(header="Details (Page/Dim.)", fraction=0.15),
    TableColumn(header="Unit Price ($)", fraction=0.11, align="right", header_align="center"),
    TableColumn(header="Total Price ($)", fraction=0.11, align="right", header_align="center"),
]


class QuotationRenderError(Exception):
    """Drawing the quotation failed."""

    pass


class NumberedCanvas(canvas.Canvas):
    """Canvas that stamps 'Page X of Y' on every page once the page count is known."""

    def __init__(self, *args, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states = []
        self.footer_texts: list[str] = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        num_pages = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self.draw_page_footer(num_pages)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)

    def draw_page_footer(self, page_count: int) -> None:
        text = f"Page {self._pageNumber} of {page_count}"
        page_width, _ = self._pagesize
        self.saveState()
        self.setFont("Helvetica", FOOTER_FONT_SIZE)
        self.setFillColorRGB(0, 0, 0)
        self.drawRightString(page_width - PAGE_MARGIN * mm, PAGE_MARGIN / 2 * mm, text)
        self.restoreState()
        self.footer_texts.append(text)


def draw_wrapped(
    ctx: LayoutContext,
    text: str,
    x: float,
    max_width: float,
    face: FontFace,
    size: float,
) -> None:
    """Draw text wrapped to max_width starting at the cursor, breaking pages per line."""
    line_step = size * PT_TO_MM * LINE_HEIGHT_MULTIPLIER
    line_fit = size * PT_TO_MM * TABLE_LINE_HEIGHT_MULTIPLIER
    for paragraph in (text or "").split("\n"):
        for line in simpleSplit(paragraph, face.name, size, max_width * mm) or [""]:
            if not ctx.fits(line_fit):
                ctx.new_page()
            ctx.text(line, x, ctx.y, face, size, BLACK)
            ctx.advance(line_step)


def item_row(item: QuotationItem) -> TableRow:
    """Table cells for one quotation line."""
    quantity = item.quantity or "N/A"
    if item.unit_of_measure:
        quantity = f"{quantity} ({item.unit_of_measure})"
    return TableRow(
        cells=[
            str(item.id),
            item.description,
            quantity,
            item.material_or_finish or "N/A",
            f"Dim: {item.dimensions or 'N/A'}\nPage: {item.page_ref or 'N/A'}",
            item.unit_price or "$0.00",
            item.price or "$0.00",
        ],
        category=item.category or None,
    )


def _draw_header_blocks(ctx: LayoutContext, quotation: QuotationStructure) -> None:
    regular = ctx.fonts.latin_regular
    company = quotation.company_info
    client = quotation.client_info
    top = ctx.y

    draw_wrapped(ctx, company.address, ctx.left, ctx.content_width / 2 - PAGE_MARGIN / 2, regular, 9)
    ctx.text(f"Phone: {company.phone}", ctx.left, ctx.y, regular, 9, BLACK)
    ctx.advance(4)
    ctx.text(f"Email: {company.email}", ctx.left, ctx.y, regular, 9, BLACK)
    ctx.advance(4)
    left_bottom = ctx.y

    ctx.text(f"Date: {client.date or '[Quotation Date]'}", ctx.right, top, regular, 9, BLACK, align="right")
    ctx.text(
        f"Project ID: {client.project_id or '[Project ID]'}", ctx.right, top + 4, regular, 9, BLACK,
        align="right",
    )
    ctx.y = max(left_bottom, top + 8)

    ctx.line(ctx.left, ctx.y, ctx.right, ctx.y, width=0.2, color=BLACK)
    ctx.advance(7)

    ctx.text("Client:", ctx.left, ctx.y, ctx.fonts.latin_bold, 10, BLACK)
    ctx.advance(5)
    draw_wrapped(ctx, client.name or "[Client Name]", ctx.left, ctx.content_width / 2, regular, 10)
    draw_wrapped(ctx, client.address or "[Client Address]", ctx.left, ctx.content_width / 2, regular, 10)
    ctx.advance(4)

    ctx.line(ctx.left, ctx.y, ctx.right, ctx.y, width=0.2, color=BLACK)
    ctx.advance(7)


def _draw_totals(ctx: LayoutContext, quotation: QuotationStructure) -> None:
    label_x = ctx.right - 70
    value_x = ctx.right - 5

    def total_row(label: str, value: str, large: bool = False) -> None:
        if not ctx.fits(8 if large else 6):
            ctx.new_page()
        face = ctx.fonts.latin_bold if large else ctx.fonts.latin_regular
        size = 11 if large else 9
        ctx.text(label, label_x, ctx.y, face, size, BLACK)
        ctx.text(value, value_x, ctx.y, face, size, BLACK, align="right")
        ctx.advance(7 if large else 5)

    if quotation.subtotal:
        total_row("Subtotal:", quotation.subtotal)
    if quotation.tax_amount:
        total_row("Tax:", quotation.tax_amount)
    ctx.advance(2)
    if quotation.grand_total:
        total_row("TOTAL ESTIMATED PRICE:", quotation.grand_total, large=True)
    ctx.advance(7)


def draw_quotation(ctx: LayoutContext, quotation: QuotationStructure) -> TableResult:
    """Draw the whole quotation body; footers are added by the canvas on save."""
    regular = ctx.fonts.latin_regular
    bold = ctx.fonts.latin_bold

    _draw_header_blocks(ctx, quotation)

    draw_wrapped(ctx, quotation.introduction_text, ctx.left, ctx.content_width, regular, 10)
    ctx.advance(7)

    ctx.text("Scope of Work:", ctx.left, ctx.y, bold, 11, BLACK)
    ctx.advance(7)

    table = PaginatedTable(ctx, QUOTATION_COLUMNS)
    result = table.draw([item_row(item) for item in sort_quotation_items(quotation.items)])
    ctx.advance(5)

    _draw_totals(ctx, quotation)

    if not ctx.fits(10):
        ctx.new_page()
    ctx.text("Terms and Conditions:", ctx.left, ctx.y, bold, 10, BLACK)
    ctx.advance(5)
    for term in quotation.terms_and_conditions:
        draw_wrapped(ctx, f"- {term}", ctx.left, ctx.content_width, regular, 9)
        ctx.advance(1)
    ctx.advance(7)

    if not ctx.fits(10):
        ctx.new_page()
    draw_wrapped(ctx, quotation.conclusion_text, ctx.left, ctx.content_width, regular, 10)
    return result


def quotation_filename(base_name: str) -> str:
    return f"{base_name}_Quotation.pdf"


def render_quotation(
    quotation: QuotationStructure,
    base_name: str,
    fonts: Optional[FontSet] = None,
) -> RenderedDocument:
    """
    Draw the quotation into an in-memory PDF.

    Args:
        quotation: Quotation content
        base_name: Source document name, used for the output filename
        fonts: Faces to draw with; built-in Helvetica when omitted

    Raises:
        QuotationRenderError: If any drawing step fails
    """
    fonts = fonts or FontSet.fallback()
    buffer = io.BytesIO()
    try:
        pdf = NumberedCanvas(buffer, pagesize=A4)
        pdf.setTitle(quotation.title)
        pdf.setAuthor(quotation.company_info.name)
        ctx = LayoutContext(
            pdf,
            fonts,
            margin_x=PAGE_MARGIN,
            margin_top=PAGE_MARGIN,
            margin_bottom=PAGE_MARGIN,
            footer_height=FOOTER_HEIGHT,
        )
        table = draw_quotation(ctx, quotation)
        pdf.showPage()
        pdf.save()
    except Exception as e:
        logger.error("Error generating quotation PDF", base_name=base_name, error=str(e))
        raise QuotationRenderError(f"Failed to generate quotation PDF: {e}") from e

    logger.info(
        "Quotation rendered",
        base_name=base_name,
        items=table.rows_drawn,
        pages=ctx.page_number,
    )
    return RenderedDocument(
        content=buffer.getvalue(),
        filename=quotation_filename(base_name),
        page_count=ctx.page_number,
        fonts=fonts,
    )


async def generate_quotation_pdf(
    quotation: QuotationStructure,
    base_name: str,
    fonts: Optional[FontSet] = None,
) -> RenderedDocument:
    return await asyncio.to_thread(render_quotation, quotation, base_name, fonts)
