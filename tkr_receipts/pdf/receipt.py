"""Single-page bilingual receipt."""

import asyncio
import io
import re
from datetime import datetime
from typing import Optional

import httpx
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen.canvas import Canvas

from tkr_receipts.config.settings import settings
from tkr_receipts.models.receipt import AD_ZONES, ReceiptDetails
from tkr_receipts.pdf.layout import (
    HEADER_COLOR,
    LABEL_AR_COLOR,
    LABEL_EN_COLOR,
    ROW_HEIGHT,
    TEXT_COLOR,
    LayoutContext,
    RenderedDocument,
    draw_checkbox_grid,
    draw_checkbox_row,
    draw_labeled_row,
    draw_section_header,
    draw_signature,
    draw_text_pair,
)
from tkr_receipts.pdf.resources import DocumentResources, load_resources
from tkr_receipts.utils.dates import filename_timestamp, format_iso_date, format_slash_date
from tkr_receipts.utils.logging import get_logger

logger = get_logger(__name__)

MARGIN_X = 15
MARGIN_Y = 12
# Signature captions sit inside the lower page margin
MARGIN_BOTTOM = 5

SPACING_AFTER_LOGO = 4
NUMBER_SIZE = 8
SPACING_AFTER_NUMBER = 4
MAIN_HEADER_SIZE = 24
SPACING_AFTER_MAIN_HEADER = 7
SUB_HEADER_SIZE = 14
SPACING_AFTER_SUB_HEADER = 6
SPACING_AFTER_HEADER_RULE = 6
FOR_LINE_SIZE = 10
SPACING_AFTER_FOR_LINE = 6
SPACING_AFTER_AD_ZONES = 4
SPACING_AFTER_QTY_ROWS = 3
SPACING_AFTER_NOTES = 4
SPACING_AFTER_NOTES_RULE = 3
DISCLAIMER_SIZE = 7.5
SPACING_AFTER_DISCLAIMER = 5
SIGNATURE_LINE_FRACTION = 0.40
SIGNATURE_LINE_OFFSET = 3

DEFAULT_PURPOSE_EN = "Subscription in Tripoli Karting Race"
DEFAULT_PURPOSE_AR = "اشتراك في مهرجان طرابلس للكارتينج"


class ReceiptRenderError(Exception):
    """Drawing the receipt failed."""

    pass


def receipt_filename(receipt_number: str, now: Optional[datetime] = None) -> str:
    """Receipt_<number>.pdf, or a timestamped name when there is no number."""
    if receipt_number:
        return f"Receipt_{re.sub(r'[^a-zA-Z0-9-]', '_', receipt_number)}.pdf"
    return f"Receipt_{filename_timestamp(now)}.pdf"


def receipt_date_text(details: ReceiptDetails) -> str:
    if details.receipt_date:
        return format_iso_date(details.receipt_date)
    return format_slash_date(details.day, details.month, details.year)


def split_purpose(purpose: str) -> tuple[str, str]:
    """Split 'English / Arabic' into the two 'for' lines."""
    parts = purpose.split("/")
    english = parts[0].strip() if parts and parts[0].strip() else DEFAULT_PURPOSE_EN
    arabic = parts[1].strip() if len(parts) > 1 and parts[1].strip() else DEFAULT_PURPOSE_AR
    return f"FOR {english.upper()}", f"وذلك بدل {arabic}"


def _draw_logo(ctx: LayoutContext, resources: DocumentResources) -> None:
    height = settings.branding.logo_height_mm
    if resources.logo and resources.logo_size:
        width_px, height_px = resources.logo_size
        width = height * width_px / height_px
        ctx.image(resources.logo, (ctx.page_width - width) / 2, ctx.y, width, height)
    ctx.advance(height + SPACING_AFTER_LOGO)


def _draw_receipt_number(ctx: LayoutContext, receipt_number: str) -> None:
    if not receipt_number:
        return
    ctx.text(
        f"NO: {receipt_number}",
        ctx.right,
        ctx.y,
        ctx.fonts.latin_regular,
        NUMBER_SIZE,
        LABEL_AR_COLOR,
        align="right",
        valign="top",
    )
    ctx.advance(NUMBER_SIZE * 25.4 / 72 * 1.15 + SPACING_AFTER_NUMBER)


def _draw_for_line(ctx: LayoutContext, purpose: str) -> None:
    text_en, text_ar = split_purpose(purpose)
    mid = ctx.y + ROW_HEIGHT / 2
    ctx.text(text_en, ctx.left, mid, ctx.fonts.latin_regular, FOR_LINE_SIZE, TEXT_COLOR, valign="middle")
    ctx.text(
        text_ar, ctx.right, mid, ctx.fonts.arabic_regular, FOR_LINE_SIZE, TEXT_COLOR,
        align="right", valign="middle",
    )
    ctx.advance(ROW_HEIGHT * 0.7 + SPACING_AFTER_FOR_LINE)


def draw_receipt(ctx: LayoutContext, details: ReceiptDetails, resources: DocumentResources) -> dict:
    """Draw every part of the receipt, top to bottom. Returns row geometry by field."""
    rows = {}
    receipt_config = settings.receipt

    _draw_logo(ctx, resources)
    _draw_receipt_number(ctx, details.receipt_number)

    draw_text_pair(
        ctx, "RECEIPT", "وصل استلام مبلغ", MAIN_HEADER_SIZE, bold=True,
        color=HEADER_COLOR, spacing_after=SPACING_AFTER_MAIN_HEADER,
    )
    draw_text_pair(
        ctx, receipt_config.event_title_en, receipt_config.event_title_ar, SUB_HEADER_SIZE,
        spacing_after=SPACING_AFTER_SUB_HEADER,
    )
    ctx.rule(width=0.5)
    ctx.advance(SPACING_AFTER_HEADER_RULE)

    rows["date"] = draw_labeled_row(ctx, "DATE", "تاريخ الاستلام", receipt_date_text(details))
    rows["received_from_name"] = draw_labeled_row(
        ctx, "RECEIVED FROM", "وصلنا من السادة", details.received_from_name
    )
    rows["amount"] = draw_labeled_row(ctx, "AMOUNT", "مبلغ وقدره", details.amount)
    ctx.advance(2)

    _draw_for_line(ctx, details.subscription_purpose)

    rows["tent_number"] = draw_labeled_row(ctx, "TENT NO.", "الخيمة رقم", details.tent_number)
    rows["usage_purpose"] = draw_labeled_row(ctx, "USAGE PURPOSE", "جهة الاستعمال", details.usage_purpose)
    ctx.advance(2)

    draw_section_header(ctx, "ADDITIONAL SERVICES", "خدمات اخرى")
    draw_checkbox_row(ctx, "ELECTRICITY", "توفير كهرباء", details.electricity_available)
    draw_checkbox_row(ctx, "CHAIRS", "توفير كراسي", details.chairs_available)
    draw_checkbox_row(ctx, "TABLE", "توفير طاولات", details.table_available)
    rows["description"] = draw_labeled_row(ctx, "DESCRIPTION", "الشرح", details.description)
    ctx.advance(2)

    draw_section_header(ctx, "ADVERTISEMENTS ON TRACK", "إعلانات على مسار الحلبة")
    zones = details.zone_flags()
    draw_checkbox_grid(ctx, [(f"ZONE {letter}", zones[letter]) for letter in AD_ZONES])
    ctx.advance(SPACING_AFTER_AD_ZONES)

    rows["ads_total_quantity"] = draw_labeled_row(
        ctx, "TOTAL QTY", "العدد الإجمالي", details.ads_total_quantity, quantity_row=True
    )
    rows["car_flags_count"] = draw_labeled_row(
        ctx, "CAR FLAGS", "أعلام على السيارات", details.car_flags_count, quantity_row=True
    )
    rows["banner_flags_count"] = draw_labeled_row(
        ctx, "BANNER FLAGS", "أعلام على الأرصفة", details.banner_flags_count, quantity_row=True
    )
    ctx.advance(SPACING_AFTER_QTY_ROWS)

    rows["notes"] = draw_labeled_row(ctx, "NOTES", "ملاحظات", details.notes)
    ctx.advance(SPACING_AFTER_NOTES)
    ctx.rule(width=0.3)
    ctx.advance(SPACING_AFTER_NOTES_RULE)

    draw_text_pair(
        ctx,
        "THIS RECEIPT IS NOT A TAX INVOICE.",
        "هذا الوصل لا يعتبر فاتورة ضريبية.",
        DISCLAIMER_SIZE,
        color=LABEL_EN_COLOR,
        color_ar=LABEL_AR_COLOR,
        spacing_after=SPACING_AFTER_DISCLAIMER,
    )

    ctx.ensure_space(SIGNATURE_LINE_OFFSET + 8)
    line_width = ctx.content_width * SIGNATURE_LINE_FRACTION
    line_y = ctx.y + SIGNATURE_LINE_OFFSET
    draw_signature(
        ctx, ctx.left + ctx.content_width * 0.25, line_y, line_width,
        details.receiver_name, "ISSUED TO", "المستلم",
    )
    draw_signature(
        ctx, ctx.right - ctx.content_width * 0.25, line_y, line_width,
        details.payer_name, "ISSUED BY", "صادر عن",
    )
    ctx.advance(SIGNATURE_LINE_OFFSET + 8)
    return rows


def render_receipt(details: ReceiptDetails, resources: DocumentResources) -> RenderedDocument:
    """
    Draw the receipt into an in-memory PDF.

    Raises:
        ReceiptRenderError: If any drawing step fails
    """
    buffer = io.BytesIO()
    try:
        pdf = Canvas(buffer, pagesize=A4)
        pdf.setTitle(f"Receipt {details.receipt_number}".strip())
        pdf.setAuthor(settings.quotation.company.name)
        ctx = LayoutContext(pdf, resources.fonts, margin_x=MARGIN_X, margin_top=MARGIN_Y, margin_bottom=MARGIN_BOTTOM)
        rows = draw_receipt(ctx, details, resources)
        pdf.showPage()
        pdf.save()
    except Exception as e:
        logger.error(
            "Error generating receipt PDF",
            receipt_number=details.receipt_number,
            error=str(e),
        )
        raise ReceiptRenderError(f"Failed to generate receipt PDF: {e}") from e

    return RenderedDocument(
        content=buffer.getvalue(),
        filename=receipt_filename(details.receipt_number),
        page_count=ctx.page_number,
        rows=rows,
        fonts=resources.fonts,
    )


async def generate_receipt_pdf(
    details: ReceiptDetails,
    client: Optional[httpx.AsyncClient] = None,
    resources: Optional[DocumentResources] = None,
) -> RenderedDocument:
    """Resolve fonts and logo, then draw the receipt."""
    if resources is None:
        resources = await load_resources(settings.branding.logo_url, client=client)
    logger.info(
        "Rendering receipt",
        receipt_number=details.receipt_number,
        fonts_loaded=resources.fonts.all_loaded,
        logo=resources.logo is not None,
    )
    return await asyncio.to_thread(render_receipt, details, resources)
