"""
Layout context and bilingual drawing primitives.

Positions are in millimetres measured from the top-left corner of the
page; LayoutContext converts them to reportlab's bottom-left point space.
The context owns the vertical cursor: every drawing function starts at
``ctx.y`` and leaves it at the next free position.
"""

from io import BytesIO
from typing import Callable, Literal, Optional

from pydantic import BaseModel
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from tkr_receipts.pdf.resources import SYMBOL_FACE, FontFace, FontSet
from tkr_receipts.utils.logging import get_logger
from tkr_receipts.utils.script import Script, display_value, is_blank_value, shape_arabic

logger = get_logger(__name__)

Align = Literal["left", "center", "right"]
VAlign = Literal["baseline", "middle", "top"]
RGB = tuple[int, int, int]

PT_TO_MM = 25.4 / 72

# Colours
LINE_COLOR: RGB = (203, 213, 225)
DOTTED_LINE_COLOR: RGB = (100, 116, 139)
LABEL_EN_COLOR: RGB = (71, 85, 105)
LABEL_AR_COLOR: RGB = (51, 65, 85)
TEXT_COLOR: RGB = (30, 41, 59)
FILLED_VALUE_COLOR: RGB = (37, 99, 235)
HEADER_COLOR: RGB = (15, 23, 42)

# Labeled rows
ROW_HEIGHT = 9.5
ROW_LABEL_SIZE = 10
ROW_VALUE_SIZE = 10
MIN_VALUE_SIZE = 6
LABEL_PADDING = 3
MIN_ZONE_WIDTH = 10
GUIDE_LINE_OFFSET = 2
TEXT_ON_LINE_OFFSET = 0.7
DOT_PATTERN = [0.5, 0.5]
QTY_EN_FRACTION = 0.22
QTY_AR_FRACTION = 0.33

# Section headers
SECTION_HEADER_SIZE = 10.5
SECTION_SPACING_BEFORE = 3
SECTION_SPACING_AFTER_TEXT = 3
SECTION_SPACING_AFTER_RULE = 4

# Checkboxes
CHECKBOX_SIZE = 3.5
CHECKBOX_ROW_HEIGHT = 6.5
CHECKBOX_LABEL_SIZE = 9
CHECKBOX_GAP = 2
GRID_LABEL_SIZE = 8.5
GRID_GAP = 1.5
CHECK_MARK = "4"


class RowGeometry(BaseModel):
    """Where a labeled row put its pieces (millimetres from the top-left)."""

    row_top: float
    label_en_start: float
    label_en_end: float
    label_ar_start: float
    label_ar_end: float
    zone_start: float
    zone_end: float
    zone_width: float
    clamped: bool
    guide_y: float
    guide_start: Optional[float] = None
    guide_end: Optional[float] = None
    value_text: Optional[str] = None
    value_script: Optional[Script] = None
    value_font: Optional[str] = None
    value_size: Optional[float] = None
    value_x: Optional[float] = None


class LayoutContext:
    """Canvas, font set and vertical cursor of one document."""

    def __init__(
        self,
        pdf_canvas: Canvas,
        fonts: FontSet,
        margin_x: float = 15,
        margin_top: float = 12,
        margin_bottom: float = 12,
        footer_height: float = 0,
        page_size: tuple[float, float] = A4,
    ) -> None:
        self.canvas = pdf_canvas
        self.fonts = fonts
        self.page_width = page_size[0] / mm
        self.page_height = page_size[1] / mm
        self.margin_x = margin_x
        self.margin_top = margin_top
        self.margin_bottom = margin_bottom
        self.footer_height = footer_height
        self.y = margin_top
        self.page_number = 1
        self.page_listeners: list[Callable[["LayoutContext"], None]] = []

    @property
    def left(self) -> float:
        return self.margin_x

    @property
    def right(self) -> float:
        return self.page_width - self.margin_x

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin_x

    @property
    def bottom_limit(self) -> float:
        """Lowest y any content may reach on a page."""
        return self.page_height - self.margin_bottom - self.footer_height

    def fits(self, height: float) -> bool:
        return self.y + height <= self.bottom_limit

    def ensure_space(self, height: float) -> bool:
        """Break the page if height does not fit below the cursor. Returns True on a break."""
        if self.fits(height):
            return False
        self.new_page()
        return True

    def new_page(self) -> None:
        self.canvas.showPage()
        self.page_number += 1
        self.y = self.margin_top
        logger.debug("Page break", page=self.page_number)
        for listener in self.page_listeners:
            listener(self)

    def advance(self, dy: float) -> None:
        self.y += dy

    # Primitives, all in millimetres from the top

    def _pdf_y(self, y: float) -> float:
        return (self.page_height - y) * mm

    def string_width(self, text: str, face: FontFace | str, size: float) -> float:
        """Rendered width in millimetres."""
        name = face.name if isinstance(face, FontFace) else face
        return self.canvas.stringWidth(shape_arabic(text), name, size) / mm

    def set_fill(self, color: RGB) -> None:
        self.canvas.setFillColorRGB(*(c / 255 for c in color))

    def set_stroke(self, color: RGB) -> None:
        self.canvas.setStrokeColorRGB(*(c / 255 for c in color))

    def text(
        self,
        text: str,
        x: float,
        y: float,
        face: FontFace | str,
        size: float,
        color: RGB = TEXT_COLOR,
        align: Align = "left",
        valign: VAlign = "baseline",
    ) -> float:
        """
        Draw one line of text and return its width in millimetres.

        Arabic text is shaped and reordered before drawing; alignment is
        applied to the visual result.
        """
        name = face.name if isinstance(face, FontFace) else face
        visual = shape_arabic(text)
        size_mm = size * PT_TO_MM
        if valign == "middle":
            y = y + size_mm * 0.35
        elif valign == "top":
            y = y + size_mm * 0.75

        self.canvas.setFont(name, size)
        self.set_fill(color)
        pdf_x, pdf_y = x * mm, self._pdf_y(y)
        if align == "right":
            self.canvas.drawRightString(pdf_x, pdf_y, visual)
        elif align == "center":
            self.canvas.drawCentredString(pdf_x, pdf_y, visual)
        else:
            self.canvas.drawString(pdf_x, pdf_y, visual)
        return self.canvas.stringWidth(visual, name, size) / mm

    def line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        width: float = 0.3,
        color: RGB = LINE_COLOR,
        dash: Optional[list[float]] = None,
    ) -> None:
        self.set_stroke(color)
        self.canvas.setLineWidth(width * mm)
        if dash:
            self.canvas.setDash([d * mm for d in dash], 0)
        self.canvas.line(x1 * mm, self._pdf_y(y1), x2 * mm, self._pdf_y(y2))
        if dash:
            self.canvas.setDash([], 0)

    def rule(self, width: float = 0.3, color: RGB = LINE_COLOR) -> None:
        """Horizontal rule across the content width at the cursor."""
        self.line(self.left, self.y, self.right, self.y, width=width, color=color)

    def rect(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        fill: Optional[RGB] = None,
        stroke: bool = True,
        line_width: float = 0.2,
    ) -> None:
        if fill is not None:
            self.set_fill(fill)
        self.set_stroke(TEXT_COLOR)
        self.canvas.setLineWidth(line_width * mm)
        self.canvas.rect(
            x * mm,
            self._pdf_y(y + h),
            w * mm,
            h * mm,
            stroke=1 if stroke else 0,
            fill=1 if fill is not None else 0,
        )

    def image(self, data: bytes, x: float, y: float, w: float, h: float) -> None:
        self.canvas.drawImage(
            ImageReader(BytesIO(data)), x * mm, self._pdf_y(y + h), w * mm, h * mm, mask="auto"
        )


def draw_text_pair(
    ctx: LayoutContext,
    text_en: str,
    text_ar: str,
    size: float,
    bold: bool = False,
    color: RGB = TEXT_COLOR,
    color_ar: Optional[RGB] = None,
    line_factor: float = 0.7,
    spacing_after: float = 0,
) -> None:
    """English text at the left margin and Arabic text at the right margin on one line."""
    height = size * line_factor + spacing_after
    ctx.ensure_space(height)
    mid = ctx.y + size * 0.35 / 2
    ctx.text(text_en, ctx.left, mid, ctx.fonts.face(Script.LATIN, bold), size, color, valign="middle")
    ctx.text(
        text_ar,
        ctx.right,
        mid,
        ctx.fonts.face(Script.ARABIC, bold),
        size,
        color_ar or color,
        align="right",
        valign="middle",
    )
    ctx.advance(height)


def draw_labeled_row(
    ctx: LayoutContext,
    label_en: str,
    label_ar: str,
    value: Optional[str],
    align: Align = "center",
    quantity_row: bool = False,
    label_size: float = ROW_LABEL_SIZE,
    value_size: float = ROW_VALUE_SIZE,
) -> RowGeometry:
    """
    Draw a fill-in row: English label, dotted input zone, Arabic label.

    The input zone is the gap between the two labels (minus padding), or
    for quantity rows the space between fixed label columns. When the
    labels leave less than MIN_ZONE_WIDTH the zone is clamped to that
    width around the centre of the gap and the guide line is only drawn
    across the real gap, so it never runs under a label.
    """
    ctx.ensure_space(ROW_HEIGHT)
    fonts = ctx.fonts
    top = ctx.y
    mid = top + ROW_HEIGHT / 2

    en_width = ctx.text(
        label_en.upper(), ctx.left, mid, fonts.latin_regular, label_size, LABEL_EN_COLOR,
        valign="middle",
    )
    ar_width = ctx.text(
        label_ar, ctx.right, mid, fonts.arabic_regular, label_size, LABEL_AR_COLOR,
        align="right", valign="middle",
    )
    en_end = ctx.left + en_width
    ar_start = ctx.right - ar_width

    if quantity_row:
        start = max(ctx.left + ctx.content_width * QTY_EN_FRACTION, en_end + LABEL_PADDING)
        end = min(ctx.right - ctx.content_width * QTY_AR_FRACTION, ar_start - LABEL_PADDING)
    else:
        start = en_end + LABEL_PADDING
        end = ar_start - LABEL_PADDING

    gap = end - start
    clamped = gap < MIN_ZONE_WIDTH
    if clamped:
        centre = (start + end) / 2
        zone_start, zone_end = centre - MIN_ZONE_WIDTH / 2, centre + MIN_ZONE_WIDTH / 2
    else:
        zone_start, zone_end = start, end
    zone_width = zone_end - zone_start

    guide_y = top + ROW_HEIGHT - GUIDE_LINE_OFFSET
    geometry = RowGeometry(
        row_top=top,
        label_en_start=ctx.left,
        label_en_end=en_end,
        label_ar_start=ar_start,
        label_ar_end=ctx.right,
        zone_start=zone_start,
        zone_end=zone_end,
        zone_width=zone_width,
        clamped=clamped,
        guide_y=guide_y,
    )

    if gap > 0:
        ctx.line(start, guide_y, end, guide_y, width=0.2, color=DOTTED_LINE_COLOR, dash=DOT_PATTERN)
        geometry.guide_start, geometry.guide_end = start, end

    if not is_blank_value(value):
        text, script = display_value(value.strip())
        face = fonts.face(script, bold=True)
        size = value_size
        while size > MIN_VALUE_SIZE and ctx.string_width(text, face, size) > zone_width - 2:
            size -= 0.5

        if align == "left":
            x = zone_start + 1
        elif align == "right":
            x = zone_end - 1
        else:
            x = zone_start + zone_width / 2

        ctx.text(text, x, guide_y - TEXT_ON_LINE_OFFSET, face, size, FILLED_VALUE_COLOR, align=align)
        geometry.value_text = text
        geometry.value_script = script
        geometry.value_font = face.name
        geometry.value_size = size
        geometry.value_x = x

    ctx.advance(ROW_HEIGHT)
    return geometry


def draw_section_header(ctx: LayoutContext, title_en: str, title_ar: str) -> None:
    """Bold bilingual title followed by a rule."""
    height = (
        SECTION_SPACING_BEFORE
        + SECTION_HEADER_SIZE * 0.7
        + SECTION_SPACING_AFTER_TEXT
        + SECTION_SPACING_AFTER_RULE
    )
    ctx.ensure_space(height)
    ctx.advance(SECTION_SPACING_BEFORE)
    draw_text_pair(
        ctx,
        title_en.upper(),
        title_ar,
        SECTION_HEADER_SIZE,
        bold=True,
        color=HEADER_COLOR,
        spacing_after=SECTION_SPACING_AFTER_TEXT,
    )
    ctx.rule(width=0.3)
    ctx.advance(SECTION_SPACING_AFTER_RULE)


def _check_mark(ctx: LayoutContext, box_x: float, mid: float, size_factor: float) -> None:
    ctx.text(
        CHECK_MARK,
        box_x + CHECKBOX_SIZE / 2,
        mid + 0.2,
        SYMBOL_FACE,
        CHECKBOX_SIZE * size_factor,
        TEXT_COLOR,
        align="center",
        valign="middle",
    )


def draw_checkbox_row(ctx: LayoutContext, label_en: str, label_ar: str, checked: bool) -> tuple[float, float]:
    """
    Draw a bilingual toggle: 'LABEL [x]' on the left, '[x] label' on the right.

    Returns:
        x positions of the English and Arabic squares
    """
    ctx.ensure_space(CHECKBOX_ROW_HEIGHT)
    mid = ctx.y + CHECKBOX_ROW_HEIGHT / 2
    half = CHECKBOX_SIZE / 2

    en_face = ctx.fonts.latin_bold
    en_width = ctx.text(
        label_en.upper(), ctx.left, mid, en_face, CHECKBOX_LABEL_SIZE, TEXT_COLOR, valign="middle"
    )
    box_en = ctx.left + en_width + CHECKBOX_GAP
    ctx.rect(box_en, mid - half, CHECKBOX_SIZE, CHECKBOX_SIZE)
    if checked:
        _check_mark(ctx, box_en, mid, 2.2)

    ar_face = ctx.fonts.arabic_bold
    ar_width = ctx.text(
        label_ar, ctx.right, mid, ar_face, CHECKBOX_LABEL_SIZE, TEXT_COLOR, align="right",
        valign="middle",
    )
    box_ar = ctx.right - ar_width - CHECKBOX_GAP - CHECKBOX_SIZE
    ctx.rect(box_ar, mid - half, CHECKBOX_SIZE, CHECKBOX_SIZE)
    if checked:
        _check_mark(ctx, box_ar, mid, 1.8)

    ctx.advance(CHECKBOX_ROW_HEIGHT)
    return box_en, box_ar


def draw_checkbox_grid(ctx: LayoutContext, options: list[tuple[str, bool]]) -> list[float]:
    """
    Draw toggles in equal-width columns across the content width.

    Each square and its label are centred as a pair inside their column.

    Returns:
        x position of every square
    """
    if not options:
        return []
    ctx.ensure_space(CHECKBOX_ROW_HEIGHT)
    mid = ctx.y + CHECKBOX_ROW_HEIGHT / 2
    column_width = ctx.content_width / len(options)
    face = ctx.fonts.latin_regular
    positions = []

    for index, (label, checked) in enumerate(options):
        label_width = ctx.string_width(label, face, GRID_LABEL_SIZE)
        pair_width = CHECKBOX_SIZE + GRID_GAP + label_width
        column_start = ctx.left + index * column_width
        box_x = column_start + column_width / 2 - pair_width / 2

        ctx.rect(box_x, mid - CHECKBOX_SIZE / 2, CHECKBOX_SIZE, CHECKBOX_SIZE)
        if checked:
            _check_mark(ctx, box_x, mid, 1.8)
        ctx.text(label, box_x + CHECKBOX_SIZE + GRID_GAP, mid, face, GRID_LABEL_SIZE, TEXT_COLOR, valign="middle")
        positions.append(box_x)

    ctx.advance(CHECKBOX_ROW_HEIGHT)
    return positions


def draw_signature(
    ctx: LayoutContext,
    center_x: float,
    line_y: float,
    line_width: float,
    name: Optional[str],
    label_en: str,
    label_ar: str,
    size: float = 9,
) -> None:
    """Dotted signature line with the signer's name above and bilingual caption below."""
    x_start = center_x - line_width / 2
    ctx.line(x_start, line_y, x_start + line_width, line_y, width=0.2, color=DOTTED_LINE_COLOR, dash=DOT_PATTERN)

    if not is_blank_value(name):
        text, script = display_value(name.strip())
        face = ctx.fonts.face(script, bold=True)
        ctx.text(text, center_x, line_y - TEXT_ON_LINE_OFFSET, face, size, FILLED_VALUE_COLOR, align="center")

    ctx.text(label_en.upper(), center_x, line_y + 3, ctx.fonts.latin_regular, size, LABEL_EN_COLOR, align="center")
    ctx.text(label_ar, center_x, line_y + 6, ctx.fonts.arabic_regular, size, LABEL_AR_COLOR, align="center")


class RenderedDocument(BaseModel):
    """A finished PDF plus what the layout did while drawing it."""

    content: bytes
    filename: str
    page_count: int
    rows: dict[str, RowGeometry] = {}
    fonts: Optional[FontSet] = None
