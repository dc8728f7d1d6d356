"""
Order Form PDF
──────────────
Renders a cart into the fixed A4 "Sipariş / Teklif Formu" layout.

Layout positions are kept in top-down page coordinates (the way the form
was designed) and flipped to reportlab's bottom-up system when drawing.
"""
import io
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from app.config.settings import settings
from app.errors import PdfRenderError, ValidationError
from app.models.order import OrderItem, OrderRequest
from app.utils.logger import get_logger
from app.utils.money import format_money, round_money

logger = get_logger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN          = 40
RULE_END_X      = 555
ROW_HEIGHT      = 16
PAGE_BREAK_Y    = 760     # start a new page once a row lands below this
NEW_PAGE_TOP_Y  = 60
NAME_MAX_CHARS  = 45
TOTAL_CURRENCY  = "TRY"   # the form always totals in TRY, whatever the line currency

# Left edge for text columns, right edge for numeric (right-aligned) columns
COL_NAME    = MARGIN
COL_BARCODE = MARGIN + 250
COL_QTY     = MARGIN + 360
COL_PRICE   = MARGIN + 435
COL_TOTAL   = RULE_END_X

FILENAME = "siparis-formu.pdf"

_registered_fonts: dict[str, str] = {}


@dataclass(frozen=True)
class OrderLine:
    name: str
    barcode: str
    qty: float
    price: float
    total: float


@dataclass(frozen=True)
class OrderSummary:
    lines: List[OrderLine]
    grand_total: float


def summarize_order(items: Sequence[OrderItem]) -> OrderSummary:
    lines = [
        OrderLine(
            name=(item.name or "-")[:NAME_MAX_CHARS],
            barcode=item.barcode or "-",
            qty=item.qty,
            price=item.price,
            total=item.line_total,
        )
        for item in items
    ]
    return OrderSummary(lines=lines, grand_total=round_money(sum(line.total for line in lines)))


def _format_qty(qty: float) -> str:
    return str(int(qty)) if qty.is_integer() else repr(qty)


def _resolve_font(font_path: Optional[str]) -> str:
    if not font_path:
        return "Helvetica"
    if font_path not in _registered_fonts:
        name = f"OrderFont{len(_registered_fonts) + 1}"
        pdfmetrics.registerFont(TTFont(name, font_path))
        _registered_fonts[font_path] = name
        logger.info("Registered PDF font %s from %s", name, font_path)
    return _registered_fonts[font_path]


class _FormWriter:
    """Thin wrapper over a reportlab canvas that takes top-down y positions."""

    def __init__(self, pdf: canvas.Canvas, font: str):
        self.pdf = pdf
        self.font = font

    def text(self, x: float, y: float, value: str, size: float = 9) -> None:
        self.pdf.setFont(self.font, size)
        self.pdf.drawString(x, PAGE_HEIGHT - y - size, value)

    def right(self, x: float, y: float, value: str, size: float = 9) -> None:
        self.pdf.setFont(self.font, size)
        self.pdf.drawRightString(x, PAGE_HEIGHT - y - size, value)

    def underlined(self, x: float, y: float, value: str, size: float) -> None:
        self.text(x, y, value, size)
        width = pdfmetrics.stringWidth(value, self.font, size)
        baseline = PAGE_HEIGHT - y - size - 1.5
        self.pdf.line(x, baseline, x + width, baseline)

    def rule(self, y: float) -> None:
        self.pdf.line(MARGIN, PAGE_HEIGHT - y, RULE_END_X, PAGE_HEIGHT - y)

    def new_page(self) -> None:
        self.pdf.showPage()


def render_order_pdf(
    order: OrderRequest,
    *,
    generated_at: Optional[datetime] = None,
    font_path: Optional[str] = None,
    compress: bool = True,
) -> bytes:
    """
    Render the order form and return the PDF bytes.

    Raises ValidationError for an empty cart and PdfRenderError for anything
    that goes wrong while drawing.
    """
    if not order.items:
        raise ValidationError("Sepet boş. PDF üretilemez.")

    generated_at = generated_at or datetime.now()
    font_path = font_path if font_path is not None else settings.pdf_font_path

    try:
        summary = summarize_order(order.items)
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4, pageCompression=1 if compress else 0)
        pdf.setTitle("Sipariş / Teklif Formu")
        writer = _FormWriter(pdf, _resolve_font(font_path))
        _draw_form(writer, order, summary, generated_at)
        pdf.save()
    except Exception as exc:
        logger.exception("Order PDF rendering failed — items=%d", len(order.items))
        raise PdfRenderError(str(exc)) from exc

    logger.info(
        "Order PDF rendered — items=%d grand_total=%s bytes=%d",
        len(summary.lines), format_money(summary.grand_total), buffer.tell(),
    )
    return buffer.getvalue()


def _draw_form(writer: _FormWriter, order: OrderRequest, summary: OrderSummary, generated_at: datetime) -> None:
    customer = order.customer
    y = MARGIN

    # ── Header ────────────────────────────────────────────────────────────────
    writer.text(MARGIN, y, "Sipariş / Teklif Formu", 18)
    y += 30
    writer.text(MARGIN, y, f"Tarih: {generated_at.strftime('%d.%m.%Y %H:%M:%S')}", 10)
    y += 24

    # ── Customer block ────────────────────────────────────────────────────────
    writer.underlined(MARGIN, y, "Müşteri Bilgileri", 12)
    y += 18
    writer.text(MARGIN, y, f"Ad: {customer.name or '-'}", 10)
    y += 13
    writer.text(MARGIN, y, f"Telefon: {customer.phone or '-'}", 10)
    y += 13
    if customer.note:
        writer.text(MARGIN, y, f"Not: {customer.note}", 10)
        y += 13
    y += 11

    # ── Item table ────────────────────────────────────────────────────────────
    writer.underlined(MARGIN, y, "Ürünler", 12)
    y += 20

    writer.text(COL_NAME, y, "Ürün")
    writer.text(COL_BARCODE, y, "Barkod")
    writer.right(COL_QTY, y, "Adet")
    writer.right(COL_PRICE, y, "Fiyat")
    writer.right(COL_TOTAL, y, "Tutar")
    y += 14
    writer.rule(y)
    y += 8

    for line in summary.lines:
        writer.text(COL_NAME, y, line.name)
        writer.text(COL_BARCODE, y, line.barcode)
        writer.right(COL_QTY, y, _format_qty(line.qty))
        writer.right(COL_PRICE, y, format_money(line.price))
        writer.right(COL_TOTAL, y, format_money(line.total))
        y += ROW_HEIGHT
        if y > PAGE_BREAK_Y:
            writer.new_page()
            y = NEW_PAGE_TOP_Y

    # ── Grand total ───────────────────────────────────────────────────────────
    y += 10
    writer.rule(y)
    y += 10
    writer.right(RULE_END_X, y, f"Genel Toplam: {format_money(summary.grand_total)} {TOTAL_CURRENCY}", 12)
