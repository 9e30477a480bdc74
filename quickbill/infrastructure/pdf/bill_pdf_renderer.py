"""
Bill PDF renderer using fpdf2.

Lays out the printable shop bill: shop header, bill number and date,
customer, an items table padded to a minimum row count, the totals
block, and signature lines.
"""

from abc import ABC, abstractmethod

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from quickbill.config import get_logger
from quickbill.config.settings import ShopSettings, get_settings
from quickbill.core.entities.bill import BillRecord
from quickbill.core.formatting import format_indian_currency, format_indian_number

logger = get_logger(__name__)

_TABLE_WIDTH = 190
_ROW_HEIGHT = 9
_SUMMARY_LABEL_WIDTH = 50
_SUMMARY_VALUE_WIDTH = 45


def _safe_text(text: str) -> str:
    """Replace characters the core fonts cannot encode with '?'."""
    return text.encode("latin-1", errors="replace").decode("latin-1")


def pdf_filename(record: BillRecord) -> str:
    return f"bill-{record.s_no}.pdf"


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class IBillPdfRenderer(ABC):
    """Interface for bill PDF rendering implementations."""

    @abstractmethod
    def render(self, record: BillRecord) -> bytes:
        """Render a bill into PDF bytes."""
        ...


# ---------------------------------------------------------------------------
# Concrete renderer
# ---------------------------------------------------------------------------


class Fpdf2BillRenderer(IBillPdfRenderer):
    """Renders shop bills with fpdf2."""

    def __init__(self, shop: ShopSettings | None = None) -> None:
        if shop is None:
            shop = get_settings().shop
        self._shop = shop

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(self, record: BillRecord) -> bytes:
        """Render a BillRecord into PDF bytes."""
        pdf = FPDF()
        pdf.set_auto_page_break(auto=True, margin=15)
        pdf.add_page()

        self._render_header(pdf)
        self._render_bill_info(pdf, record)
        self._render_items_table(pdf, record)
        self._render_summary(pdf, record)
        self._render_signatures(pdf)

        data = bytes(pdf.output())
        logger.debug("bill_pdf_rendered", s_no=record.s_no, size=len(data))
        return data

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _render_header(self, pdf: FPDF) -> None:
        """Shop name, address lines and phone, centered."""
        pdf.set_font("Helvetica", "B", 22)
        pdf.set_text_color(185, 28, 28)
        pdf.cell(
            0, 12, _safe_text(self._shop.name), align="C",
            new_x=XPos.LMARGIN, new_y=YPos.NEXT,
        )

        pdf.set_font("Helvetica", "", 8)
        pdf.set_text_color(22, 101, 52)
        for line in self._shop.address_lines:
            pdf.cell(
                0, 4, _safe_text(line), align="C",
                new_x=XPos.LMARGIN, new_y=YPos.NEXT,
            )
        if self._shop.phone:
            pdf.cell(
                0, 4, f"Phone No: {self._shop.phone}", align="C",
                new_x=XPos.LMARGIN, new_y=YPos.NEXT,
            )
        pdf.set_text_color(0, 0, 0)
        pdf.ln(4)

    @staticmethod
    def _render_bill_info(pdf: FPDF, record: BillRecord) -> None:
        """S No / Date row, then the customer row."""
        half = _TABLE_WIDTH / 2
        pdf.set_font("Helvetica", "B", 10)
        pdf.cell(half, _ROW_HEIGHT, f"S No: {record.s_no}", border="LTB")
        pdf.cell(
            half, _ROW_HEIGHT, f"Date: {record.date.isoformat()}", border="RTB", align="R",
            new_x=XPos.LMARGIN, new_y=YPos.NEXT,
        )
        pdf.cell(
            _TABLE_WIDTH, _ROW_HEIGHT, f"To: {_safe_text(record.customer_name)}", border=1,
            new_x=XPos.LMARGIN, new_y=YPos.NEXT,
        )
        pdf.ln(2)

    def _render_items_table(self, pdf: FPDF, record: BillRecord) -> None:
        """Items table padded with blank rows to the minimum row count."""
        col_widths = [85, 30, 35, 40]
        headers = ["Items", "Qty", "Rate", "Amount"]

        pdf.set_font("Helvetica", "B", 10)
        for width, header in zip(col_widths, headers):
            pdf.cell(width, _ROW_HEIGHT, header, border=1, align="C")
        pdf.ln()

        rows: list[tuple[str, str, str, str]] = []
        for item in record.items:
            rows.append(
                (
                    _safe_text(item.name[:45]),
                    format_indian_number(item.quantity) if item.quantity else "",
                    format_indian_currency(item.rate) if item.rate else "",
                    format_indian_currency(item.amount) if item.quantity and item.rate else "",
                )
            )
        while len(rows) < self._shop.min_item_rows:
            rows.append(("", "", "", ""))

        for row in rows:
            for width, text in zip(col_widths, row):
                pdf.cell(width, _ROW_HEIGHT, text, border=1, align="C")
            pdf.ln()
        pdf.ln(2)

    @staticmethod
    def _render_summary(pdf: FPDF, record: BillRecord) -> None:
        """Right-aligned totals block."""
        totals = record.totals()
        lines = [
            ("Sub Total", totals.sub_total),
            ("Luggage", record.luggage),
            ("Total Rs", totals.total),
            ("Old Balance", record.old_balance),
            ("Paid Amount", record.paid_amount),
            ("Balance Due", totals.balance_due),
        ]

        offset = pdf.l_margin + _TABLE_WIDTH - _SUMMARY_LABEL_WIDTH - _SUMMARY_VALUE_WIDTH
        pdf.set_font("Helvetica", "B", 10)
        for label, value in lines:
            pdf.set_x(offset)
            pdf.cell(_SUMMARY_LABEL_WIDTH, _ROW_HEIGHT, label, border=1, align="C")
            pdf.cell(
                _SUMMARY_VALUE_WIDTH, _ROW_HEIGHT, format_indian_currency(value), border=1, align="R",
                new_x=XPos.LMARGIN, new_y=YPos.NEXT,
            )

    @staticmethod
    def _render_signatures(pdf: FPDF) -> None:
        """Receiver and authorized signature lines."""
        pdf.ln(20)
        y = pdf.get_y()
        left = pdf.l_margin
        right = pdf.l_margin + _TABLE_WIDTH
        pdf.line(left, y, left + 50, y)
        pdf.line(right - 50, y, right, y)

        pdf.set_font("Helvetica", "", 8)
        pdf.set_xy(left, y + 1)
        pdf.cell(50, 5, "Receiver Signature")
        pdf.set_xy(right - 50, y + 1)
        pdf.cell(50, 5, "Authorized Signature", align="R")


# Singleton
_renderer: IBillPdfRenderer | None = None


def get_bill_pdf_renderer() -> IBillPdfRenderer:
    """Get or create the shared bill renderer."""
    global _renderer
    if _renderer is None:
        _renderer = Fpdf2BillRenderer()
    return _renderer
