"""PDF rendering."""

from quickbill.infrastructure.pdf.bill_pdf_renderer import (
    Fpdf2BillRenderer,
    IBillPdfRenderer,
    get_bill_pdf_renderer,
    pdf_filename,
)

__all__ = [
    "Fpdf2BillRenderer",
    "IBillPdfRenderer",
    "get_bill_pdf_renderer",
    "pdf_filename",
]
