"""Invoice and medication label rendering.

Uses Django templates for HTML and WeasyPrint to render that HTML to PDF.
Renders from the NamedTuples built by dispensary.selectors only.
"""

import io

from django.conf import settings
from django.template.loader import render_to_string

from clinic_desk.money import Money

from .selectors import InvoiceDocument, MedicationLabelDocument

# WeasyPrint is imported lazily inside render_pdf() to keep its import
# cost off every request that never prints.


class PrintService:
    """Base class: a template plus a context built from a document."""

    TEMPLATE = None

    def get_context(self) -> dict:
        raise NotImplementedError

    def get_filename(self) -> str:
        raise NotImplementedError

    def render_html(self) -> str:
        return render_to_string(self.TEMPLATE, self.get_context())

    def render_pdf(self) -> bytes:
        """Render to PDF bytes.

        Raises:
            RuntimeError: If WeasyPrint is not installed
        """
        try:
            from weasyprint import HTML
        except ImportError:
            raise RuntimeError(
                "WeasyPrint is required for PDF generation. "
                "Install with: pip install weasyprint"
            )

        base_url = str(getattr(settings, "BASE_DIR", "."))
        pdf_buffer = io.BytesIO()
        HTML(string=self.render_html(), base_url=base_url).write_pdf(pdf_buffer)
        return pdf_buffer.getvalue()


class InvoicePrintService(PrintService):
    TEMPLATE = "dispensary/invoice_print.html"

    def __init__(self, document: InvoiceDocument):
        self.document = document

    def get_context(self) -> dict:
        doc = self.document
        summary = doc.summary
        currency = summary.total_amount.currency
        return {
            "clinic_name": doc.clinic_name,
            "session": doc.session,
            "patient": doc.patient,
            "queue_number": doc.queue_number,
            "doctor": doc.session.doctor,
            "diagnosis": doc.session.diagnosis,
            "items": [
                {
                    "description": item.description,
                    "quantity": item.quantity,
                    "rate": Money(item.rate, currency).format(),
                    "total": item.total.format(),
                    "tier_name": item.tier_name,
                    "price_source": item.price_source,
                }
                for item in doc.items
            ],
            "payments": doc.payments,
            "total_amount": summary.total_amount.format(),
            "total_paid": summary.total_paid.format(),
            "amount_due": summary.amount_due.format(),
            "is_settled": summary.is_settled,
            "generated_at": doc.generated_at,
        }

    def get_filename(self) -> str:
        number = self.document.queue_number or str(self.document.session.pk)[:8]
        return f"invoice-{self.document.generated_at:%Y%m%d}-{number}.pdf"


class MedicationLabelPrintService(PrintService):
    TEMPLATE = "dispensary/medication_label.html"

    def __init__(self, document: MedicationLabelDocument):
        self.document = document

    def get_context(self) -> dict:
        return {"label": self.document}

    def get_filename(self) -> str:
        return f"label-{self.document.patient_id}.pdf"


def render_invoice_html(document: InvoiceDocument) -> str:
    """Convenience function to render an invoice to HTML."""
    return InvoicePrintService(document).render_html()


def render_invoice_pdf(document: InvoiceDocument) -> bytes:
    """Convenience function to render an invoice to PDF."""
    return InvoicePrintService(document).render_pdf()
