from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from rentledger.config import settings
from rentledger.services.errors import InvoiceRenderingError

logger = logging.getLogger(__name__)


def format_money(value, currency: str = "") -> str:
	"""1234.5 -> '1.234,50 EUR'"""
	text = f"{float(value or 0):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
	return f"{text} {currency}".strip()


class InvoicePdfRenderer:
	"""Renders an invoice to HTML with Jinja2, then to PDF with WeasyPrint."""

	def __init__(self, template_dir: Optional[str] = None, template_name: Optional[str] = None,
				 currency: Optional[str] = None):
		self.template_name = template_name or settings.INVOICE_TEMPLATE_NAME
		self.currency = currency or settings.INVOICE_CURRENCY
		self.env = Environment(
			loader=FileSystemLoader(template_dir or settings.INVOICE_TEMPLATE_DIR),
			autoescape=select_autoescape(["html", "xml"]),
		)
		self.env.filters["money"] = lambda value: format_money(value, self.currency)

	def render_html(self, invoice, flat, building) -> str:
		template = self.env.get_template(self.template_name)
		return template.render(
			invoice=invoice,
			flat=flat,
			building=building,
			tenant=flat.tenant,
			landlord=building.landlord,
			meter_lines=invoice.meter_lines,
			cost_lines=invoice.cost_lines,
			currency=self.currency,
			generated_at=datetime.now(timezone.utc),
		)

	def render(self, invoice, flat, building) -> bytes:
		"""Returns the PDF document; raises InvoiceRenderingError on any failure."""
		try:
			html = self.render_html(invoice, flat, building)
		except Exception as exc:
			logger.exception(f"Invoice {invoice.id} template rendering failed")
			raise InvoiceRenderingError(f"Invoice template rendering failed: {exc}") from exc

		try:
			from weasyprint import HTML
		except Exception as exc:
			raise InvoiceRenderingError("Invoice PDF rendering failed: WeasyPrint is not available") from exc

		try:
			return HTML(string=html).write_pdf()
		except Exception as exc:
			logger.exception(f"Invoice {invoice.id} PDF generation failed")
			raise InvoiceRenderingError(f"Invoice PDF rendering failed: {exc}") from exc


_renderer: Optional[InvoicePdfRenderer] = None


def get_invoice_renderer() -> InvoicePdfRenderer:
	"""FastAPI dependency returning the shared renderer."""
	global _renderer
	if _renderer is None:
		_renderer = InvoicePdfRenderer()
	return _renderer
