import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentledger.auth.dependencies import get_current_person, require_capability
from rentledger.database import get_session
from rentledger.models.person import Person, Capability
from rentledger.schemas.invoice import CreateInvoiceRequest, InvoiceSummary
from rentledger.services.invoice_renderer import InvoicePdfRenderer, get_invoice_renderer
from rentledger.services.invoice_service import InvoiceService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/flats/{flat_id}", response_model=InvoiceSummary, status_code=status.HTTP_201_CREATED)
async def create_invoice(
		flat_id: UUID,
		request: CreateInvoiceRequest,
		session: AsyncSession = Depends(get_session),
		renderer: InvoicePdfRenderer = Depends(get_invoice_renderer),
		current_person: Person = Depends(get_current_person)
):
	"""
	Compute the yearly invoice of a rented flat.

	Only the landlord of the flat's building may create invoices. The
	invoice covers the twelve months before now and is billed for the
	previous calendar year.
	"""
	service = InvoiceService(session, renderer)
	return await service.create_invoice(flat_id, request.total_rent_paid, current_person)


@router.get("/", response_model=List[InvoiceSummary])
async def list_landlord_invoices(
		session: AsyncSession = Depends(get_session),
		current_person: Person = Depends(require_capability(Capability.LANDLORD))
):
	"""Latest invoice of every flat the current landlord owns"""
	return await InvoiceService(session).list_for_landlord(current_person)


@router.get("/mine", response_model=List[InvoiceSummary])
async def list_tenant_invoices(
		session: AsyncSession = Depends(get_session),
		current_person: Person = Depends(get_current_person)
):
	return await InvoiceService(session).list_for_tenant(current_person)


@router.patch("/{invoice_id}/paid", response_model=InvoiceSummary)
async def toggle_paid(
		invoice_id: UUID,
		building_id: UUID = Query(...),
		session: AsyncSession = Depends(get_session),
		current_person: Person = Depends(get_current_person)
):
	"""Flip the paid flag of an invoice"""
	return await InvoiceService(session).toggle_paid(invoice_id, building_id, current_person)


@router.get("/{invoice_id}/pdf")
async def download_pdf(
		invoice_id: UUID,
		session: AsyncSession = Depends(get_session),
		current_person: Person = Depends(get_current_person)
):
	content = await InvoiceService(session).get_pdf(invoice_id, current_person)
	return Response(
		content=content,
		media_type="application/pdf",
		headers={"Content-Disposition": f'attachment; filename="invoice-{invoice_id}.pdf"'}
	)
