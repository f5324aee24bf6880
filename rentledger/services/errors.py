"""Domain error hierarchy; the API layer maps each class to one HTTP status."""


class RentLedgerError(Exception):
	"""Base error for all RentLedger domain operations."""

	status_code = 500

	def __init__(self, message: str):
		self.message = message
		super().__init__(message)


class NotFoundError(RentLedgerError):
	"""Flat, building, meter, invoice or person does not exist."""

	status_code = 404


class PermissionDeniedError(RentLedgerError):
	"""Acting person is not the landlord or tenant the operation requires."""

	status_code = 403


class ValidationFailedError(RentLedgerError):
	"""Request rejected before anything was written."""

	status_code = 400


class MissingTenantError(ValidationFailedError):
	"""Invoices can only be created for rented flats."""


class ApportionmentError(ValidationFailedError):
	"""A shared cost cannot be split because its denominator is zero."""


class InvoiceRenderingError(RentLedgerError):
	"""PDF generation failed; the invoice was not persisted."""

	status_code = 502


class InvoiceImmutableError(RentLedgerError):
	"""A persisted invoice's computed body or lines were about to change."""

	status_code = 409


__all__ = [
	"RentLedgerError",
	"NotFoundError",
	"PermissionDeniedError",
	"ValidationFailedError",
	"MissingTenantError",
	"ApportionmentError",
	"InvoiceRenderingError",
	"InvoiceImmutableError",
]
