import pytest
from httpx import AsyncClient

from rentledger.models import Building


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
	response = await client.get("/health")
	assert response.status_code == 200
	data = response.json()
	assert data["services"]["database"]["healthy"] is True
	assert "invoice_renderer" in data["services"]


@pytest.mark.asyncio
async def test_request_id_and_security_headers(client: AsyncClient):
	response = await client.get("/health", headers={"X-Request-ID": "abc-123"})
	assert response.headers["X-Request-ID"] == "abc-123"
	assert response.headers["X-Content-Type-Options"] == "nosniff"
	assert response.headers["X-Frame-Options"] == "DENY"


@pytest.mark.asyncio
async def test_metrics_count_domain_events(client: AsyncClient, rented_building: Building,
										   landlord_headers: dict, tenant_headers: dict):
	flat = rented_building.flats[0]
	await client.post(
		f"/api/v1/flats/{flat.id}/meters/{flat.meters[0].id}/readings",
		headers=tenant_headers,
		json={"reading": 2500}
	)
	await client.post(
		f"/api/v1/invoices/flats/{flat.id}",
		headers=landlord_headers,
		json={"total_rent_paid": 0}
	)

	response = await client.get("/internal/metrics")
	assert response.status_code == 200
	body = response.text
	assert 'rentledger_readings_submitted_total{meter_type="gas"}' in body
	assert "rentledger_invoices_created_total" in body
	assert 'endpoint="/api/v1/invoices/flats/{flat_id}"' in body


@pytest.mark.asyncio
async def test_metrics_label_keeps_router_prefix(client: AsyncClient, rented_building: Building,
												 landlord_headers: dict, tenant_headers: dict):
	flat = rented_building.flats[0]
	created = await client.post(
		f"/api/v1/invoices/flats/{flat.id}",
		headers=landlord_headers,
		json={"total_rent_paid": 0}
	)
	invoice_id = created.json()["invoice_id"]
	await client.get(f"/api/v1/invoices/{invoice_id}/pdf", headers=tenant_headers)
	await client.get("/api/v1/invoices/mine", headers=tenant_headers)
	await client.get("/api/v1/buildings/", headers=landlord_headers)

	body = (await client.get("/internal/metrics")).text
	assert 'endpoint="/api/v1/invoices/{invoice_id}/pdf"' in body
	assert 'endpoint="/api/v1/invoices/mine"' in body
	assert 'endpoint="/api/v1/buildings/"' in body
	assert 'endpoint="/{invoice_id}/pdf"' not in body
	assert 'endpoint="/mine"' not in body
