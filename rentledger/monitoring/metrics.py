from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter
from fastapi.responses import Response

router = APIRouter()

# HTTP metrics
request_count = Counter(
	'http_requests_total',
	'Total HTTP requests',
	['method', 'endpoint', 'status']
)

request_duration = Histogram(
	'http_request_duration_seconds',
	'HTTP request duration',
	['method', 'endpoint'],
	buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

active_requests = Gauge(
	'http_requests_active',
	'Number of active HTTP requests'
)

# Domain metrics
invoices_created = Counter(
	'rentledger_invoices_created_total',
	'Invoices computed and stored'
)

invoice_render_failures = Counter(
	'rentledger_invoice_render_failures_total',
	'Invoice documents that could not be rendered'
)

readings_submitted = Counter(
	'rentledger_readings_submitted_total',
	'Meter readings submitted by tenants',
	['meter_type']
)


@router.get("/metrics")
async def metrics():
	"""Prometheus metrics endpoint"""
	return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
