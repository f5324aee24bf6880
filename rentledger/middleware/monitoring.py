import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

from rentledger.monitoring.metrics import request_count, request_duration, active_requests

logger = logging.getLogger(__name__)


def endpoint_label(request: Request) -> str:
	"""Route template such as /api/v1/flats/{flat_id}, not the raw path."""
	route = request.scope.get("route")
	if route is not None:
		# Routes inside a mounted router only know their path below the mount
		return request.scope.get("root_path", "") + route.path
	for candidate in request.app.routes:
		match, _ = candidate.matches(request.scope)
		if match == Match.FULL:
			return candidate.path
	return "unmatched"


class MonitoringMiddleware(BaseHTTPMiddleware):
	"""Track request metrics for Prometheus"""

	async def dispatch(self, request: Request, call_next):
		if request.url.path == "/internal/metrics":
			return await call_next(request)

		active_requests.inc()
		start_time = time.time()

		try:
			response = await call_next(request)

			duration = time.time() - start_time
			endpoint = endpoint_label(request)

			request_count.labels(
				method=request.method,
				endpoint=endpoint,
				status=response.status_code
			).inc()

			request_duration.labels(
				method=request.method,
				endpoint=endpoint
			).observe(duration)

			return response

		finally:
			active_requests.dec()
