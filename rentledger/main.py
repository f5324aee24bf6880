import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from starlette.middleware.gzip import GZipMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from rentledger.config import settings
from rentledger.api.v1 import auth, buildings, flats, invoices
from rentledger.database import init_db, close_db
from rentledger.middleware.logging import LoggingMiddleware
from rentledger.middleware.monitoring import MonitoringMiddleware
from rentledger.middleware.request_id import RequestIDMiddleware, RequestIDLogFilter
from rentledger.middleware.security import SecurityHeadersMiddleware
from rentledger.monitoring import metrics
from rentledger.services.errors import RentLedgerError
from rentledger.services.health_service import get_detailed_health


def configure_logging():
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())
    handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
    ))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})")
    await init_db()
    yield
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description="""
    **RentLedger API** - Property management and yearly utility invoicing

    ## Features
		* **JWT Authentication** with landlord and tenant capabilities
		* **Buildings, flats and meters** managed by landlords
		* **Meter readings** submitted by tenants, with full history
		* **Yearly invoices** apportioning operating costs and utility consumption, rendered to PDF

    ## Documentation
		* [Interactive API Docs](/docs)
		* [Health Check](/health)
    """,
    version=settings.APP_VERSION,
    openapi_tags=[
        {"name": "auth", "description": "Authentication operations"},
        {"name": "buildings", "description": "Building management"},
        {"name": "flats", "description": "Tenants and meter readings"},
        {"name": "invoices", "description": "Yearly invoices"},
        {"name": "monitoring", "description": "System monitoring"},
    ],
    docs_url="/docs",
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else "/api/openapi.json",
    lifespan=lifespan,
)


# =====================================
# Domain errors
# =====================================
@app.exception_handler(RentLedgerError)
async def rentledger_error_handler(request: Request, exc: RentLedgerError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# =====================================
# Configure Middleware Stack
# =====================================

# GZIP Compression (minimum 1KB)
app.add_middleware(GZipMiddleware, minimum_size=1000)

# Trusted Host validation (production only)
if not settings.DEBUG:
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
    max_age=3600,
)

# Custom middleware
app.add_middleware(MonitoringMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

# Include routers
app.include_router(auth.router, prefix=f"{settings.API_V1_PREFIX}/auth", tags=["auth"])
app.include_router(buildings.router, prefix=f"{settings.API_V1_PREFIX}/buildings", tags=["buildings"])
app.include_router(flats.router, prefix=f"{settings.API_V1_PREFIX}/flats", tags=["flats"])
app.include_router(invoices.router, prefix=f"{settings.API_V1_PREFIX}/invoices", tags=["invoices"])

# Monitoring endpoints (internal use)
if settings.EXPOSE_METRICS:
    app.include_router(
        metrics.router,
        prefix="/internal",
        tags=["monitoring"]
    )


@app.get("/health", tags=["monitoring"])
async def health_check():
    health = await get_detailed_health()
    code = status.HTTP_200_OK if health["services"]["database"]["healthy"] else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=health)
