from typing import Dict, Any
from datetime import datetime, timezone
from pathlib import Path
import importlib.util
import platform
from rentledger.config import settings
from rentledger.database import check_db_connection
import logging

logger = logging.getLogger(__name__)


def check_invoice_renderer() -> Dict[str, Any]:
    """Template present and WeasyPrint importable"""
    template = Path(settings.INVOICE_TEMPLATE_DIR) / settings.INVOICE_TEMPLATE_NAME
    template_ok = template.is_file()
    weasyprint_ok = importlib.util.find_spec("weasyprint") is not None
    return {
        "healthy": template_ok and weasyprint_ok,
        "template": str(template),
        "template_found": template_ok,
        "weasyprint_installed": weasyprint_ok,
    }


async def get_detailed_health() -> Dict[str, Any]:
    """Get detailed health status of all services"""
    health_status = {
        "services": {},
        "system": {
            "python_version": platform.python_version(),
            "platform": platform.platform(),
            "environment": settings.ENVIRONMENT,
        },
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    db_healthy = await check_db_connection()
    health_status["services"]["database"] = {
        "healthy": db_healthy,
        "status": "connected" if db_healthy else "disconnected",
    }

    health_status["services"]["invoice_renderer"] = check_invoice_renderer()

    all_services_healthy = all(s.get("healthy", False) for s in health_status["services"].values())
    health_status["status"] = "healthy" if all_services_healthy else "degraded"

    return health_status
