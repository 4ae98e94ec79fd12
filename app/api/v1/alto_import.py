"""
Alto import API route.

POST /import fetches the configured branch from Alto, keeps student-letting
candidates that are live on the web and returns them as normalized listings.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from app.auth.proxy_secret import require_proxy_secret
from app.core.api_errors import APIError
from app.sources.alto.importer import AltoImporter
from app.sources.alto.models import ImportRequest, ImportResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Alto Import"])


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_importer(request: Request) -> AltoImporter:
    """Return the process-wide importer created at startup."""
    return request.app.state.alto_importer


@router.post("/import", dependencies=[Depends(require_proxy_secret)])
async def import_properties(
    request: Request,
    body: Optional[ImportRequest] = Body(None),
    importer: AltoImporter = Depends(get_importer),
):
    """
    Run one Alto import.

    Returns every matching listing plus counters. Failures that affect
    only one property are counted; token or property-list failures return
    HTTP 500 with success=false.
    """
    logger.info("Alto import request received")
    agent_email = body.agent_email if body else None

    try:
        summary = await importer.run(agent_email=agent_email)
    except APIError as e:
        logger.error(f"Import error: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": e.message})
    except Exception as e:
        logger.exception(f"Import error: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    response = ImportResponse(
        properties=summary.properties,
        total=summary.total,
        total_found=summary.total_found,
        skipped=summary.skipped,
        errors=summary.errors,
        proxy_ip=request.client.host if request.client else "unknown",
        timestamp=utc_timestamp(),
    )
    return response.model_dump(mode="json")
