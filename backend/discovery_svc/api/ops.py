"""Operations endpoints providing health checks and metrics."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from discovery_svc.api.deps import get_container
from discovery_svc.container import DiscoveryContainer
from discovery_svc.domain.exceptions import StorageError
from discovery_svc.infra.postgres import connection

router = APIRouter(prefix="", tags=["ops"])


@router.get("/health/live")
async def health_live() -> dict[str, str]:
	return {"status": "ok"}


@router.get("/health/ready")
async def health_ready(container: DiscoveryContainer = Depends(get_container)) -> Response:
	if container.storage == "memory":
		return JSONResponse({"status": "ok", "storage": "memory"})
	try:
		async with connection() as conn:
			await conn.execute("SELECT 1")
	except StorageError:
		return JSONResponse(
			{"status": "unavailable", "storage": container.storage},
			status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
		)
	return JSONResponse({"status": "ok", "storage": container.storage})


@router.get("/metrics")
async def prometheus_metrics() -> Response:
	payload = generate_latest()
	return Response(content=payload, media_type=CONTENT_TYPE_LATEST)
