"""Global error handlers ensuring request_id is included in JSON responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from discovery_svc.domain.exceptions import DiscoveryError, StorageError, ValidationError
from discovery_svc.obs import logging as obs_logging

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str:
	return getattr(request.state, "request_id", None) or obs_logging.current_request_id() or "unknown"


def install_error_handlers(app: FastAPI) -> None:
	@app.exception_handler(DiscoveryError)
	async def discovery_exc_handler(request: Request, exc: DiscoveryError):  # type: ignore[override]
		payload: dict[str, object] = {"detail": exc.detail, "request_id": _request_id(request)}
		if isinstance(exc, ValidationError) and exc.field:
			payload["field"] = exc.field
		if isinstance(exc, StorageError):
			logger.error("storage failure", extra={"detail": exc.detail, "path": request.url.path})
		return JSONResponse(status_code=exc.status_code, content=payload)

	@app.exception_handler(StarletteHTTPException)
	async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
		payload = {"detail": exc.detail, "request_id": _request_id(request)}
		return JSONResponse(status_code=exc.status_code, content=payload)

	@app.exception_handler(RequestValidationError)
	async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
		payload = {"detail": "validation_error", "errors": exc.errors(), "request_id": _request_id(request)}
		return JSONResponse(status_code=422, content=jsonable_encoder(payload))


__all__ = ["install_error_handlers"]
