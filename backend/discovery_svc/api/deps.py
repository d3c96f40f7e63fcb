"""Request dependencies shared by the discovery routers."""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, Request, status

from discovery_svc.container import DiscoveryContainer
from discovery_svc.domain.discovery.service import DiscoveryOrchestrator


def get_container(request: Request) -> DiscoveryContainer:
	container = getattr(request.app.state, "discovery", None)
	if container is None:
		raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail="service_starting")
	return container


def get_orchestrator(request: Request) -> DiscoveryOrchestrator:
	return get_container(request).orchestrator


async def get_user_id(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> str:
	"""Caller identity, already authenticated by the upstream gateway."""
	user_id = (x_user_id or "").strip()
	if not user_id:
		raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="missing_user_id")
	return user_id


__all__ = ["get_container", "get_orchestrator", "get_user_id"]
