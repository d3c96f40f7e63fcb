"""Broadcast endpoints: one short-lived status message per user."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from discovery_svc.api.deps import get_orchestrator, get_user_id
from discovery_svc.domain.discovery.schemas import BroadcastResponse, BroadcastWriteRequest, PublicBroadcast
from discovery_svc.domain.discovery.service import DiscoveryOrchestrator

router = APIRouter(prefix="/broadcasts", tags=["broadcasts"])


@router.post("", response_model=BroadcastResponse, status_code=status.HTTP_201_CREATED)
async def create_broadcast(
	payload: BroadcastWriteRequest,
	user_id: str = Depends(get_user_id),
	orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
) -> BroadcastResponse:
	broadcast = await orchestrator.create_broadcast(user_id, payload.message, payload.ttl_hours)
	return BroadcastResponse.from_domain(broadcast)


@router.put("", response_model=BroadcastResponse)
async def update_broadcast(
	payload: BroadcastWriteRequest,
	user_id: str = Depends(get_user_id),
	orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
) -> BroadcastResponse:
	broadcast = await orchestrator.update_broadcast(user_id, payload.message, payload.ttl_hours)
	return BroadcastResponse.from_domain(broadcast)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_broadcast(
	user_id: str = Depends(get_user_id),
	orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
) -> Response:
	await orchestrator.delete_broadcast(user_id)
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("", response_model=BroadcastResponse)
async def get_my_broadcast(
	user_id: str = Depends(get_user_id),
	orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
) -> BroadcastResponse:
	return BroadcastResponse.from_domain(await orchestrator.get_broadcast(user_id))


@router.get("/{user_id}", response_model=PublicBroadcast)
async def get_user_broadcast(
	user_id: str,
	_: str = Depends(get_user_id),
	orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
) -> PublicBroadcast:
	return PublicBroadcast.from_domain(await orchestrator.get_broadcast(user_id))
