"""Availability, heartbeat and available-user search endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from discovery_svc.api.deps import get_orchestrator, get_user_id
from discovery_svc.domain.discovery.schemas import (
	AvailabilityResponse,
	AvailableUsersPage,
	PublicAvailability,
	SearchResultsPage,
	SetAvailabilityRequest,
)
from discovery_svc.domain.discovery.service import DiscoveryOrchestrator

router = APIRouter(tags=["availability"])


@router.post("/availability/heartbeat", response_model=AvailabilityResponse)
async def heartbeat(
	user_id: str = Depends(get_user_id),
	orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
) -> AvailabilityResponse:
	return AvailabilityResponse.from_record(await orchestrator.heartbeat(user_id))


@router.get("/availability", response_model=AvailabilityResponse)
async def get_my_availability(
	user_id: str = Depends(get_user_id),
	orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
) -> AvailabilityResponse:
	return AvailabilityResponse.from_record(await orchestrator.get_availability(user_id))


@router.put("/availability", response_model=AvailabilityResponse)
async def set_my_availability(
	payload: SetAvailabilityRequest,
	user_id: str = Depends(get_user_id),
	orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
) -> AvailabilityResponse:
	record = await orchestrator.set_availability(user_id, payload.is_available)
	return AvailabilityResponse.from_record(record)


@router.get("/availability/{user_id}", response_model=PublicAvailability)
async def get_user_availability(
	user_id: str,
	_: str = Depends(get_user_id),
	orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
) -> PublicAvailability:
	return PublicAvailability.from_record(await orchestrator.get_availability(user_id))


@router.get("/available-users", response_model=AvailableUsersPage)
async def list_available_users(
	limit: int = Query(default=0),
	offset: int = Query(default=0),
	_: str = Depends(get_user_id),
	orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
) -> AvailableUsersPage:
	return await orchestrator.list_available_users(limit, offset)


@router.get("/available-users/search", response_model=SearchResultsPage)
async def search_available_users(
	query: str = Query(default="", max_length=500),
	limit: int = Query(default=0),
	offset: int = Query(default=0),
	user_id: str = Depends(get_user_id),
	orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
) -> SearchResultsPage:
	return await orchestrator.search_available_users(user_id, query, limit, offset)
