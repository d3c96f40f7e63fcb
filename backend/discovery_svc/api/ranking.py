"""Ranking weight administration and algorithm description."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from discovery_svc.api.deps import get_orchestrator, get_user_id
from discovery_svc.domain.discovery.schemas import (
	RankingConfigEntrySchema,
	RankingInfoResponse,
	RankingWeightsSchema,
	RankingWeightsUpdate,
	WeightsUpdateResponse,
	WeightsValidationResponse,
)
from discovery_svc.domain.discovery.service import DiscoveryOrchestrator

router = APIRouter(prefix="/ranking", tags=["ranking"])

_LOG = logging.getLogger(__name__)


@router.get("/weights", response_model=RankingWeightsSchema)
async def get_weights(orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator)) -> RankingWeightsSchema:
	return RankingWeightsSchema.from_domain(await orchestrator.get_ranking_weights())


@router.put("/weights", response_model=WeightsUpdateResponse)
async def update_weights(
	payload: RankingWeightsUpdate,
	user_id: str = Depends(get_user_id),
	orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
) -> WeightsUpdateResponse:
	weights, validation = await orchestrator.update_ranking_weights(payload.model_dump(exclude_unset=True))
	_LOG.info("ranking weights changed", extra={"actor": user_id, "valid": validation.valid})
	return WeightsUpdateResponse(
		weights=RankingWeightsSchema.from_domain(weights),
		weights_validation=WeightsValidationResponse.from_domain(validation),
	)


@router.post("/weights/reset", response_model=RankingWeightsSchema)
async def reset_weights(
	user_id: str = Depends(get_user_id),
	orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
) -> RankingWeightsSchema:
	weights = await orchestrator.reset_ranking_weights()
	_LOG.info("ranking weights reset", extra={"actor": user_id})
	return RankingWeightsSchema.from_domain(weights)


@router.get("/weights/validate", response_model=WeightsValidationResponse)
async def validate_weights(
	orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
) -> WeightsValidationResponse:
	return WeightsValidationResponse.from_domain(await orchestrator.validate_ranking_weights())


@router.get("/info", response_model=RankingInfoResponse)
async def ranking_info(orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator)) -> RankingInfoResponse:
	return RankingInfoResponse.model_validate(await orchestrator.ranking_info())


@router.get("/config", response_model=list[RankingConfigEntrySchema])
async def list_config(
	orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
) -> list[RankingConfigEntrySchema]:
	return [RankingConfigEntrySchema.from_domain(entry) for entry in await orchestrator.list_ranking_configs()]
