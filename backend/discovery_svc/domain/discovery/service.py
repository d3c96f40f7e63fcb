"""Discovery orchestrator: presence listings, ranked search and thin delegations."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from discovery_svc.domain.broadcasts.models import Broadcast
from discovery_svc.domain.broadcasts.service import BroadcastStore
from discovery_svc.domain.discovery.profiles import ProfileProvider
from discovery_svc.domain.discovery.schemas import (
	AvailableUsersPage,
	PaginationMeta,
	PublicAvailability,
	PublicBroadcast,
	RankedUser,
	ScoreBreakdown,
	SearchMeta,
	SearchResultsPage,
)
from discovery_svc.domain.exceptions import ValidationError
from discovery_svc.domain.pagination import normalize_page, page_meta
from discovery_svc.domain.presence.models import PresenceRecord
from discovery_svc.domain.presence.service import PresenceStore, require_user_id
from discovery_svc.domain.ranking import scoring
from discovery_svc.domain.ranking.config import RankingConfigStore
from discovery_svc.domain.ranking.engine import RankingEngine
from discovery_svc.domain.ranking.models import (
	RankingConfigEntry,
	RankingInput,
	RankingWeights,
	UserProfileSignals,
	WeightsValidation,
)
from discovery_svc.domain.search.adapter import SearchAdapter
from discovery_svc.settings import settings

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 500


class DiscoveryOrchestrator:
	"""Composes presence, search, profiles, ranking and broadcasts."""

	def __init__(
		self,
		*,
		presence: PresenceStore,
		broadcasts: BroadcastStore,
		ranking_config: RankingConfigStore,
		engine: RankingEngine,
		search: SearchAdapter,
		profiles: ProfileProvider,
		candidate_pool: int | None = None,
	) -> None:
		self.presence = presence
		self.broadcasts = broadcasts
		self.ranking_config = ranking_config
		self.engine = engine
		self.search = search
		self.profiles = profiles
		self.candidate_pool = candidate_pool or settings.search_candidate_pool

	# Presence ----------------------------------------------------------------

	async def heartbeat(self, user_id: str) -> PresenceRecord:
		return await self.presence.heartbeat(user_id)

	async def get_availability(self, user_id: str) -> PresenceRecord:
		return await self.presence.get_availability(user_id)

	async def set_availability(self, user_id: str, is_available: bool) -> PresenceRecord:
		return await self.presence.set_availability(user_id, is_available)

	async def list_available_users(self, limit: int = 0, offset: int = 0) -> AvailableUsersPage:
		limit, offset = normalize_page(
			limit,
			offset,
			default=self.presence.default_limit,
			maximum=self.presence.max_limit,
		)
		records, total = await self.presence.list_available(limit, offset)
		return AvailableUsersPage(
			data=[PublicAvailability.from_record(record) for record in records],
			pagination=PaginationMeta.from_meta(page_meta(total, limit, offset)),
		)

	async def search_available_users(
		self,
		requester_id: str,
		query: str,
		limit: int = 0,
		offset: int = 0,
	) -> SearchResultsPage:
		requester = require_user_id(requester_id)
		text = (query or "").strip()
		if not text:
			raise ValidationError("query is required", field="query")
		if len(text) > MAX_QUERY_LENGTH:
			raise ValidationError(f"query must be at most {MAX_QUERY_LENGTH} characters", field="query")
		limit, offset = normalize_page(
			limit,
			offset,
			default=self.presence.default_limit,
			maximum=self.presence.max_limit,
		)

		candidate_ids = await self.presence.list_available_ids(self.candidate_pool, exclude=[requester])
		outcome = await self.search.rank_by_semantic_query(text, candidate_ids, requester_id=requester)
		semantic = outcome.scores()
		ranked_ids = [uid for uid, _ in outcome.ranked]

		records = await self.presence.get_many(ranked_ids)
		signals = await self.profiles.get_signals([*ranked_ids, requester])
		requester_signals = signals.get(requester) or UserProfileSignals(user_id=requester)
		weights = await self.ranking_config.get_weights()

		inputs = [self._ranking_input(uid, semantic.get(uid), signals.get(uid), records.get(uid)) for uid in ranked_ids]
		results = await self.engine.batch_score(
			inputs,
			requester_signals.interests,
			requester_signals.location(),
			weights,
		)

		page = results[offset : offset + limit]
		active = await self.broadcasts.get_active_for_users([result.user_id for result in page])
		data: list[RankedUser] = []
		for result in page:
			record = records.get(result.user_id)
			broadcast = active.get(result.user_id)
			data.append(
				RankedUser(
					user_id=result.user_id,
					is_available=record.is_available if record else True,
					last_available_at=record.last_available_at if record else None,
					score=result.total_score,
					semantic_score=semantic.get(result.user_id),
					match_reasons=outcome.reasons_for(result.user_id),
					breakdown=ScoreBreakdown(**result.breakdown()),
					last_heartbeat_minutes=result.last_heartbeat_minutes,
					broadcast=PublicBroadcast.from_domain(broadcast) if broadcast else None,
				)
			)

		meta = SearchMeta(
			total_candidates=outcome.total_candidates,
			degraded=outcome.degraded,
			search_enabled=bool(getattr(self.search, "enabled", False)),
			query_processed=outcome.query_processed or text,
			search_time_ms=outcome.search_time_ms,
			warnings=list(outcome.warnings),
		)
		logger.info(
			"available users search",
			extra={"candidates": len(candidate_ids), "results": len(results), "degraded": outcome.degraded},
		)
		return SearchResultsPage(
			data=data,
			pagination=PaginationMeta.from_meta(page_meta(len(results), limit, offset)),
			search_meta=meta,
			warnings=list(outcome.warnings),
		)

	@staticmethod
	def _ranking_input(
		user_id: str,
		semantic: Optional[float],
		signals: Optional[UserProfileSignals],
		record: Optional[PresenceRecord],
	) -> RankingInput:
		return RankingInput(
			user_id=user_id,
			semantic_similarity=semantic,
			interests=signals.interests if signals else 0,
			latitude=signals.latitude if signals else None,
			longitude=signals.longitude if signals else None,
			last_available_at=record.last_available_at if record else None,
		)

	# Broadcasts --------------------------------------------------------------

	async def create_broadcast(self, user_id: str, message: str, ttl_hours: Optional[int] = None) -> Broadcast:
		return await self.broadcasts.create(user_id, message, ttl_hours)

	async def update_broadcast(self, user_id: str, message: str, ttl_hours: Optional[int] = None) -> Broadcast:
		return await self.broadcasts.update(user_id, message, ttl_hours)

	async def delete_broadcast(self, user_id: str) -> None:
		await self.broadcasts.delete(user_id)

	async def get_broadcast(self, user_id: str) -> Broadcast:
		return await self.broadcasts.get_active(user_id)

	# Ranking config ----------------------------------------------------------

	async def get_ranking_weights(self) -> RankingWeights:
		return await self.ranking_config.get_weights()

	async def update_ranking_weights(
		self,
		updates: Mapping[str, Optional[float]],
	) -> tuple[RankingWeights, WeightsValidation]:
		weights = await self.ranking_config.update_weights(updates)
		return weights, self.ranking_config.validate_weights(weights)

	async def reset_ranking_weights(self) -> RankingWeights:
		return await self.ranking_config.reset_to_defaults()

	async def validate_ranking_weights(self) -> WeightsValidation:
		return self.ranking_config.validate_weights(await self.ranking_config.get_weights())

	async def ranking_info(self) -> dict[str, object]:
		return scoring.describe_algorithm(await self.ranking_config.get_weights())

	async def list_ranking_configs(self) -> list[RankingConfigEntry]:
		return await self.ranking_config.list_configs()


__all__ = ["DiscoveryOrchestrator", "MAX_QUERY_LENGTH"]
