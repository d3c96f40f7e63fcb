"""Wires stores, adapters and the orchestrator for one process."""

from __future__ import annotations

from dataclasses import dataclass

from discovery_svc.domain.broadcasts.repo import MemoryBroadcastRepository, PostgresBroadcastRepository
from discovery_svc.domain.broadcasts.service import BroadcastStore
from discovery_svc.domain.discovery.profiles import MemoryProfileProvider, PostgresProfileProvider, ProfileProvider
from discovery_svc.domain.discovery.service import DiscoveryOrchestrator
from discovery_svc.domain.presence.repo import MemoryPresenceRepository, PostgresPresenceRepository
from discovery_svc.domain.presence.service import Clock, PresenceStore
from discovery_svc.domain.ranking.config import RankingConfigStore
from discovery_svc.domain.ranking.engine import RankingEngine
from discovery_svc.domain.ranking.repo import MemoryRankingConfigRepository, PostgresRankingConfigRepository
from discovery_svc.domain.search.adapter import SearchAdapter, build_search_adapter
from discovery_svc.infra.soft_delete import now_utc
from discovery_svc.settings import Settings


@dataclass(slots=True)
class DiscoveryContainer:
	presence: PresenceStore
	broadcasts: BroadcastStore
	ranking_config: RankingConfigStore
	engine: RankingEngine
	search: SearchAdapter
	profiles: ProfileProvider
	orchestrator: DiscoveryOrchestrator
	storage: str = "postgres"

	async def aclose(self) -> None:
		await self.search.aclose()
		self.engine.shutdown()


def build_container(
	config: Settings,
	*,
	storage: str | None = None,
	search: SearchAdapter | None = None,
	profiles: ProfileProvider | None = None,
	clock: Clock = now_utc,
) -> DiscoveryContainer:
	backend = storage.strip().lower() if storage else config.storage_kind()
	if backend == "memory":
		presence_repo = MemoryPresenceRepository()
		broadcast_repo = MemoryBroadcastRepository()
		config_repo = MemoryRankingConfigRepository()
		profile_provider = profiles or MemoryProfileProvider()
	elif backend == "postgres":
		presence_repo = PostgresPresenceRepository()
		broadcast_repo = PostgresBroadcastRepository()
		config_repo = PostgresRankingConfigRepository()
		profile_provider = profiles or PostgresProfileProvider()
	else:
		raise ValueError(f"unknown storage backend: {backend}")

	presence = PresenceStore(
		presence_repo,
		clock=clock,
		default_limit=config.available_users_default_limit,
		max_limit=config.available_users_max_limit,
	)
	broadcasts = BroadcastStore(broadcast_repo, clock=clock, default_ttl_hours=config.broadcast_default_ttl_hours)
	ranking_config = RankingConfigStore(
		config_repo,
		clock=clock,
		cache_ttl_seconds=config.ranking_weights_cache_ttl_seconds,
	)
	engine = RankingEngine(
		clock=clock,
		parallel_threshold=config.ranking_parallel_threshold,
		max_workers=config.ranking_max_workers,
	)
	adapter = search or build_search_adapter(config)
	orchestrator = DiscoveryOrchestrator(
		presence=presence,
		broadcasts=broadcasts,
		ranking_config=ranking_config,
		engine=engine,
		search=adapter,
		profiles=profile_provider,
		candidate_pool=config.search_candidate_pool,
	)
	return DiscoveryContainer(
		presence=presence,
		broadcasts=broadcasts,
		ranking_config=ranking_config,
		engine=engine,
		search=adapter,
		profiles=profile_provider,
		orchestrator=orchestrator,
		storage=backend,
	)


__all__ = ["DiscoveryContainer", "build_container"]
