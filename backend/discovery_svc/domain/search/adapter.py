"""Semantic ranking with a degraded fallback to unranked candidates."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from discovery_svc.domain.exceptions import SearchUnavailableError
from discovery_svc.domain.search.clients import HttpSearchClient
from discovery_svc.obs import metrics as obs_metrics
from discovery_svc.settings import Settings

logger = logging.getLogger(__name__)

FALLBACK_WARNING = "Search service temporarily unavailable. Returning unranked results."


@dataclass(slots=True)
class SearchOutcome:
	ranked: list[tuple[str, float | None]] = field(default_factory=list)
	degraded: bool = False
	warnings: list[str] = field(default_factory=list)
	query_processed: str = ""
	search_time_ms: int = 0
	total_candidates: int = 0
	match_reasons: dict[str, list[str]] = field(default_factory=dict)

	def scores(self) -> dict[str, float | None]:
		return dict(self.ranked)

	def reasons_for(self, user_id: str) -> list[str] | None:
		return self.match_reasons.get(user_id)


def unranked(query: str, candidate_ids: Sequence[str], *, warning: str | None = FALLBACK_WARNING) -> SearchOutcome:
	return SearchOutcome(
		ranked=[(uid, None) for uid in candidate_ids],
		degraded=True,
		warnings=[warning] if warning else [],
		query_processed=query,
		search_time_ms=0,
		total_candidates=len(candidate_ids),
	)


class SearchAdapter(Protocol):
	enabled: bool

	async def rank_by_semantic_query(
		self,
		query: str,
		candidate_ids: Sequence[str],
		*,
		requester_id: str = "",
		timeout: float | None = None,
	) -> SearchOutcome:
		...

	async def aclose(self) -> None:
		...


class DisabledSearchAdapter:
	"""Used when no search service is configured; every call is degraded."""

	enabled = False

	async def rank_by_semantic_query(
		self,
		query: str,
		candidate_ids: Sequence[str],
		*,
		requester_id: str = "",
		timeout: float | None = None,
	) -> SearchOutcome:
		obs_metrics.inc_search_request("disabled")
		return unranked(query, candidate_ids)

	async def aclose(self) -> None:
		return None


class HttpSearchAdapter:
	"""One bounded attempt against the search service; any failure degrades."""

	enabled = True

	def __init__(self, client: HttpSearchClient, *, timeout: float = 10.0) -> None:
		self.client = client
		self.timeout = timeout

	async def rank_by_semantic_query(
		self,
		query: str,
		candidate_ids: Sequence[str],
		*,
		requester_id: str = "",
		timeout: float | None = None,
	) -> SearchOutcome:
		ids = list(candidate_ids)
		if not ids:
			return SearchOutcome(query_processed=query)
		started = time.perf_counter()
		try:
			response = await self.client.search(
				requester_id=requester_id,
				query=query,
				user_ids=ids,
				limit=len(ids),
				timeout=timeout if timeout is not None else self.timeout,
			)
		except SearchUnavailableError as exc:
			return self._degrade(query, ids, exc.reason)
		except Exception:
			logger.exception("search client failed unexpectedly")
			return self._degrade(query, ids, "unexpected")

		allowed = set(ids)
		seen: set[str] = set()
		ranked: list[tuple[str, float | None]] = []
		reasons: dict[str, list[str]] = {}
		for hit in response.hits:
			if hit.user_id not in allowed or hit.user_id in seen:
				continue
			seen.add(hit.user_id)
			ranked.append((hit.user_id, hit.score))
			if hit.match_reasons is not None:
				reasons[hit.user_id] = list(hit.match_reasons)
		obs_metrics.inc_search_request("ok")
		return SearchOutcome(
			ranked=ranked,
			degraded=False,
			warnings=[],
			query_processed=response.query_processed or query,
			search_time_ms=response.search_time_ms or int((time.perf_counter() - started) * 1000),
			total_candidates=response.total_candidates or len(ids),
			match_reasons=reasons,
		)

	@staticmethod
	def _degrade(query: str, ids: list[str], reason: str) -> SearchOutcome:
		obs_metrics.inc_search_request("degraded")
		obs_metrics.inc_search_fallback(reason)
		logger.warning(
			"search unavailable, returning unranked results",
			extra={"reason": reason, "candidates": len(ids)},
		)
		return unranked(query, ids)

	async def aclose(self) -> None:
		await self.client.aclose()


def build_search_adapter(config: Settings) -> SearchAdapter:
	if not config.search_configured():
		return DisabledSearchAdapter()
	client = HttpSearchClient(str(config.search_service_url), timeout=config.search_timeout_seconds)
	return HttpSearchAdapter(client, timeout=config.search_timeout_seconds)


__all__ = [
	"FALLBACK_WARNING",
	"DisabledSearchAdapter",
	"HttpSearchAdapter",
	"SearchAdapter",
	"SearchOutcome",
	"build_search_adapter",
	"unranked",
]
