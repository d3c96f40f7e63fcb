"""HTTP client for the semantic search collaborator."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Sequence

import httpx

from discovery_svc.domain.exceptions import SearchUnavailableError


@dataclass(slots=True)
class SemanticHit:
	user_id: str
	score: float | None
	match_reasons: list[str] | None = None


@dataclass(slots=True)
class SemanticSearchResponse:
	"""Normalized body returned by the search service."""

	hits: list[SemanticHit] = field(default_factory=list)
	query_processed: str = ""
	search_time_ms: int = 0
	total_candidates: int = 0


def _parse_score(raw: Any) -> float | None:
	if raw is None or isinstance(raw, bool):
		return None
	try:
		score = float(raw)
	except (TypeError, ValueError):
		return None
	return score if math.isfinite(score) else None


def _parse_reasons(raw: Any) -> list[str] | None:
	if not isinstance(raw, list):
		return None
	return [reason for reason in raw if isinstance(reason, str) and reason]


class HttpSearchClient:
	"""Thin async wrapper that turns every transport failure into SearchUnavailableError."""

	def __init__(
		self,
		base_url: str,
		*,
		timeout: float = 10.0,
		http: httpx.AsyncClient | None = None,
		path: str = "/api/v1/search",
	) -> None:
		self.base_url = base_url.rstrip("/")
		self.timeout = timeout
		self.path = path
		self._http = http or httpx.AsyncClient(timeout=timeout)
		self._owns_http = http is None

	async def search(
		self,
		*,
		requester_id: str,
		query: str,
		user_ids: Sequence[str],
		limit: int,
		timeout: float | None = None,
	) -> SemanticSearchResponse:
		payload = {"query": query, "user_ids": list(user_ids), "limit": limit}
		try:
			response = await self._http.post(
				f"{self.base_url}{self.path}",
				json=payload,
				headers={"X-User-Id": requester_id},
				timeout=timeout if timeout is not None else self.timeout,
			)
		except httpx.TimeoutException as exc:
			raise SearchUnavailableError("search_timeout", reason="timeout") from exc
		except httpx.HTTPError as exc:
			raise SearchUnavailableError("search_transport_error", reason="transport") from exc
		if response.status_code >= 300:
			raise SearchUnavailableError(f"search_status_{response.status_code}", reason="status")
		try:
			body = response.json()
		except (json.JSONDecodeError, ValueError) as exc:
			raise SearchUnavailableError("search_malformed_body", reason="malformed") from exc
		return self._parse(body, query)

	def _parse(self, body: Any, query: str) -> SemanticSearchResponse:
		if not isinstance(body, dict) or not isinstance(body.get("results", []), list):
			raise SearchUnavailableError("search_malformed_body", reason="malformed")
		hits: list[SemanticHit] = []
		for item in body.get("results") or []:
			if not isinstance(item, dict) or not item.get("user_id"):
				continue
			hits.append(
				SemanticHit(
					user_id=str(item["user_id"]),
					score=_parse_score(item.get("score")),
					match_reasons=_parse_reasons(item.get("match_reasons")),
				)
			)
		try:
			search_time_ms = int(body.get("search_time_ms") or 0)
			total_candidates = int(body.get("total_candidates") or 0)
		except (TypeError, ValueError, OverflowError) as exc:
			raise SearchUnavailableError("search_malformed_body", reason="malformed") from exc
		return SemanticSearchResponse(
			hits=hits,
			query_processed=str(body.get("query_processed") or query),
			search_time_ms=search_time_ms,
			total_candidates=total_candidates,
		)

	async def aclose(self) -> None:
		if self._owns_http:
			await self._http.aclose()


__all__ = ["HttpSearchClient", "SemanticHit", "SemanticSearchResponse"]
