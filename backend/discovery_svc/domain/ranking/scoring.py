"""Ranking helpers for Discovery search.

Composite score (v1):

	score = w_sem * semantic + w_int * interest + w_geo * geo + w_rec * recency

Every sub-score is clamped to [0, 1]. The weighted sum is returned as-is; no
renormalisation happens when the weights drift away from 1.0.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Iterable, Optional, Sequence

from discovery_svc.domain.ranking.models import GeoPoint, RankingInput, RankingResult, RankingWeights
from discovery_svc.infra.soft_delete import now_utc

EARTH_RADIUS_KM = 6371.0
MAX_RADIUS_KM = 16.09  # 10 miles
RECENCY_TIME_CONSTANT_MINUTES = 60.0
RECENCY_FLOOR = 0.01


def clamp(value: float, *, lower: float = 0.0, upper: float = 1.0) -> float:
	if math.isnan(value):
		return lower
	return max(lower, min(upper, value))


def jaccard(a: int, b: int) -> float:
	"""|A ∩ B| / |A ∪ B| over integer bitsets; 0 when either side is empty."""
	if a <= 0 or b <= 0:
		return 0.0
	union = (a | b).bit_count()
	if union == 0:
		return 0.0
	return (a & b).bit_count() / union


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
	lat1 = math.radians(a.latitude)
	lat2 = math.radians(b.latitude)
	d_lat = lat2 - lat1
	d_lon = math.radians(b.longitude - a.longitude)
	h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
	return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(max(0.0, 1 - h)))


def proximity_from_distance(distance_km: float) -> float:
	if distance_km >= MAX_RADIUS_KM:
		return 0.0
	return clamp(1.0 - distance_km / MAX_RADIUS_KM)


def geo_proximity(candidate: Optional[GeoPoint], requester: Optional[GeoPoint]) -> float:
	if candidate is None or requester is None:
		return 0.0
	return proximity_from_distance(haversine_km(candidate, requester))


def minutes_since(ts: datetime, now: datetime) -> float:
	# Clock skew can put a heartbeat slightly in the future; treat that as now.
	return max(0.0, (now - ts).total_seconds() / 60.0)


def recency_from_minutes(minutes: float) -> float:
	return clamp(max(RECENCY_FLOOR, math.exp(-max(0.0, minutes) / RECENCY_TIME_CONSTANT_MINUTES)))


def recent_activity(last_available_at: Optional[datetime], now: Optional[datetime] = None) -> float:
	if last_available_at is None:
		return 0.0
	return recency_from_minutes(minutes_since(last_available_at, now or now_utc()))


def weighted_total(weights: RankingWeights, semantic: float, interest: float, geo: float, recency: float) -> float:
	return (
		weights.semantic_similarity * semantic
		+ weights.interest_overlap * interest
		+ weights.geo_proximity * geo
		+ weights.recent_activity * recency
	)


def score(
	candidate: RankingInput,
	requester_interests: int,
	requester_location: Optional[GeoPoint],
	weights: RankingWeights,
	now: Optional[datetime] = None,
) -> RankingResult:
	"""Compute the composite score and its breakdown for one candidate."""

	now = now or now_utc()
	semantic = clamp(candidate.semantic_similarity or 0.0)
	interest = clamp(jaccard(candidate.interests, requester_interests))
	geo = geo_proximity(candidate.location(), requester_location)
	minutes: Optional[float] = None
	recency = 0.0
	if candidate.last_available_at is not None:
		minutes = minutes_since(candidate.last_available_at, now)
		recency = recency_from_minutes(minutes)
	return RankingResult(
		user_id=candidate.user_id,
		total_score=weighted_total(weights, semantic, interest, geo, recency),
		semantic_similarity=semantic,
		interest_overlap=interest,
		geo_proximity=geo,
		recent_activity=recency,
		last_heartbeat_minutes=int(minutes) if minutes is not None else None,
	)


def score_many(
	candidates: Iterable[RankingInput],
	requester_interests: int,
	requester_location: Optional[GeoPoint],
	weights: RankingWeights,
	now: datetime,
) -> list[RankingResult]:
	return [score(candidate, requester_interests, requester_location, weights, now) for candidate in candidates]


def sort_results(results: list[RankingResult]) -> list[RankingResult]:
	"""Score descending, user_id ascending on ties."""
	results.sort(key=lambda r: r.user_id)
	results.sort(key=lambda r: r.total_score, reverse=True)
	return results


def batch_score(
	candidates: Sequence[RankingInput],
	requester_interests: int,
	requester_location: Optional[GeoPoint],
	weights: RankingWeights,
	now: Optional[datetime] = None,
) -> list[RankingResult]:
	"""Score a batch against one weights snapshot and return it ranked."""
	return sort_results(score_many(candidates, requester_interests, requester_location, weights, now or now_utc()))


def describe_algorithm(weights: RankingWeights) -> dict[str, object]:
	return {
		"version": "v1",
		"formula": (
			f"score = {weights.semantic_similarity:.2f}·semantic_similarity"
			f" + {weights.interest_overlap:.2f}·interest_overlap"
			f" + {weights.geo_proximity:.2f}·geo_proximity"
			f" + {weights.recent_activity:.2f}·recent_activity"
		),
		"components": {
			"semantic_similarity": "Cosine similarity supplied by the search service (0-1)",
			"interest_overlap": "Jaccard coefficient of interest bitsets (0-1)",
			"geo_proximity": f"Linear decay within {MAX_RADIUS_KM} km (10 mi); 0 beyond",
			"recent_activity": "exp(-minutes/60) since last heartbeat, floored at 0.01",
		},
		"weights": weights.to_dict(),
		"weights_sum": round(weights.total(), 6),
	}
