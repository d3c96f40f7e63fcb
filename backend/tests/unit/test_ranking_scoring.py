import math
from datetime import datetime, timedelta, timezone

import pytest

from discovery_svc.domain.ranking import scoring
from discovery_svc.domain.ranking.models import (
	DEFAULT_WEIGHTS,
	GeoPoint,
	RankingInput,
	RankingWeights,
	bitset_from_bytes,
	bitset_from_indices,
	bitset_to_bytes,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
SF = GeoPoint(37.7749, -122.4194)


def test_jaccard_basic_properties():
	a = bitset_from_indices([1, 2, 3, 10])
	b = bitset_from_indices([2, 3, 4])
	assert scoring.jaccard(a, b) == pytest.approx(2 / 5)
	assert scoring.jaccard(a, b) == scoring.jaccard(b, a)
	assert scoring.jaccard(a, a) == 1.0
	assert scoring.jaccard(0, 0) == 0.0
	assert scoring.jaccard(a, 0) == 0.0
	assert scoring.jaccard(bitset_from_indices([0]), bitset_from_indices([1])) == 0.0


def test_bitset_bytes_are_little_endian():
	# byte 0 bit 0 and byte 1 bit 1 -> interests 0 and 9
	assert bitset_from_bytes(b"\x01\x02") == bitset_from_indices([0, 9])
	assert bitset_from_bytes(None) == 0
	assert bitset_from_bytes(bitset_to_bytes(bitset_from_indices([3, 200]))) == bitset_from_indices([3, 200])


def test_bitset_rejects_negative_index():
	with pytest.raises(ValueError):
		bitset_from_indices([-1])


def test_geo_proximity_bounds():
	assert scoring.geo_proximity(SF, SF) == 1.0
	assert scoring.geo_proximity(None, SF) == 0.0
	assert scoring.geo_proximity(SF, None) == 0.0
	# Oakland is roughly 13 km away
	oakland = GeoPoint(37.8044, -122.2712)
	distance = scoring.haversine_km(SF, oakland)
	assert 10 < distance < 16.09
	assert scoring.geo_proximity(SF, oakland) == pytest.approx(1 - distance / 16.09)
	# San Jose is well outside the 10 mile radius
	assert scoring.geo_proximity(SF, GeoPoint(37.3382, -121.8863)) == 0.0


def test_proximity_is_exactly_zero_at_radius():
	assert scoring.proximity_from_distance(16.09) == 0.0
	assert scoring.proximity_from_distance(100.0) == 0.0
	assert scoring.proximity_from_distance(0.0) == 1.0


def test_recent_activity_decay_and_floor():
	assert scoring.recent_activity(None, NOW) == 0.0
	assert scoring.recent_activity(NOW, NOW) == 1.0
	values = [scoring.recency_from_minutes(m) for m in (0, 1, 10, 60, 120, 240)]
	assert values == sorted(values, reverse=True)
	assert len(set(values)) == len(values)
	assert scoring.recency_from_minutes(60) == pytest.approx(math.exp(-1))
	assert scoring.recency_from_minutes(10_000) == 0.01
	for minutes in (0, 5, 500, 50_000):
		assert 0.01 <= scoring.recency_from_minutes(minutes) <= 1.0


def test_future_heartbeat_counts_as_now():
	assert scoring.recent_activity(NOW + timedelta(minutes=5), NOW) == 1.0


def test_composite_is_raw_weighted_sum():
	total = scoring.weighted_total(DEFAULT_WEIGHTS, 0.85, 0.5, 0.0, 0.5)
	assert total == pytest.approx(0.66, abs=1e-9)


def test_weights_are_not_renormalised():
	heavy = RankingWeights(1.0, 1.0, 1.0, 1.0)
	result = scoring.score(
		RankingInput(user_id="u1", semantic_similarity=1.0, interests=1, latitude=SF.latitude, longitude=SF.longitude, last_available_at=NOW),
		1,
		SF,
		heavy,
		NOW,
	)
	assert result.total_score == pytest.approx(4.0)


def test_san_francisco_scenario():
	interests = bitset_from_indices([1, 4, 7])
	candidate = RankingInput(
		user_id="cand",
		semantic_similarity=0.85,
		interests=interests,
		latitude=SF.latitude,
		longitude=SF.longitude,
		last_available_at=NOW - timedelta(minutes=1),
	)
	result = scoring.score(candidate, interests, SF, DEFAULT_WEIGHTS, NOW)
	assert result.interest_overlap == 1.0
	assert result.geo_proximity == 1.0
	assert result.recent_activity == pytest.approx(math.exp(-1 / 60))
	assert result.total_score == pytest.approx(0.908, abs=1e-3)
	assert result.last_heartbeat_minutes == 1


def test_sub_scores_are_clamped():
	candidate = RankingInput(user_id="u", semantic_similarity=1.7)
	result = scoring.score(candidate, 0, None, DEFAULT_WEIGHTS, NOW)
	assert result.semantic_similarity == 1.0
	assert result.recent_activity == 0.0
	assert result.last_heartbeat_minutes is None
	negative = scoring.score(RankingInput(user_id="n", semantic_similarity=-0.3), 0, None, DEFAULT_WEIGHTS, NOW)
	assert negative.semantic_similarity == 0.0


def test_batch_score_orders_by_score_then_user_id():
	inputs = [
		RankingInput(user_id="charlie", semantic_similarity=0.5),
		RankingInput(user_id="alpha", semantic_similarity=0.5),
		RankingInput(user_id="bravo", semantic_similarity=0.9),
	]
	ranked = scoring.batch_score(inputs, 0, None, DEFAULT_WEIGHTS, NOW)
	assert [r.user_id for r in ranked] == ["bravo", "alpha", "charlie"]


def test_describe_algorithm_reports_weights():
	info = scoring.describe_algorithm(DEFAULT_WEIGHTS)
	assert info["weights"] == DEFAULT_WEIGHTS.to_dict()
	assert info["weights_sum"] == pytest.approx(1.0)
	assert "0.60" in info["formula"]
	assert set(info["components"]) == {"semantic_similarity", "interest_overlap", "geo_proximity", "recent_activity"}
