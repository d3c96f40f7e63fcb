import pytest

from discovery_svc.domain.exceptions import ValidationError
from discovery_svc.domain.ranking.config import RankingConfigStore, validate_weights
from discovery_svc.domain.ranking.models import DEFAULT_WEIGHTS, RankingWeights
from discovery_svc.domain.ranking.repo import MemoryRankingConfigRepository


@pytest.fixture
def repo():
	return MemoryRankingConfigRepository()


@pytest.fixture
def store(repo, clock):
	return RankingConfigStore(repo, clock=clock, cache_ttl_seconds=60)


@pytest.mark.asyncio
async def test_missing_rows_fall_back_to_defaults(store):
	assert await store.get_weights() == DEFAULT_WEIGHTS


@pytest.mark.asyncio
async def test_seed_defaults_is_idempotent(store, repo):
	assert await store.seed_defaults() == 4
	assert await store.seed_defaults() == 0
	keys = [entry.config_key for entry in await store.list_configs()]
	assert keys == sorted(
		[
			"geo_proximity_weight",
			"interest_overlap_weight",
			"recent_activity_weight",
			"semantic_similarity_weight",
		]
	)
	assert all(entry.description for entry in await store.list_configs())


@pytest.mark.asyncio
async def test_weights_are_cached_until_ttl(store, repo, clock):
	await store.get_weights()
	await store.get_weights()
	assert repo.loads == 1
	clock.advance(seconds=61)
	await store.get_weights()
	assert repo.loads == 2


@pytest.mark.asyncio
async def test_partial_update_merges_and_refreshes_cache(store, repo):
	await store.seed_defaults()
	await store.get_weights()
	updated = await store.update_weights({"semantic_similarity": 0.5, "geo_proximity": 0.2})
	assert updated == RankingWeights(0.5, 0.2, 0.2, 0.1)
	loads = repo.loads
	assert await store.get_weights() == updated
	assert repo.loads == loads


@pytest.mark.asyncio
async def test_update_out_of_range_sum_still_succeeds(store):
	updated = await store.update_weights({"semantic_similarity": 1.0})
	assert updated.semantic_similarity == 1.0
	result = store.validate_weights(updated)
	assert result.valid is False
	assert result.sum == pytest.approx(1.4)


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"semantic_similarity": None}, {"semantic_similarity": 1.5}, {"geo_proximity": -0.1}, {"bogus": 0.1}])
async def test_invalid_updates_are_rejected(store, repo, payload):
	with pytest.raises(ValidationError):
		await store.update_weights(payload)
	assert repo.rows == {}


@pytest.mark.asyncio
async def test_reset_restores_defaults(store):
	await store.update_weights({"recent_activity": 0.9})
	assert await store.reset_to_defaults() == DEFAULT_WEIGHTS
	assert await store.get_weights() == DEFAULT_WEIGHTS


@pytest.mark.asyncio
async def test_invalidate_forces_reload(store, repo):
	await store.get_weights()
	store.invalidate()
	await store.get_weights()
	assert repo.loads == 2


def test_validate_weights_range():
	assert validate_weights(DEFAULT_WEIGHTS).valid is True
	assert validate_weights(RankingWeights(0.6, 0.2, 0.1, 0.14)).valid is True
	low = validate_weights(RankingWeights(0.5, 0.2, 0.1, 0.1))
	assert low.valid is False
	assert low.sum == pytest.approx(0.9)
	assert "0.95" in low.message
