from datetime import timedelta

import pytest

from discovery_svc.domain.exceptions import NotFoundError, ValidationError
from discovery_svc.domain.presence.repo import MemoryPresenceRepository
from discovery_svc.domain.presence.service import PresenceStore


@pytest.fixture
def repo():
	return MemoryPresenceRepository()


@pytest.fixture
def store(repo, clock):
	return PresenceStore(repo, clock=clock, default_limit=50, max_limit=100)


@pytest.mark.asyncio
async def test_heartbeat_creates_and_refreshes(store, clock):
	first = await store.heartbeat("u1")
	assert first.is_available is True
	assert first.last_available_at == clock.now
	clock.advance(minutes=3)
	second = await store.heartbeat("u1")
	assert second.last_available_at == clock.now
	assert second.created_at == first.created_at


@pytest.mark.asyncio
async def test_get_availability_missing_user(store):
	with pytest.raises(NotFoundError):
		await store.get_availability("nobody")


@pytest.mark.asyncio
async def test_going_unavailable_keeps_last_seen(store, clock):
	seen = clock.now
	await store.set_availability("u1", True)
	clock.advance(minutes=10)
	record = await store.set_availability("u1", False)
	assert record.is_available is False
	assert record.last_available_at == seen


@pytest.mark.asyncio
async def test_first_toggle_off_has_no_last_seen(store):
	record = await store.set_availability("fresh", False)
	assert record.last_available_at is None


@pytest.mark.asyncio
async def test_blank_user_id_rejected(store, repo):
	with pytest.raises(ValidationError):
		await store.heartbeat("  ")
	assert repo.records == {}


@pytest.mark.asyncio
async def test_list_available_orders_by_recency_then_user_id(store, clock):
	await store.heartbeat("b")
	await store.heartbeat("a")
	clock.advance(minutes=1)
	await store.heartbeat("c")
	await store.set_availability("off", False)
	records, total = await store.list_available(0, 0)
	assert total == 3
	assert [r.user_id for r in records] == ["c", "a", "b"]
	page, total = await store.list_available(1, 1)
	assert [r.user_id for r in page] == ["a"]
	assert total == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("limit,offset", [(-1, 0), (10, -5)])
async def test_negative_pagination_rejected(store, limit, offset):
	with pytest.raises(ValidationError):
		await store.list_available(limit, offset)


@pytest.mark.asyncio
async def test_limit_is_clamped(store, repo):
	calls = []
	original = repo.list_available

	async def _spy(*, limit, offset):
		calls.append(limit)
		return await original(limit=limit, offset=offset)

	repo.list_available = _spy
	await store.list_available(500, 0)
	await store.list_available(0, 0)
	assert calls == [100, 50]


@pytest.mark.asyncio
async def test_list_available_ids_excludes_requester(store, clock):
	for uid in ("a", "b", "me"):
		await store.heartbeat(uid)
		clock.advance(seconds=1)
	assert await store.list_available_ids(10, exclude=["me"]) == ["b", "a"]
	assert await store.list_available_ids(1) == ["me"]


@pytest.mark.asyncio
async def test_expire_stale_flips_old_users(store, clock):
	await store.heartbeat("old")
	clock.advance(minutes=45)
	await store.heartbeat("new")
	expired = await store.expire_stale(timedelta(minutes=30))
	assert expired == 1
	old = await store.get_availability("old")
	assert old.is_available is False
	assert old.last_available_at is not None
	assert (await store.get_availability("new")).is_available is True
	assert await store.expire_stale(timedelta(minutes=30)) == 0
