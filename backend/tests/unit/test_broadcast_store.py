from datetime import timedelta

import pytest

from discovery_svc.domain.broadcasts.models import is_expired
from discovery_svc.domain.broadcasts.repo import MemoryBroadcastRepository
from discovery_svc.domain.broadcasts.service import BroadcastStore
from discovery_svc.domain.exceptions import NotFoundError, ValidationError


@pytest.fixture
def repo():
	return MemoryBroadcastRepository()


@pytest.fixture
def store(repo, clock):
	return BroadcastStore(repo, clock=clock, default_ttl_hours=24)


@pytest.mark.asyncio
async def test_create_defaults_to_24_hours(store, clock):
	broadcast = await store.create("u1", "  studying in the library  ")
	assert broadcast.message == "studying in the library"
	assert broadcast.expires_at == clock.now + timedelta(hours=24)
	assert broadcast.is_active is True


@pytest.mark.asyncio
async def test_ttl_above_maximum_is_rejected(store, repo):
	with pytest.raises(ValidationError) as excinfo:
		await store.create("u1", "hi", ttl_hours=200)
	assert excinfo.value.field == "ttl_hours"
	assert repo.rows == {}


@pytest.mark.asyncio
@pytest.mark.parametrize("message", ["", "   ", "x" * 201])
async def test_message_bounds(store, message):
	with pytest.raises(ValidationError):
		await store.create("u1", message)


@pytest.mark.asyncio
async def test_message_at_limit_is_accepted(store):
	broadcast = await store.create("u1", "x" * 200, ttl_hours=168)
	assert len(broadcast.message) == 200


@pytest.mark.asyncio
async def test_second_create_replaces_first(store, repo):
	first = await store.create("u1", "first")
	second = await store.create("u1", "second", ttl_hours=2)
	assert len(repo.rows) == 1
	active = await store.get_active("u1")
	assert active.message == "second"
	assert active.id == second.id != first.id


@pytest.mark.asyncio
async def test_update_requires_live_broadcast(store):
	with pytest.raises(NotFoundError):
		await store.update("u1", "nothing here")


@pytest.mark.asyncio
async def test_update_keeps_expiry_unless_ttl_given(store, clock):
	created = await store.create("u1", "hello", ttl_hours=5)
	clock.advance(hours=1)
	updated = await store.update("u1", "hello again")
	assert updated.expires_at == created.expires_at
	assert updated.id == created.id
	extended = await store.update("u1", "later", ttl_hours=10)
	assert extended.expires_at == clock.now + timedelta(hours=10)


@pytest.mark.asyncio
async def test_delete_is_idempotent(store, repo):
	await store.create("u1", "bye")
	await store.delete("u1")
	await store.delete("u1")
	await store.delete("never-posted")
	with pytest.raises(NotFoundError):
		await store.get_active("u1")
	assert repo.rows["u1"].deleted_at is not None


@pytest.mark.asyncio
async def test_expired_broadcast_hidden_before_sweep(store, clock):
	await store.create("u1", "short", ttl_hours=1)
	clock.advance(hours=2)
	with pytest.raises(NotFoundError):
		await store.get_active("u1")
	assert await store.get_active_for_users(["u1"]) == {}


@pytest.mark.asyncio
async def test_sweep_expired_twice(store, clock):
	await store.create("u1", "short", ttl_hours=1)
	await store.create("u2", "long", ttl_hours=48)
	clock.advance(hours=2)
	assert await store.sweep_expired() == 1
	assert await store.sweep_expired() == 0
	assert set(await store.get_active_for_users(["u1", "u2", "u3"])) == {"u2"}


@pytest.mark.asyncio
async def test_purge_old_removes_long_inactive_rows(store, repo, clock):
	await store.create("u1", "gone")
	await store.delete("u1")
	await store.create("u2", "alive")
	clock.advance(days=31)
	assert await store.purge_old(timedelta(days=30)) == 1
	assert "u1" not in repo.rows
	assert "u2" in repo.rows


def test_is_expired_predicate(clock):
	from discovery_svc.domain.broadcasts.models import Broadcast

	broadcast = Broadcast(id="b", user_id="u", message="m", expires_at=clock.now)
	assert is_expired(broadcast, clock.now) is False
	assert is_expired(broadcast, clock.now + timedelta(seconds=1)) is True
