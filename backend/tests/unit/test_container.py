import pytest

from discovery_svc.container import build_container
from discovery_svc.domain.presence.repo import MemoryPresenceRepository
from discovery_svc.domain.search.adapter import DisabledSearchAdapter
from discovery_svc.settings import Settings


@pytest.mark.asyncio
async def test_storage_backend_setting_is_normalised():
	config = Settings(storage_backend="  Memory ", search_enabled=False)
	assert config.storage_kind() == "memory"

	built = build_container(config)
	try:
		assert built.storage == "memory"
		assert isinstance(built.presence.repo, MemoryPresenceRepository)
		assert isinstance(built.search, DisabledSearchAdapter)
	finally:
		await built.aclose()


def test_explicit_storage_overrides_setting():
	built = build_container(Settings(storage_backend="postgres"), storage="memory")
	assert built.storage == "memory"
	built.engine.shutdown()


def test_unknown_storage_backend_is_rejected():
	with pytest.raises(ValueError):
		build_container(Settings(storage_backend="sqlite"))
