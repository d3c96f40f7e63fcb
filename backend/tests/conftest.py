import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from discovery_svc.container import build_container
from discovery_svc.domain.search.adapter import DisabledSearchAdapter
from discovery_svc.main import create_app
from discovery_svc.settings import settings


class FixedClock:
	"""Manually advanced clock so time-dependent code never sleeps."""

	def __init__(self, start: datetime) -> None:
		self.now = start

	def __call__(self) -> datetime:
		return self.now

	def advance(self, **kwargs) -> datetime:
		self.now = self.now + timedelta(**kwargs)
		return self.now


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Keep every test on in-memory storage with search disabled."""
	original = (settings.storage_backend, settings.search_enabled)
	settings.storage_backend = "memory"
	settings.search_enabled = False
	try:
		yield
	finally:
		settings.storage_backend, settings.search_enabled = original


@pytest.fixture
def clock() -> FixedClock:
	return FixedClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def search_adapter():
	return DisabledSearchAdapter()


@pytest_asyncio.fixture
async def container(clock, search_adapter):
	built = build_container(settings, search=search_adapter, clock=clock)
	try:
		yield built
	finally:
		await built.aclose()


@pytest.fixture
def orchestrator(container):
	return container.orchestrator


@pytest.fixture
def api_app(container):
	return create_app(container, start_jobs=False)


@pytest_asyncio.fixture
async def api_client(api_app):
	transport = ASGITransport(app=api_app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
