"""AsyncPG pool management for the discovery service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg

from discovery_svc.domain.exceptions import StorageError
from discovery_svc.settings import settings

_pool: Optional[asyncpg.pool.Pool] = None


async def init_pool() -> asyncpg.pool.Pool:
	global _pool
	if _pool is None:
		_pool = await asyncpg.create_pool(
			dsn=settings.postgres_url,
			min_size=settings.postgres_min_pool_size,
			max_size=settings.postgres_max_pool_size,
			ssl="require" if settings.postgres_ssl else "disable",
		)
	return _pool


def set_pool(pool: Optional[asyncpg.pool.Pool]) -> None:
	global _pool
	_pool = pool


async def get_pool() -> asyncpg.pool.Pool:
	if _pool is None:
		await init_pool()
	assert _pool is not None
	return _pool


async def close_pool() -> None:
	global _pool
	if _pool is not None:
		await _pool.close()
		_pool = None


@asynccontextmanager
async def connection() -> AsyncIterator[asyncpg.Connection]:
	"""Acquire a pooled connection, surfacing driver failures as StorageError."""
	try:
		pool = await get_pool()
		async with pool.acquire() as conn:
			yield conn
	except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, TimeoutError) as exc:
		raise StorageError(f"storage_error: {exc.__class__.__name__}") from exc


def affected_rows(status: str | None) -> int:
	"""Parse the row count out of an asyncpg command tag such as 'UPDATE 3'."""
	if not status:
		return 0
	try:
		return int(status.split()[-1])
	except ValueError:
		return 0
