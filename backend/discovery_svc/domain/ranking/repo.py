"""Storage backends for ranking weight rows."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime
from typing import Mapping, Protocol

from discovery_svc.domain.ranking.models import RankingConfigEntry
from discovery_svc.infra.postgres import connection


class RankingConfigRepository(Protocol):
	async def load(self) -> list[RankingConfigEntry]:
		...

	async def write(self, values: Mapping[str, float], *, descriptions: Mapping[str, str], now: datetime) -> None:
		...

	async def insert_missing(self, values: Mapping[str, float], *, descriptions: Mapping[str, str], now: datetime) -> int:
		...


class PostgresRankingConfigRepository:
	async def load(self) -> list[RankingConfigEntry]:
		async with connection() as conn:
			rows = await conn.fetch(
				"SELECT config_key, config_value, description, updated_at FROM ranking_config ORDER BY config_key"
			)
		return [
			RankingConfigEntry(
				config_key=row["config_key"],
				config_value=float(row["config_value"]),
				description=row["description"] or "",
				updated_at=row["updated_at"],
			)
			for row in rows
		]

	async def write(self, values: Mapping[str, float], *, descriptions: Mapping[str, str], now: datetime) -> None:
		async with connection() as conn:
			async with conn.transaction():
				await conn.executemany(
					"""
					INSERT INTO ranking_config (config_key, config_value, description, created_at, updated_at)
					VALUES ($1, $2, $3, $4, $4)
					ON CONFLICT (config_key) DO UPDATE SET
						config_value = EXCLUDED.config_value,
						updated_at = EXCLUDED.updated_at
					""",
					[(key, float(value), descriptions.get(key, ""), now) for key, value in values.items()],
				)

	async def insert_missing(self, values: Mapping[str, float], *, descriptions: Mapping[str, str], now: datetime) -> int:
		inserted = 0
		async with connection() as conn:
			async with conn.transaction():
				for key, value in values.items():
					row = await conn.fetchrow(
						"""
						INSERT INTO ranking_config (config_key, config_value, description, created_at, updated_at)
						VALUES ($1, $2, $3, $4, $4)
						ON CONFLICT (config_key) DO NOTHING
						RETURNING config_key
						""",
						key,
						float(value),
						descriptions.get(key, ""),
						now,
					)
					if row is not None:
						inserted += 1
		return inserted


class MemoryRankingConfigRepository:
	"""In-memory weight rows; `loads` counts storage reads for cache tests."""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.rows: dict[str, RankingConfigEntry] = {}
		self.loads = 0

	async def load(self) -> list[RankingConfigEntry]:
		async with self._lock:
			self.loads += 1
			return [replace(self.rows[key]) for key in sorted(self.rows)]

	async def write(self, values: Mapping[str, float], *, descriptions: Mapping[str, str], now: datetime) -> None:
		async with self._lock:
			for key, value in values.items():
				current = self.rows.get(key)
				description = current.description if current else descriptions.get(key, "")
				self.rows[key] = RankingConfigEntry(key, float(value), description, now)

	async def insert_missing(self, values: Mapping[str, float], *, descriptions: Mapping[str, str], now: datetime) -> int:
		inserted = 0
		async with self._lock:
			for key, value in values.items():
				if key in self.rows:
					continue
				self.rows[key] = RankingConfigEntry(key, float(value), descriptions.get(key, ""), now)
				inserted += 1
		return inserted


__all__ = ["RankingConfigRepository", "PostgresRankingConfigRepository", "MemoryRankingConfigRepository"]
