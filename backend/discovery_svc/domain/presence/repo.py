"""Storage backends for presence records."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from discovery_svc.domain.presence.models import PresenceRecord
from discovery_svc.infra.postgres import affected_rows, connection

_COLUMNS = "user_id, is_available, last_available_at, created_at, updated_at"


class PresenceRepository(Protocol):
	async def get(self, user_id: str) -> Optional[PresenceRecord]:
		...

	async def upsert(self, user_id: str, *, is_available: bool, now: datetime) -> PresenceRecord:
		...

	async def list_available(self, *, limit: int, offset: int) -> tuple[list[PresenceRecord], int]:
		...

	async def list_available_ids(self, *, limit: int, exclude: Sequence[str] = ()) -> list[str]:
		...

	async def get_many(self, user_ids: Iterable[str]) -> dict[str, PresenceRecord]:
		...

	async def expire_stale(self, *, cutoff: datetime, now: datetime) -> int:
		...


class PostgresPresenceRepository:
	"""Thin data-access layer around asyncpg for `user_availability`."""

	async def get(self, user_id: str) -> Optional[PresenceRecord]:
		async with connection() as conn:
			row = await conn.fetchrow(
				f"SELECT {_COLUMNS} FROM user_availability WHERE user_id = $1",
				user_id,
			)
		return PresenceRecord.from_row(row) if row else None

	async def upsert(self, user_id: str, *, is_available: bool, now: datetime) -> PresenceRecord:
		# last_available_at only moves forward on an available write; going
		# unavailable keeps the previous value.
		async with connection() as conn:
			row = await conn.fetchrow(
				f"""
				INSERT INTO user_availability (user_id, is_available, last_available_at, created_at, updated_at)
				VALUES ($1, $2::boolean, CASE WHEN $2::boolean THEN $3::timestamptz ELSE NULL END, $3, $3)
				ON CONFLICT (user_id) DO UPDATE SET
					is_available = EXCLUDED.is_available,
					last_available_at = CASE
						WHEN EXCLUDED.is_available THEN EXCLUDED.last_available_at
						ELSE user_availability.last_available_at
					END,
					updated_at = EXCLUDED.updated_at
				RETURNING {_COLUMNS}
				""",
				user_id,
				is_available,
				now,
			)
		return PresenceRecord.from_row(row)

	async def list_available(self, *, limit: int, offset: int) -> tuple[list[PresenceRecord], int]:
		async with connection() as conn:
			async with conn.transaction(isolation="repeatable_read", readonly=True):
				rows = await conn.fetch(
					f"""
					SELECT {_COLUMNS} FROM user_availability
					WHERE is_available
					ORDER BY last_available_at DESC NULLS LAST, user_id ASC
					LIMIT $1 OFFSET $2
					""",
					limit,
					offset,
				)
				total = await conn.fetchval("SELECT COUNT(*) FROM user_availability WHERE is_available")
		return [PresenceRecord.from_row(row) for row in rows], int(total or 0)

	async def list_available_ids(self, *, limit: int, exclude: Sequence[str] = ()) -> list[str]:
		async with connection() as conn:
			rows = await conn.fetch(
				"""
				SELECT user_id FROM user_availability
				WHERE is_available AND NOT (user_id = ANY($2::text[]))
				ORDER BY last_available_at DESC NULLS LAST, user_id ASC
				LIMIT $1
				""",
				limit,
				list(exclude),
			)
		return [str(row["user_id"]) for row in rows]

	async def get_many(self, user_ids: Iterable[str]) -> dict[str, PresenceRecord]:
		ids = list({uid for uid in user_ids})
		if not ids:
			return {}
		async with connection() as conn:
			rows = await conn.fetch(
				f"SELECT {_COLUMNS} FROM user_availability WHERE user_id = ANY($1::text[])",
				ids,
			)
		return {str(row["user_id"]): PresenceRecord.from_row(row) for row in rows}

	async def expire_stale(self, *, cutoff: datetime, now: datetime) -> int:
		async with connection() as conn:
			status = await conn.execute(
				"""
				UPDATE user_availability
				SET is_available = FALSE, updated_at = $2
				WHERE is_available AND (last_available_at IS NULL OR last_available_at < $1)
				""",
				cutoff,
				now,
			)
		return affected_rows(status)


class MemoryPresenceRepository:
	"""In-memory presence store used by tests and local runs without Postgres."""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.records: dict[str, PresenceRecord] = {}

	async def reset(self) -> None:
		async with self._lock:
			self.records.clear()

	async def get(self, user_id: str) -> Optional[PresenceRecord]:
		async with self._lock:
			record = self.records.get(user_id)
			return replace(record) if record else None

	async def upsert(self, user_id: str, *, is_available: bool, now: datetime) -> PresenceRecord:
		async with self._lock:
			record = self.records.get(user_id)
			if record is None:
				record = PresenceRecord(user_id=user_id, created_at=now)
				self.records[user_id] = record
			record.is_available = is_available
			if is_available:
				record.last_available_at = now
			record.updated_at = now
			return replace(record)

	def _available_sorted(self) -> list[PresenceRecord]:
		available = [record for record in self.records.values() if record.is_available]
		# Most recent heartbeat first, never-seen last, user_id breaks ties.
		available.sort(key=lambda r: r.user_id)
		available.sort(
			key=lambda r: (r.last_available_at is None, -(r.last_available_at.timestamp() if r.last_available_at else 0.0)),
		)
		return available

	async def list_available(self, *, limit: int, offset: int) -> tuple[list[PresenceRecord], int]:
		async with self._lock:
			available = self._available_sorted()
			page = available[offset : offset + limit]
			return [replace(record) for record in page], len(available)

	async def list_available_ids(self, *, limit: int, exclude: Sequence[str] = ()) -> list[str]:
		skip = set(exclude)
		async with self._lock:
			ids = [record.user_id for record in self._available_sorted() if record.user_id not in skip]
		return ids[:limit]

	async def get_many(self, user_ids: Iterable[str]) -> dict[str, PresenceRecord]:
		async with self._lock:
			return {uid: replace(self.records[uid]) for uid in set(user_ids) if uid in self.records}

	async def expire_stale(self, *, cutoff: datetime, now: datetime) -> int:
		count = 0
		async with self._lock:
			for record in self.records.values():
				if not record.is_available:
					continue
				if record.last_available_at is None or record.last_available_at < cutoff:
					record.is_available = False
					record.updated_at = now
					count += 1
		return count


__all__ = ["PresenceRepository", "PostgresPresenceRepository", "MemoryPresenceRepository"]
