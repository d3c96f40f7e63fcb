"""Storage backends for broadcasts.

Both backends key rows by `user_id`, so a create for a user that already has a
row overwrites it in place and the one-active-broadcast-per-user invariant holds
without application-level locking.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Protocol
from uuid import uuid4

from discovery_svc.domain.broadcasts.models import Broadcast, is_expired
from discovery_svc.infra.postgres import affected_rows, connection
from discovery_svc.infra.soft_delete import soft_delete

_TABLE = "broadcasts"
_COLUMNS = "id, user_id, message, is_active, expires_at, created_at, updated_at, deleted_at"
_LIVE = "is_active AND deleted_at IS NULL"


class BroadcastRepository(Protocol):
	async def upsert(self, user_id: str, *, message: str, expires_at: datetime, now: datetime) -> Broadcast:
		...

	async def get_live(self, user_id: str, *, now: datetime) -> Optional[Broadcast]:
		...

	async def update_live(
		self,
		user_id: str,
		*,
		message: str,
		expires_at: Optional[datetime],
		now: datetime,
	) -> Optional[Broadcast]:
		...

	async def deactivate(self, user_id: str, *, now: datetime) -> int:
		...

	async def get_live_for_users(self, user_ids: Iterable[str], *, now: datetime) -> dict[str, Broadcast]:
		...

	async def deactivate_expired(self, *, now: datetime) -> int:
		...

	async def purge_inactive(self, *, cutoff: datetime, batch: int = 1000) -> int:
		...


class PostgresBroadcastRepository:
	"""Thin data-access layer around asyncpg for `broadcasts`."""

	async def upsert(self, user_id: str, *, message: str, expires_at: datetime, now: datetime) -> Broadcast:
		async with connection() as conn:
			row = await conn.fetchrow(
				f"""
				INSERT INTO broadcasts (id, user_id, message, is_active, expires_at, created_at, updated_at, deleted_at)
				VALUES ($1, $2, $3, TRUE, $4, $5, $5, NULL)
				ON CONFLICT (user_id) DO UPDATE SET
					id = EXCLUDED.id,
					message = EXCLUDED.message,
					is_active = TRUE,
					expires_at = EXCLUDED.expires_at,
					created_at = EXCLUDED.created_at,
					updated_at = EXCLUDED.updated_at,
					deleted_at = NULL
				RETURNING {_COLUMNS}
				""",
				uuid4(),
				user_id,
				message,
				expires_at,
				now,
			)
		return Broadcast.from_row(row)

	async def get_live(self, user_id: str, *, now: datetime) -> Optional[Broadcast]:
		async with connection() as conn:
			row = await conn.fetchrow(
				f"SELECT {_COLUMNS} FROM broadcasts WHERE user_id = $1 AND {_LIVE} AND expires_at > $2",
				user_id,
				now,
			)
		return Broadcast.from_row(row) if row else None

	async def update_live(
		self,
		user_id: str,
		*,
		message: str,
		expires_at: Optional[datetime],
		now: datetime,
	) -> Optional[Broadcast]:
		async with connection() as conn:
			row = await conn.fetchrow(
				f"""
				UPDATE broadcasts
				SET message = $2, expires_at = COALESCE($3::timestamptz, expires_at), updated_at = $4
				WHERE user_id = $1 AND {_LIVE} AND expires_at > $4
				RETURNING {_COLUMNS}
				""",
				user_id,
				message,
				expires_at,
				now,
			)
		return Broadcast.from_row(row) if row else None

	async def deactivate(self, user_id: str, *, now: datetime) -> int:
		async with connection() as conn:
			status = await soft_delete(conn, _TABLE, "user_id", user_id, now=now)
		return affected_rows(status)

	async def get_live_for_users(self, user_ids: Iterable[str], *, now: datetime) -> dict[str, Broadcast]:
		ids = list({uid for uid in user_ids})
		if not ids:
			return {}
		async with connection() as conn:
			rows = await conn.fetch(
				f"""
				SELECT {_COLUMNS} FROM broadcasts
				WHERE user_id = ANY($1::text[]) AND {_LIVE} AND expires_at > $2
				""",
				ids,
				now,
			)
		return {str(row["user_id"]): Broadcast.from_row(row) for row in rows}

	async def deactivate_expired(self, *, now: datetime) -> int:
		async with connection() as conn:
			status = await conn.execute(
				"UPDATE broadcasts SET is_active = FALSE, updated_at = $1 WHERE is_active AND expires_at < $1",
				now,
			)
		return affected_rows(status)

	async def purge_inactive(self, *, cutoff: datetime, batch: int = 1000) -> int:
		total = 0
		async with connection() as conn:
			while True:
				rows = await conn.fetch(
					"""
					WITH doomed AS (
						SELECT id FROM broadcasts
						WHERE NOT is_active AND updated_at < $1
						LIMIT $2
					)
					DELETE FROM broadcasts b USING doomed d WHERE b.id = d.id
					RETURNING 1
					""",
					cutoff,
					batch,
				)
				total += len(rows)
				if len(rows) < batch:
					break
		return total


class MemoryBroadcastRepository:
	"""In-memory broadcast store used by tests and local runs without Postgres."""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.rows: dict[str, Broadcast] = {}

	async def reset(self) -> None:
		async with self._lock:
			self.rows.clear()

	async def upsert(self, user_id: str, *, message: str, expires_at: datetime, now: datetime) -> Broadcast:
		async with self._lock:
			row = Broadcast(
				id=str(uuid4()),
				user_id=user_id,
				message=message,
				expires_at=expires_at,
				is_active=True,
				created_at=now,
				updated_at=now,
			)
			self.rows[user_id] = row
			return replace(row)

	async def get_live(self, user_id: str, *, now: datetime) -> Optional[Broadcast]:
		async with self._lock:
			row = self.rows.get(user_id)
			return replace(row) if row and row.is_live(now) else None

	async def update_live(
		self,
		user_id: str,
		*,
		message: str,
		expires_at: Optional[datetime],
		now: datetime,
	) -> Optional[Broadcast]:
		async with self._lock:
			row = self.rows.get(user_id)
			if row is None or not row.is_live(now):
				return None
			row.message = message
			if expires_at is not None:
				row.expires_at = expires_at
			row.updated_at = now
			return replace(row)

	async def deactivate(self, user_id: str, *, now: datetime) -> int:
		async with self._lock:
			row = self.rows.get(user_id)
			if row is None or row.deleted_at is not None:
				return 0
			row.is_active = False
			row.deleted_at = now
			row.updated_at = now
			return 1

	async def get_live_for_users(self, user_ids: Iterable[str], *, now: datetime) -> dict[str, Broadcast]:
		async with self._lock:
			found: dict[str, Broadcast] = {}
			for uid in set(user_ids):
				row = self.rows.get(uid)
				if row and row.is_live(now):
					found[uid] = replace(row)
			return found

	async def deactivate_expired(self, *, now: datetime) -> int:
		count = 0
		async with self._lock:
			for row in self.rows.values():
				if row.is_active and is_expired(row, now):
					row.is_active = False
					row.updated_at = now
					count += 1
		return count

	async def purge_inactive(self, *, cutoff: datetime, batch: int = 1000) -> int:
		async with self._lock:
			doomed = [
				uid
				for uid, row in self.rows.items()
				if not row.is_active and row.updated_at is not None and row.updated_at < cutoff
			]
			for uid in doomed:
				del self.rows[uid]
		return len(doomed)


__all__ = ["BroadcastRepository", "PostgresBroadcastRepository", "MemoryBroadcastRepository"]
