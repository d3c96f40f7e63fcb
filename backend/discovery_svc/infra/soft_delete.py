from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def now_utc() -> datetime:
	return datetime.now(timezone.utc)


async def soft_delete(conn: Any, table: str, key_col: str, key: Any, *, now: datetime | None = None) -> str:
	"""Stamp deleted_at with `now` (default: current UTC time) and deactivate the row if it is still live.

	`table` and `key_col` must be trusted names (module constants); the key and
	timestamp are bound as parameters.
	"""
	q = (
		f"UPDATE {table} SET deleted_at = $2, is_active = FALSE, updated_at = $2 "
		f"WHERE {key_col} = $1 AND deleted_at IS NULL"
	)
	return await conn.execute(q, key, now or now_utc())
