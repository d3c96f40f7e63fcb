"""Profile signals (interest bitsets and coordinates) consumed by ranking."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Iterable, Optional, Protocol

from discovery_svc.domain.ranking.models import UserProfileSignals, bitset_from_bytes, bitset_to_bytes
from discovery_svc.infra.postgres import connection


class ProfileProvider(Protocol):
	async def get_signals(self, user_ids: Iterable[str]) -> dict[str, UserProfileSignals]:
		...


class PostgresProfileProvider:
	"""Reads `user_profiles`; users without a row simply have no signals."""

	async def get_signals(self, user_ids: Iterable[str]) -> dict[str, UserProfileSignals]:
		ids = list({uid for uid in user_ids if uid})
		if not ids:
			return {}
		async with connection() as conn:
			rows = await conn.fetch(
				"SELECT user_id, interest_bitset, lat, lon FROM user_profiles WHERE user_id = ANY($1::text[])",
				ids,
			)
		return {
			str(row["user_id"]): UserProfileSignals(
				user_id=str(row["user_id"]),
				interests=bitset_from_bytes(row["interest_bitset"]),
				latitude=row["lat"],
				longitude=row["lon"],
			)
			for row in rows
		}

	async def upsert(self, signals: UserProfileSignals) -> None:
		async with connection() as conn:
			await conn.execute(
				"""
				INSERT INTO user_profiles (user_id, interest_bitset, lat, lon)
				VALUES ($1, $2, $3, $4)
				ON CONFLICT (user_id) DO UPDATE SET
					interest_bitset = EXCLUDED.interest_bitset,
					lat = EXCLUDED.lat,
					lon = EXCLUDED.lon
				""",
				signals.user_id,
				bitset_to_bytes(signals.interests) or None,
				signals.latitude,
				signals.longitude,
			)


class MemoryProfileProvider:
	def __init__(self, profiles: Optional[Iterable[UserProfileSignals]] = None) -> None:
		self._lock = asyncio.Lock()
		self.profiles: dict[str, UserProfileSignals] = {p.user_id: p for p in profiles or ()}

	async def upsert(self, signals: UserProfileSignals) -> None:
		async with self._lock:
			self.profiles[signals.user_id] = replace(signals)

	async def get_signals(self, user_ids: Iterable[str]) -> dict[str, UserProfileSignals]:
		async with self._lock:
			return {uid: replace(self.profiles[uid]) for uid in set(user_ids) if uid in self.profiles}


__all__ = ["ProfileProvider", "PostgresProfileProvider", "MemoryProfileProvider"]
