"""Presence store: availability toggles, heartbeats and available-user listings."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable, Sequence

from discovery_svc.domain.exceptions import NotFoundError, ValidationError
from discovery_svc.domain.pagination import normalize_page
from discovery_svc.domain.presence.models import PresenceRecord
from discovery_svc.domain.presence.repo import PresenceRepository
from discovery_svc.infra.soft_delete import now_utc
from discovery_svc.obs import metrics as obs_metrics
from discovery_svc.settings import settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def require_user_id(user_id: str) -> str:
	value = (user_id or "").strip() if isinstance(user_id, str) else ""
	if not value:
		raise ValidationError("user_id is required", field="user_id")
	return value


class PresenceStore:
	"""Owns `PresenceRecord` rows; every write is a single-row upsert."""

	def __init__(
		self,
		repository: PresenceRepository,
		*,
		clock: Clock = now_utc,
		default_limit: int | None = None,
		max_limit: int | None = None,
	) -> None:
		self.repo = repository
		self.clock = clock
		self.default_limit = default_limit or settings.available_users_default_limit
		self.max_limit = max_limit or settings.available_users_max_limit

	async def get_availability(self, user_id: str) -> PresenceRecord:
		record = await self.repo.get(require_user_id(user_id))
		if record is None:
			raise NotFoundError("availability_not_found")
		return record

	async def set_availability(self, user_id: str, is_available: bool) -> PresenceRecord:
		uid = require_user_id(user_id)
		record = await self.repo.upsert(uid, is_available=bool(is_available), now=self.clock())
		obs_metrics.inc_presence_toggle(record.is_available)
		return record

	async def heartbeat(self, user_id: str) -> PresenceRecord:
		uid = require_user_id(user_id)
		record = await self.repo.upsert(uid, is_available=True, now=self.clock())
		obs_metrics.inc_presence_heartbeat()
		return record

	async def list_available(self, limit: int, offset: int) -> tuple[list[PresenceRecord], int]:
		limit, offset = normalize_page(limit, offset, default=self.default_limit, maximum=self.max_limit)
		return await self.repo.list_available(limit=limit, offset=offset)

	async def list_available_ids(self, limit: int, *, exclude: Sequence[str] = ()) -> list[str]:
		if limit < 0:
			raise ValidationError("limit must be non-negative", field="limit")
		if limit == 0:
			return []
		return await self.repo.list_available_ids(limit=limit, exclude=exclude)

	async def get_many(self, user_ids: Iterable[str]) -> dict[str, PresenceRecord]:
		return await self.repo.get_many(user_ids)

	async def expire_stale(self, threshold: timedelta) -> int:
		"""Flip users without a heartbeat inside `threshold` to unavailable."""
		if threshold <= timedelta(0):
			raise ValidationError("threshold must be positive", field="threshold")
		now = self.clock()
		expired = await self.repo.expire_stale(cutoff=now - threshold, now=now)
		if expired:
			logger.info("presence stale cleanup", extra={"expired": expired})
		return expired


__all__ = ["Clock", "PresenceStore", "require_user_id"]
