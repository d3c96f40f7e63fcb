"""Broadcast store: validation, lifecycle and sweeps for user broadcasts."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable, Optional

from discovery_svc.domain.broadcasts.models import (
	DEFAULT_RETENTION,
	MAX_MESSAGE_LENGTH,
	MAX_TTL_HOURS,
	MIN_TTL_HOURS,
	Broadcast,
)
from discovery_svc.domain.broadcasts.repo import BroadcastRepository
from discovery_svc.domain.exceptions import NotFoundError, ValidationError
from discovery_svc.domain.presence.service import Clock, require_user_id
from discovery_svc.infra.soft_delete import now_utc
from discovery_svc.obs import metrics as obs_metrics
from discovery_svc.settings import settings

logger = logging.getLogger(__name__)


def validate_message(message: str) -> str:
	if not isinstance(message, str):
		raise ValidationError("message is required", field="message")
	text = message.strip()
	if not text:
		raise ValidationError("message must not be empty", field="message")
	if len(text) > MAX_MESSAGE_LENGTH:
		raise ValidationError(f"message must be at most {MAX_MESSAGE_LENGTH} characters", field="message")
	return text


def validate_ttl_hours(ttl_hours: Optional[int]) -> Optional[int]:
	if ttl_hours is None:
		return None
	if isinstance(ttl_hours, bool) or not isinstance(ttl_hours, int):
		raise ValidationError("ttl_hours must be an integer", field="ttl_hours")
	if ttl_hours < MIN_TTL_HOURS or ttl_hours > MAX_TTL_HOURS:
		raise ValidationError(
			f"ttl_hours must be between {MIN_TTL_HOURS} and {MAX_TTL_HOURS}",
			field="ttl_hours",
		)
	return ttl_hours


class BroadcastStore:
	"""Owns broadcast rows; at most one live broadcast per user."""

	def __init__(
		self,
		repository: BroadcastRepository,
		*,
		clock: Clock = now_utc,
		default_ttl_hours: int | None = None,
	) -> None:
		self.repo = repository
		self.clock = clock
		self.default_ttl_hours = default_ttl_hours or settings.broadcast_default_ttl_hours

	async def create(self, user_id: str, message: str, ttl_hours: Optional[int] = None) -> Broadcast:
		uid = require_user_id(user_id)
		text = validate_message(message)
		hours = validate_ttl_hours(ttl_hours) or self.default_ttl_hours
		now = self.clock()
		broadcast = await self.repo.upsert(uid, message=text, expires_at=now + timedelta(hours=hours), now=now)
		obs_metrics.inc_broadcast_write("create")
		return broadcast

	async def update(self, user_id: str, message: str, ttl_hours: Optional[int] = None) -> Broadcast:
		uid = require_user_id(user_id)
		text = validate_message(message)
		hours = validate_ttl_hours(ttl_hours)
		now = self.clock()
		expires_at = now + timedelta(hours=hours) if hours is not None else None
		broadcast = await self.repo.update_live(uid, message=text, expires_at=expires_at, now=now)
		if broadcast is None:
			raise NotFoundError("broadcast_not_found")
		obs_metrics.inc_broadcast_write("update")
		return broadcast

	async def delete(self, user_id: str) -> None:
		uid = require_user_id(user_id)
		removed = await self.repo.deactivate(uid, now=self.clock())
		if removed:
			obs_metrics.inc_broadcast_write("delete")

	async def get_active(self, user_id: str) -> Broadcast:
		now = self.clock()
		broadcast = await self.repo.get_live(require_user_id(user_id), now=now)
		# Expired rows the sweep has not reached yet stay invisible.
		if broadcast is None or not broadcast.is_live(now):
			raise NotFoundError("broadcast_not_found")
		return broadcast

	async def get_active_for_users(self, user_ids: Iterable[str]) -> dict[str, Broadcast]:
		ids = {uid for uid in user_ids if uid}
		if not ids:
			return {}
		now = self.clock()
		found = await self.repo.get_live_for_users(ids, now=now)
		return {uid: broadcast for uid, broadcast in found.items() if broadcast.is_live(now)}

	async def sweep_expired(self) -> int:
		swept = await self.repo.deactivate_expired(now=self.clock())
		if swept:
			logger.info("broadcast expiry sweep", extra={"deactivated": swept})
		return swept

	async def purge_old(self, retention: timedelta = DEFAULT_RETENTION) -> int:
		if retention < timedelta(0):
			raise ValidationError("retention must not be negative", field="retention")
		purged = await self.repo.purge_inactive(cutoff=self.clock() - retention)
		if purged:
			logger.info("broadcast retention purge", extra={"purged": purged})
		return purged


__all__ = ["BroadcastStore", "validate_message", "validate_ttl_hours"]
