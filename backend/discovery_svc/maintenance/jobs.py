"""Background jobs that keep presence and broadcast rows tidy."""

from __future__ import annotations

import logging
import time
from datetime import timedelta

from discovery_svc.domain.broadcasts.service import BroadcastStore
from discovery_svc.domain.presence.service import PresenceStore
from discovery_svc.obs import metrics as obs_metrics
from discovery_svc.settings import settings

_LOG = logging.getLogger(__name__)


class _Job:
	name = "discovery-job"

	async def _run(self) -> int:
		raise NotImplementedError

	async def run_once(self) -> int:
		started = time.perf_counter()
		try:
			rows = await self._run()
		except Exception:
			obs_metrics.record_job_run(self.name, result="error", duration_seconds=time.perf_counter() - started)
			raise
		obs_metrics.record_job_run(
			self.name,
			result="success",
			duration_seconds=time.perf_counter() - started,
			rows=rows,
		)
		_LOG.info("maintenance job finished", extra={"job": self.name, "rows": rows})
		return rows


class BroadcastExpirySweep(_Job):
	"""Deactivates broadcasts whose expiry has passed."""

	name = "discovery-broadcast-expiry"

	def __init__(self, broadcasts: BroadcastStore) -> None:
		self.broadcasts = broadcasts

	async def _run(self) -> int:
		return await self.broadcasts.sweep_expired()


class BroadcastRetentionPurge(_Job):
	"""Hard-deletes broadcasts that have been inactive past the retention window."""

	name = "discovery-broadcast-purge"

	def __init__(self, broadcasts: BroadcastStore, *, retention: timedelta | None = None) -> None:
		self.broadcasts = broadcasts
		self.retention = retention or timedelta(days=settings.broadcast_retention_days)

	async def _run(self) -> int:
		return await self.broadcasts.purge_old(self.retention)


class StalePresenceCleanup(_Job):
	name = "discovery-stale-presence"

	def __init__(self, presence: PresenceStore, *, threshold: timedelta | None = None) -> None:
		self.presence = presence
		self.threshold = threshold or timedelta(minutes=settings.presence_stale_minutes)

	async def _run(self) -> int:
		return await self.presence.expire_stale(self.threshold)


__all__ = ["BroadcastExpirySweep", "BroadcastRetentionPurge", "StalePresenceCleanup"]
