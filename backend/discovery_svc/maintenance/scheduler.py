"""APScheduler wrapper for discovery maintenance jobs."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Awaitable, Callable, Protocol

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from discovery_svc.domain.broadcasts.service import BroadcastStore
from discovery_svc.domain.presence.service import PresenceStore
from discovery_svc.maintenance.jobs import BroadcastExpirySweep, BroadcastRetentionPurge, StalePresenceCleanup
from discovery_svc.settings import Settings

_LOG = logging.getLogger(__name__)


class MaintenanceJob(Protocol):
	name: str

	async def run_once(self) -> int:
		...


def _guarded(job: MaintenanceJob) -> Callable[[], Awaitable[None]]:
	async def _tick() -> None:
		try:
			await job.run_once()
		except Exception:
			_LOG.exception("maintenance job failed", extra={"job": job.name})

	return _tick


class MaintenanceScheduler:
	"""Minimal wrapper around AsyncIOScheduler for maintenance jobs."""

	def __init__(self, scheduler: AsyncIOScheduler | None = None) -> None:
		self._scheduler = scheduler or AsyncIOScheduler(timezone="UTC")
		self._started = False
		self.jobs: dict[str, MaintenanceJob] = {}

	@property
	def running(self) -> bool:
		return self._started

	def start(self) -> None:
		if not self._started:
			self._scheduler.start()
			self._started = True

	def shutdown(self) -> None:
		if self._started:
			self._scheduler.shutdown(wait=False)
			self._started = False

	def schedule(self, job: MaintenanceJob, *, every: timedelta) -> None:
		if every <= timedelta(0):
			raise ValueError("interval must be positive")
		trigger = IntervalTrigger(seconds=int(every.total_seconds()))
		self._scheduler.add_job(
			_guarded(job),
			trigger=trigger,
			id=job.name,
			replace_existing=True,
			max_instances=1,
			coalesce=True,
		)
		self.jobs[job.name] = job

	async def run_all_once(self) -> dict[str, int]:
		return {name: await job.run_once() for name, job in self.jobs.items()}


def build_maintenance_scheduler(
	config: Settings,
	*,
	presence: PresenceStore,
	broadcasts: BroadcastStore,
	scheduler: AsyncIOScheduler | None = None,
) -> MaintenanceScheduler:
	wrapper = MaintenanceScheduler(scheduler)
	wrapper.schedule(
		BroadcastExpirySweep(broadcasts),
		every=timedelta(minutes=config.broadcast_sweep_interval_minutes),
	)
	wrapper.schedule(
		BroadcastRetentionPurge(broadcasts, retention=timedelta(days=config.broadcast_retention_days)),
		every=timedelta(hours=config.broadcast_purge_interval_hours),
	)
	wrapper.schedule(
		StalePresenceCleanup(presence, threshold=timedelta(minutes=config.presence_stale_minutes)),
		every=timedelta(minutes=config.presence_sweep_interval_minutes),
	)
	return wrapper


__all__ = ["MaintenanceScheduler", "build_maintenance_scheduler"]
