"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI

from discovery_svc.api import availability, broadcasts, ops, ranking
from discovery_svc.api.errors import install_error_handlers
from discovery_svc.container import DiscoveryContainer, build_container
from discovery_svc.infra import postgres
from discovery_svc.infra.schema import ensure_schema
from discovery_svc.maintenance.scheduler import MaintenanceScheduler, build_maintenance_scheduler
from discovery_svc.obs import init as obs_init
from discovery_svc.settings import Settings, settings

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def _lifespan(config: Settings, *, start_jobs: bool):
	@asynccontextmanager
	async def lifespan(app: FastAPI):
		container: DiscoveryContainer | None = getattr(app.state, "discovery", None)
		owns_container = container is None
		if container is None:
			container = build_container(config)
			app.state.discovery = container
		if container.storage == "postgres":
			pool = await postgres.init_pool()
			await ensure_schema(pool)
		await container.ranking_config.seed_defaults()

		scheduler: MaintenanceScheduler | None = None
		if start_jobs and config.maintenance_jobs_enabled:
			scheduler = build_maintenance_scheduler(
				config,
				presence=container.presence,
				broadcasts=container.broadcasts,
			)
			scheduler.start()
			app.state.maintenance_scheduler = scheduler
		logger.info("discovery service started", extra={"storage": container.storage, "search": container.search.enabled})
		try:
			yield
		finally:
			if scheduler is not None:
				scheduler.shutdown()
			if owns_container:
				await container.aclose()
				app.state.discovery = None
			if container.storage == "postgres":
				await postgres.close_pool()

	return lifespan


def create_app(
	container: DiscoveryContainer | None = None,
	*,
	config: Settings | None = None,
	start_jobs: bool = True,
) -> FastAPI:
	config = config or settings
	app = FastAPI(title="Discovery Core", lifespan=_lifespan(config, start_jobs=start_jobs))
	app.state.discovery = container
	install_error_handlers(app)
	obs_init(app)

	api = APIRouter(prefix=API_PREFIX)
	api.include_router(availability.router)
	api.include_router(broadcasts.router)
	api.include_router(ranking.router)
	app.include_router(api)
	app.include_router(ops.router)
	return app


app = create_app()
