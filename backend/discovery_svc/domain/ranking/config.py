"""Hot-reloadable ranking weights backed by the `ranking_config` table."""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timedelta
from typing import Mapping, Optional

from discovery_svc.domain.exceptions import ValidationError
from discovery_svc.domain.presence.service import Clock
from discovery_svc.domain.ranking.models import (
	CONFIG_DESCRIPTIONS,
	CONFIG_KEYS,
	DEFAULT_WEIGHTS,
	WEIGHT_FIELDS,
	WEIGHT_SUM_MAX,
	WEIGHT_SUM_MIN,
	RankingConfigEntry,
	RankingWeights,
	WeightsValidation,
)
from discovery_svc.domain.ranking.repo import RankingConfigRepository
from discovery_svc.infra.soft_delete import now_utc
from discovery_svc.obs import metrics as obs_metrics
from discovery_svc.settings import settings

logger = logging.getLogger(__name__)

_DESCRIPTIONS_BY_KEY = {CONFIG_KEYS[name]: CONFIG_DESCRIPTIONS[name] for name in WEIGHT_FIELDS}
_FIELDS_BY_KEY = {key: name for name, key in CONFIG_KEYS.items()}


def validate_weights(weights: RankingWeights) -> WeightsValidation:
	total = round(weights.total(), 6)
	if WEIGHT_SUM_MIN <= total <= WEIGHT_SUM_MAX:
		return WeightsValidation(valid=True, sum=total, message="Weights are valid")
	return WeightsValidation(
		valid=False,
		sum=total,
		message=f"Weights should sum to approximately 1.0 (between {WEIGHT_SUM_MIN} and {WEIGHT_SUM_MAX}), got {total:.4f}",
	)


def weights_from_entries(entries: list[RankingConfigEntry]) -> RankingWeights:
	"""Build weights from stored rows; keys without a row keep their default."""
	values: dict[str, float] = {}
	for entry in entries:
		name = _FIELDS_BY_KEY.get(entry.config_key)
		if name is not None:
			values[name] = entry.config_value
	return DEFAULT_WEIGHTS.merge(values)


def _check_updates(updates: Mapping[str, Optional[float]]) -> dict[str, float]:
	clean: dict[str, float] = {}
	for name, value in updates.items():
		if name not in CONFIG_KEYS:
			raise ValidationError(f"unknown weight: {name}", field=name)
		if value is None:
			continue
		if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
			raise ValidationError(f"{name} must be a number", field=name)
		if value < 0.0 or value > 1.0:
			raise ValidationError(f"{name} must be between 0 and 1", field=name)
		clean[name] = float(value)
	if not clean:
		raise ValidationError("at least one weight must be provided", field="weights")
	return clean


class RankingConfigStore:
	"""Caches the weights snapshot; readers never wait on storage while it is fresh."""

	def __init__(
		self,
		repository: RankingConfigRepository,
		*,
		clock: Clock = now_utc,
		cache_ttl_seconds: float | None = None,
	) -> None:
		self.repo = repository
		self.clock = clock
		ttl = settings.ranking_weights_cache_ttl_seconds if cache_ttl_seconds is None else cache_ttl_seconds
		self.cache_ttl = timedelta(seconds=max(0.0, ttl))
		self._snapshot: Optional[RankingWeights] = None
		self._loaded_at: Optional[datetime] = None
		self._lock = asyncio.Lock()

	def _fresh(self) -> bool:
		if self._snapshot is None or self._loaded_at is None:
			return False
		return self.clock() - self._loaded_at < self.cache_ttl

	def _swap(self, weights: RankingWeights) -> None:
		self._snapshot = weights
		self._loaded_at = self.clock()

	async def get_weights(self) -> RankingWeights:
		if self._fresh():
			obs_metrics.mark_weights_cache(True)
			return self._snapshot  # type: ignore[return-value]
		obs_metrics.mark_weights_cache(False)
		async with self._lock:
			if self._fresh():
				return self._snapshot  # type: ignore[return-value]
			weights = weights_from_entries(await self.repo.load())
			self._swap(weights)
			return weights

	async def update_weights(self, updates: Mapping[str, Optional[float]]) -> RankingWeights:
		clean = _check_updates(updates)
		async with self._lock:
			current = weights_from_entries(await self.repo.load())
			merged = current.merge(clean)
			await self.repo.write(
				{CONFIG_KEYS[name]: value for name, value in clean.items()},
				descriptions=_DESCRIPTIONS_BY_KEY,
				now=self.clock(),
			)
			self._swap(merged)
		result = validate_weights(merged)
		if not result.valid:
			logger.warning("ranking weights out of range", extra={"weights_sum": result.sum})
		logger.info("ranking weights updated", extra={"fields": sorted(clean)})
		return merged

	async def reset_to_defaults(self) -> RankingWeights:
		async with self._lock:
			await self.repo.write(
				{CONFIG_KEYS[name]: value for name, value in DEFAULT_WEIGHTS.to_dict().items()},
				descriptions=_DESCRIPTIONS_BY_KEY,
				now=self.clock(),
			)
			self._swap(DEFAULT_WEIGHTS)
		logger.info("ranking weights reset to defaults")
		return DEFAULT_WEIGHTS

	def validate_weights(self, weights: RankingWeights) -> WeightsValidation:
		return validate_weights(weights)

	async def list_configs(self) -> list[RankingConfigEntry]:
		return await self.repo.load()

	def invalidate(self) -> None:
		self._snapshot = None
		self._loaded_at = None

	async def seed_defaults(self) -> int:
		inserted = await self.repo.insert_missing(
			{CONFIG_KEYS[name]: value for name, value in DEFAULT_WEIGHTS.to_dict().items()},
			descriptions=_DESCRIPTIONS_BY_KEY,
			now=self.clock(),
		)
		if inserted:
			self.invalidate()
			logger.info("ranking weights seeded", extra={"rows": inserted})
		return inserted


__all__ = ["RankingConfigStore", "validate_weights", "weights_from_entries"]
