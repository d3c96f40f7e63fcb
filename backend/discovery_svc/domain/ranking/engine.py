"""Batch scoring with an optional bounded worker pool."""

from __future__ import annotations

import asyncio
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import datetime
from typing import Optional, Sequence

from discovery_svc.domain.ranking import scoring
from discovery_svc.domain.ranking.models import GeoPoint, RankingInput, RankingResult, RankingWeights
from discovery_svc.domain.presence.service import Clock
from discovery_svc.infra.soft_delete import now_utc
from discovery_svc.obs import metrics as obs_metrics
from discovery_svc.settings import settings


class RankingEngine:
	"""Scores candidate batches against a single weights snapshot.

	Small batches are scored inline. Batches at or above `parallel_threshold`
	are split into at most `max_workers` chunks and handed to the executor.
	"""

	def __init__(
		self,
		*,
		clock: Clock = now_utc,
		parallel_threshold: int | None = None,
		max_workers: int | None = None,
		executor: Executor | None = None,
	) -> None:
		self.clock = clock
		self.parallel_threshold = parallel_threshold or settings.ranking_parallel_threshold
		self.max_workers = max(1, max_workers or settings.ranking_max_workers)
		self._executor = executor
		self._owns_executor = executor is None

	def _pool(self) -> Executor:
		if self._executor is None:
			self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="ranking")
		return self._executor

	def _chunks(self, inputs: Sequence[RankingInput]) -> list[Sequence[RankingInput]]:
		size = -(-len(inputs) // self.max_workers)
		return [inputs[start : start + size] for start in range(0, len(inputs), size)]

	async def batch_score(
		self,
		inputs: Sequence[RankingInput],
		requester_interests: int,
		requester_location: Optional[GeoPoint],
		weights: RankingWeights,
		now: Optional[datetime] = None,
	) -> list[RankingResult]:
		if not inputs:
			return []
		now = now or self.clock()
		started = time.perf_counter()
		if len(inputs) < self.parallel_threshold or self.max_workers == 1:
			results = scoring.score_many(inputs, requester_interests, requester_location, weights, now)
		else:
			loop = asyncio.get_running_loop()
			pool = self._pool()
			parts = await asyncio.gather(
				*(
					loop.run_in_executor(
						pool,
						scoring.score_many,
						chunk,
						requester_interests,
						requester_location,
						weights,
						now,
					)
					for chunk in self._chunks(inputs)
				)
			)
			results = [result for part in parts for result in part]
		scoring.sort_results(results)
		obs_metrics.observe_ranking_batch(len(inputs), time.perf_counter() - started)
		return results

	def shutdown(self) -> None:
		if self._executor is not None and self._owns_executor:
			self._executor.shutdown(wait=False)
			self._executor = None


__all__ = ["RankingEngine"]
