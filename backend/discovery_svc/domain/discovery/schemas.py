"""Schemas for availability, broadcasts, ranking and available-user search."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from discovery_svc.domain.broadcasts.models import Broadcast
from discovery_svc.domain.pagination import PageMeta
from discovery_svc.domain.presence.models import PresenceRecord
from discovery_svc.domain.ranking.models import RankingConfigEntry, RankingWeights, WeightsValidation


class AvailabilityResponse(BaseModel):
	user_id: str
	is_available: bool
	last_available_at: Optional[datetime] = None
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None

	@classmethod
	def from_record(cls, record: PresenceRecord) -> AvailabilityResponse:
		return cls(
			user_id=record.user_id,
			is_available=record.is_available,
			last_available_at=record.last_available_at,
			created_at=record.created_at,
			updated_at=record.updated_at,
		)


class PublicAvailability(BaseModel):
	user_id: str
	is_available: bool
	last_available_at: Optional[datetime] = None

	@classmethod
	def from_record(cls, record: PresenceRecord) -> PublicAvailability:
		return cls(**record.to_dict())


class SetAvailabilityRequest(BaseModel):
	is_available: bool


class PaginationMeta(BaseModel):
	total: int
	limit: int
	offset: int
	has_more: bool
	total_pages: int

	@classmethod
	def from_meta(cls, meta: PageMeta) -> PaginationMeta:
		return cls(**meta.to_dict())


class AvailableUsersPage(BaseModel):
	data: list[PublicAvailability] = Field(default_factory=list)
	pagination: PaginationMeta


class BroadcastWriteRequest(BaseModel):
	# Bounds are enforced by the broadcast store.
	message: str
	ttl_hours: Optional[int] = None


class BroadcastResponse(BaseModel):
	id: str
	user_id: str
	message: str
	is_active: bool
	expires_at: datetime
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None

	@classmethod
	def from_domain(cls, broadcast: Broadcast) -> BroadcastResponse:
		return cls(**broadcast.to_dict())


class PublicBroadcast(BaseModel):
	user_id: str
	message: str
	expires_at: datetime
	created_at: Optional[datetime] = None

	@classmethod
	def from_domain(cls, broadcast: Broadcast) -> PublicBroadcast:
		return cls(**broadcast.to_public())


class ScoreBreakdown(BaseModel):
	semantic_similarity: float = 0.0
	interest_overlap: float = 0.0
	geo_proximity: float = 0.0
	recent_activity: float = 0.0


class RankedUser(BaseModel):
	user_id: str
	is_available: bool = True
	last_available_at: Optional[datetime] = None
	score: float
	semantic_score: Optional[float] = None
	breakdown: ScoreBreakdown
	match_reasons: Optional[list[str]] = None
	last_heartbeat_minutes: Optional[int] = None
	broadcast: Optional[PublicBroadcast] = None


class SearchMeta(BaseModel):
	total_candidates: int = 0
	degraded: bool = False
	search_enabled: bool = False
	query_processed: str = ""
	search_time_ms: int = 0
	warnings: list[str] = Field(default_factory=list)


class SearchResultsPage(BaseModel):
	data: list[RankedUser] = Field(default_factory=list)
	pagination: PaginationMeta
	search_meta: SearchMeta
	warnings: list[str] = Field(default_factory=list)


class RankingWeightsSchema(BaseModel):
	semantic_similarity: float
	interest_overlap: float
	geo_proximity: float
	recent_activity: float

	@classmethod
	def from_domain(cls, weights: RankingWeights) -> RankingWeightsSchema:
		return cls(**weights.to_dict())


class RankingWeightsUpdate(BaseModel):
	semantic_similarity: Optional[float] = None
	interest_overlap: Optional[float] = None
	geo_proximity: Optional[float] = None
	recent_activity: Optional[float] = None


class WeightsValidationResponse(BaseModel):
	valid: bool
	sum: float
	message: str = ""

	@classmethod
	def from_domain(cls, result: WeightsValidation) -> WeightsValidationResponse:
		return cls(**result.to_dict())


class WeightsUpdateResponse(BaseModel):
	weights: RankingWeightsSchema
	weights_validation: WeightsValidationResponse


class RankingInfoResponse(BaseModel):
	version: str
	formula: str
	components: dict[str, str]
	weights: RankingWeightsSchema
	weights_sum: float


class RankingConfigEntrySchema(BaseModel):
	config_key: str
	config_value: float
	description: str = ""
	updated_at: Optional[datetime] = None

	@classmethod
	def from_domain(cls, entry: RankingConfigEntry) -> RankingConfigEntrySchema:
		return cls(
			config_key=entry.config_key,
			config_value=entry.config_value,
			description=entry.description,
			updated_at=entry.updated_at,
		)
