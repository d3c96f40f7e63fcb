"""Domain models for relevance ranking."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from datetime import datetime
from typing import Iterable, Mapping, Optional

WEIGHT_FIELDS = ("semantic_similarity", "interest_overlap", "geo_proximity", "recent_activity")

# Stored config row key for each weight field.
CONFIG_KEYS = {name: f"{name}_weight" for name in WEIGHT_FIELDS}

CONFIG_DESCRIPTIONS = {
	"semantic_similarity": "Weight for semantic similarity between query and candidate profile",
	"interest_overlap": "Weight for Jaccard overlap of interest sets",
	"geo_proximity": "Weight for geographic proximity within a 10 mile radius",
	"recent_activity": "Weight for recency of the candidate's last heartbeat",
}

WEIGHT_SUM_MIN = 0.95
WEIGHT_SUM_MAX = 1.05


@dataclass(slots=True, frozen=True)
class RankingWeights:
	semantic_similarity: float = 0.60
	interest_overlap: float = 0.20
	geo_proximity: float = 0.10
	recent_activity: float = 0.10

	def total(self) -> float:
		return self.semantic_similarity + self.interest_overlap + self.geo_proximity + self.recent_activity

	def merge(self, updates: Mapping[str, float]) -> RankingWeights:
		return replace(self, **{key: float(value) for key, value in updates.items()})

	def to_dict(self) -> dict[str, float]:
		return asdict(self)


DEFAULT_WEIGHTS = RankingWeights()


@dataclass(slots=True, frozen=True)
class WeightsValidation:
	valid: bool
	sum: float
	message: str = ""

	def to_dict(self) -> dict[str, object]:
		return {"valid": self.valid, "sum": self.sum, "message": self.message}


@dataclass(slots=True)
class RankingConfigEntry:
	config_key: str
	config_value: float
	description: str = ""
	updated_at: Optional[datetime] = None


@dataclass(slots=True, frozen=True)
class GeoPoint:
	latitude: float
	longitude: float


@dataclass(slots=True)
class RankingInput:
	"""Per-candidate signals; assembled per request and never persisted."""

	user_id: str
	semantic_similarity: Optional[float] = None
	interests: int = 0
	latitude: Optional[float] = None
	longitude: Optional[float] = None
	last_available_at: Optional[datetime] = None

	def location(self) -> Optional[GeoPoint]:
		if self.latitude is None or self.longitude is None:
			return None
		return GeoPoint(self.latitude, self.longitude)


@dataclass(slots=True)
class RankingResult:
	user_id: str
	total_score: float
	semantic_similarity: float
	interest_overlap: float
	geo_proximity: float
	recent_activity: float
	last_heartbeat_minutes: Optional[int] = None

	def breakdown(self) -> dict[str, float]:
		return {
			"semantic_similarity": self.semantic_similarity,
			"interest_overlap": self.interest_overlap,
			"geo_proximity": self.geo_proximity,
			"recent_activity": self.recent_activity,
		}

	def to_dict(self) -> dict[str, object]:
		payload: dict[str, object] = {"user_id": self.user_id, "total_score": self.total_score}
		payload.update(self.breakdown())
		payload["last_heartbeat_minutes"] = self.last_heartbeat_minutes
		return payload


def bitset_from_bytes(raw: Optional[bytes]) -> int:
	"""Decode a stored interest bitset; byte 0 carries bits 0-7."""
	if not raw:
		return 0
	return int.from_bytes(bytes(raw), "little")


def bitset_to_bytes(bits: int) -> bytes:
	if bits <= 0:
		return b""
	return bits.to_bytes((bits.bit_length() + 7) // 8, "little")


def bitset_from_indices(indices: Iterable[int]) -> int:
	bits = 0
	for index in indices:
		if index < 0:
			raise ValueError("interest index must be non-negative")
		bits |= 1 << index
	return bits


@dataclass(slots=True)
class UserProfileSignals:
	"""Interest and location data for one user, as supplied by the profile collaborator."""

	user_id: str
	interests: int = 0
	latitude: Optional[float] = None
	longitude: Optional[float] = None

	def location(self) -> Optional[GeoPoint]:
		if self.latitude is None or self.longitude is None:
			return None
		return GeoPoint(self.latitude, self.longitude)
