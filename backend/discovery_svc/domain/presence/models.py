"""Domain models used by the presence store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional


@dataclass(slots=True)
class PresenceRecord:
	"""Availability flag plus the last time the user was seen available."""

	user_id: str
	is_available: bool = False
	last_available_at: Optional[datetime] = None
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None

	@classmethod
	def from_row(cls, row: Mapping[str, Any]) -> PresenceRecord:
		return cls(
			user_id=str(row["user_id"]),
			is_available=bool(row["is_available"]),
			last_available_at=row["last_available_at"],
			created_at=row.get("created_at"),
			updated_at=row.get("updated_at"),
		)

	def to_dict(self) -> dict[str, Any]:
		return {
			"user_id": self.user_id,
			"is_available": self.is_available,
			"last_available_at": self.last_available_at,
		}
