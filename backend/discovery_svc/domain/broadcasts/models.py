"""Domain models for user broadcasts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from discovery_svc.infra.soft_delete import now_utc

MAX_MESSAGE_LENGTH = 200
MIN_TTL_HOURS = 1
MAX_TTL_HOURS = 168
DEFAULT_TTL_HOURS = 24
DEFAULT_RETENTION = timedelta(days=30)


@dataclass(slots=True)
class Broadcast:
	"""A user's single short-lived status message."""

	id: str
	user_id: str
	message: str
	expires_at: datetime
	is_active: bool = True
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None
	deleted_at: Optional[datetime] = None

	@classmethod
	def from_row(cls, row: Mapping[str, Any]) -> Broadcast:
		return cls(
			id=str(row["id"]),
			user_id=str(row["user_id"]),
			message=row["message"],
			expires_at=row["expires_at"],
			is_active=bool(row["is_active"]),
			created_at=row.get("created_at"),
			updated_at=row.get("updated_at"),
			deleted_at=row.get("deleted_at"),
		)

	def is_live(self, now: Optional[datetime] = None) -> bool:
		return self.is_active and self.deleted_at is None and self.expires_at > (now or now_utc())

	def to_dict(self) -> dict[str, Any]:
		return {
			"id": self.id,
			"user_id": self.user_id,
			"message": self.message,
			"is_active": self.is_active,
			"expires_at": self.expires_at,
			"created_at": self.created_at,
			"updated_at": self.updated_at,
		}

	def to_public(self) -> dict[str, Any]:
		"""Cross-user view: no row id or lifecycle flags."""
		return {
			"user_id": self.user_id,
			"message": self.message,
			"expires_at": self.expires_at,
			"created_at": self.created_at,
		}


def is_expired(broadcast: Broadcast, now: Optional[datetime] = None) -> bool:
	return (now or now_utc()) > broadcast.expires_at
