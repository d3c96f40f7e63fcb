"""Presence tracking: availability flags and heartbeats."""

from discovery_svc.domain.presence.models import PresenceRecord
from discovery_svc.domain.presence.service import PresenceStore

__all__ = ["PresenceRecord", "PresenceStore"]
