"""User broadcasts."""

from discovery_svc.domain.broadcasts.models import Broadcast, is_expired
from discovery_svc.domain.broadcasts.service import BroadcastStore

__all__ = ["Broadcast", "BroadcastStore", "is_expired"]
