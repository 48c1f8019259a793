# relay/core/state.py
from __future__ import annotations

from datetime import datetime, timezone

from relay.core.config import settings
from relay.services.connection_manager import ClientIdGenerator
from relay.services.room_manager import Space
from relay.services.stats import RelayStats

# Global singletons for app state
stats = RelayStats()
space = Space(evict_empty=settings.EVICT_EMPTY_ROOMS, stats=stats)
client_ids = ClientIdGenerator()

app_start_time: datetime = datetime.now(timezone.utc)
