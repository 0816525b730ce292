from .utils.event_bus import RedisEventBus
from .core.config import settings

# Single, shared event bus for the process. Connected in the app lifespan.
event_bus = RedisEventBus(settings.redis_url, settings.room_events_channel)
