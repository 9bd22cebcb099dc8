from videolens.core.config import settings
from videolens.core.logging_config import get_logger
import json
from datetime import datetime
from typing import Literal, Optional

logger = get_logger(__name__)

# Lazy initialize Redis to avoid startup issues
_redis_client = None

def get_redis_client():
    global _redis_client
    if _redis_client is None:
        import redis
        _redis_client = redis.from_url(settings.REDIS_URL, socket_connect_timeout=2)
    return _redis_client

LogLevel = Literal['INFO', 'WARNING', 'ERROR', 'SUCCESS', 'DEBUG']
LogSource = Literal['worker', 'backend', 'system']

def publish_log(
    source: LogSource,
    level: LogLevel,
    message: str,
    metadata: Optional[dict] = None
):
    """Publish a log message to Redis for real-time streaming"""
    log_entry = {
        "timestamp": datetime.utcnow().isoformat(),
        "source": source,
        "level": level,
        "message": message,
        "metadata": metadata or {}
    }

    try:
        redis_client = get_redis_client()
        redis_client.publish(settings.LOG_CHANNEL, json.dumps(log_entry))
    except Exception as e:
        # Don't crash if Redis publish fails
        logger.debug(f"failed to publish log: {e}")
