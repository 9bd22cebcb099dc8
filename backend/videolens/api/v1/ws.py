from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from videolens.core.config import settings
from videolens.core.logging_config import get_logger
import json
from datetime import datetime

logger = get_logger(__name__)

router = APIRouter()


@router.websocket("/logs")
async def websocket_logs(websocket: WebSocket):
    """stream pipeline logs from the worker and api via redis pub/sub"""
    import redis.asyncio as aioredis

    await websocket.accept()

    redis = aioredis.from_url(settings.REDIS_URL)
    pubsub = redis.pubsub()
    try:
        await pubsub.subscribe(settings.LOG_CHANNEL)

        await websocket.send_json({
            "type": "connected",
            "timestamp": datetime.utcnow().isoformat(),
            "source": "system",
            "level": "INFO",
            "message": "🔌 Log stream connected",
            "metadata": {}
        })

        async for message in pubsub.listen():
            if message['type'] != 'message':
                continue
            try:
                log_data = json.loads(message['data'])
            except (TypeError, ValueError) as e:
                logger.warning(f"error parsing log message: {e}")
                continue
            await websocket.send_json(log_data)

    except WebSocketDisconnect:
        logger.info("client disconnected from log stream")
    except Exception as e:
        logger.error(f"websocket error: {e}", exc_info=e)
    finally:
        try:
            await pubsub.unsubscribe(settings.LOG_CHANNEL)
            await redis.close()
        except Exception as e:
            logger.debug(f"error closing log stream: {e}")
