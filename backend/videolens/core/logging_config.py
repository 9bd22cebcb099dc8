import logging
import os
import sys
from datetime import datetime

from videolens.core.config import settings

_configured = False

def configure_logging():
    """configure structured logging once per process"""
    global _configured
    if _configured:
        return

    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_DIR:
        # create logs directory if it doesn't exist
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        handlers.append(
            logging.FileHandler(
                os.path.join(settings.LOG_DIR, f'videolens_{datetime.now().strftime("%Y%m%d")}.log'),
                mode='a'
            )
        )

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )
    _configured = True

def get_logger(name: str) -> logging.Logger:
    """get a configured logger instance"""
    return logging.getLogger(name)
