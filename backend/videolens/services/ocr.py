import math
from typing import List
import pytesseract
from videolens.core.config import settings
from videolens.core.logging_config import get_logger
from videolens.models import SampledFrame

logger = get_logger(__name__)

# psm 6: assume a single uniform block of text
TESSERACT_CONFIG = "--psm 6"


def recognize_frame(image_path: str) -> str:
    """text in one frame; empty string on any failure"""
    try:
        text = pytesseract.image_to_string(
            image_path,
            lang=settings.OCR_LANGUAGES,
            config=TESSERACT_CONFIG,
            timeout=settings.OCR_TIMEOUT_SEC,
        )
    except Exception as e:
        logger.warning(f"ocr failed for {image_path}: {e}")
        return ""
    return (text or "").strip()


def recognize_text(frames: List[SampledFrame]) -> str:
    """
    ocr every frame and join the non-empty results as "[<sec>s] <text>"
    blocks separated by a blank line, in frame order
    """
    blocks = []
    for frame in frames:
        text = recognize_frame(frame.path)
        if text:
            blocks.append(f"[{math.floor(frame.timestamp)}s] {text}")
    return "\n\n".join(blocks)
