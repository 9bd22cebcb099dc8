import math
from typing import List, Optional
from videolens.core.logging_config import get_logger
from videolens.models import FrameAnalysis, SampledFrame
from videolens.services.llm import invoke_structured
from videolens.services.storage import storage_put_file

logger = get_logger(__name__)

FRAME_PROMPT = (
    "Analyze this video frame in detail: 1) the scene, 2) the main objects and people, "
    "3) any visible text, 4) the overall mood and style. "
    'Respond as JSON: {"scene": "...", "objects": ["...", "..."], "description": "..."}'
)

FRAME_SCHEMA = {
    "type": "object",
    "properties": {
        "scene": {"type": "string", "description": "short scene description"},
        "objects": {"type": "array", "items": {"type": "string"}, "description": "main objects and people"},
        "description": {"type": "string", "description": "detailed description"},
    },
    "required": ["scene", "objects", "description"],
    "additionalProperties": False,
}

FALLBACK_SCENE = "unknown"
FALLBACK_DESCRIPTION = "analysis failed"


def frame_key(job_id: int, index: int) -> str:
    return f"video-analysis/{job_id}/frame_{index}.jpg"


def upload_frame(frame: SampledFrame, job_id: int, index: int) -> str:
    """store one frame durably; returns its public url"""
    return storage_put_file(frame_key(job_id, index), frame.path, "image/jpeg")["url"]


def describe_frame(frame_url: str) -> dict:
    return invoke_structured(
        messages=[{
            "role": "user",
            "content": [
                {"type": "text", "text": FRAME_PROMPT},
                {"type": "image_url", "image_url": {"url": frame_url, "detail": "high"}},
            ],
        }],
        schema_name="frame_analysis",
        schema=FRAME_SCHEMA,
    )


def describe_frames(frames: List[SampledFrame], job_id: int) -> List[FrameAnalysis]:
    """
    upload each frame and describe it with the multimodal llm

    a frame whose description fails is kept with a fallback description;
    a frame that cannot be uploaded at all is dropped. output keeps frame order
    """
    results = []
    for index, frame in enumerate(frames, start=1):
        timestamp = math.floor(frame.timestamp)
        frame_url: Optional[str] = None
        try:
            frame_url = upload_frame(frame, job_id, index)
            analysis = describe_frame(frame_url)
            results.append(FrameAnalysis(
                timestamp=timestamp,
                frame_url=frame_url,
                scene=analysis.get("scene") or "",
                description=analysis.get("description") or "",
                objects=[str(o) for o in analysis.get("objects") or []],
            ))
            continue
        except Exception as e:
            logger.warning(f"failed to analyze frame {index} of job {job_id}: {e}")

        try:
            if frame_url is None:
                frame_url = upload_frame(frame, job_id, index)
        except Exception as e:
            logger.error(f"failed to upload frame {index} of job {job_id}, dropping it: {e}")
            continue

        results.append(FrameAnalysis(
            timestamp=timestamp,
            frame_url=frame_url,
            scene=FALLBACK_SCENE,
            description=FALLBACK_DESCRIPTION,
            objects=[],
        ))

    logger.info(f"described {len(results)}/{len(frames)} frames for job {job_id}")
    return results
