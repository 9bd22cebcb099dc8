from typing import List, Optional
from videolens.core.config import settings
from videolens.core.errors import UnknownDuration
from videolens.core.logging_config import get_logger
from videolens.models import SampledFrame
from videolens.services.ffmpeg import probe_duration, extract_frame
from videolens.services.scratch import ScratchSpace

logger = get_logger(__name__)


def resolve_duration(video_path: str, declared_duration: Optional[float] = None) -> float:
    """
    duration in seconds: ffprobe first, provider-declared duration as fallback.
    raises UnknownDuration when neither is positive
    """
    try:
        duration = probe_duration(video_path)
        if duration > 0:
            logger.info(f"video duration from ffprobe: {duration:.2f}s")
            return duration
        logger.warning("ffprobe returned no duration")
    except Exception as e:
        logger.warning(f"failed to probe duration of {video_path}: {e}")

    if declared_duration and declared_duration > 0:
        logger.info(f"using metadata duration as fallback: {declared_duration}s")
        return float(declared_duration)

    raise UnknownDuration("Invalid video duration. Please check if the video file is valid and complete.")


def frame_timestamps(duration: float, count: int) -> List[float]:
    """
    evenly spaced timestamps strictly inside (0, duration)

    interval = duration / (count + 1); frame i sits at interval * i
    """
    if duration <= 0 or count <= 0:
        return []
    interval = duration / (count + 1)
    return [interval * i for i in range(1, count + 1)]


def sample_frames(
    video_path: str,
    declared_duration: Optional[float],
    scratch: ScratchSpace,
    count: Optional[int] = None
) -> List[SampledFrame]:
    """
    extract `count` stills into scratch space

    per-frame failures are logged and the frame is dropped; the returned list
    keeps timeline order and may be empty
    """
    count = count or settings.FRAME_COUNT
    duration = resolve_duration(video_path, declared_duration)
    scratch.ensure()

    frames = []
    for index, timestamp in enumerate(frame_timestamps(duration, count), start=1):
        frame_path = scratch.frame_path(index)
        try:
            extract_frame(video_path, timestamp, frame_path)
            frames.append(SampledFrame(timestamp=timestamp, path=frame_path))
        except Exception as e:
            logger.warning(f"failed to extract frame {index} at {timestamp:.2f}s: {e}")

    logger.info(f"extracted {len(frames)}/{count} frames from {duration:.1f}s video")
    return frames
