import subprocess
import json
import os
from videolens.core.config import settings
from videolens.core.errors import AudioExtractionFailed
from videolens.core.logging_config import get_logger

logger = get_logger(__name__)


def probe_duration(file_path: str) -> float:
    """
    media duration in seconds via ffprobe.
    raises on probe failure; returns 0.0 when ffprobe reports nothing usable
    """
    cmd = [
        "ffprobe",
        "-v", "error",
        "-print_format", "json",
        "-show_entries", "format=duration",
        file_path
    ]

    result = subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=settings.PROBE_TIMEOUT_SEC)
    data = json.loads(result.stdout or "{}")
    try:
        return float(data.get("format", {}).get("duration") or 0)
    except (TypeError, ValueError):
        return 0.0


def extract_audio(video_path: str, audio_path: str, timeout: float = None) -> str:
    """
    mono 16khz mp3 suitable for speech recognition
    returns: audio_path
    """
    timeout = timeout or settings.AUDIO_TIMEOUT_SEC
    cmd = [
        "ffmpeg",
        "-i", video_path,
        "-vn",  # no video
        "-ac", "1",  # mono
        "-ar", "16000",  # 16khz
        "-c:a", "libmp3lame",
        "-b:a", "32k",
        "-y",
        audio_path
    ]

    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise AudioExtractionFailed(f"Audio extraction timed out after {timeout:.0f}s") from e
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip().splitlines()
        raise AudioExtractionFailed(f"Audio extraction failed: {stderr[-1] if stderr else e.returncode}") from e

    if not os.path.exists(audio_path) or os.path.getsize(audio_path) == 0:
        # e.g. the video has no audio stream
        raise AudioExtractionFailed("Audio extraction produced no output")
    return audio_path


def extract_frame(video_path: str, timestamp: float, frame_path: str, timeout: float = None) -> str:
    """single jpeg still at timestamp (seconds)"""
    timeout = timeout or settings.FRAME_TIMEOUT_SEC
    cmd = [
        "ffmpeg",
        "-ss", f"{timestamp:.3f}",
        "-i", video_path,
        "-vframes", "1",
        "-q:v", "2",
        "-y",
        frame_path
    ]

    subprocess.run(cmd, check=True, capture_output=True, text=True, timeout=timeout)
    if not os.path.exists(frame_path) or os.path.getsize(frame_path) == 0:
        raise FileNotFoundError(f"no frame written at {timestamp:.2f}s")
    return frame_path
