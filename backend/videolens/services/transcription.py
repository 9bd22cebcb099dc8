import requests
from videolens.core.config import settings
from videolens.core.errors import TranscriptionFailed
from videolens.core.logging_config import get_logger
from videolens.models import Transcript
from videolens.services.storage import storage_put_file

logger = get_logger(__name__)


def audio_key(job_id: int) -> str:
    return f"video-analysis/{job_id}/audio.mp3"


def transcribe_audio(audio_path: str, job_id: int, language: str = None) -> Transcript:
    """
    speech-to-text for the extracted audio

    the audio is stored durably first so the speech service can fetch it by url.
    raises TranscriptionFailed when the service is unconfigured, errors or hears nothing
    """
    if not settings.STT_API_URL:
        raise TranscriptionFailed("speech-to-text service not configured")

    language = language or settings.TRANSCRIPTION_LANGUAGE
    audio_url = storage_put_file(audio_key(job_id), audio_path, "audio/mpeg")["url"]

    headers = {"Content-Type": "application/json"}
    if settings.STT_API_KEY:
        headers["Authorization"] = f"Bearer {settings.STT_API_KEY}"

    try:
        response = requests.post(
            settings.STT_API_URL,
            json={"audio_url": audio_url, "language": language},
            headers=headers,
            timeout=settings.STT_TIMEOUT_SEC,
        )
        response.raise_for_status()
        body = response.json()
    except requests.exceptions.Timeout as e:
        raise TranscriptionFailed(f"transcription timed out after {settings.STT_TIMEOUT_SEC:.0f}s") from e
    except requests.exceptions.RequestException as e:
        raise TranscriptionFailed(f"transcription request failed: {e}") from e
    except ValueError as e:
        raise TranscriptionFailed("transcription service returned invalid json") from e

    text = str(body.get("text") or "").strip() if isinstance(body, dict) else ""
    if not text:
        raise TranscriptionFailed("transcription returned no text")

    detected = body.get("language") or language
    logger.info(f"transcribed job {job_id}: {len(text)} chars ({detected})")
    return Transcript(text=text, language=detected)
