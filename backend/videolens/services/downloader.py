import os
import time
import requests
from videolens.core.config import settings
from videolens.core.errors import (
    retry_with_backoff, AcquisitionFailed, CorruptMedia, NoPlayableMedia, StageTimeout,
)
from videolens.core.logging_config import get_logger
from videolens.services.scratch import ScratchSpace

logger = get_logger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
CHUNK_SIZE = 256 * 1024


class MediaTooLarge(AcquisitionFailed):
    """media exceeds MAX_DOWNLOAD_BYTES"""
    pass


def is_retryable(error: Exception) -> bool:
    """timeouts, 5xx and connection problems are transient; client errors and bad content are not"""
    if isinstance(error, (CorruptMedia, AcquisitionFailed, NoPlayableMedia)):
        return False
    if isinstance(error, requests.exceptions.HTTPError) and error.response is not None:
        return not (400 <= error.response.status_code < 500)
    return True


def _fetch_to_file(media_url: str, dest_path: str, referer: str) -> int:
    """single download attempt; returns bytes written"""
    headers = {
        "User-Agent": BROWSER_USER_AGENT,
        "Referer": referer,
        "Accept": "video/mp4,video/*;q=0.9,*/*;q=0.8",
    }
    read_timeout = min(settings.DOWNLOAD_READ_TIMEOUT_SEC, settings.DOWNLOAD_TIMEOUT_SEC)
    started = time.monotonic()
    written = 0

    with requests.get(media_url, headers=headers, stream=True, timeout=(10, read_timeout)) as response:
        response.raise_for_status()

        declared = int(response.headers.get("Content-Length") or 0)
        if declared > settings.MAX_DOWNLOAD_BYTES:
            raise MediaTooLarge(f"Video is too large ({declared / (1024 * 1024):.0f} MB)")

        with open(dest_path, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                written += len(chunk)
                if written > settings.MAX_DOWNLOAD_BYTES:
                    raise MediaTooLarge(f"Video exceeds {settings.MAX_DOWNLOAD_BYTES / (1024 * 1024):.0f} MB limit")
                if time.monotonic() - started > settings.DOWNLOAD_TIMEOUT_SEC:
                    raise StageTimeout(f"Download exceeded {settings.DOWNLOAD_TIMEOUT_SEC:.0f}s")
                f.write(chunk)

    if written < settings.MIN_MEDIA_BYTES:
        raise CorruptMedia("Downloaded file is too small, possibly invalid")
    return written


def download_media(media_url: str, scratch: ScratchSpace, referer: str) -> str:
    """
    download the playable media into the job's scratch space

    retries transient failures with linear backoff (attempt * DOWNLOAD_BACKOFF_SEC);
    4xx responses, oversize and corrupt media abort immediately.
    returns: local path of the downloaded media
    """
    if not media_url:
        raise NoPlayableMedia("No playable video URL found for this post")

    scratch.ensure()
    dest_path = scratch.video_path

    fetch = retry_with_backoff(
        max_retries=max(1, settings.DOWNLOAD_ATTEMPTS),
        initial_delay=settings.DOWNLOAD_BACKOFF_SEC,
        linear=True,
        retryable=is_retryable,
    )(_fetch_to_file)

    logger.info(f"downloading media for job {scratch.job_id}: {media_url}")
    try:
        written = fetch(media_url, dest_path, referer)
    except (CorruptMedia, AcquisitionFailed):
        raise
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else "?"
        raise AcquisitionFailed(f"Failed to download video: HTTP {status}", last_error=e) from e
    except Exception as e:
        raise AcquisitionFailed(f"Failed to download video: {e}", last_error=e) from e

    logger.info(f"downloaded {written} bytes to {dest_path}")
    return dest_path
