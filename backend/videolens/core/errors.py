import logging
from typing import Callable, Any, Optional
from functools import wraps
import time

logger = logging.getLogger(__name__)

def retry_with_backoff(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    linear: bool = False,
    retryable: Optional[Callable[[Exception], bool]] = None,
):
    """
    decorator to retry a function with backoff

    exponential by default (delay *= backoff_factor); with linear=True the
    n-th wait is initial_delay * n. exceptions for which retryable(e) is
    false are re-raised immediately without further attempts.

    usage:
        @retry_with_backoff(max_retries=5, initial_delay=2.0)
        def upload_frame(path):
            # ... code that might fail ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            delay = initial_delay
            last_exception = None

            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    last_exception = e
                    if retryable is not None and not retryable(e):
                        logger.warning(f"{func.__name__} failed with non-retryable error: {e}")
                        raise
                    if attempt < max_retries - 1:
                        wait = initial_delay * (attempt + 1) if linear else delay
                        logger.warning(
                            f"{func.__name__} failed (attempt {attempt + 1}/{max_retries}): {str(e)}. "
                            f"retrying in {wait}s..."
                        )
                        time.sleep(wait)
                        delay *= backoff_factor
                    else:
                        logger.error(
                            f"{func.__name__} failed after {max_retries} attempts: {str(e)}"
                        )

            # all retries exhausted
            raise last_exception

        return wrapper
    return decorator


def handle_worker_error(job_id: int, error: Exception):
    """
    centralized error handler for worker jobs
    logs the full traceback server-side; only the message reaches the job record
    """
    logger.error(f"job {job_id} failed: {error}", exc_info=error)


def error_message_for(error: Exception) -> str:
    """user-visible message recorded on a failed job"""
    message = str(error).strip()
    return message or "Processing failed"


class VideoAnalysisError(Exception):
    """base exception for videolens-specific errors"""
    pass


class UnsupportedPlatform(VideoAnalysisError):
    """raised when a url matches no known platform, or its platform has no fetcher"""
    pass


class CredentialError(VideoAnalysisError):
    """raised when the metadata provider token is missing or rejected"""
    pass


class MetadataUnavailable(VideoAnalysisError):
    """raised when the provider payload is missing, not found or malformed"""
    pass


class NoPlayableMedia(VideoAnalysisError):
    """raised when the metadata carries no playable media url"""
    pass


class CorruptMedia(VideoAnalysisError):
    """raised when the downloaded media is too small to be valid"""
    pass


class AcquisitionFailed(VideoAnalysisError):
    """raised when media download fails for good"""

    def __init__(self, message: str, last_error: Optional[Exception] = None):
        super().__init__(message)
        self.last_error = last_error


class AudioExtractionFailed(VideoAnalysisError):
    """raised when ffmpeg does not produce the audio artifact"""
    pass


class TranscriptionFailed(VideoAnalysisError):
    """raised when speech-to-text fails or returns nothing"""
    pass


class UnknownDuration(VideoAnalysisError):
    """raised when neither the probe nor the provider yields a positive duration"""
    pass


class StageTimeout(VideoAnalysisError):
    """raised when an external call exceeds its time budget"""
    pass


class GenerationFailed(VideoAnalysisError):
    """raised when the llm returns an error or an unusable response"""
    pass


class StorageError(VideoAnalysisError):
    """raised when durable storage is unavailable or an upload fails"""
    pass


class JobStateError(VideoAnalysisError):
    """raised on an illegal status transition or a write to a terminal job"""
    pass


class QueueFullError(VideoAnalysisError):
    """raised when the work queue is at capacity"""
    pass
