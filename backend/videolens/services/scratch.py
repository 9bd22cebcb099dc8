import os
from pathlib import Path
from typing import Optional
from videolens.core.config import settings
from videolens.core.logging_config import get_logger

logger = get_logger(__name__)


class ScratchSpace:
    """
    non-durable working directory owned by one job

    created when the job starts, passed through every stage and released
    once the job is terminal. paths are keyed by job id so concurrent jobs
    never collide.
    """

    def __init__(self, job_id: int, root: Optional[str] = None):
        self.job_id = job_id
        self.root = Path(root or settings.SCRATCH_DIR) / f"job_{job_id}"
        self.released = False

    @property
    def video_path(self) -> str:
        return str(self.root / "video.mp4")

    @property
    def audio_path(self) -> str:
        return str(self.root / "audio.mp3")

    def frame_path(self, index: int) -> str:
        return str(self.root / f"frame_{index}.jpg")

    def ensure(self) -> "ScratchSpace":
        self.root.mkdir(parents=True, exist_ok=True)
        self.released = False
        return self

    def release(self) -> int:
        """
        delete every scratch file for this job, then the directory.
        missing files are fine; failures are logged and swallowed.
        returns: number of files deleted
        """
        if self.released:
            return 0

        files_deleted = 0
        try:
            if self.root.exists():
                for entry in self.root.iterdir():
                    try:
                        if entry.is_file():
                            entry.unlink()
                            files_deleted += 1
                    except FileNotFoundError:
                        pass
                    except Exception as e:
                        logger.warning(f"error deleting scratch file {entry}: {e}")
                try:
                    os.rmdir(self.root)
                except FileNotFoundError:
                    pass
        except Exception as e:
            logger.warning(f"scratch cleanup failed for job {self.job_id}: {e}")

        if files_deleted:
            logger.info(f"released scratch for job {self.job_id}: {files_deleted} files deleted")
        self.released = True
        return files_deleted


def cleanup_scratch(job_id: int, root: Optional[str] = None) -> int:
    """release scratch for a job id; safe to call any number of times"""
    return ScratchSpace(job_id, root=root).release()
