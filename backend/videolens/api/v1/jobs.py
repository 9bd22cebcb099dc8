from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, field_validator
from typing import Optional
from urllib.parse import urlparse
from videolens.core.config import settings
from videolens.core.errors import QueueFullError
from videolens.core.logging_config import get_logger
from videolens.models import Job, JobStatus
from videolens.services.job_tracker import create_job, get_job, list_jobs, fail_job, delete_job
from videolens.services.log_publisher import publish_log
from videolens.services.platforms import resolve_platform
from videolens.services.queue import enqueue_job, reconcile_stale_jobs
from videolens.worker import analyze_video

logger = get_logger(__name__)

router = APIRouter()


class SubmitJobRequest(BaseModel):
    url: str

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        value = value.strip()
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("url must be an absolute http(s) url")
        return value


def _job_to_dict(job: Job) -> dict:
    """public view of a job; the queue id stays internal"""
    job_dict = job.model_dump(exclude={"rq_job_id"})
    for key in ("created_at", "updated_at", "completed_at"):
        value = job_dict.get(key)
        job_dict[key] = value.isoformat() if value else None
    if not job.is_terminal:
        job_dict["poll_interval_sec"] = settings.POLL_INTERVAL_SEC
    return job_dict


@router.post("/", status_code=201)
def submit_job(request: SubmitJobRequest):
    """create an analysis job for a share url and queue it"""
    if not settings.TIKHUB_API_TOKEN:
        raise HTTPException(status_code=503, detail="Metadata provider token is not configured")

    platform = resolve_platform(request.url)
    if platform is None:
        raise HTTPException(status_code=400, detail="Unsupported platform or invalid URL")

    job = create_job(request.url)
    try:
        enqueue_job(analyze_video, job.id, job_id=job.id)
    except QueueFullError as e:
        fail_job(job.id, str(e))
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"failed to enqueue job {job.id}: {e}")
        fail_job(job.id, "Work queue unavailable")
        raise HTTPException(status_code=503, detail="Work queue unavailable")

    publish_log('backend', 'INFO', f'📥 queued {platform.value} analysis job {job.id}', {'job_id': job.id})
    return {"job_id": job.id}


@router.get("/")
def get_jobs(
    status: Optional[JobStatus] = None,
    limit: int = Query(default=50, ge=1, le=200)
):
    """jobs newest first, after syncing in-flight jobs with the rq registries"""
    try:
        marked = reconcile_stale_jobs()
        if marked:
            logger.info(f"reconciled {marked} stale jobs")
    except Exception as e:
        # continue anyway, just use DB state as-is
        logger.warning(f"error syncing job statuses: {e}")

    jobs = list_jobs(status=status.value if status else None, limit=limit)
    return [_job_to_dict(job) for job in jobs]


@router.get("/{job_id}")
def get_job_status(job_id: int):
    job = get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return _job_to_dict(job)


@router.delete("/{job_id}")
def remove_job(job_id: int):
    """soft delete: the job is marked failed and kept"""
    job = delete_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return {"success": True, "job": _job_to_dict(job)}
