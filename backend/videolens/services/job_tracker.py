from sqlmodel import Session, select
from videolens.core import db
from videolens.core.errors import JobStateError
from videolens.core.logging_config import get_logger
from videolens.models import Job, JobStatus, TERMINAL_STATUSES, ALLOWED_TRANSITIONS
from datetime import datetime
from typing import List, Optional

logger = get_logger(__name__)

DELETED_MESSAGE = "Deleted by user"

# columns the pipeline is never allowed to write through update_job
_PROTECTED_FIELDS = {"id", "created_at", "completed_at", "rq_job_id"}

def create_job(source_url: str) -> Job:
    """create a pending job record with empty artifacts"""
    with Session(db.engine) as session:
        job = Job(
            source_url=source_url,
            status=JobStatus.PENDING.value,
            progress=0
        )
        session.add(job)
        session.commit()
        session.refresh(job)
        return job

def attach_rq_job(job_id: int, rq_job_id: str):
    """remember which queue entry is processing a job"""
    with Session(db.engine) as session:
        job = session.get(Job, job_id)
        if job:
            job.rq_job_id = rq_job_id
            job.updated_at = datetime.utcnow()
            session.add(job)
            session.commit()

def get_job(job_id: int) -> Optional[Job]:
    with Session(db.engine) as session:
        return session.get(Job, job_id)

def list_jobs(status: Optional[str] = None, limit: Optional[int] = None) -> List[Job]:
    """jobs ordered by creation time, newest first"""
    with Session(db.engine) as session:
        query = select(Job).order_by(Job.created_at.desc(), Job.id.desc())
        if status:
            query = query.where(Job.status == status)
        if limit:
            query = query.limit(limit)
        return list(session.exec(query).all())

def _apply_status(job: Job, new_status: str):
    if new_status == job.status:
        return
    allowed = ALLOWED_TRANSITIONS.get(job.status, set())
    if new_status not in allowed:
        raise JobStateError(f"illegal status transition {job.status} -> {new_status}")
    job.status = new_status

def _apply_progress(job: Job, progress: int):
    progress = int(progress)
    if progress < job.progress:
        # progress never goes backwards within a run
        logger.warning(f"job {job.id}: ignoring progress {progress} < {job.progress}")
        return
    if progress >= 100:
        raise JobStateError("progress 100 is reserved for completed jobs")
    job.progress = progress

def update_job(job_id: int, **fields) -> Job:
    """
    partial-field merge onto a non-terminal job

    status must follow ALLOWED_TRANSITIONS and progress is non-decreasing;
    any write to a completed/failed job raises JobStateError
    """
    with Session(db.engine) as session:
        job = session.get(Job, job_id)
        if not job:
            raise JobStateError(f"job {job_id} not found")
        if job.status in TERMINAL_STATUSES:
            raise JobStateError(f"job {job_id} is already {job.status}")

        status = fields.pop("status", None)
        progress = fields.pop("progress", None)
        for name, value in fields.items():
            if name in _PROTECTED_FIELDS or name not in Job.model_fields:
                raise ValueError(f"cannot update job field: {name}")
            setattr(job, name, value)

        if status is not None:
            new_status = status.value if isinstance(status, JobStatus) else status
            if new_status in TERMINAL_STATUSES:
                raise JobStateError("use complete_job/fail_job for terminal states")
            _apply_status(job, new_status)
        if progress is not None:
            _apply_progress(job, progress)

        job.updated_at = datetime.utcnow()
        session.add(job)
        session.commit()
        session.refresh(job)
        return job

def complete_job(job_id: int) -> Job:
    """mark a job as completed"""
    with Session(db.engine) as session:
        job = session.get(Job, job_id)
        if not job:
            raise JobStateError(f"job {job_id} not found")
        _apply_status(job, JobStatus.COMPLETED.value)
        job.progress = 100
        job.completed_at = datetime.utcnow()
        job.updated_at = datetime.utcnow()
        session.add(job)
        session.commit()
        session.refresh(job)
        return job

def fail_job(job_id: int, error_message: str) -> bool:
    """mark a job as failed; returns False when it was already terminal"""
    with Session(db.engine) as session:
        job = session.get(Job, job_id)
        if not job:
            return False
        if job.status in TERMINAL_STATUSES:
            logger.info(f"job {job_id} already {job.status}, not recording failure: {error_message}")
            return False
        job.status = JobStatus.FAILED.value
        job.error_message = error_message
        job.updated_at = datetime.utcnow()
        session.add(job)
        session.commit()
        return True

def delete_job(job_id: int) -> Optional[Job]:
    """
    soft delete: force the job into failed regardless of its status.
    the row is kept; progress is left as it was
    """
    with Session(db.engine) as session:
        job = session.get(Job, job_id)
        if not job:
            return None
        job.status = JobStatus.FAILED.value
        job.error_message = DELETED_MESSAGE
        job.updated_at = datetime.utcnow()
        session.add(job)
        session.commit()
        session.refresh(job)
        return job
