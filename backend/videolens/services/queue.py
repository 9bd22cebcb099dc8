from redis import Redis
from rq import Queue
from rq.job import Job as RQJob
from rq.registry import FailedJobRegistry, StartedJobRegistry
from videolens.core.config import settings
from videolens.core.errors import QueueFullError
from videolens.core.logging_config import get_logger
from videolens.models import JobStatus
from videolens.services.job_tracker import attach_rq_job, fail_job, list_jobs

logger = get_logger(__name__)

redis_conn = Redis.from_url(settings.REDIS_URL)
queue = Queue(settings.QUEUE_NAME, connection=redis_conn)

def enqueue_job(func, *args, job_id: int, **kwargs):
    """enqueue a job and link the queue entry to its database record"""
    if settings.MAX_QUEUED_JOBS and queue.count >= settings.MAX_QUEUED_JOBS:
        raise QueueFullError(f"analysis queue is full ({settings.MAX_QUEUED_JOBS} jobs waiting)")

    rq_job = queue.enqueue(func, *args, job_timeout=settings.JOB_TIMEOUT, **kwargs)
    attach_rq_job(job_id, rq_job.id)
    return rq_job

def reconcile_stale_jobs() -> int:
    """
    sync in-flight job records with RQ registries.
    catches jobs whose worker was killed or lost before it could record a
    terminal state. returns the number of jobs marked failed
    """
    failed_ids = set(FailedJobRegistry(queue=queue).get_job_ids())
    started_ids = set(StartedJobRegistry(queue=queue).get_job_ids())

    marked = 0
    for status in (JobStatus.DOWNLOADING, JobStatus.EXTRACTING, JobStatus.ANALYZING):
        for job in list_jobs(status=status.value):
            rq_job_id = job.rq_job_id
            if not rq_job_id or rq_job_id in started_ids:
                continue

            if rq_job_id in failed_ids:
                message = "worker failed unexpectedly"
            else:
                try:
                    rq_job = RQJob.fetch(rq_job_id, connection=redis_conn)
                except Exception:
                    message = "job lost (not found in queue)"
                else:
                    if not rq_job.is_failed:
                        continue
                    message = "worker killed or job timeout exceeded"

            if fail_job(job.id, message):
                logger.warning(f"marked stale job {job.id} ({rq_job_id}) as failed: {message}")
                marked += 1
    return marked
