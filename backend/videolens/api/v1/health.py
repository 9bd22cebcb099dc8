from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlmodel import Session, select
from videolens.core.config import settings
from videolens.core.db import get_session
from videolens.services.queue import queue, redis_conn
from videolens.services.storage import storage_service
from videolens.models import Job, JobStatus
from datetime import datetime

router = APIRouter()

@router.get("/")
def health_check():
    """basic liveness check"""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "service": "videolens-backend"
    }

@router.get("/ready")
def readiness_check(session: Session = Depends(get_session)):
    """readiness check - verifies every dependency the pipeline needs"""
    checks = {}
    all_healthy = True

    # check database
    try:
        session.exec(select(Job).limit(1))
        checks["database"] = {"status": "healthy", "message": "connected"}
    except Exception as e:
        checks["database"] = {"status": "unhealthy", "message": str(e)}
        all_healthy = False

    # check redis
    try:
        redis_conn.ping()
        checks["redis"] = {"status": "healthy", "message": "connected"}
    except Exception as e:
        checks["redis"] = {"status": "unhealthy", "message": str(e)}
        all_healthy = False

    # durable storage and provider token only warn; jobs fail individually without them
    if storage_service.configured:
        checks["storage"] = {"status": "healthy", "message": "configured"}
    else:
        checks["storage"] = {"status": "warning", "message": "not configured"}

    if settings.TIKHUB_API_TOKEN:
        checks["metadata_provider"] = {"status": "healthy", "message": "token configured"}
    else:
        checks["metadata_provider"] = {"status": "warning", "message": "token missing"}

    return {
        "status": "healthy" if all_healthy else "unhealthy",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": checks
    }

@router.get("/metrics")
def get_metrics(session: Session = Depends(get_session)):
    """job counts by status"""
    rows = session.exec(select(Job.status, func.count(Job.id)).group_by(Job.status)).all()
    counts = {status.value: 0 for status in JobStatus}
    for status, count in rows:
        counts[status] = count

    try:
        queued = queue.count
    except Exception:
        queued = None

    return {
        "timestamp": datetime.utcnow().isoformat(),
        "jobs": {
            "total": sum(counts.values()),
            **counts
        },
        "queue": {
            "name": settings.QUEUE_NAME,
            "waiting": queued,
            "capacity": settings.MAX_QUEUED_JOBS
        }
    }
