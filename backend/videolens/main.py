from fastapi import FastAPI
from videolens.core.db import init_db
from videolens.core.logging_config import configure_logging
from videolens.api.v1 import jobs, health, ws
from videolens.core.config import settings
import os

app = FastAPI(title=settings.PROJECT_NAME)

@app.on_event("startup")
def on_startup():
    configure_logging()
    init_db()
    os.makedirs(settings.SCRATCH_DIR, exist_ok=True)

@app.get("/")
def read_root():
    return {"message": "Welcome to VideoLens API"}

app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
app.include_router(ws.router, prefix="/ws", tags=["websocket"])
