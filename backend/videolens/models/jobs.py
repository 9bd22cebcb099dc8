from datetime import datetime
from enum import Enum
from sqlalchemy import BigInteger, Column, JSON, Text
from sqlmodel import SQLModel, Field
from typing import List, Optional


class JobStatus(str, Enum):
    PENDING = "pending"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = {JobStatus.COMPLETED.value, JobStatus.FAILED.value}

# pipeline order; analyzing -> extracting is the frame sampling pass after transcription
ALLOWED_TRANSITIONS = {
    JobStatus.PENDING.value: {JobStatus.DOWNLOADING.value, JobStatus.FAILED.value},
    JobStatus.DOWNLOADING.value: {JobStatus.EXTRACTING.value, JobStatus.FAILED.value},
    JobStatus.EXTRACTING.value: {JobStatus.ANALYZING.value, JobStatus.FAILED.value},
    JobStatus.ANALYZING.value: {JobStatus.EXTRACTING.value, JobStatus.COMPLETED.value, JobStatus.FAILED.value},
}


class Job(SQLModel, table=True):
    __tablename__ = "video_analyses"
    id: Optional[int] = Field(default=None, primary_key=True)
    source_url: str = Field(sa_column=Column(Text, nullable=False))
    platform: Optional[str] = Field(default=None, nullable=True, index=True)  # "douyin", "youtube", etc
    video_id: Optional[str] = Field(default=None, nullable=True)  # platform-specific id

    # canonical metadata
    title: Optional[str] = Field(default=None, sa_column=Column(Text))
    description: Optional[str] = Field(default=None, sa_column=Column(Text))
    author: Optional[str] = Field(default=None, nullable=True)
    author_id: Optional[str] = Field(default=None, nullable=True)
    cover_url: Optional[str] = Field(default=None, sa_column=Column(Text))
    play_url: Optional[str] = Field(default=None, sa_column=Column(Text))
    duration: Optional[int] = Field(default=None, nullable=True)  # seconds
    hashtags: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    view_count: Optional[int] = Field(default=None, sa_column=Column(BigInteger))
    like_count: Optional[int] = Field(default=None, sa_column=Column(BigInteger))
    comment_count: Optional[int] = Field(default=None, sa_column=Column(BigInteger))
    share_count: Optional[int] = Field(default=None, sa_column=Column(BigInteger))

    # state
    status: str = Field(default=JobStatus.PENDING.value, index=True)
    progress: int = Field(default=0)
    error_message: Optional[str] = Field(default=None, sa_column=Column(Text))
    rq_job_id: Optional[str] = Field(default=None, nullable=True, index=True)  # redis queue job id

    # artifacts
    subtitles: Optional[str] = Field(default=None, sa_column=Column(Text))
    transcript: Optional[str] = Field(default=None, sa_column=Column(Text))
    transcript_language: Optional[str] = Field(default=None, nullable=True)
    ocr_text: Optional[str] = Field(default=None, sa_column=Column(Text))
    frame_analysis: Optional[List[dict]] = Field(default=None, sa_column=Column(JSON))
    content_summary: Optional[str] = Field(default=None, sa_column=Column(Text))
    key_points: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = Field(default=None, nullable=True)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
