from dataclasses import dataclass
from pydantic import BaseModel, Field
from typing import List, Optional


class CanonicalMetadata(BaseModel):
    """platform-independent description of the source media"""
    video_id: str = ""
    title: str = ""
    description: str = ""
    author: str = ""
    author_id: str = ""
    cover_url: str = ""
    play_url: str = ""
    duration: int = 0  # seconds
    hashtags: List[str] = Field(default_factory=list)
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    share_count: int = 0

    def to_job_fields(self) -> dict:
        """fields as stored on the job row"""
        return self.model_dump()


class FrameAnalysis(BaseModel):
    timestamp: int  # seconds
    frame_url: str
    scene: str = ""
    description: str = ""
    objects: List[str] = Field(default_factory=list)


class ContentSummary(BaseModel):
    summary: str
    key_points: List[str] = Field(default_factory=list)


class Transcript(BaseModel):
    text: str
    language: Optional[str] = None


@dataclass
class SampledFrame:
    """a still extracted from the downloaded media into scratch space"""
    timestamp: float  # seconds
    path: str
