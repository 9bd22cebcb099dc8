from .jobs import Job, JobStatus, TERMINAL_STATUSES, ALLOWED_TRANSITIONS
from .analysis import CanonicalMetadata, FrameAnalysis, ContentSummary, Transcript, SampledFrame

__all__ = [
    'Job', 'JobStatus', 'TERMINAL_STATUSES', 'ALLOWED_TRANSITIONS',
    'CanonicalMetadata', 'FrameAnalysis', 'ContentSummary', 'Transcript', 'SampledFrame',
]
