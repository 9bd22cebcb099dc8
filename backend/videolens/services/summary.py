from typing import List, Optional
from videolens.core.config import settings
from videolens.core.logging_config import get_logger
from videolens.models import CanonicalMetadata, ContentSummary, FrameAnalysis
from videolens.services.llm import invoke_structured

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a professional video content analyst. You extract the core content "
    "and key points of a video from its metadata, transcript, frames and on-screen text."
)

SUMMARY_SCHEMA = {
    "type": "object",
    "properties": {
        "summary": {"type": "string", "description": "content summary"},
        "keyPoints": {"type": "array", "items": {"type": "string"}, "description": "key points"},
    },
    "required": ["summary", "keyPoints"],
    "additionalProperties": False,
}

MAX_KEY_POINTS = 5
GENERATION_FAILED = "generation failed"


def _format_frames(frame_analyses: List[FrameAnalysis]) -> str:
    blocks = []
    for f in frame_analyses:
        blocks.append(
            f"[{f.timestamp}s] scene: {f.scene}\n"
            f"description: {f.description}\n"
            f"objects: {', '.join(f.objects)}"
        )
    return "\n\n".join(blocks) or "none"


def build_prompt(
    metadata: CanonicalMetadata,
    frame_analyses: List[FrameAnalysis],
    ocr_text: str,
    transcript: Optional[str] = None
) -> str:
    sections = [
        "Summarize this video and list its key points.",
        "",
        f"Title: {metadata.title or 'unknown'}",
        f"Description: {metadata.description or 'none'}",
        f"Author: {metadata.author or 'unknown'}",
    ]
    if transcript:
        sections += [
            "",
            "Transcript (speech in the video, the primary source of its content):",
            transcript,
        ]
    sections += [
        "",
        "Frame analysis:",
        _format_frames(frame_analyses),
        "",
        "On-screen text (OCR):",
        ocr_text or "no text recognized",
        "",
        f"Produce a summary of at most {settings.SUMMARY_MAX_CHARS} characters and 3-5 key points.",
        'Respond as JSON: {"summary": "...", "keyPoints": ["...", "...", "..."]}',
    ]
    return "\n".join(sections)


def summarize(
    metadata: CanonicalMetadata,
    frame_analyses: List[FrameAnalysis],
    ocr_text: str,
    transcript: Optional[str] = None
) -> ContentSummary:
    """one llm call over everything gathered; never raises"""
    try:
        result = invoke_structured(
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(metadata, frame_analyses, ocr_text, transcript)},
            ],
            schema_name="content_summary",
            schema=SUMMARY_SCHEMA,
        )
        summary = str(result.get("summary") or "").strip()
        key_points = [str(p).strip() for p in result.get("keyPoints") or [] if str(p).strip()]
        if not summary:
            raise ValueError("empty summary")
    except Exception as e:
        logger.error(f"failed to generate summary: {e}")
        return ContentSummary(summary=GENERATION_FAILED, key_points=[])

    return ContentSummary(
        summary=summary[:settings.SUMMARY_MAX_CHARS],
        key_points=key_points[:MAX_KEY_POINTS],
    )
