from videolens.core.config import settings
from videolens.core.errors import AudioExtractionFailed, handle_worker_error, error_message_for
from videolens.core.logging_config import configure_logging, get_logger
from videolens.models import JobStatus
from videolens.services.downloader import download_media
from videolens.services.ffmpeg import extract_audio
from videolens.services.frames import sample_frames
from videolens.services.job_tracker import get_job, update_job, complete_job, fail_job
from videolens.services.log_publisher import publish_log
from videolens.services.metadata import fetch_metadata, fetch_youtube_subtitles
from videolens.services.ocr import recognize_text
from videolens.services.platforms import Platform, require_platform
from videolens.services.scene import describe_frames
from videolens.services.scratch import ScratchSpace
from videolens.services.summary import summarize
from videolens.services.transcription import transcribe_audio

logger = get_logger(__name__)

INTERRUPTED_MESSAGE = "Processing was interrupted"


def analyze_video(job_id: int):
    """
    full analysis pipeline for one job (rq job function)

    metadata -> download -> audio -> transcript -> frames -> ocr ->
    frame descriptions -> summary. required stages abort the job,
    best-effort stages degrade. scratch space is released exactly once.
    """
    job = get_job(job_id)
    if not job:
        logger.warning(f"job {job_id} not found, nothing to do")
        return

    if job.status != JobStatus.PENDING.value:
        # re-delivered after a worker crash; never re-run a job mid-flight
        if job.is_terminal:
            logger.info(f"job {job_id} already {job.status}, skipping")
        elif fail_job(job_id, INTERRUPTED_MESSAGE):
            logger.warning(f"job {job_id} was picked up in state {job.status}, marked failed")
        return

    scratch = ScratchSpace(job_id)
    try:
        _run_pipeline(job_id, job.source_url, scratch)
        publish_log('worker', 'SUCCESS', f'✅ analysis complete for job {job_id}', {'job_id': job_id})
    except Exception as e:
        handle_worker_error(job_id, e)
        message = error_message_for(e)
        if fail_job(job_id, message):
            publish_log('worker', 'ERROR', f'❌ job {job_id} failed: {message}', {'job_id': job_id})
    finally:
        scratch.release()


def _run_pipeline(job_id: int, source_url: str, scratch: ScratchSpace):
    token = settings.TIKHUB_API_TOKEN

    # metadata + media
    update_job(job_id, status=JobStatus.DOWNLOADING, progress=10)
    publish_log('worker', 'INFO', f'🎬 starting analysis: {source_url}', {'job_id': job_id})

    platform = require_platform(source_url)
    metadata = fetch_metadata(platform, source_url, token)

    subtitles = None
    if platform == Platform.YOUTUBE and metadata.video_id:
        subtitles = fetch_youtube_subtitles(metadata.video_id, token)

    update_job(
        job_id,
        platform=platform.value,
        subtitles=subtitles,
        progress=20,
        **metadata.to_job_fields()
    )
    publish_log('worker', 'INFO', f'📋 metadata: {metadata.title or "(untitled)"} by {metadata.author or "unknown"}', {
        'job_id': job_id,
        'platform': platform.value,
    })

    video_path = download_media(metadata.play_url, scratch, referer=source_url)
    update_job(job_id, progress=25)

    # audio
    update_job(job_id, status=JobStatus.EXTRACTING, progress=30)
    audio_path = None
    try:
        audio_path = extract_audio(video_path, scratch.audio_path)
    except AudioExtractionFailed as e:
        logger.warning(f"job {job_id}: continuing without audio: {e}")
        publish_log('worker', 'WARNING', f'⚠️  no audio for job {job_id}: {e}', {'job_id': job_id})
    update_job(job_id, progress=35)

    # transcript
    update_job(job_id, status=JobStatus.ANALYZING, progress=40)
    transcript = None
    if audio_path:
        try:
            transcript = transcribe_audio(audio_path, job_id)
            update_job(job_id, transcript=transcript.text, transcript_language=transcript.language)
        except Exception as e:
            logger.warning(f"job {job_id}: transcription failed, continuing: {e}")
            publish_log('worker', 'WARNING', f'⚠️  transcription failed for job {job_id}', {'job_id': job_id})
    update_job(job_id, progress=55)

    # frames + on-screen text
    update_job(job_id, status=JobStatus.EXTRACTING, progress=60)
    frames = sample_frames(video_path, metadata.duration, scratch)
    update_job(job_id, progress=65)

    ocr_text = recognize_text(frames)
    update_job(job_id, ocr_text=ocr_text, progress=70)

    # llm stages
    update_job(job_id, status=JobStatus.ANALYZING, progress=75)
    publish_log('worker', 'INFO', f'🧠 describing {len(frames)} frames', {'job_id': job_id})
    frame_analyses = describe_frames(frames, job_id)
    update_job(job_id, frame_analysis=[f.model_dump() for f in frame_analyses], progress=85)

    spoken_text = transcript.text if transcript else subtitles
    summary = summarize(metadata, frame_analyses, ocr_text, spoken_text)
    update_job(job_id, content_summary=summary.summary, key_points=summary.key_points, progress=95)

    complete_job(job_id)


if __name__ == "__main__":
    from rq import Worker
    from videolens.services.queue import queue, redis_conn

    configure_logging()
    logger.info(f"starting rq worker, listening on queue: {queue.name}")
    worker = Worker([queue], connection=redis_conn)
    worker.work()
