import os
import pytest
import requests
from videolens import worker
from videolens.core.errors import AudioExtractionFailed, TranscriptionFailed
from videolens.models import CanonicalMetadata, ContentSummary, FrameAnalysis, SampledFrame, Transcript
from videolens.services import downloader, job_tracker

METADATA = CanonicalMetadata(
    video_id="7300000000000000000",
    title="sunset ride",
    description="evening loop #cycling",
    author="rider",
    play_url="https://cdn.example/v.mp4",
    duration=70,
    hashtags=["cycling"],
    like_count=300,
)


class Pipeline:
    """fake stage functions wired into the worker; records what ran"""

    def __init__(self, monkeypatch):
        self.calls = []
        self.progress = []
        self.scratch_dirs = []
        self.monkeypatch = monkeypatch

        original_update = job_tracker.update_job

        def spy_update(job_id, **fields):
            job = original_update(job_id, **fields)
            self.progress.append((job.status, job.progress))
            return job

        monkeypatch.setattr(worker, "update_job", spy_update)
        monkeypatch.setattr(worker, "fetch_metadata", self.fetch_metadata)
        monkeypatch.setattr(worker, "fetch_youtube_subtitles", self.fetch_youtube_subtitles)
        monkeypatch.setattr(worker, "download_media", self.download_media)
        monkeypatch.setattr(worker, "extract_audio", self.extract_audio)
        monkeypatch.setattr(worker, "transcribe_audio", self.transcribe_audio)
        monkeypatch.setattr(worker, "sample_frames", self.sample_frames)
        monkeypatch.setattr(worker, "recognize_text", lambda frames: "[12s] hi")
        monkeypatch.setattr(worker, "describe_frames", self.describe_frames)
        monkeypatch.setattr(worker, "summarize", self.summarize)

    def fetch_metadata(self, platform, url, token):
        self.calls.append("metadata")
        return METADATA

    def fetch_youtube_subtitles(self, video_id, token):
        self.calls.append("subtitles")
        return "subtitle line"

    def download_media(self, media_url, scratch, referer):
        self.calls.append("download")
        scratch.ensure()
        self.scratch_dirs.append(str(scratch.root))
        with open(scratch.video_path, "wb") as f:
            f.write(b"\x00" * 2048)
        return scratch.video_path

    def extract_audio(self, video_path, audio_path):
        self.calls.append("audio")
        with open(audio_path, "wb") as f:
            f.write(b"\x00" * 128)
        return audio_path

    def transcribe_audio(self, audio_path, job_id):
        self.calls.append("transcribe")
        return Transcript(text="hello everyone", language="en")

    def sample_frames(self, video_path, declared_duration, scratch):
        self.calls.append("frames")
        return [SampledFrame(timestamp=12.0, path=scratch.frame_path(1))]

    def describe_frames(self, frames, job_id):
        self.calls.append("describe")
        return [FrameAnalysis(timestamp=12, frame_url="https://s/1.jpg", scene="road", description="a cyclist")]

    def summarize(self, metadata, frame_analyses, ocr_text, transcript=None):
        self.calls.append(("summarize", transcript))
        return ContentSummary(summary="a sunset ride", key_points=["bike", "sunset", "road"])


@pytest.fixture
def pipeline(engine, scratch_root, monkeypatch):
    return Pipeline(monkeypatch)


def _assert_progress_monotonic(progress):
    values = [p for _, p in progress]
    assert values == sorted(values)
    assert all(p < 100 for p in values)


def test_analyze_video_completes(pipeline):
    """test a successful run fills every artifact and finishes at 100"""
    job = job_tracker.create_job("https://www.tiktok.com/@rider/video/7300000000000000000")

    worker.analyze_video(job.id)

    job = job_tracker.get_job(job.id)
    assert job.status == "completed"
    assert job.progress == 100
    assert job.completed_at is not None
    assert job.error_message is None
    assert job.platform == "tiktok"
    assert job.title == "sunset ride"
    assert job.duration == 70
    assert job.transcript == "hello everyone"
    assert job.transcript_language == "en"
    assert job.ocr_text == "[12s] hi"
    assert job.frame_analysis[0]["scene"] == "road"
    assert job.content_summary == "a sunset ride"
    assert job.key_points == ["bike", "sunset", "road"]

    assert "subtitles" not in pipeline.calls
    assert ("summarize", "hello everyone") in pipeline.calls
    _assert_progress_monotonic(pipeline.progress)
    assert [p for _, p in pipeline.progress][-1] == 95
    assert not os.path.exists(pipeline.scratch_dirs[0])


def test_analyze_video_stage_statuses(pipeline):
    job = job_tracker.create_job("https://www.tiktok.com/@rider/video/1")
    worker.analyze_video(job.id)

    statuses = []
    for status, _ in pipeline.progress:
        if not statuses or statuses[-1] != status:
            statuses.append(status)
    assert statuses == ["downloading", "extracting", "analyzing", "extracting", "analyzing"]


def test_analyze_video_youtube_fetches_subtitles(pipeline):
    job = job_tracker.create_job("https://youtu.be/dQw4w9WgXcQ")
    worker.analyze_video(job.id)

    job = job_tracker.get_job(job.id)
    assert "subtitles" in pipeline.calls
    assert job.subtitles == "subtitle line"
    assert job.status == "completed"


def test_failed_transcription_still_completes(pipeline, monkeypatch):
    """test speech-to-text failure degrades instead of failing the job"""
    def broken_transcribe(audio_path, job_id):
        raise TranscriptionFailed("transcription returned no text")

    monkeypatch.setattr(worker, "transcribe_audio", broken_transcribe)
    job = job_tracker.create_job("https://www.tiktok.com/@rider/video/1")

    worker.analyze_video(job.id)

    job = job_tracker.get_job(job.id)
    assert job.status == "completed"
    assert job.transcript is None
    assert ("summarize", None) in pipeline.calls


def test_missing_audio_skips_transcription(pipeline, monkeypatch):
    def no_audio(video_path, audio_path):
        raise AudioExtractionFailed("Audio extraction produced no output")

    monkeypatch.setattr(worker, "extract_audio", no_audio)
    job = job_tracker.create_job("https://www.tiktok.com/@rider/video/1")

    worker.analyze_video(job.id)

    assert "transcribe" not in pipeline.calls
    assert job_tracker.get_job(job.id).status == "completed"


def test_failed_acquisition_fails_job_and_cleans_scratch(pipeline, monkeypatch, no_sleep):
    """test exhausted download retries fail the job with no scratch left behind"""
    monkeypatch.setattr(worker, "download_media", downloader.download_media)

    def unreachable(url, **kwargs):
        raise requests.exceptions.ConnectionError("connection refused")

    monkeypatch.setattr(downloader.requests, "get", unreachable)
    job = job_tracker.create_job("https://www.tiktok.com/@rider/video/1")

    worker.analyze_video(job.id)

    job = job_tracker.get_job(job.id)
    assert job.status == "failed"
    assert job.error_message.startswith("Failed to download video")
    assert job.progress < 100
    assert job.title == "sunset ride"
    assert len(no_sleep) == 2
    assert not os.path.exists(worker.ScratchSpace(job.id).root)
    _assert_progress_monotonic(pipeline.progress)


def test_unsupported_platform_fails_job(pipeline):
    job = job_tracker.create_job("https://example.com/video.mp4")

    worker.analyze_video(job.id)

    job = job_tracker.get_job(job.id)
    assert job.status == "failed"
    assert job.error_message == "Unsupported platform or invalid URL"
    assert pipeline.calls == []


def test_empty_error_message_falls_back(pipeline, monkeypatch):
    def silent_failure(video_path, declared_duration, scratch):
        raise RuntimeError()

    monkeypatch.setattr(worker, "sample_frames", silent_failure)
    job = job_tracker.create_job("https://www.tiktok.com/@rider/video/1")

    worker.analyze_video(job.id)

    assert job_tracker.get_job(job.id).error_message == "Processing failed"


def test_deleted_job_is_not_completed(pipeline, monkeypatch):
    """test a job deleted mid-run stays failed with the deletion message"""
    def delete_during_frames(video_path, declared_duration, scratch):
        job_tracker.delete_job(scratch.job_id)
        return []

    monkeypatch.setattr(worker, "sample_frames", delete_during_frames)
    job = job_tracker.create_job("https://www.tiktok.com/@rider/video/1")

    worker.analyze_video(job.id)

    job = job_tracker.get_job(job.id)
    assert job.status == "failed"
    assert job.error_message == "Deleted by user"


def test_redelivered_job_is_not_rerun(pipeline):
    """test a job found mid-run is marked interrupted instead of restarted"""
    job = job_tracker.create_job("https://www.tiktok.com/@rider/video/1")
    job_tracker.update_job(job.id, status="downloading", progress=10)

    worker.analyze_video(job.id)

    job = job_tracker.get_job(job.id)
    assert job.status == "failed"
    assert job.error_message == "Processing was interrupted"
    assert pipeline.calls == []


def test_terminal_job_is_skipped(pipeline):
    job = job_tracker.create_job("https://www.tiktok.com/@rider/video/1")
    job_tracker.fail_job(job.id, "Deleted by user")

    worker.analyze_video(job.id)

    assert pipeline.calls == []
    assert job_tracker.get_job(job.id).error_message == "Deleted by user"


def test_milestones_are_published(pipeline, published_logs):
    job = job_tracker.create_job("https://www.tiktok.com/@rider/video/1")
    worker.analyze_video(job.id)
    assert any("analysis complete" in message for _, message in published_logs)
