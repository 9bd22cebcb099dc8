import pytest
import requests
from videolens.core.config import settings
from videolens.core.errors import TranscriptionFailed
from videolens.services import transcription


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        return self._body


@pytest.fixture
def stt(monkeypatch):
    """configured speech service with fake storage; returns posted requests"""
    monkeypatch.setattr(settings, "STT_API_URL", "https://stt.example/v1/transcribe")
    monkeypatch.setattr(settings, "STT_API_KEY", "stt-key")
    monkeypatch.setattr(
        transcription, "storage_put_file",
        lambda key, path, content_type: {"key": key, "url": f"https://storage.example/{key}"},
    )
    posted = []
    return posted


def _serve(monkeypatch, posted, response):
    def fake_post(url, json=None, headers=None, timeout=None):
        posted.append({"url": url, "json": json, "headers": headers})
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(transcription.requests, "post", fake_post)


def test_transcribe_audio(stt, monkeypatch):
    """test the stored audio url is sent to the speech service"""
    _serve(monkeypatch, stt, FakeResponse(200, {"text": " hello world ", "language": "en"}))

    result = transcription.transcribe_audio("/tmp/audio.mp3", job_id=4)

    assert result.text == "hello world"
    assert result.language == "en"
    [call] = stt
    assert call["json"] == {
        "audio_url": "https://storage.example/video-analysis/4/audio.mp3",
        "language": settings.TRANSCRIPTION_LANGUAGE,
    }
    assert call["headers"]["Authorization"] == "Bearer stt-key"


def test_transcribe_audio_defaults_language(stt, monkeypatch):
    _serve(monkeypatch, stt, FakeResponse(200, {"text": "你好"}))
    assert transcription.transcribe_audio("/tmp/audio.mp3", job_id=4).language == settings.TRANSCRIPTION_LANGUAGE


@pytest.mark.parametrize("response", [
    FakeResponse(500, {}),
    FakeResponse(200, {"text": ""}),
    requests.exceptions.ReadTimeout("slow"),
])
def test_transcribe_audio_failures(stt, monkeypatch, response):
    _serve(monkeypatch, stt, response)
    with pytest.raises(TranscriptionFailed):
        transcription.transcribe_audio("/tmp/audio.mp3", job_id=4)


def test_transcribe_audio_unconfigured(monkeypatch):
    monkeypatch.setattr(settings, "STT_API_URL", "")
    with pytest.raises(TranscriptionFailed, match="not configured"):
        transcription.transcribe_audio("/tmp/audio.mp3", job_id=4)
