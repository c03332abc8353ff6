import pytest

from promoscreen import config
from promoscreen.errors import TranscriptionError
from promoscreen.schemas import Transcript
from promoscreen.stt_service import MAX_INLINE_AUDIO_BYTES, transcribe_audio


async def test_requires_project(monkeypatch):
    monkeypatch.setattr(config, "GOOGLE_CLOUD_PROJECT", None)

    with pytest.raises(TranscriptionError):
        await transcribe_audio(b"audio")


async def test_rejects_empty_and_oversized_audio(monkeypatch):
    monkeypatch.setattr(config, "GOOGLE_CLOUD_PROJECT", "demo-project")

    with pytest.raises(TranscriptionError):
        await transcribe_audio(b"")
    with pytest.raises(TranscriptionError):
        await transcribe_audio(b"x" * (MAX_INLINE_AUDIO_BYTES + 1))


async def test_transcribe_endpoint(client, monkeypatch):
    async def fake_transcribe(audio, language=None):
        return Transcript(text="I love talking to people", duration_seconds=4.2, language="en-us")

    monkeypatch.setattr("promoscreen.main.transcribe_audio", fake_transcribe)

    response = await client.post("/api/transcribe", files={"audio": ("a.webm", b"webm", "audio/webm")})

    assert response.status_code == 200
    assert response.json() == {"success": True, "text": "I love talking to people"}


async def test_transcribe_endpoint_hides_failure_details(client, monkeypatch):
    async def failing_transcribe(audio, language=None):
        raise TranscriptionError("PermissionDenied: service account lacks speech.recognize")

    monkeypatch.setattr("promoscreen.main.transcribe_audio", failing_transcribe)

    response = await client.post("/api/transcribe", files={"audio": ("a.webm", b"webm", "audio/webm")})

    assert response.status_code == 502
    assert response.json() == {
        "success": False,
        "error": "Failed to transcribe audio. Please try again or type your answer.",
    }
