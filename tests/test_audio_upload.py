from conftest import make_candidate
from promoscreen.candidate_service import upload_audio


async def test_upload_endpoint_links_recordings(client, db, storage):
    candidate = await make_candidate(db, audio_urls={"question2": "old/question2-1.webm"})

    response = await client.post(
        f"/api/candidate/{candidate.id}/audio",
        files={
            "question1": ("q1.webm", b"one", "audio/webm"),
            "question3": ("q3.webm", b"three", "audio/webm"),
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert sorted(body["audio_urls"]) == ["question1", "question3"]
    assert body["audio_urls"]["question1"].startswith(f"{candidate.id}/question1-")

    await db.refresh(candidate)
    assert sorted(candidate.audio_urls) == ["question1", "question2", "question3"]
    assert await storage.download(candidate.audio_urls["question3"]) == b"three"


async def test_upload_endpoint_without_files(client, db, storage):
    candidate = await make_candidate(db)

    response = await client.post(f"/api/candidate/{candidate.id}/audio", data={"note": "hi"})

    assert response.status_code == 400


async def test_upload_endpoint_unknown_candidate(client, storage):
    response = await client.post(
        "/api/candidate/missing-id/audio", files={"question1": ("q1.webm", b"one", "audio/webm")}
    )
    assert response.status_code == 404


async def test_upload_skips_unknown_keys_and_empty_clips(db, storage):
    candidate = await make_candidate(db)

    uploaded = await upload_audio(db, storage, candidate.id, {"question9": b"x", "question4": b"", "question5": b"y"})

    assert list(uploaded) == ["question5"]
