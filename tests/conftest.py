import json
import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="promoscreen-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/test.db"
os.environ["AUDIO_LOCAL_DIR"] = os.path.join(_TMP_DIR, "audio")
os.environ["AUTO_ANALYZE_AUDIO"] = "false"
os.environ.pop("AUDIO_BUCKET", None)

import httpx
import pytest

from promoscreen.database import async_session, drop_db, engine, init_db
from promoscreen.main import app
from promoscreen.models import Analysis, Candidate
from promoscreen.questions import QUESTION_KEYS
from promoscreen.storage_service import LocalAudioStorage, get_storage
from promoscreen.tasks import tracker

ANSWER = "I helped my aunt sell fruit at the taxi rank daily"

ANALYSIS_RESPONSE = {
    "overallScore": 72,
    "traitScores": {
        "selfMotivation": 70,
        "salesAptitude": 81,
        "reliability": 64,
        "dedication": 58,
    },
    "strengths": ["Warm storyteller", "Keeps going after rejection"],
    "redFlags": [],
    "recommendation": "Maybe",
    "problemAreas": ["Short answers"],
    "reasoning": "Promising attitude with limited examples.",
}

TONE_RESPONSE = {
    "confidence": "high",
    "enthusiasm": "medium",
    "tone": ["warm", "genuine"],
    "speechPace": "moderate",
    "clarity": "clear",
    "naturalness": "natural",
    "insights": "Speaks easily and sounds sincere.",
}


def form_payload(**overrides) -> dict:
    data = {
        "full_name": "Thandi Mokoena",
        "email": "thandi@example.com",
        "phone": "+27 82 555 0101",
        "location": "Soweto, Johannesburg",
        "availability": "weekends",
        "age_verified": "on",
        "product_comfort": "comfortable",
        "previous_experience": "Market stall on Saturdays",
    }
    data.update({key: ANSWER for key in QUESTION_KEYS})
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}


class FailingDeleteStorage(LocalAudioStorage):
    async def delete(self, names):
        from promoscreen.errors import StorageError

        raise StorageError("bucket unavailable")


@pytest.fixture(autouse=True)
async def database():
    await drop_db()
    await init_db()
    yield
    await tracker.drain()
    await engine.dispose()


@pytest.fixture
async def db():
    async with async_session() as session:
        yield session


@pytest.fixture
def storage(tmp_path):
    store = LocalAudioStorage(tmp_path / "audio")
    app.dependency_overrides[get_storage] = lambda: store
    yield store
    app.dependency_overrides.pop(get_storage, None)


@pytest.fixture
async def client(storage):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def gemini(monkeypatch):
    """Replace Gemini with canned JSON replies; records every prompt sent."""

    class FakeGemini:
        def __init__(self):
            self.prompts = []
            self.analysis = json.dumps(ANALYSIS_RESPONSE)
            self.tone = json.dumps(TONE_RESPONSE)
            self.error = None

        async def __call__(self, prompt, system_instruction):
            self.prompts.append(prompt)
            if self.error:
                raise self.error
            if "QUESTION ASKED" in prompt:
                return self.tone
            return self.analysis

    fake = FakeGemini()
    monkeypatch.setattr("promoscreen.scoring_service.generate_json", fake)
    monkeypatch.setattr("promoscreen.tone_service.generate_json", fake)
    return fake


async def make_candidate(db, audio_urls=None, **overrides) -> Candidate:
    fields = {
        "full_name": "Sipho Dlamini",
        "email": "sipho@example.com",
        "phone": "+27 71 000 1111",
        "location": "Durban",
        "availability": "full-time",
        "age_verified": True,
        "responses": {key: ANSWER for key in QUESTION_KEYS},
        "audio_urls": audio_urls,
    }
    fields.update(overrides)
    candidate = Candidate(**fields)
    db.add(candidate)
    await db.commit()
    await db.refresh(candidate)
    return candidate


async def make_analysis(db, candidate_id, **overrides) -> Analysis:
    fields = {
        "candidate_id": candidate_id,
        "overall_score": 65,
        "trait_scores": ANALYSIS_RESPONSE["traitScores"],
        "strengths": ["Friendly"],
        "red_flags": [],
        "recommendation": "Maybe",
        "raw_ai_response": "{}",
    }
    fields.update(overrides)
    analysis = Analysis(**fields)
    db.add(analysis)
    await db.commit()
    await db.refresh(analysis)
    return analysis
