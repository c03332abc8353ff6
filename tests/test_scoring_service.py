import json

import pytest

from conftest import ANALYSIS_RESPONSE, ANSWER, make_analysis, make_candidate
from promoscreen import scoring_service
from promoscreen.database import async_session
from promoscreen.errors import AnalysisExistsError, AnalysisUnavailableError, MalformedResponseError, NotFoundError
from promoscreen.questions import QUESTION_KEYS, QUESTIONS
from promoscreen.schemas import VocalFinding
from promoscreen.scoring_service import analyze_candidate, build_scoring_prompt, parse_analysis, score_and_store

RESPONSES = {key: ANSWER for key in QUESTION_KEYS}


def test_parse_analysis_maps_payload_fields():
    text = json.dumps(ANALYSIS_RESPONSE)
    result = parse_analysis(text)

    assert result.overall_score == 72
    assert result.trait_scores.salesAptitude == 81
    assert result.red_flags == []
    assert result.problem_areas == ["Short answers"]
    assert result.recommendation == "Maybe"
    assert result.raw_response == text


def test_parse_analysis_treats_null_red_flags_as_empty():
    payload = {**ANALYSIS_RESPONSE, "redFlags": None}
    assert parse_analysis(json.dumps(payload)).red_flags == []


@pytest.mark.parametrize(
    "payload",
    [
        {k: v for k, v in ANALYSIS_RESPONSE.items() if k != "traitScores"},
        {**ANALYSIS_RESPONSE, "overallScore": 140},
        {**ANALYSIS_RESPONSE, "overallScore": "high"},
        {**ANALYSIS_RESPONSE, "recommendation": "Strong Hire"},
        {**ANALYSIS_RESPONSE, "strengths": "Friendly"},
        {**ANALYSIS_RESPONSE, "traitScores": {"selfMotivation": 50}},
    ],
)
def test_parse_analysis_fails_closed_on_bad_shape(payload):
    with pytest.raises(MalformedResponseError):
        parse_analysis(json.dumps(payload))


def test_parse_analysis_rejects_non_json():
    with pytest.raises(MalformedResponseError):
        parse_analysis("The candidate seems great!")


def test_scoring_prompt_contains_every_question_and_answer():
    prompt = build_scoring_prompt("Lerato", RESPONSES)

    assert "Lerato" in prompt
    for question in QUESTIONS:
        assert question in prompt
    assert "VOICE & TONE ANALYSIS" not in prompt


def test_scoring_prompt_includes_vocal_findings():
    finding = VocalFinding(
        questionNumber=3,
        confidence="low",
        enthusiasm="high",
        tone=["warm", "nervous"],
        speechPace="fast",
        clarity="moderate",
        naturalness="natural",
        insights="Rushes but clearly excited.",
    )
    prompt = build_scoring_prompt("Lerato", RESPONSES, [finding])

    assert "VOICE & TONE ANALYSIS" in prompt
    assert "Question 3:" in prompt
    assert "warm, nervous" in prompt


async def test_analyze_candidate_propagates_upstream_failure(gemini):
    gemini.error = AnalysisUnavailableError("timeout")
    with pytest.raises(AnalysisUnavailableError):
        await analyze_candidate("Lerato", RESPONSES)


async def test_score_and_store_creates_single_analysis(db, gemini):
    candidate = await make_candidate(db)

    analysis = await score_and_store(db, candidate.id)
    assert analysis.overall_score == 72
    assert analysis.trait_scores["reliability"] == 64

    with pytest.raises(AnalysisExistsError):
        await score_and_store(db, candidate.id)
    assert len(gemini.prompts) == 1


async def test_score_and_store_unknown_candidate(db, gemini):
    with pytest.raises(NotFoundError):
        await score_and_store(db, "missing-id")


async def test_unique_constraint_catches_racing_insert(db, gemini, monkeypatch):
    candidate = await make_candidate(db)
    real_analyze = scoring_service.analyze_candidate

    async def analyze_while_another_request_wins(name, responses, vocal_findings=None):
        async with async_session() as other:
            await make_analysis(other, candidate.id)
        return await real_analyze(name, responses, vocal_findings)

    monkeypatch.setattr(scoring_service, "analyze_candidate", analyze_while_another_request_wins)

    with pytest.raises(AnalysisExistsError):
        await score_and_store(db, candidate.id)


async def test_trigger_endpoint_rejects_second_analysis(client, db, gemini):
    candidate = await make_candidate(db)

    first = await client.post(f"/api/candidate/{candidate.id}/analysis")
    second = await client.post(f"/api/candidate/{candidate.id}/analysis")

    assert first.status_code == 200
    assert first.json()["overall_score"] == 72
    assert second.status_code == 409
    assert second.json() == {"success": False, "error": "Analysis already exists for this candidate"}


async def test_trigger_endpoint_hides_upstream_details(client, db, gemini):
    candidate = await make_candidate(db)
    gemini.analysis = "not json at all"

    response = await client.post(f"/api/candidate/{candidate.id}/analysis")

    assert response.status_code == 502
    assert response.json()["error"] == "Analysis is unavailable right now. Please try again."


async def test_trigger_endpoint_unknown_candidate(client, gemini):
    response = await client.post("/api/candidate/nope/analysis")
    assert response.status_code == 404


async def test_rescore_with_audio_updates_in_place(db, gemini):
    candidate = await make_candidate(db)
    analysis = await make_analysis(
        db,
        candidate.id,
        overall_score=40,
        audio_tone_analysis=[{
            "questionNumber": 2,
            "confidence": "high",
            "enthusiasm": "high",
            "tone": ["energetic"],
            "speechPace": "moderate",
            "clarity": "clear",
            "naturalness": "natural",
            "insights": "Very lively.",
        }],
    )

    updated = await scoring_service.rescore_with_audio(db, candidate.id)

    assert updated.id == analysis.id
    assert updated.overall_score == 72
    assert "energetic" in gemini.prompts[-1]
