from typing import Iterable, Optional

from promoscreen.models import Analysis, Candidate
from promoscreen.questions import QUESTIONS, QUESTION_KEYS

HIGH_SCORE = 80
MEDIUM_SCORE = 60

_RECOMMENDATION_COLORS = {
    "Hire": "green",
    "Maybe": "yellow",
    "No-Hire": "red",
}


def score_band(score: Optional[float]) -> Optional[str]:
    if score is None:
        return None
    if score >= HIGH_SCORE:
        return "high"
    if score >= MEDIUM_SCORE:
        return "medium"
    return "low"


def recommendation_badge(recommendation: Optional[str]) -> str:
    return _RECOMMENDATION_COLORS.get(recommendation or "", "neutral")


def filter_candidates(candidates: Iterable[Candidate], query: Optional[str]) -> list[Candidate]:
    """Case-insensitive substring search over name, email and location."""
    candidates = list(candidates)
    needle = (query or "").strip().lower()
    if not needle:
        return candidates
    return [
        c for c in candidates
        if needle in (c.full_name or "").lower()
        or needle in (c.email or "").lower()
        or needle in (c.location or "").lower()
    ]


def _first_analysis(candidate: Candidate) -> Optional[Analysis]:
    return candidate.analyses[0] if candidate.analyses else None


def candidate_row(candidate: Candidate) -> dict:
    analysis = _first_analysis(candidate)
    return {
        "id": candidate.id,
        "full_name": candidate.full_name,
        "email": candidate.email,
        "phone": candidate.phone,
        "location": candidate.location,
        "availability": candidate.availability,
        "created_at": str(candidate.created_at) if candidate.created_at else None,
        "overall_score": analysis.overall_score if analysis else None,
        "score_band": score_band(analysis.overall_score) if analysis else None,
        "recommendation": analysis.recommendation if analysis else None,
        "recommendation_badge": recommendation_badge(analysis.recommendation) if analysis else None,
        "has_audio": bool(candidate.audio_urls),
    }


def analysis_detail(analysis: Analysis) -> dict:
    trait_scores = analysis.trait_scores or {}
    return {
        "overall_score": analysis.overall_score,
        "score_band": score_band(analysis.overall_score),
        "recommendation": analysis.recommendation,
        "recommendation_badge": recommendation_badge(analysis.recommendation),
        "trait_scores": {
            name: {"score": value, "band": score_band(value)}
            for name, value in trait_scores.items()
        },
        "strengths": analysis.strengths or [],
        "red_flags": analysis.red_flags or [],
        "problem_areas": analysis.problem_areas or [],
        "reasoning": analysis.reasoning,
        "audio_tone_analysis": sorted(
            analysis.audio_tone_analysis or [], key=lambda f: f.get("questionNumber", 0)
        ),
        "created_at": str(analysis.created_at) if analysis.created_at else None,
    }


def candidate_detail(candidate: Candidate, storage=None) -> dict:
    audio_urls = candidate.audio_urls or {}
    answers = []
    for i, key in enumerate(QUESTION_KEYS):
        object_name = audio_urls.get(key)
        answers.append({
            "question_number": i + 1,
            "question": QUESTIONS[i],
            "answer": (candidate.responses or {}).get(key, ""),
            "audio_url": storage.public_url(object_name) if storage and object_name else None,
        })

    analysis = _first_analysis(candidate)
    return {
        "id": candidate.id,
        "full_name": candidate.full_name,
        "email": candidate.email,
        "phone": candidate.phone,
        "location": candidate.location,
        "availability": candidate.availability,
        "age_verified": candidate.age_verified,
        "product_comfort": candidate.product_comfort,
        "previous_experience": candidate.previous_experience,
        "created_at": str(candidate.created_at) if candidate.created_at else None,
        "answers": answers,
        "analysis": analysis_detail(analysis) if analysis else None,
    }
