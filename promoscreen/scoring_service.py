import logging
from typing import Optional

from pydantic import ValidationError as SchemaError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from promoscreen.errors import AnalysisExistsError, MalformedResponseError, NotFoundError
from promoscreen.gemini_client import generate_json
from promoscreen.models import Analysis, Candidate
from promoscreen.questions import QUESTIONS, QUESTION_KEYS
from promoscreen.schemas import AnalysisPayload, AnalysisResult, VocalFinding

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are an expert talent evaluator specializing in identifying natural sales talent "
    "in diverse, non-traditional candidate pools. You prioritize potential over polish "
    "and authenticity over perfection."
)


def _format_vocal_findings(findings: list[VocalFinding]) -> str:
    blocks = []
    for f in sorted(findings, key=lambda f: f.questionNumber):
        blocks.append(
            f"""Question {f.questionNumber}:
- Confidence Level: {f.confidence}
- Enthusiasm: {f.enthusiasm}
- Tone Qualities: {", ".join(f.tone)}
- Speech Pace: {f.speechPace}
- Clarity: {f.clarity}
- Naturalness: {f.naturalness}
- Vocal Insights: {f.insights}"""
        )
    return f"""
VOICE & TONE ANALYSIS:
Based on audio recordings, here are insights about the candidate's vocal delivery:

{chr(10).join(blocks)}

Factor in these vocal characteristics when assessing:
- Sales Aptitude: high enthusiasm and warm tone indicate natural sales ability
- Confidence: voice confidence correlates with self-motivation and reliability
- Authenticity: natural, spontaneous delivery suggests genuine responses
- Communication: clarity and pace reveal customer-facing suitability
"""


def build_scoring_prompt(
    candidate_name: str,
    responses: dict[str, str],
    vocal_findings: Optional[list[VocalFinding]] = None,
) -> str:
    answers = "\n\n".join(
        f'Question {i + 1} - "{QUESTIONS[i]}":\n{responses.get(key, "")}'
        for i, key in enumerate(QUESTION_KEYS)
    )
    vocal_block = _format_vocal_findings(vocal_findings) if vocal_findings else ""

    return f"""You are evaluating a candidate named {candidate_name} for an in-store promoter position.

EVALUATION CONTEXT:
- Evaluate for natural sales talent and work ethic, not educational sophistication
- Look for evidence of each trait across all answers instead of trusting self-description
- Simple language or grammatical errors should not lower scores if the core message shows promise
- Value hustle, practical intelligence, people skills and life experience

CANDIDATE'S RESPONSES:

{answers}
{vocal_block}
Produce a JSON response with EXACTLY this structure:
{{
  "overallScore": <integer 0-100>,
  "traitScores": {{
    "selfMotivation": <integer 0-100>,
    "salesAptitude": <integer 0-100>,
    "reliability": <integer 0-100>,
    "dedication": <integer 0-100>
  }},
  "strengths": ["3-5 specific strength points"],
  "redFlags": ["potential concerns, or an empty list"],
  "recommendation": "Hire|Maybe|No-Hire",
  "problemAreas": ["2-4 areas where the candidate could improve"],
  "reasoning": "brief paragraph explaining the overall assessment"
}}

KEY EVALUATION CRITERIA:
- Self-Motivation: initiative, entrepreneurial spirit, making-a-plan attitude
- Sales Aptitude: storytelling, warmth, persuasion through relationships, enthusiasm
- Reliability: responsibility to family or community, overcoming challenges, consistency
- Dedication: sees the job as an opportunity, desire for stability, pride in the brand

IMPORTANT: Return ONLY valid JSON, no markdown, no extra text."""


def parse_analysis(text: str) -> AnalysisResult:
    try:
        payload = AnalysisPayload.model_validate_json(text)
    except SchemaError as e:
        raise MalformedResponseError(
            f"Scoring response failed validation: {e.error_count()} error(s)", detail=e.errors()
        ) from e
    return AnalysisResult.from_payload(payload, raw_response=text)


async def analyze_candidate(
    candidate_name: str,
    responses: dict[str, str],
    vocal_findings: Optional[list[VocalFinding]] = None,
) -> AnalysisResult:
    """Evaluate the seven answers (and optional vocal findings) with Gemini.

    Every call is a fresh evaluation; nothing is cached.

    Raises:
        AnalysisUnavailableError: Gemini could not be reached.
        MalformedResponseError: the reply did not match ``AnalysisPayload``.
    """
    prompt = build_scoring_prompt(candidate_name, responses, vocal_findings)
    text = await generate_json(prompt, SYSTEM_INSTRUCTION)
    result = parse_analysis(text)
    logger.info(
        "[SCORING] %s scored %d (%s)%s",
        candidate_name,
        result.overall_score,
        result.recommendation,
        " with vocal findings" if vocal_findings else "",
    )
    return result


def apply_result_to_analysis(analysis: Analysis, result: AnalysisResult) -> None:
    analysis.overall_score = result.overall_score
    analysis.trait_scores = result.trait_scores.model_dump()
    analysis.strengths = result.strengths
    analysis.red_flags = result.red_flags
    analysis.problem_areas = result.problem_areas
    analysis.recommendation = result.recommendation
    analysis.reasoning = result.reasoning
    analysis.raw_ai_response = result.raw_response


async def get_candidate(db: AsyncSession, candidate_id: str) -> Candidate:
    result = await db.execute(select(Candidate).where(Candidate.id == candidate_id))
    candidate = result.scalar_one_or_none()
    if not candidate:
        raise NotFoundError()
    return candidate


async def get_analysis_for_candidate(db: AsyncSession, candidate_id: str) -> Optional[Analysis]:
    result = await db.execute(select(Analysis).where(Analysis.candidate_id == candidate_id))
    return result.scalar_one_or_none()


async def score_and_store(db: AsyncSession, candidate_id: str) -> Analysis:
    """Create the single Analysis row for a candidate.

    Raises:
        NotFoundError: no such candidate.
        AnalysisExistsError: the candidate already has an analysis, either
            found up front or detected by the unique constraint on insert.
    """
    candidate = await get_candidate(db, candidate_id)
    if await get_analysis_for_candidate(db, candidate_id):
        raise AnalysisExistsError()

    result = await analyze_candidate(candidate.full_name, candidate.responses)

    analysis = Analysis(candidate_id=candidate_id)
    apply_result_to_analysis(analysis, result)
    db.add(analysis)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise AnalysisExistsError() from e
    await db.refresh(analysis)
    logger.info("[SCORING] Stored analysis %s for candidate %s", analysis.id, candidate_id)
    return analysis


async def rescore_with_audio(db: AsyncSession, candidate_id: str) -> Analysis:
    """Re-run the evaluation with the stored vocal findings, updating the row in place."""
    candidate = await get_candidate(db, candidate_id)
    analysis = await get_analysis_for_candidate(db, candidate_id)
    if not analysis:
        raise NotFoundError("Analysis not found")

    findings = [VocalFinding.model_validate(f) for f in (analysis.audio_tone_analysis or [])]
    result = await analyze_candidate(candidate.full_name, candidate.responses, findings or None)
    apply_result_to_analysis(analysis, result)
    await db.commit()
    await db.refresh(analysis)
    return analysis
