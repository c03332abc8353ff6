"""Vocal delivery analysis of recorded answers.

Each recording is transcribed, then Gemini rates how the answer was
delivered. Questions are processed one after another and independently:
a failed download, transcription or rating only drops that question.
"""
import logging
from dataclasses import dataclass, field

from pydantic import ValidationError as SchemaError
from sqlalchemy.ext.asyncio import AsyncSession

from promoscreen.errors import AnalysisNotReadyError, MalformedResponseError, NoAudioError, ScreeningError
from promoscreen.gemini_client import generate_json
from promoscreen.questions import QUESTIONS, question_text
from promoscreen.schemas import TonePayload, Transcript, VocalFinding
from promoscreen.scoring_service import get_analysis_for_candidate, get_candidate
from promoscreen.stt_service import transcribe_audio

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are an expert in analyzing voice recordings to assess personality traits, "
    "confidence, and communication style for job candidates."
)


@dataclass
class ToneReport:
    findings: list[VocalFinding] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)

    @property
    def message(self) -> str:
        if not self.findings:
            return "No audio files analyzed"
        return f"Analyzed {len(self.findings)} audio recordings"


def build_tone_prompt(question: str, transcript: Transcript) -> str:
    duration = f"{transcript.duration_seconds:.1f} seconds" if transcript.duration_seconds else "unknown"
    return f"""You are analyzing a voice recording from a job candidate for an in-store promoter position.

QUESTION ASKED: "{question}"

TRANSCRIPTION: "{transcript.text}"

AUDIO METADATA:
- Duration: {duration}
- Language: {transcript.language or "unknown"}

Analyze the candidate's voice and delivery style based on the transcription and metadata:
confidence, enthusiasm, tone qualities, speech pace, clarity and naturalness
(spontaneous vs rehearsed).

Respond ONLY with valid JSON in this format:
{{
  "confidence": "high|medium|low",
  "enthusiasm": "high|medium|low",
  "tone": ["warm", "professional", "genuine"],
  "speechPace": "fast|moderate|slow",
  "clarity": "clear|moderate|unclear",
  "naturalness": "natural|somewhat-rehearsed|rehearsed",
  "insights": "2-3 sentence summary of their vocal delivery and what it reveals about their personality"
}}"""


async def analyze_audio_tone(audio: bytes, question_number: int) -> VocalFinding:
    transcript = await transcribe_audio(audio)
    text = await generate_json(
        build_tone_prompt(question_text(question_number), transcript), SYSTEM_INSTRUCTION
    )
    try:
        payload = TonePayload.model_validate_json(text)
    except SchemaError as e:
        raise MalformedResponseError(
            f"Tone response for question {question_number} failed validation", detail=e.errors()
        ) from e
    return VocalFinding(questionNumber=question_number, **payload.model_dump())


async def analyze_candidate_audio(db: AsyncSession, storage, candidate_id: str) -> ToneReport:
    """Rate every recorded answer and store the findings on the candidate's analysis.

    Raises:
        NotFoundError: no such candidate.
        NoAudioError: the candidate has no recordings linked.
        AnalysisNotReadyError: there is no analysis row to attach findings to.
    """
    candidate = await get_candidate(db, candidate_id)
    audio_urls = candidate.audio_urls or {}
    if not audio_urls:
        logger.info("[TONE] No audio linked to candidate %s", candidate_id)
        raise NoAudioError()

    analysis = await get_analysis_for_candidate(db, candidate_id)
    if not analysis:
        raise AnalysisNotReadyError()

    report = ToneReport()
    for number in range(1, len(QUESTIONS) + 1):
        object_name = audio_urls.get(f"question{number}")
        if not object_name:
            continue
        try:
            logger.info("[TONE] Analyzing question %d for candidate %s", number, candidate_id)
            audio = await storage.download(object_name)
            report.findings.append(await analyze_audio_tone(audio, number))
        except ScreeningError as e:
            logger.warning("[TONE] Skipping question %d for candidate %s: %s", number, candidate_id, e.message)
            report.skipped.append(number)

    if report.findings:
        analysis.audio_tone_analysis = [f.model_dump() for f in report.findings]
        await db.commit()
        logger.info("[TONE] Stored %d findings for candidate %s", len(report.findings), candidate_id)
    return report
