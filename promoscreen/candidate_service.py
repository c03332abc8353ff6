import logging
import re
import time
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from promoscreen.database import async_session
from promoscreen.errors import NotFoundError, NothingToSyncError, StorageError, ValidationError
from promoscreen.models import Candidate
from promoscreen.questions import AVAILABILITY_OPTIONS, PRODUCT_COMFORT_OPTIONS, QUESTION_KEYS, QUESTIONS
from promoscreen.schemas import CandidateSubmission
from promoscreen.scoring_service import get_candidate, score_and_store
from promoscreen.tasks import tracker
from promoscreen.tone_service import analyze_candidate_audio

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ["full_name", "email", "phone", "location", "availability"]
_QUESTION_TAG_RE = re.compile(r"question(\d+)(?:-(\d+))?")


def scoring_task_name(candidate_id: str) -> str:
    return f"score:{candidate_id}"


def tone_task_name(candidate_id: str) -> str:
    return f"tone:{candidate_id}"


# ── Submission ───────────────────────────────────────────

def validate_submission(data: CandidateSubmission) -> None:
    missing = [name for name in REQUIRED_FIELDS if not str(getattr(data, name) or "").strip()]
    if not data.age_verified:
        missing.append("age_verified")
    if missing:
        raise ValidationError("Please fill in all required fields", missing=missing)

    if data.availability not in AVAILABILITY_OPTIONS:
        raise ValidationError("Please choose a valid option", missing=["availability"])
    if data.product_comfort and data.product_comfort not in PRODUCT_COMFORT_OPTIONS:
        raise ValidationError("Please choose a valid option", missing=["product_comfort"])

    unanswered = [key for key in QUESTION_KEYS if not (data.responses.get(key) or "").strip()]
    if unanswered:
        raise ValidationError("Please answer all questions", missing=unanswered)


async def submit_candidate(db: AsyncSession, data: CandidateSubmission) -> Candidate:
    """Validate the intake form and store the candidate.

    Scoring is not started here; callers hand the id to ``tracker`` via
    ``schedule_scoring`` so the response never waits on Gemini.
    """
    validate_submission(data)

    candidate = Candidate(
        full_name=data.full_name.strip(),
        email=data.email.strip(),
        phone=data.phone.strip(),
        location=data.location.strip(),
        availability=data.availability,
        age_verified=True,
        product_comfort=data.product_comfort or None,
        previous_experience=(data.previous_experience or "").strip() or None,
        responses={key: data.responses[key].strip() for key in QUESTION_KEYS},
    )
    db.add(candidate)
    await db.commit()
    await db.refresh(candidate)
    logger.info("[SUBMIT] Stored candidate %s", candidate.id)
    return candidate


async def run_scoring(candidate_id: str) -> None:
    async with async_session() as db:
        await score_and_store(db, candidate_id)


def schedule_scoring(candidate_id: str):
    return tracker.spawn(scoring_task_name(candidate_id), run_scoring(candidate_id))


async def run_tone_analysis(candidate_id: str, storage) -> None:
    # Findings attach to the analysis row, so let a pending scoring run finish first.
    await tracker.wait_for(scoring_task_name(candidate_id))
    async with async_session() as db:
        report = await analyze_candidate_audio(db, storage, candidate_id)
    logger.info("[TONE] Candidate %s: %s", candidate_id, report.message)


def schedule_tone_analysis(candidate_id: str, storage):
    return tracker.spawn(tone_task_name(candidate_id), run_tone_analysis(candidate_id, storage))


# ── Audio ────────────────────────────────────────────────

def audio_object_name(candidate_id: str, question_key: str) -> str:
    return f"{candidate_id}/{question_key}-{int(time.time() * 1000)}.webm"


async def upload_audio(
    db: AsyncSession, storage, candidate_id: str, clips: dict[str, bytes]
) -> dict[str, str]:
    """Store answer recordings and link them to the candidate.

    Clips that fail to upload are logged and left out; the rest are merged
    into the candidate's existing audio map.
    """
    candidate = await get_candidate(db, candidate_id)
    uploaded: dict[str, str] = {}
    for key, data in clips.items():
        if key not in QUESTION_KEYS or not data:
            continue
        name = audio_object_name(candidate_id, key)
        try:
            await storage.upload(name, data)
        except StorageError as e:
            logger.error("[UPLOAD] Error uploading %s for candidate %s: %s", key, candidate_id, e.message)
            continue
        uploaded[key] = name
        logger.info("[UPLOAD] Stored %s (%d bytes) as %s", key, len(data), name)

    if uploaded:
        candidate.audio_urls = {**(candidate.audio_urls or {}), **uploaded}
        await db.commit()
    return uploaded


def question_tag(object_name: str) -> Optional[str]:
    """``"abc/question2-1712345.webm"`` -> ``"question2"``; unknown names -> None."""
    base = object_name.rsplit("/", 1)[-1]
    match = _QUESTION_TAG_RE.search(base)
    if not match:
        return None
    number = int(match.group(1))
    if not 1 <= number <= len(QUESTIONS):
        return None
    return f"question{number}"


def recording_timestamp(object_name: str) -> int:
    """Epoch-ms suffix of ``questionN-<ms>.webm``; bare ``questionN.webm`` ranks lowest."""
    match = _QUESTION_TAG_RE.search(object_name.rsplit("/", 1)[-1])
    if not match or match.group(2) is None:
        return -1
    return int(match.group(2))


async def sync_audio(db: AsyncSession, storage, candidate_id: str) -> dict[str, str]:
    """Rebuild the candidate's audio map from what is actually in storage.

    The stored map is replaced, not merged. When a question has several
    recordings the latest (greatest timestamp suffix) wins.
    """
    candidate = await get_candidate(db, candidate_id)
    names = await storage.list_names(f"{candidate_id}/")
    if not names:
        raise NothingToSyncError()
    logger.info("[SYNC] Found %d audio files for candidate %s", len(names), candidate_id)

    audio_urls: dict[str, str] = {}
    for name in names:
        tag = question_tag(name)
        if not tag:
            continue
        current = audio_urls.get(tag)
        if current is None or recording_timestamp(name) > recording_timestamp(current):
            audio_urls[tag] = name
    if not audio_urls:
        raise NothingToSyncError("No valid audio files found")

    candidate.audio_urls = audio_urls
    await db.commit()
    logger.info("[SYNC] Synced %d audio recordings for candidate %s", len(audio_urls), candidate_id)
    return audio_urls


# ── Deletion ─────────────────────────────────────────────

async def delete_candidate(db: AsyncSession, storage, candidate_id: str) -> None:
    result = await db.execute(
        select(Candidate)
        .options(selectinload(Candidate.analyses))
        .where(Candidate.id == candidate_id)
    )
    candidate = result.scalar_one_or_none()
    if not candidate:
        raise NotFoundError()

    object_names = [name for name in (candidate.audio_urls or {}).values() if name]
    if object_names:
        try:
            await storage.delete(object_names)
            logger.info("[DELETE] Removed %d audio files for candidate %s", len(object_names), candidate_id)
        except StorageError as e:
            logger.warning("[DELETE] Could not remove audio for candidate %s: %s", candidate_id, e.message)

    await db.delete(candidate)
    await db.commit()
    logger.info("[DELETE] Deleted candidate %s", candidate_id)
