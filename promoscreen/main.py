import logging
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from starlette.datastructures import UploadFile as StarletteUploadFile

from promoscreen import config
from promoscreen.candidate_service import (
    delete_candidate,
    schedule_scoring,
    schedule_tone_analysis,
    submit_candidate,
    sync_audio,
    upload_audio,
)
from promoscreen.dashboard import candidate_detail, candidate_row, filter_candidates
from promoscreen.database import get_db, init_db
from promoscreen.drafts import DraftStore, FormDraft, missing_audio_message
from promoscreen.errors import NotFoundError, ScreeningError, UpstreamError, ValidationError
from promoscreen.models import Candidate
from promoscreen.questions import AVAILABILITY_OPTIONS, PRODUCT_COMFORT_OPTIONS, QUESTION_KEYS, QUESTIONS
from promoscreen.schemas import CandidateSubmission
from promoscreen.scoring_service import rescore_with_audio, score_and_store
from promoscreen.storage_service import get_storage
from promoscreen.stt_service import transcribe_audio
from promoscreen.tasks import tracker
from promoscreen.tone_service import analyze_candidate_audio

config.setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Promoter Screening API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup():
    await init_db()


@app.on_event("shutdown")
async def shutdown():
    if tracker.pending:
        logger.info("Waiting for background tasks: %s", ", ".join(tracker.pending))
    await tracker.drain()


@app.exception_handler(ScreeningError)
async def screening_error_handler(request: Request, exc: ScreeningError):
    if isinstance(exc, UpstreamError):
        logger.error("%s %s failed upstream: %s", request.method, request.url.path, exc.message)
        message = exc.public_message
    else:
        message = exc.message
    if exc.status_code < 400:
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": message})
    body = {"success": False, "error": message}
    if isinstance(exc, ValidationError):
        body["missing"] = exc.missing
    return JSONResponse(status_code=exc.status_code, content=body)


def _is_checked(value: str) -> bool:
    return value.strip().lower() in {"on", "true", "1", "yes"}


# ── Intake ───────────────────────────────────────────────

@app.get("/api/questions")
async def list_questions():
    return {
        "questions": [
            {"key": key, "number": i + 1, "text": QUESTIONS[i]}
            for i, key in enumerate(QUESTION_KEYS)
        ],
        "availability_options": AVAILABILITY_OPTIONS,
        "product_comfort_options": PRODUCT_COMFORT_OPTIONS,
    }


@app.post("/api/transcribe")
async def transcribe(audio: UploadFile = File(...)):
    data = await audio.read()
    if not data:
        raise HTTPException(400, "No audio file provided")
    transcript = await transcribe_audio(data)
    return {"success": True, "text": transcript.text}


@app.post("/api/submit")
async def submit(
    full_name: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    location: str = Form(""),
    availability: str = Form(""),
    age_verified: str = Form(""),
    product_comfort: Optional[str] = Form(None),
    previous_experience: Optional[str] = Form(None),
    question1: str = Form(""),
    question2: str = Form(""),
    question3: str = Form(""),
    question4: str = Form(""),
    question5: str = Form(""),
    question6: str = Form(""),
    question7: str = Form(""),
    db: AsyncSession = Depends(get_db),
):
    answers = [question1, question2, question3, question4, question5, question6, question7]
    data = CandidateSubmission(
        full_name=full_name,
        email=email,
        phone=phone,
        location=location,
        availability=availability,
        age_verified=_is_checked(age_verified),
        product_comfort=product_comfort,
        previous_experience=previous_experience,
        responses=dict(zip(QUESTION_KEYS, answers)),
    )
    candidate = await submit_candidate(db, data)
    schedule_scoring(candidate.id)
    return {"success": True, "candidate_id": candidate.id}


@app.post("/api/candidate/{candidate_id}/audio")
async def upload_candidate_audio(
    candidate_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage=Depends(get_storage),
):
    form = await request.form()
    clips = {}
    for key in QUESTION_KEYS:
        item = form.get(key)
        if isinstance(item, StarletteUploadFile):
            clips[key] = await item.read()
    if not clips:
        raise HTTPException(400, "No audio files provided")

    uploaded = await upload_audio(db, storage, candidate_id, clips)
    if uploaded and config.AUTO_ANALYZE_AUDIO:
        schedule_tone_analysis(candidate_id, storage)
    return {"success": bool(uploaded), "audio_urls": uploaded}


# ── Drafts ───────────────────────────────────────────────

@app.get("/api/drafts/{draft_id}")
async def get_draft(draft_id: str, db: AsyncSession = Depends(get_db)):
    draft = await DraftStore(db).load(draft_id)
    return {
        **draft.model_dump(),
        "can_proceed": draft.can_proceed(draft.current_step),
        "missing_audio": draft.missing_audio(),
    }


@app.put("/api/drafts/{draft_id}")
async def save_draft(draft_id: str, draft: FormDraft, db: AsyncSession = Depends(get_db)):
    await DraftStore(db).save(draft_id, draft)
    return {"ok": True, "can_proceed": draft.can_proceed(draft.current_step)}


@app.delete("/api/drafts/{draft_id}")
async def clear_draft(draft_id: str, db: AsyncSession = Depends(get_db)):
    await DraftStore(db).clear(draft_id)
    return {"ok": True}


@app.post("/api/drafts/{draft_id}/submit")
async def submit_draft(
    draft_id: str,
    db: AsyncSession = Depends(get_db),
    storage=Depends(get_storage),
):
    store = DraftStore(db)
    draft = await store.require(draft_id)
    missing = draft.missing_audio()
    if missing:
        raise ValidationError(missing_audio_message(missing), missing=[f"question{n}" for n in missing])

    clips = draft.audio_clips()
    candidate = await submit_candidate(db, draft.to_submission())
    schedule_scoring(candidate.id)
    uploaded = await upload_audio(db, storage, candidate.id, clips)
    if uploaded and config.AUTO_ANALYZE_AUDIO:
        schedule_tone_analysis(candidate.id, storage)
    await store.clear(draft_id)
    return {"success": True, "candidate_id": candidate.id, "audio_urls": uploaded}


# ── Dashboard Endpoints ─────────────────────────────────

@app.get("/api/candidates")
async def list_candidates(search: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Candidate)
        .options(selectinload(Candidate.analyses))
        .order_by(Candidate.created_at.desc())
    )
    candidates = result.scalars().all()
    return [candidate_row(c) for c in filter_candidates(candidates, search)]


@app.get("/api/candidate/{candidate_id}")
async def get_candidate(
    candidate_id: str,
    db: AsyncSession = Depends(get_db),
    storage=Depends(get_storage),
):
    result = await db.execute(
        select(Candidate)
        .options(selectinload(Candidate.analyses))
        .where(Candidate.id == candidate_id)
    )
    c = result.scalar_one_or_none()
    if not c:
        raise NotFoundError()
    return candidate_detail(c, storage)


@app.post("/api/candidate/{candidate_id}/analysis")
async def trigger_analysis(candidate_id: str, db: AsyncSession = Depends(get_db)):
    logger.info("Triggering manual analysis for candidate %s", candidate_id)
    analysis = await score_and_store(db, candidate_id)
    return {
        "success": True,
        "message": "Analysis completed successfully",
        "overall_score": analysis.overall_score,
        "recommendation": analysis.recommendation,
    }


@app.post("/api/candidate/{candidate_id}/audio-analysis")
async def analyze_audio(
    candidate_id: str,
    rescore: bool = False,
    db: AsyncSession = Depends(get_db),
    storage=Depends(get_storage),
):
    report = await analyze_candidate_audio(db, storage, candidate_id)
    response = {
        "success": bool(report.findings),
        "message": report.message,
        "analyzed": [f.questionNumber for f in report.findings],
        "skipped": report.skipped,
    }
    if rescore and report.findings:
        analysis = await rescore_with_audio(db, candidate_id)
        response["overall_score"] = analysis.overall_score
        response["recommendation"] = analysis.recommendation
    return response


@app.post("/api/candidate/{candidate_id}/audio/sync")
async def sync_candidate_audio(
    candidate_id: str,
    db: AsyncSession = Depends(get_db),
    storage=Depends(get_storage),
):
    audio_urls = await sync_audio(db, storage, candidate_id)
    return {
        "success": True,
        "message": f"Synced {len(audio_urls)} audio recordings",
        "audio_urls": audio_urls,
    }


@app.delete("/api/candidate/{candidate_id}")
async def remove_candidate(
    candidate_id: str,
    db: AsyncSession = Depends(get_db),
    storage=Depends(get_storage),
):
    await delete_candidate(db, storage, candidate_id)
    return {"success": True, "message": "Candidate and all related data deleted successfully"}
