"""In-progress intake forms.

A draft holds everything the multi-step form has collected so far,
including the base64 audio of each recorded answer, so a candidate can
reload the page without losing work. Drafts live in ``form_drafts`` until
they are submitted or cleared.
"""
import base64
import binascii
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from promoscreen.errors import NotFoundError, ValidationError
from promoscreen.models import FormDraft as FormDraftRow
from promoscreen.questions import QUESTION_KEYS
from promoscreen.schemas import CandidateSubmission

TOTAL_STEPS = len(QUESTION_KEYS) + 2  # contact details, one step per question, review


class FormDraft(BaseModel):
    current_step: int = 1
    full_name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    availability: str = ""
    age_verified: bool = False
    product_comfort: Optional[str] = None
    previous_experience: Optional[str] = None
    responses: dict[str, str] = {}
    audio: dict[str, str] = {}  # questionN -> base64 encoded recording

    def can_proceed(self, step: int) -> bool:
        if step == 1:
            return bool(
                self.full_name and self.email and self.phone
                and self.location and self.availability and self.age_verified
            )
        if 2 <= step <= len(QUESTION_KEYS) + 1:
            key = QUESTION_KEYS[step - 2]
            return bool((self.responses.get(key) or "").strip() and self.audio.get(key))
        return True

    def missing_audio(self) -> list[int]:
        return [i + 1 for i, key in enumerate(QUESTION_KEYS) if not self.audio.get(key)]

    def audio_clips(self) -> dict[str, bytes]:
        clips = {}
        for key, encoded in self.audio.items():
            if not encoded:
                continue
            try:
                clips[key] = base64.b64decode(encoded, validate=True)
            except (binascii.Error, ValueError) as e:
                raise ValidationError(f"Recording for {key} is not valid base64", missing=[key]) from e
        return clips

    def to_submission(self) -> CandidateSubmission:
        return CandidateSubmission(
            **self.model_dump(exclude={"current_step", "audio"}),
        )


def missing_audio_message(numbers: list[int]) -> str:
    plural = "s" if len(numbers) > 1 else ""
    joined = ", ".join(str(n) for n in numbers)
    return f"Voice recording is required for question{plural} {joined}. Please go back and record your answers."


class DraftStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _row(self, draft_id: str) -> Optional[FormDraftRow]:
        result = await self.db.execute(select(FormDraftRow).where(FormDraftRow.id == draft_id))
        return result.scalar_one_or_none()

    async def load(self, draft_id: str) -> FormDraft:
        """Return the saved draft, or an empty one when nothing was saved yet."""
        row = await self._row(draft_id)
        if row is None:
            return FormDraft()
        return FormDraft.model_validate(row.data)

    async def require(self, draft_id: str) -> FormDraft:
        row = await self._row(draft_id)
        if row is None:
            raise NotFoundError("Draft not found")
        return FormDraft.model_validate(row.data)

    async def save(self, draft_id: str, draft: FormDraft) -> FormDraft:
        row = await self._row(draft_id)
        if row is None:
            row = FormDraftRow(id=draft_id, data=draft.model_dump())
            self.db.add(row)
        else:
            row.data = draft.model_dump()
        await self.db.commit()
        return draft

    async def clear(self, draft_id: str) -> None:
        row = await self._row(draft_id)
        if row is not None:
            await self.db.delete(row)
            await self.db.commit()
