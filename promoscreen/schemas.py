from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

Score = Annotated[int, Field(ge=0, le=100)]


class TraitScores(BaseModel):
    model_config = ConfigDict(extra="ignore")

    selfMotivation: Score
    salesAptitude: Score
    reliability: Score
    dedication: Score


class AnalysisPayload(BaseModel):
    """Shape the scoring prompt asks Gemini to return."""

    model_config = ConfigDict(extra="ignore")

    overallScore: Score
    traitScores: TraitScores
    strengths: list[str]
    redFlags: list[str] = []
    recommendation: Literal["Hire", "Maybe", "No-Hire"]
    problemAreas: list[str] = []
    reasoning: Optional[str] = None

    @field_validator("redFlags", "problemAreas", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return [] if value is None else value


class AnalysisResult(BaseModel):
    overall_score: int
    trait_scores: TraitScores
    strengths: list[str]
    red_flags: list[str]
    recommendation: Literal["Hire", "Maybe", "No-Hire"]
    problem_areas: list[str]
    reasoning: Optional[str] = None
    raw_response: str

    @classmethod
    def from_payload(cls, payload: AnalysisPayload, raw_response: str) -> "AnalysisResult":
        return cls(
            overall_score=payload.overallScore,
            trait_scores=payload.traitScores,
            strengths=payload.strengths,
            red_flags=payload.redFlags,
            recommendation=payload.recommendation,
            problem_areas=payload.problemAreas,
            reasoning=payload.reasoning,
            raw_response=raw_response,
        )


class TonePayload(BaseModel):
    """Shape the vocal delivery prompt asks Gemini to return."""

    model_config = ConfigDict(extra="ignore")

    confidence: Literal["high", "medium", "low"]
    enthusiasm: Literal["high", "medium", "low"]
    tone: list[str] = []
    speechPace: Literal["fast", "moderate", "slow"]
    clarity: Literal["clear", "moderate", "unclear"]
    naturalness: Literal["natural", "somewhat-rehearsed", "rehearsed"]
    insights: str

    @field_validator("tone", mode="before")
    @classmethod
    def _null_tone(cls, value):
        return [] if value is None else value


class VocalFinding(TonePayload):
    questionNumber: int = Field(ge=1, le=7)


class Transcript(BaseModel):
    text: str
    duration_seconds: Optional[float] = None
    language: Optional[str] = None


class CandidateSubmission(BaseModel):
    """Raw intake form values. Validation happens in the submission service
    so that the caller gets our messages instead of a generic 422."""

    full_name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    availability: str = ""
    age_verified: bool = False
    product_comfort: Optional[str] = None
    previous_experience: Optional[str] = None
    responses: dict[str, str] = {}
