import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text, func
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(String(36), primary_key=True, default=_new_id)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    location = Column(String, nullable=False)
    availability = Column(String, nullable=False)  # full-time, part-time, weekends, flexible
    age_verified = Column(Boolean, nullable=False, default=False)
    product_comfort = Column(String, nullable=True)
    previous_experience = Column(Text, nullable=True)
    responses = Column(JSON, nullable=False)  # question1..question7 -> answer text
    audio_urls = Column(JSON, nullable=True)  # questionN -> object name in the audio store
    created_at = Column(DateTime, default=func.now())

    analyses = relationship(
        "Analysis",
        back_populates="candidate",
        cascade="all, delete-orphan",
    )


class Analysis(Base):
    __tablename__ = "analyses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    candidate_id = Column(
        String(36),
        ForeignKey("candidates.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    overall_score = Column(Integer, nullable=False)
    trait_scores = Column(JSON, nullable=False)  # selfMotivation, salesAptitude, reliability, dedication
    strengths = Column(JSON, nullable=False)
    red_flags = Column(JSON, nullable=False)
    problem_areas = Column(JSON, nullable=True)
    recommendation = Column(String, nullable=False)  # Hire, Maybe, No-Hire
    reasoning = Column(Text, nullable=True)
    audio_tone_analysis = Column(JSON, nullable=True)  # list of vocal delivery findings
    raw_ai_response = Column(Text, nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    candidate = relationship("Candidate", back_populates="analyses")


class FormDraft(Base):
    __tablename__ = "form_drafts"

    id = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
