from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from packages.tiv_core.time import utc_now


class Base(DeclarativeBase):
    pass


class InterviewRow(Base):
    """Interview definition table. List and mapping fields are JSON text."""

    __tablename__ = "interviews"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    role: Mapped[str] = mapped_column(String(200), nullable=False)
    skills: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False, default="Mid")
    rubric: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    red_flags: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    tone: Mapped[str] = mapped_column(String(16), nullable=False, default="neutral")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)


class SessionRow(Base):
    """Candidate session table. One session per candidate email and interview."""

    __tablename__ = "interview_sessions"
    __table_args__ = (
        UniqueConstraint("interview_id", "candidate_email", name="uq_session_interview_email"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    interview_id: Mapped[str] = mapped_column(
        ForeignKey("interviews.id", ondelete="CASCADE"), nullable=False, index=True
    )
    candidate_name: Mapped[str] = mapped_column(String(200), nullable=False)
    candidate_email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", index=True)
    current_step: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    responses: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    engine_state: Mapped[str | None] = mapped_column(Text, nullable=True)
    final_evaluation: Mapped[str | None] = mapped_column(Text, nullable=True)
    resume_token: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True, index=True)
    verification_token: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    verification_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class EvaluationRow(Base):
    """Final evaluation table. One row per completed session."""

    __tablename__ = "evaluations"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    session_id: Mapped[str] = mapped_column(
        ForeignKey("interview_sessions.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    interview_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    overall_score: Mapped[int] = mapped_column(Integer, nullable=False)
    recommendation: Mapped[str] = mapped_column(String(16), nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
