"""SQLAlchemy ORM models. Every analysis row is owned by one user subject."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Analysis(Base):
    __tablename__ = "analyses"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_subject: Mapped[str] = mapped_column(String(200), nullable=False)
    match_score: Mapped[int] = mapped_column(nullable=False)
    missing_skills: Mapped[list] = mapped_column(JSONB, default=list)
    score_explanation: Mapped[list] = mapped_column(JSONB, default=list)
    resume_improvements: Mapped[list] = mapped_column(JSONB, default=list)
    cover_letter: Mapped[str] = mapped_column(Text, nullable=False)
    interview_questions: Mapped[list] = mapped_column(JSONB, default=list)
    job_description: Mapped[str] = mapped_column(String(500), nullable=False)
    model_used: Mapped[str | None] = mapped_column(String(100), nullable=True)
    prompt_version: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("match_score >= 0 AND match_score <= 100", name="ck_match_score_range"),
        Index("idx_analyses_owner_created", "owner_subject", "created_at"),
    )
