"""Persistence for saved analyses, scoped to the owning user.

Saving is best-effort from the analysis point of view: ``save_analysis``
reports failure in its result instead of raising, and the caller decides
whether that failure matters.
"""

import logging
import uuid
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from applymate.core.errors import PersistenceError
from applymate.models.orm import Analysis
from applymate.models.schemas import AnalysisRecord, AnalysisResult

logger = logging.getLogger(__name__)

JOB_DESCRIPTION_PREVIEW = 500
DEFAULT_LIMIT = 50

# asyncpg connect failures surface as OSError, not wrapped by SQLAlchemy
DB_ERRORS = (SQLAlchemyError, OSError)


class SaveResult(BaseModel):
    success: bool
    id: UUID | None = None
    error: str | None = None


def to_record(row: Analysis) -> AnalysisRecord:
    return AnalysisRecord(
        id=row.id,
        match_score=row.match_score,
        missing_skills=row.missing_skills,
        score_explanation=row.score_explanation,
        resume_improvements=row.resume_improvements,
        cover_letter=row.cover_letter,
        interview_questions=row.interview_questions,
        job_description=row.job_description,
        model_used=row.model_used,
        prompt_version=row.prompt_version,
        created_at=row.created_at,
    )


async def _rollback(db: AsyncSession) -> None:
    try:
        await db.rollback()
    except DB_ERRORS as exc:
        logger.warning("Rollback failed: %s", exc)


async def save_analysis(
    db: AsyncSession,
    analysis: AnalysisResult,
    job_description: str,
    owner_subject: str | None,
    model_used: str | None = None,
    prompt_version: str | None = None,
) -> SaveResult:
    """Insert an analysis owned by ``owner_subject``.

    An empty owner is refused before the session is touched.
    """
    if not owner_subject or not owner_subject.strip():
        logger.warning("Analysis not saved: user not logged in")
        return SaveResult(success=False, error="User not logged in")

    row = Analysis(
        id=uuid.uuid4(),
        owner_subject=owner_subject,
        match_score=analysis.match_score,
        missing_skills=analysis.missing_skills,
        score_explanation=analysis.score_explanation,
        resume_improvements=analysis.resume_improvements,
        cover_letter=analysis.cover_letter,
        interview_questions=analysis.interview_questions,
        job_description=job_description[:JOB_DESCRIPTION_PREVIEW],
        model_used=model_used,
        prompt_version=prompt_version,
    )
    try:
        db.add(row)
        await db.commit()
        await db.refresh(row)
    except DB_ERRORS as exc:
        await _rollback(db)
        logger.error("Error saving analysis for user %s: %s", owner_subject, exc)
        return SaveResult(success=False, error=str(exc))

    logger.info("Analysis saved: %s (user %s)", row.id, owner_subject)
    return SaveResult(success=True, id=row.id)


def _sort_key(row: Analysis) -> datetime:
    return row.created_at or datetime.min


async def list_analyses_by_owner(
    db: AsyncSession,
    owner_subject: str | None,
    limit: int = DEFAULT_LIMIT,
) -> list[Analysis]:
    """Return the owner's analyses, newest first.

    If the ordered query fails, fetch a wider unordered window and sort it
    in memory instead.
    """
    if not owner_subject or not owner_subject.strip():
        logger.warning("Invalid owner subject for analysis listing")
        return []

    try:
        result = await db.execute(
            select(Analysis)
            .where(Analysis.owner_subject == owner_subject)
            .order_by(Analysis.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
    except DB_ERRORS as exc:
        logger.warning("Ordered analysis query failed, falling back to unordered fetch: %s", exc)
        await _rollback(db)

    try:
        result = await db.execute(
            select(Analysis)
            .where(Analysis.owner_subject == owner_subject)
            .limit(limit * 3)
        )
        rows = list(result.scalars().all())
    except DB_ERRORS as exc:
        raise PersistenceError(f"Failed to fetch analyses: {exc}", cause=exc) from exc

    rows.sort(key=_sort_key, reverse=True)
    return rows[:limit]


async def get_analysis(
    db: AsyncSession,
    analysis_id: UUID,
    owner_subject: str,
) -> Analysis | None:
    """Get one analysis; rows owned by someone else are reported as missing."""
    try:
        result = await db.execute(
            select(Analysis).where(
                Analysis.id == analysis_id,
                Analysis.owner_subject == owner_subject,
            )
        )
    except DB_ERRORS as exc:
        raise PersistenceError(f"Failed to fetch analysis: {exc}", cause=exc) from exc
    return result.scalar_one_or_none()
