"""Persistence check against a real database.

1. An anonymous save is refused
2. An owned save succeeds
3. The saved analysis is listed for its owner and hidden from others

Prints a bearer token for the test user so the API can be tried by hand.
Run from src/backend: python scripts/verify_persistence.py
"""

import asyncio
import sys
import time

from jose import jwt
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from applymate.core.config import settings
from applymate.models.orm import Analysis
from applymate.models.schemas import AnalysisResult
from applymate.services import storage_service

SAMPLE_ANALYSIS = AnalysisResult(
    match_score=88,
    missing_skills=["Kubernetes"],
    score_explanation=["Strong Python background", "No container orchestration experience"],
    resume_improvements=[
        "Quantify the impact of the payment gateway rewrite",
        "List PostgreSQL versions and scale handled",
        "Move the skills section above education",
    ],
    cover_letter="Dear Hiring Manager,\n\nI am excited to apply...",
    interview_questions=[
        "How did you design the caching layer at Stripe?",
        "Describe a PostgreSQL performance problem you solved.",
        "How would you approach learning Kubernetes quickly?",
        "Tell us about mentoring junior engineers.",
        "How do you decide between sync and async APIs?",
    ],
)


def fail(message: str) -> None:
    print(f"FAILED: {message}")
    sys.exit(1)


async def verify() -> None:
    engine = create_async_engine(settings.database_url)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    user_id = f"test-user-{int(time.time())}"

    async with session_factory() as db:
        print("[1/3] Anonymous save (should be refused)...")
        result = await storage_service.save_analysis(db, SAMPLE_ANALYSIS, "Senior Backend Engineer", None)
        if result.success:
            fail("anonymous save was accepted")
        print(f"      refused: {result.error}")

        print("[2/3] Authenticated save...")
        result = await storage_service.save_analysis(
            db, SAMPLE_ANALYSIS, "Senior Backend Engineer", user_id, model_used="manual-check"
        )
        if not result.success:
            fail(f"save returned an error: {result.error}")
        print(f"      saved: {result.id}")

        print("[3/3] Read back...")
        rows = await storage_service.list_analyses_by_owner(db, user_id)
        if not any(r.id == result.id for r in rows):
            fail("saved analysis not found for its owner")
        if await storage_service.get_analysis(db, result.id, "someone-else") is not None:
            fail("analysis visible to another user")
        print(f"      found {len(rows)} analysis for {user_id}")

        await db.execute(delete(Analysis).where(Analysis.owner_subject == user_id))
        await db.commit()

    await engine.dispose()

    token = jwt.encode(
        {"sub": user_id, "email": "test@example.com"},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    print()
    print("All checks passed.")
    print(f'  export TOKEN="{token}"')
    print('  curl -s -H "Authorization: Bearer $TOKEN" http://localhost:8000/api/analyses | python -m json.tool')


if __name__ == "__main__":
    asyncio.run(verify())
