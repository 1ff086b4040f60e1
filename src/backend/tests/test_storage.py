"""Tests for analysis persistence -- owner scoping and the unordered-query fallback."""

import uuid
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from applymate.core.errors import PersistenceError
from applymate.models.orm import Analysis
from applymate.models.schemas import AnalysisResult
from applymate.services import storage_service

ANALYSIS = AnalysisResult(
    match_score=88,
    missing_skills=["Kubernetes"],
    score_explanation=["Strong Python", "No K8s"],
    resume_improvements=["a", "b", "c"],
    cover_letter="Dear Hiring Manager",
    interview_questions=["1?", "2?", "3?", "4?", "5?"],
)


def _session():
    db = MagicMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.rollback = AsyncMock()
    db.execute = AsyncMock()
    return db


def _rows_result(rows):
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows
    return result


def _row(owner: str, minutes_ago: int) -> Analysis:
    return Analysis(
        id=uuid.uuid4(),
        owner_subject=owner,
        match_score=50,
        missing_skills=[],
        score_explanation=["a", "b"],
        resume_improvements=["a", "b", "c"],
        cover_letter="x",
        interview_questions=["1", "2", "3", "4", "5"],
        job_description="Engineer",
        created_at=datetime(2026, 1, 1) - timedelta(minutes=minutes_ago),
    )


def _db_error(message: str = "index unavailable") -> OperationalError:
    return OperationalError("SELECT ...", {}, Exception(message))


class TestSaveAnalysis:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("owner", [None, "", "   "])
    async def test_empty_owner_refused_without_touching_store(self, owner):
        db = _session()

        result = await storage_service.save_analysis(db, ANALYSIS, "Engineer", owner)

        assert result.success is False
        assert result.error == "User not logged in"
        db.add.assert_not_called()
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_save_success(self):
        db = _session()

        result = await storage_service.save_analysis(
            db, ANALYSIS, "Engineer", "user-1", model_used="gemini-1.5-flash", prompt_version="v1.0"
        )

        assert result.success is True
        assert result.id is not None
        row = db.add.call_args.args[0]
        assert row.owner_subject == "user-1"
        assert row.match_score == 88
        assert row.model_used == "gemini-1.5-flash"
        assert row.id == result.id
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_job_description_is_clipped(self):
        db = _session()
        await storage_service.save_analysis(db, ANALYSIS, "x" * 2000, "user-1")
        row = db.add.call_args.args[0]
        assert len(row.job_description) == 500

    @pytest.mark.asyncio
    async def test_database_error_reported_not_raised(self):
        db = _session()
        db.commit.side_effect = _db_error("connection refused")

        result = await storage_service.save_analysis(db, ANALYSIS, "Engineer", "user-1")

        assert result.success is False
        assert "connection refused" in result.error
        db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unreachable_database_reported_not_raised(self):
        db = _session()
        db.commit.side_effect = ConnectionRefusedError(111, "Connect call failed")
        db.rollback.side_effect = ConnectionRefusedError(111, "Connect call failed")

        result = await storage_service.save_analysis(db, ANALYSIS, "Engineer", "user-1")

        assert result.success is False
        assert "Connect call failed" in result.error


class TestListAnalyses:
    @pytest.mark.asyncio
    async def test_blank_owner_returns_empty(self):
        db = _session()
        assert await storage_service.list_analyses_by_owner(db, "  ") == []
        db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ordered_query_used_when_available(self):
        db = _session()
        rows = [_row("user-1", 0), _row("user-1", 5)]
        db.execute.return_value = _rows_result(rows)

        result = await storage_service.list_analyses_by_owner(db, "user-1", limit=10)

        assert result == rows
        db.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_falls_back_to_in_memory_sort(self):
        db = _session()
        older, newest, middle = _row("user-1", 30), _row("user-1", 1), _row("user-1", 10)
        db.execute.side_effect = [_db_error(), _rows_result([older, newest, middle])]

        result = await storage_service.list_analyses_by_owner(db, "user-1", limit=2)

        assert result == [newest, middle]
        assert db.execute.await_count == 2
        db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fallback_failure_raises_persistence_error(self):
        db = _session()
        db.execute.side_effect = [_db_error(), _db_error("database is down")]

        with pytest.raises(PersistenceError) as exc_info:
            await storage_service.list_analyses_by_owner(db, "user-1")
        assert "database is down" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_unreachable_database_raises_persistence_error(self):
        db = _session()
        db.execute.side_effect = ConnectionRefusedError(111, "Connect call failed")
        db.rollback.side_effect = ConnectionRefusedError(111, "Connect call failed")

        with pytest.raises(PersistenceError):
            await storage_service.list_analyses_by_owner(db, "user-1")
        assert db.execute.await_count == 2


class TestGetAnalysis:
    @pytest.mark.asyncio
    async def test_returns_row(self):
        db = _session()
        row = _row("user-1", 0)
        result = MagicMock()
        result.scalar_one_or_none.return_value = row
        db.execute.return_value = result

        assert await storage_service.get_analysis(db, row.id, "user-1") is row

    @pytest.mark.asyncio
    async def test_database_error_raises_persistence_error(self):
        db = _session()
        db.execute.side_effect = _db_error()

        with pytest.raises(PersistenceError):
            await storage_service.get_analysis(db, uuid.uuid4(), "user-1")

    @pytest.mark.asyncio
    async def test_unreachable_database_raises_persistence_error(self):
        db = _session()
        db.execute.side_effect = OSError("network unreachable")

        with pytest.raises(PersistenceError) as exc_info:
            await storage_service.get_analysis(db, uuid.uuid4(), "user-1")
        assert "network unreachable" in exc_info.value.message


def test_to_record_uses_camel_case_on_the_wire():
    record = storage_service.to_record(_row("user-1", 0))
    dumped = record.model_dump(by_alias=True)
    assert dumped["matchScore"] == 50
    assert "jobDescription" in dumped
    assert "createdAt" in dumped
