"""Pydantic schemas for API request/response validation."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Analysis schemas ---

class AnalysisResult(CamelModel):
    """Validated output of the AI analysis.

    Only built by ``contract.build_result`` after every check passes.
    """
    match_score: int = Field(ge=0, le=100)
    missing_skills: list[str]
    score_explanation: list[str] = Field(min_length=2, max_length=3)
    resume_improvements: list[str] = Field(min_length=3, max_length=3)
    cover_letter: str
    interview_questions: list[str] = Field(min_length=5, max_length=5)


class AnalyzeResponse(CamelModel):
    success: bool = True
    analysis: AnalysisResult
    analysis_id: UUID | None = None
    saved: bool = False


class SaveAnalysisRequest(CamelModel):
    analysis: dict = Field(description="Analysis object as returned by POST /analyze")
    job_description: str = Field(min_length=1, examples=["Looking for a backend engineer with Python and PostgreSQL."])


class SaveAnalysisResponse(CamelModel):
    success: bool = True
    analysis_id: UUID
    saved: bool = True


class AnalysisRecord(AnalysisResult):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())

    id: UUID
    job_description: str
    model_used: str | None
    prompt_version: str | None
    created_at: datetime


class AnalysisListResponse(CamelModel):
    success: bool = True
    count: int
    analyses: list[AnalysisRecord]


# --- Auth schemas ---

class Identity(BaseModel):
    subject: str
    email: str | None = None


class VerifyAuthRequest(CamelModel):
    id_token: str = Field(min_length=1)


class VerifyAuthResponse(BaseModel):
    success: bool = True
    user: Identity


class ErrorResponse(BaseModel):
    error: str
    kind: str
    message: str
    details: str | None = None
