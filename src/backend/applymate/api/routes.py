"""API routes. Saved analyses are always scoped to the authenticated user."""

import logging
import uuid

import aiofiles
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from applymate.core.auth import get_identity, get_optional_identity, verify_token
from applymate.core.config import settings
from applymate.core.database import get_db
from applymate.core.errors import PersistenceError, SchemaViolationError
from applymate.models.schemas import (
    AnalysisListResponse,
    AnalysisRecord,
    AnalyzeResponse,
    Identity,
    SaveAnalysisRequest,
    SaveAnalysisResponse,
    VerifyAuthRequest,
    VerifyAuthResponse,
)
from applymate.prompts.resume_analysis import PROMPT_VERSION
from applymate.services import pdf_service, storage_service
from applymate.services.analysis_service import analyze_resume
from applymate.services.contract import build_result
from applymate.services.llm_service import GeminiProvider
from applymate.services.model_resolver import ModelResolver, get_model_resolver

logger = logging.getLogger(__name__)

router = APIRouter()

PDF_CONTENT_TYPE = "application/pdf"


def get_provider(resolver: ModelResolver = Depends(get_model_resolver)) -> GeminiProvider:
    return resolver.provider


# --- Analysis endpoints ---


@router.post("/analyze", response_model=AnalyzeResponse, tags=["Analysis"])
async def analyze(
    resume: UploadFile = File(..., description="PDF resume file"),
    job_description: str = Form(..., alias="jobDescription", description="Job description text"),
    save: bool = Form(default=False, description="Save the result to the caller's dashboard"),
    identity: Identity | None = Depends(get_optional_identity),
    resolver: ModelResolver = Depends(get_model_resolver),
    provider: GeminiProvider = Depends(get_provider),
    db: AsyncSession = Depends(get_db),
):
    """Analyze a PDF resume against a job description with Gemini.

    With ``save`` set and a valid bearer token, the result is also stored.
    A storage failure does not fail the request; ``saved`` is just false.
    """
    if resume.content_type != PDF_CONTENT_TYPE and not (resume.filename or "").lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files are allowed. Please upload a .pdf file.")
    if not job_description.strip():
        raise HTTPException(status_code=400, detail="Please provide a job description")

    content = await resume.read()
    if len(content) > settings.max_file_size:
        raise HTTPException(
            status_code=400,
            detail=f"Maximum file size is {settings.max_file_size // (1024 * 1024)}MB",
        )

    path = pdf_service.upload_path(resume.filename or "upload.pdf")
    try:
        async with aiofiles.open(path, "wb") as f:
            await f.write(content)
        resume_text = await run_in_threadpool(pdf_service.extract_text_from_pdf, path)
    finally:
        pdf_service.cleanup(path)

    analysis, model_used, prompt_version = await analyze_resume(
        resume_text=resume_text,
        job_description=job_description.strip(),
        resolver=resolver,
        provider=provider,
    )

    analysis_id = None
    if save and identity is not None:
        result = await storage_service.save_analysis(
            db,
            analysis,
            job_description=job_description.strip(),
            owner_subject=identity.subject,
            model_used=model_used,
            prompt_version=prompt_version,
        )
        if result.success:
            analysis_id = result.id
        else:
            logger.warning("Analysis computed but not saved: %s", result.error)
    elif save:
        logger.info("Save requested by anonymous caller, skipping")

    return AnalyzeResponse(analysis=analysis, analysis_id=analysis_id, saved=analysis_id is not None)


@router.post("/analyses", response_model=SaveAnalysisResponse, status_code=status.HTTP_201_CREATED, tags=["Analyses"])
async def save_analysis(
    body: SaveAnalysisRequest,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    """Save a previously returned analysis to the caller's dashboard."""
    # Re-check the client-supplied analysis against the same contract
    try:
        analysis = build_result(body.analysis)
    except SchemaViolationError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    result = await storage_service.save_analysis(
        db,
        analysis,
        job_description=body.job_description,
        owner_subject=identity.subject,
        prompt_version=PROMPT_VERSION,
    )
    if not result.success:
        raise PersistenceError(f"Database save failed: {result.error}")
    return SaveAnalysisResponse(analysis_id=result.id)


@router.get("/analyses", response_model=AnalysisListResponse, tags=["Analyses"])
async def list_analyses(
    limit: int = Query(default=50, ge=1, le=200),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's saved analyses, newest first."""
    rows = await storage_service.list_analyses_by_owner(db, identity.subject, limit)
    records = [storage_service.to_record(r) for r in rows]
    return AnalysisListResponse(count=len(records), analyses=records)


@router.get("/analyses/{analysis_id}", response_model=AnalysisRecord, tags=["Analyses"])
async def get_analysis(
    analysis_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    """Get one saved analysis -- owner-scoped."""
    row = await storage_service.get_analysis(db, analysis_id, identity.subject)
    if row is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return storage_service.to_record(row)


# --- Auth endpoints ---


@router.post("/auth/verify", response_model=VerifyAuthResponse, tags=["Auth"])
async def verify_auth(body: VerifyAuthRequest):
    """Check an ID token and return the identity it carries."""
    identity = verify_token(body.id_token)
    if identity is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    return VerifyAuthResponse(user=identity)
