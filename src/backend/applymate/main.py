"""FastAPI application entry point."""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from applymate.api.routes import router
from applymate.core.config import settings
from applymate.core.database import ping
from applymate.core.errors import AnalysisError, ErrorKind
from applymate.models.schemas import ErrorResponse

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="ApplyMate - AI Resume Analysis",
    description="""
Upload a PDF resume with a job description and get a match score, missing
skills, resume improvements, a cover letter and interview questions from Gemini.

## How It Works
1. **Upload a PDF resume** with the job description -- text is extracted with PyMuPDF
2. **Gemini analyzes** the pair with a fixed hiring-manager prompt
3. **The response is validated** against a strict JSON contract before it is returned

## Authentication
Analysis works anonymously. Saving and listing analyses need a bearer token.
""",
    version="1.0.0",
    openapi_tags=[
        {"name": "Analysis", "description": "Analyze a resume against a job description"},
        {"name": "Analyses", "description": "Save and list analyses for the signed-in user"},
        {"name": "Auth", "description": "Token verification"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")

# Error kind -> (HTTP status, short error label)
ERROR_RESPONSES: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.validation: (400, "Validation error"),
    ErrorKind.extraction: (400, "PDF processing error"),
    ErrorKind.unauthorized: (401, "AI provider authorization failed"),
    ErrorKind.rate_limited: (429, "API rate limit exceeded. Please try again later."),
    ErrorKind.model_resolution: (500, "AI analysis failed"),
    ErrorKind.model_not_found: (500, "AI analysis failed"),
    ErrorKind.malformed_response: (502, "AI analysis failed"),
    ErrorKind.schema_violation: (502, "AI analysis failed"),
    ErrorKind.persistence: (500, "Database error"),
    ErrorKind.collaborator: (500, "Internal server error"),
}


@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError) -> JSONResponse:
    status_code, label = ERROR_RESPONSES.get(exc.kind, (500, "Internal server error"))
    logger.error("%s %s failed (%s): %s", request.method, request.url.path, exc.kind.value, exc.message)
    body = ErrorResponse(error=label, kind=exc.kind.value, message=exc.message)
    if settings.environment != "production" and exc.cause is not None:
        body.details = repr(exc.cause)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.get("/api/health", tags=["System"])
async def health():
    """Liveness check with database and AI key status."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": await ping(),
        "ai": bool(settings.gemini_api_key),
    }
