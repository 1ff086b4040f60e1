"""Orchestrator: model resolution, Gemini call and contract enforcement.

A "model not found" failure invalidates the cached model and runs the whole
cycle once more. Nothing else is retried.
"""

import logging

from applymate.core.config import settings
from applymate.core.errors import (
    AnalysisError,
    CollaboratorError,
    ErrorKind,
    ModelResolutionError,
    ProviderError,
    ValidationError,
)
from applymate.models.schemas import AnalysisResult
from applymate.prompts.resume_analysis import PROMPT_VERSION, build_analysis_prompt, truncate_input
from applymate.services.contract import extract_and_validate
from applymate.services.llm_service import GeminiProvider, GenerationParams, default_generation_params
from applymate.services.model_resolver import ModelResolver

logger = logging.getLogger(__name__)


async def _run_cycle(
    resolver: ModelResolver,
    provider: GeminiProvider,
    prompt: str,
    params: GenerationParams,
    attempted: list[str],
) -> tuple[AnalysisResult, str]:
    model_id = await resolver.resolve()
    attempted.append(model_id)
    try:
        raw_text = await provider.invoke(model_id, prompt, params)
    except AnalysisError:
        raise
    except Exception as exc:
        raise CollaboratorError(f"AI analysis failed: {exc}", cause=exc) from exc
    return extract_and_validate(raw_text), model_id


async def analyze_resume(
    resume_text: str,
    job_description: str,
    resolver: ModelResolver,
    provider: GeminiProvider,
    params: GenerationParams | None = None,
) -> tuple[AnalysisResult, str, str]:
    """Analyze a resume against a job description.

    Returns (analysis, model_used, prompt_version).
    Raises ValidationError for empty inputs, ModelResolutionError when no
    usable model is left, and the enforcer's errors for bad model output.
    """
    if not resume_text or not resume_text.strip():
        raise ValidationError("Resume text cannot be empty")
    if not job_description or not job_description.strip():
        raise ValidationError("Job description cannot be empty")

    # Gemini has token limits; both attempts use the same truncated prompt
    prompt = build_analysis_prompt(
        resume_text=truncate_input(resume_text, settings.max_input_chars),
        job_description=truncate_input(job_description, settings.max_input_chars),
    )
    params = params or default_generation_params()
    attempted: list[str] = []

    try:
        analysis, model_used = await _run_cycle(resolver, provider, prompt, params, attempted)
    except ProviderError as exc:
        if exc.kind is not ErrorKind.model_not_found:
            raise
        logger.warning("Model %s not found, re-resolving and retrying once", attempted[-1])
        resolver.invalidate(attempted[-1])
        try:
            analysis, model_used = await _run_cycle(resolver, provider, prompt, params, attempted)
        except ProviderError as retry_exc:
            if retry_exc.kind is not ErrorKind.model_not_found:
                raise
            raise ModelResolutionError(
                f'Model "{attempted[-1]}" is not available. '
                f"Attempted models: {', '.join(attempted)}. "
                f"Set APPLYMATE_GEMINI_MODEL to a model your key can use. "
                f"Original error: {exc.message}",
                cause=retry_exc,
            ) from retry_exc

    logger.info("Analysis complete with %s: matchScore=%d", model_used, analysis.match_score)
    return analysis, model_used, PROMPT_VERSION
