"""Gemini integration via the google-genai SDK.

Provider errors are translated into ``ProviderError`` here, with the kind
taken from the HTTP status code, so the rest of the pipeline never inspects
provider messages.
"""

import logging

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel, Field

from applymate.core.config import settings
from applymate.core.errors import ErrorKind, ProviderError

logger = logging.getLogger(__name__)

GENERATE_CONTENT = "generateContent"

# The one mapping from provider status code to local error kind
STATUS_KINDS: dict[int, ErrorKind] = {
    401: ErrorKind.unauthorized,
    403: ErrorKind.unauthorized,
    404: ErrorKind.model_not_found,
    429: ErrorKind.rate_limited,
}

_client: genai.Client | None = None


class ModelInfo(BaseModel):
    name: str
    supported_actions: list[str] = Field(default_factory=list)


class GenerationParams(BaseModel):
    temperature: float = 0.3
    top_p: float = 0.95
    top_k: int = 40


def default_generation_params() -> GenerationParams:
    return GenerationParams(
        temperature=settings.gemini_temperature,
        top_p=settings.gemini_top_p,
        top_k=settings.gemini_top_k,
    )


def classify_status(code: int | None) -> ErrorKind:
    return STATUS_KINDS.get(code, ErrorKind.collaborator)


def to_provider_error(exc: genai_errors.APIError, action: str) -> ProviderError:
    kind = classify_status(exc.code)
    return ProviderError(
        f"Gemini {action} failed ({exc.code} {exc.status}): {exc.message}",
        kind=kind,
        cause=exc,
    )


def get_genai_client() -> genai.Client:
    """Get or create the Gemini client."""
    global _client
    if _client is None:
        if not settings.gemini_api_key:
            raise ProviderError(
                "APPLYMATE_GEMINI_API_KEY is not set",
                kind=ErrorKind.unauthorized,
            )
        _client = genai.Client(api_key=settings.gemini_api_key)
    return _client


class GeminiProvider:
    """Inference provider backed by the Gemini API."""

    def __init__(self, client: genai.Client | None = None):
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = get_genai_client()
        return self._client

    async def list_models(self) -> list[ModelInfo]:
        try:
            pager = await self.client.aio.models.list()
            return [
                ModelInfo(name=m.name or "", supported_actions=list(m.supported_actions or []))
                async for m in pager
            ]
        except genai_errors.APIError as exc:
            raise to_provider_error(exc, "model listing") from exc

    async def invoke(self, model_id: str, prompt: str, params: GenerationParams) -> str:
        try:
            response = await self.client.aio.models.generate_content(
                model=model_id,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=params.temperature,
                    top_p=params.top_p,
                    top_k=params.top_k,
                ),
            )
        except genai_errors.APIError as exc:
            raise to_provider_error(exc, f"generate_content on {model_id}") from exc

        raw_text = response.text or ""
        logger.info("Gemini raw response (%s): %s", model_id, raw_text[:500])
        return raw_text
