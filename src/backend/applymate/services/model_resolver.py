"""Pick a Gemini model name to run the analysis against.

Strategies, first success wins:
  1. Explicit override from settings (adopted without a live check)
  2. Live model listing, filtered to models supporting generateContent,
     preferring "flash" (fast/cheap), then "pro", then listing order
  3. Static fallback list from settings

The chosen name is cached on the resolver until ``invalidate()`` is called
with that same name.
Concurrent requests may race to resolve after an invalidation and each list
models once; the result is the same either way so no lock is taken.
"""

import logging
from collections.abc import Callable, Iterable, Sequence

from pydantic import BaseModel

from applymate.core.config import settings
from applymate.core.errors import ModelResolutionError
from applymate.services.llm_service import GENERATE_CONTENT, GeminiProvider, ModelInfo

logger = logging.getLogger(__name__)

MODEL_PREFIX = "models/"
PREFERRED_MARKERS = ("flash", "pro")


class ModelSelection(BaseModel):
    """Process-lifetime cache of the resolved model name."""
    model_config = {"protected_namespaces": ()}

    model_name: str | None = None


def normalize_model_name(name: str) -> str:
    return name.removeprefix(MODEL_PREFIX)


def is_well_formed(name: str) -> bool:
    return bool(name) and not any(ch.isspace() for ch in name)


def pick_from_listing(listing: Iterable[ModelInfo] | None, rejected: Sequence[str] = ()) -> str | None:
    if not listing:
        return None
    eligible = [
        normalize_model_name(m.name)
        for m in listing
        if GENERATE_CONTENT in m.supported_actions and m.name
    ]
    eligible = [name for name in eligible if name not in rejected]
    for marker in PREFERRED_MARKERS:
        for name in eligible:
            if marker in name:
                return name
    return eligible[0] if eligible else None


def pick_fallback(fallbacks: Iterable[str], rejected: Sequence[str] = ()) -> str | None:
    for name in fallbacks:
        if is_well_formed(name) and normalize_model_name(name) not in rejected:
            return name
    return None


def choose_model(
    override: str | None,
    listing: Iterable[ModelInfo] | None,
    fallbacks: Iterable[str],
    rejected: Sequence[str] = (),
) -> str:
    """Return the first model name produced by the strategies, in order.

    ``rejected`` holds normalized names that already failed at runtime; they
    are skipped by the listing and fallback strategies but never override an
    explicitly configured model.
    """
    strategies: list[Callable[[], str | None]] = [
        lambda: override.strip() if override and override.strip() else None,
        lambda: pick_from_listing(listing, rejected),
        lambda: pick_fallback(fallbacks, rejected),
    ]
    for strategy in strategies:
        chosen = strategy()
        if chosen:
            return chosen

    raise ModelResolutionError(
        "Could not find an available Gemini model. Check that the API key has "
        "access to Gemini models, or set APPLYMATE_GEMINI_MODEL to a specific model name."
    )


class ModelResolver:
    def __init__(
        self,
        provider: GeminiProvider,
        override: str | None = None,
        fallbacks: Sequence[str] | None = None,
    ):
        self.provider = provider
        self.override = override.strip() if override and override.strip() else None
        self.fallbacks = list(fallbacks) if fallbacks is not None else []
        self.selection = ModelSelection()
        self.rejected: list[str] = []

    async def _list_models(self) -> list[ModelInfo]:
        try:
            return await self.provider.list_models()
        except Exception as exc:
            logger.warning("Failed to list Gemini models, using fallback list: %s", exc)
            return []

    async def resolve(self) -> str:
        if self.selection.model_name:
            return self.selection.model_name

        listing = None if self.override else await self._list_models()
        name = choose_model(self.override, listing, self.fallbacks, self.rejected)
        self.selection.model_name = name
        logger.info("Using model: %s", name)
        return name

    def invalidate(self, failed_model: str) -> None:
        """Skip ``failed_model`` from now on and forget it if it is still cached.

        A cache that has already moved on to another model is left alone.
        """
        failed = normalize_model_name(failed_model)
        if failed and failed not in self.rejected:
            self.rejected.append(failed)
            logger.warning("Rejected model %s", failed_model)
        cached = self.selection.model_name
        if cached and normalize_model_name(cached) == failed:
            self.selection.model_name = None


_resolver: ModelResolver | None = None


def get_model_resolver() -> ModelResolver:
    """Process-wide resolver used by the API routes."""
    global _resolver
    if _resolver is None:
        _resolver = ModelResolver(
            provider=GeminiProvider(),
            override=settings.gemini_model or None,
            fallbacks=settings.gemini_fallback_models,
        )
    return _resolver
