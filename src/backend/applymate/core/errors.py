"""Error taxonomy shared by the analysis pipeline and the HTTP layer.

Every error carries an ``ErrorKind`` so callers branch on the kind rather
than on message text. Collaborator adapters (Gemini, PyMuPDF, the database)
translate their own exceptions into these at the boundary.
"""

from enum import Enum


class ErrorKind(str, Enum):
    validation = "validation"
    extraction = "extraction"
    model_resolution = "model_resolution"
    model_not_found = "model_not_found"
    malformed_response = "malformed_response"
    schema_violation = "schema_violation"
    rate_limited = "rate_limited"
    unauthorized = "unauthorized"
    persistence = "persistence"
    collaborator = "collaborator"


class AnalysisError(Exception):
    """Base error with a kind and a human-readable message."""

    kind: ErrorKind = ErrorKind.collaborator

    def __init__(self, message: str, *, kind: ErrorKind | None = None, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self.cause = cause


class ValidationError(AnalysisError):
    """Missing or empty required input."""

    kind = ErrorKind.validation


class ExtractionError(AnalysisError):
    """The uploaded document is unreadable or has no extractable text."""

    kind = ErrorKind.extraction


class ModelResolutionError(AnalysisError):
    kind = ErrorKind.model_resolution


class MalformedResponseError(AnalysisError):
    kind = ErrorKind.malformed_response


class SchemaViolationError(AnalysisError):
    kind = ErrorKind.schema_violation

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class PersistenceError(AnalysisError):
    kind = ErrorKind.persistence


class ProviderError(AnalysisError):
    """Raised by the inference adapter; ``kind`` is set from the provider status."""


class CollaboratorError(AnalysisError):
    """Unmapped failure from an external service."""

    kind = ErrorKind.collaborator
