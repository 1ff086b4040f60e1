"""Response contract enforcement for raw Gemini output.

The model is told to return bare JSON but often wraps it in markdown fences
or adds a sentence before it. ``extract_and_validate`` strips the wrapping,
parses the JSON and checks it against the analysis schema, failing on the
first violated rule. There is no partially valid result.
"""

import json
import math
from typing import Any

from applymate.core.errors import MalformedResponseError, SchemaViolationError
from applymate.models.schemas import AnalysisResult

JSON_FENCE = "```json"
FENCE = "```"

# Field name -> expected type, in the order fields are checked
REQUIRED_FIELDS: dict[str, str] = {
    "matchScore": "number",
    "missingSkills": "string_list",
    "scoreExplanation": "string_list",
    "resumeImprovements": "string_list",
    "coverLetter": "string",
    "interviewQuestions": "string_list",
}

RESUME_IMPROVEMENTS_COUNT = 3
INTERVIEW_QUESTIONS_COUNT = 5
SCORE_EXPLANATION_RANGE = (2, 3)


def _between_fences(text: str, opening: str) -> str:
    after = text.split(opening, 1)[1]
    return after.split(FENCE, 1)[0].strip()


def extract_json(raw_text: str) -> dict[str, Any]:
    """Pull the JSON object out of raw model text and parse it."""
    text = raw_text.strip()

    if JSON_FENCE in text:
        text = _between_fences(text, JSON_FENCE)
    elif FENCE in text:
        text = _between_fences(text, FENCE)

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise MalformedResponseError("No valid JSON found in AI response")

    candidate = text[start:end + 1]
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(
            f"Failed to parse JSON: {exc.msg}. Response: {candidate[:200]}",
            cause=exc,
        ) from exc

    if not isinstance(parsed, dict):
        raise MalformedResponseError(f"Expected a JSON object. Response: {candidate[:200]}")
    return parsed


def _is_number(value: Any) -> bool:
    # bool is an int subclass; reject it explicitly
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_type(field: str, value: Any, expected: str) -> None:
    if expected == "number" and not _is_number(value):
        raise SchemaViolationError(field, f"Field {field} must be a number")
    if expected == "string" and not isinstance(value, str):
        raise SchemaViolationError(field, f"Field {field} must be a string")
    if expected == "string_list":
        if not isinstance(value, list):
            raise SchemaViolationError(field, f"Field {field} must be an array")
        if not all(isinstance(item, str) for item in value):
            raise SchemaViolationError(field, f"Field {field} must contain only strings")


def validate_analysis(data: dict[str, Any]) -> None:
    """Check presence, types, then range and cardinality constraints."""
    for field in REQUIRED_FIELDS:
        if field not in data:
            raise SchemaViolationError(field, f"Missing required field: {field}")

    for field, expected in REQUIRED_FIELDS.items():
        _check_type(field, data[field], expected)

    score = data["matchScore"]
    if not 0 <= score <= 100:
        raise SchemaViolationError("matchScore", "matchScore must be between 0 and 100")

    if len(data["resumeImprovements"]) != RESUME_IMPROVEMENTS_COUNT:
        raise SchemaViolationError(
            "resumeImprovements",
            f"resumeImprovements must contain exactly {RESUME_IMPROVEMENTS_COUNT} items",
        )

    if len(data["interviewQuestions"]) != INTERVIEW_QUESTIONS_COUNT:
        raise SchemaViolationError(
            "interviewQuestions",
            f"interviewQuestions must contain exactly {INTERVIEW_QUESTIONS_COUNT} items",
        )

    low, high = SCORE_EXPLANATION_RANGE
    if not low <= len(data["scoreExplanation"]) <= high:
        raise SchemaViolationError(
            "scoreExplanation",
            f"scoreExplanation must contain {low}-{high} items",
        )


def round_score(score: float) -> int:
    """Round half up, so 87.5 -> 88 and 86.5 -> 87."""
    return int(math.floor(score + 0.5))


def build_result(data: dict[str, Any]) -> AnalysisResult:
    """Validate already-parsed data and build the analysis from it."""
    validate_analysis(data)
    return AnalysisResult(
        match_score=round_score(data["matchScore"]),
        missing_skills=data["missingSkills"],
        score_explanation=data["scoreExplanation"],
        resume_improvements=data["resumeImprovements"],
        cover_letter=data["coverLetter"],
        interview_questions=data["interviewQuestions"],
    )


def extract_and_validate(raw_text: str) -> AnalysisResult:
    return build_result(extract_json(raw_text))
