"""Response Validator.

Parses raw model text into exactly N CareerRecommendation objects. There is
no partial acceptance: one malformed item rejects the whole response, since
ranking assumes N well-formed candidates.
"""

import json
import math
from typing import Any

from pydantic import ValidationError

from src.models.errors import (
    InvalidFieldError,
    MissingFieldError,
    RecommendationCountError,
    ResponseParseError,
)
from src.models.recommendation import AIResponse, CareerRecommendation
from src.utils.llm_helpers import parse_json_leniently
from src.utils.logger import get_logger
from src.utils.visualization import build_visualization_data

REQUIRED_FIELDS = ("id", "title", "description", "matchScore", "requirements", "prospects")

DEFAULT_REASONING = "AI-generated recommendations based on student profile analysis"
DEFAULT_CONFIDENCE = 80


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and not math.isnan(value)
    )


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


class ResponseValidator:
    """Strict shape check for model output."""

    def __init__(self, expected_count: int = 3, correlation_id: str = "response-validation"):
        self.expected_count = expected_count
        self.logger: Any = get_logger(
            correlation_id=correlation_id,
            phase="response_validation",
            component="response_validator",
        )

    def _parse(self, raw_text: str) -> dict[str, Any]:
        try:
            document = parse_json_leniently(raw_text)
        except json.JSONDecodeError as e:
            self.logger.warning(
                "Model response is not JSON", error=str(e), preview=raw_text[:200]
            )
            raise ResponseParseError(
                f"Failed to parse model response: {e.msg}",
                details={"preview": raw_text[:200]},
                original_error=e,
            ) from e

        if not isinstance(document, dict):
            raise ResponseParseError(
                "Model response is not a JSON object",
                details={"type": type(document).__name__},
            )
        return document

    def _check_item(self, item: Any, index: int) -> CareerRecommendation:
        """Validate one recommendation; ``index`` is 1-based."""
        if not isinstance(item, dict):
            raise InvalidFieldError("recommendation", index, item)

        for field in REQUIRED_FIELDS:
            if _is_missing(item.get(field)):
                raise MissingFieldError(field, index)

        score = item["matchScore"]
        if not _is_number(score) or not 0 <= score <= 100:
            raise InvalidFieldError("matchScore", index, score)

        if not isinstance(item["requirements"], dict):
            raise InvalidFieldError("requirements", index, item["requirements"])

        prospects = item["prospects"]
        if not isinstance(prospects, dict):
            raise InvalidFieldError("prospects", index, prospects)
        salary = prospects.get("averageSalary")
        entry = salary.get("entry") if isinstance(salary, dict) else None
        if not _is_number(entry):
            raise InvalidFieldError("prospects.averageSalary.entry", index, entry)

        try:
            return CareerRecommendation.model_validate(item)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise InvalidFieldError(location, index, first.get("input")) from e

    def validate(self, raw_text: str) -> list[CareerRecommendation]:
        """Parse and validate raw model output.

        Raises:
            ResponseParseError: Output is not a JSON object
            MissingFieldError: A required field is absent
            RecommendationCountError: Item count differs from the contract
            InvalidFieldError: A field has a wrong type or out-of-range value
        """
        return self._check_document(self._parse(raw_text))

    def _check_document(self, document: dict[str, Any]) -> list[CareerRecommendation]:
        items = document.get("recommendations")
        if not isinstance(items, list):
            raise MissingFieldError("recommendations")

        if len(items) != self.expected_count:
            self.logger.warning(
                "Unexpected recommendation count",
                actual=len(items),
                expected=self.expected_count,
            )
            raise RecommendationCountError(len(items), self.expected_count)

        return [self._check_item(item, i + 1) for i, item in enumerate(items)]

    def validate_response(self, raw_text: str) -> AIResponse:
        """Validate raw output into an AIResponse with derived visualization data."""
        document = self._parse(raw_text)
        recommendations = self._check_document(document)

        for rec in recommendations:
            rec.visual_data = build_visualization_data(rec)

        reasoning = document.get("reasoning")
        confidence = document.get("confidence")
        if _is_number(confidence):
            confidence = int(min(max(confidence, 0), 100))
        else:
            confidence = DEFAULT_CONFIDENCE

        self.logger.debug(
            "Model response validated",
            recommendation_count=len(recommendations),
            confidence=confidence,
        )
        return AIResponse(
            recommendations=recommendations,
            reasoning=reasoning if isinstance(reasoning, str) and reasoning else DEFAULT_REASONING,
            confidence=confidence,
        )
