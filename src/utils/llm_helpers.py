"""
LLM Helpers Module

Centralized prompt construction and response text cleanup for recommendation
synthesis. All prompts are rendered from Jinja2 templates under
prompts/recommendation/ - no inline prompts scattered in code.

Example Usage:
    from src.utils.llm_helpers import build_recommendation_prompt

    prompt = build_recommendation_prompt(profile, expected_count=3)
"""

import json
import re
from typing import Any, Optional

import structlog

from src.models.profile import Aspirations, Constraints, StudentProfile
from src.utils.prompt_loader import render_prompt

logger = structlog.get_logger(__name__)

TECH_INTEREST_KEYWORDS = ("technology", "computer", "programming", "engineering", "science")
CREATIVE_INTEREST_KEYWORDS = ("arts", "design", "music", "literature", "creative")
HIGH_ACHIEVER_MARKERS = ("excellent", "outstanding")
LOW_INCOME_MARKERS = ("below", "1-3")

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def _extract_json_from_markdown(response_text: str) -> str:
    """Extract JSON from LLM response, removing markdown code block markers if present.

    Args:
        response_text: Raw text response from LLM

    Returns:
        Clean JSON string with code block markers removed
    """
    json_text = response_text.strip()

    if json_text.startswith("```json"):
        json_text = json_text[7:]
    elif json_text.startswith("```"):
        json_text = json_text[3:]

    if json_text.endswith("```"):
        json_text = json_text[:-3]

    return json_text.strip()


def parse_json_leniently(response_text: str) -> Any:
    """Parse a model response as JSON, tolerating fences and surrounding prose.

    Tries the fence-stripped text first, then the outermost ``{...}`` span.

    Raises:
        json.JSONDecodeError: If neither attempt yields valid JSON
    """
    json_text = _extract_json_from_markdown(response_text)
    try:
        return json.loads(json_text)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(json_text)
        if not match:
            raise
        logger.debug("Falling back to embedded JSON object extraction")
        return json.loads(match.group(0))


def _mentions_any(values: list[str], keywords: tuple[str, ...]) -> bool:
    return any(kw in value.lower() for value in values for kw in keywords)


def select_prompt_template(profile: StudentProfile) -> str:
    """Choose the scenario template best suited to the profile.

    Checked in priority order: financial need, rural context, disability,
    high achievement, technology interests, creative interests. Profiles
    matching none of these get the general NEP 2020 template.
    """
    constraints = profile.constraints
    income = profile.family_income.lower()
    if (constraints and constraints.financial_constraints) or any(
        marker in income for marker in LOW_INCOME_MARKERS
    ):
        return "recommendation/financial_constraints.j2"

    if profile.socioeconomic_data.rural_urban == "rural":
        return "recommendation/rural_student.j2"

    if profile.personal_info.physically_disabled:
        return "recommendation/inclusive.j2"

    performance = profile.academic_data.performance.lower()
    if any(marker in performance for marker in HIGH_ACHIEVER_MARKERS):
        return "recommendation/high_achiever.j2"

    interests = profile.academic_data.interests
    if _mentions_any(interests, TECH_INTEREST_KEYWORDS):
        return "recommendation/tech_focused.j2"
    if _mentions_any(interests, CREATIVE_INTEREST_KEYWORDS):
        return "recommendation/creative.j2"

    return "recommendation/nep2020.j2"


def build_recommendation_prompt(
    profile: StudentProfile,
    expected_count: int = 3,
    template_name: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> str:
    """
    Render the recommendation prompt for a profile.

    Args:
        profile: Student profile
        expected_count: Number of recommendations the model must return
        template_name: Override the automatically selected template
        correlation_id: Optional correlation ID for logging

    Returns:
        Rendered prompt text
    """
    template_name = template_name or select_prompt_template(profile)
    logger.debug(
        "Building recommendation prompt",
        template_name=template_name,
        profile_id=profile.id,
        correlation_id=correlation_id,
    )
    return render_prompt(
        template_name,
        correlation_id=correlation_id,
        expected_count=expected_count,
        personal=profile.personal_info,
        academic=profile.academic_data,
        socio=profile.socioeconomic_data,
        family_income=profile.family_income,
        aspirations=profile.aspirations or Aspirations(),
        constraints=profile.constraints or Constraints(),
    )
