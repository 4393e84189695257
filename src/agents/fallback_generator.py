"""Deterministic fallback recommendations.

Used when the model path fails (or offline). Picks careers from a fixed
catalogue by interest, keeps only affordable entry paths for low-income
families, and always returns exactly the expected count where the
catalogue allows.
"""

import json
from pathlib import Path
from typing import Any, Optional

from src.models.profile import StudentProfile
from src.models.recommendation import AIResponse, CareerRecommendation
from src.utils.logger import get_logger
from src.utils.visualization import build_visualization_data

DEFAULT_CATALOGUE_PATH = Path(__file__).resolve().parent.parent / "data" / "fallback_careers.json"

INTEREST_GROUPS: list[tuple[frozenset[str], tuple[str, ...]]] = [
    (
        frozenset({"science", "technology", "mathematics", "engineering"}),
        ("software-engineer", "data-scientist"),
    ),
    (frozenset({"biology", "medicine", "healthcare"}), ("doctor",)),
    (frozenset({"business", "economics", "commerce"}), ("chartered-accountant",)),
    (frozenset({"arts", "literature", "design", "music"}), ("graphic-designer",)),
    (frozenset({"teaching", "education", "social-work"}), ("teacher",)),
]

DEFAULT_SELECTION = ("software-engineer", "teacher", "chartered-accountant")
PADDING_ORDER = (
    "software-engineer",
    "teacher",
    "chartered-accountant",
    "government-officer",
    "data-scientist",
    "doctor",
    "graphic-designer",
)
LOW_INCOME_MARKERS = ("Below", "1-3")
AFFORDABLE_ENTRY_SALARY = 600_000
MODEL_IDENTIFIER = "fallback"


class FallbackRecommendationGenerator:
    """Catalogue-backed recommendation source with the orchestrator's contract."""

    model_identifier = MODEL_IDENTIFIER

    def __init__(
        self,
        expected_count: int = 3,
        catalogue_path: Optional[Path] = None,
        correlation_id: str = "fallback",
    ):
        self.expected_count = expected_count
        with open(catalogue_path or DEFAULT_CATALOGUE_PATH, "r", encoding="utf-8") as f:
            raw = json.load(f)
        self.catalogue: dict[str, CareerRecommendation] = {
            key: CareerRecommendation.model_validate(value) for key, value in raw.items()
        }
        self.request_count = 0
        self.logger: Any = get_logger(
            correlation_id=correlation_id,
            phase="fallback",
            component="fallback_generator",
        )

    @staticmethod
    def is_low_income(profile: StudentProfile) -> bool:
        return any(marker in profile.family_income for marker in LOW_INCOME_MARKERS)

    def _is_affordable(self, key: str) -> bool:
        return self.catalogue[key].prospects.average_salary.entry <= AFFORDABLE_ENTRY_SALARY

    def select_careers(self, profile: StudentProfile) -> list[str]:
        """Catalogue keys for this profile, in presentation order."""
        interests = {i.lower() for i in profile.academic_data.interests}

        selected: list[str] = []
        for keywords, keys in INTEREST_GROUPS:
            if interests & keywords:
                selected.extend(keys)
        if not selected:
            selected = list(DEFAULT_SELECTION)

        low_income = self.is_low_income(profile)
        if low_income:
            selected = [k for k in selected if self._is_affordable(k)]
            selected.append("government-officer")

        for key in PADDING_ORDER:
            if len(selected) >= self.expected_count:
                break
            if key in selected or (low_income and not self._is_affordable(key)):
                continue
            selected.append(key)

        return list(dict.fromkeys(selected))[: self.expected_count]

    @staticmethod
    def build_reasoning(profile: StudentProfile) -> str:
        interests = ", ".join(profile.academic_data.interests) or "varied subjects"
        return (
            f"Based on the student's interests in {interests}, "
            f"{profile.academic_data.performance or 'current'} academic performance, "
            f"and location in {profile.socioeconomic_data.location or 'India'}, these "
            "career recommendations align well with their profile. They account for "
            "the family income level and available resources while remaining realistic "
            "for the student's current educational background."
        )

    @staticmethod
    def calculate_confidence(profile: StudentProfile) -> int:
        """Profile completeness heuristic, capped at 95."""
        confidence = 70
        if len(profile.academic_data.interests) > 3:
            confidence += 5
        if profile.academic_data.favorite_subjects:
            confidence += 5
        if profile.aspirations and profile.aspirations.preferred_careers:
            confidence += 10
        if profile.personal_info.age:
            confidence += 5
        parents = profile.socioeconomic_data.parent_occupation
        if parents and (parents.father or parents.mother):
            confidence += 5
        return min(confidence, 95)

    async def get_recommendations(self, profile: StudentProfile) -> AIResponse:
        self.request_count += 1
        keys = self.select_careers(profile)

        recommendations = []
        for key in keys:
            rec = self.catalogue[key].model_copy(deep=True)
            rec.visual_data = build_visualization_data(rec)
            recommendations.append(rec)

        self.logger.info(
            "Generated fallback recommendations",
            profile_id=profile.id,
            careers=keys,
        )
        return AIResponse(
            recommendations=recommendations,
            reasoning=self.build_reasoning(profile),
            confidence=self.calculate_confidence(profile),
        )

    def get_stats(self) -> dict[str, Any]:
        return {"request_count": self.request_count, "catalogue_size": len(self.catalogue)}
