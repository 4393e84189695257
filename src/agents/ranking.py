"""Scoring & Ranking Engine.

Composite match score (0-100, integer):

    round(0.30 * interest_match
        + 0.25 * skill_alignment
        + 0.20 * market_demand
        + 0.15 * financial_viability
        + 0.10 * educational_fit)

Structurally invalid recommendations are dropped before scoring. Survivors
below the minimum score are filtered out, the rest sorted by score
(descending, stable) and truncated to the maximum count.
"""

import math
from typing import Any, Optional

from src.models.config import RankingConfig
from src.models.profile import StudentProfile
from src.models.recommendation import (
    CareerRecommendation,
    EnrichedRecommendation,
    RankedRecommendation,
    ReasoningFactors,
    RecommendationContext,
    StudentProfileSummary,
)
from src.utils.logger import get_logger
from src.utils.matching import parse_family_income, parse_grade, texts_overlap

SCORE_WEIGHTS = {
    "interest_match": 0.30,
    "skill_alignment": 0.25,
    "market_demand": 0.20,
    "financial_viability": 0.15,
    "educational_fit": 0.10,
}

DEMAND_SCORES = {"high": 90, "medium": 70, "low": 50}
DEFAULT_DEMAND_SCORE = 70


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_match_score(factors: ReasoningFactors) -> int:
    """Weighted composite of the five sub-factors."""
    total = sum(getattr(factors, name) * weight for name, weight in SCORE_WEIGHTS.items())
    return min(max(round_half_up(total), 0), 100)


def calculate_interest_match(interests: list[str], recommendation: CareerRecommendation) -> int:
    """Percentage of interests overlapping any required skill (0 with no interests)."""
    if not interests:
        return 0
    skills = recommendation.requirements.skills
    matching = [i for i in interests if any(texts_overlap(i, s) for s in skills)]
    return round_half_up(len(matching) / len(interests) * 100)


def calculate_skill_alignment(profile: StudentProfile, recommendation: CareerRecommendation) -> int:
    performance = profile.academic_data.performance.lower()
    alignment = 60
    if "excellent" in performance:
        alignment += 20
    elif "good" in performance:
        alignment += 10

    skills = recommendation.requirements.skills
    relevant_subjects = [
        subject
        for subject in profile.academic_data.favorite_subjects
        if any(texts_overlap(subject, skill) for skill in skills)
    ]
    alignment += len(relevant_subjects) * 5
    return min(alignment, 100)


def calculate_market_demand(recommendation: CareerRecommendation) -> int:
    demand = recommendation.prospects.demand_level
    return DEMAND_SCORES.get(demand, DEFAULT_DEMAND_SCORE) if demand else DEFAULT_DEMAND_SCORE


def calculate_financial_viability(
    profile: StudentProfile, recommendation: CareerRecommendation
) -> int:
    """Entry salary relative to parsed family income."""
    family_income = parse_family_income(profile.family_income)
    entry_salary = recommendation.prospects.average_salary.entry
    if entry_salary > family_income * 2:
        return 90
    if entry_salary > family_income:
        return 75
    if entry_salary > family_income * 0.5:
        return 60
    return 40


def calculate_educational_fit(
    profile: StudentProfile, recommendation: CareerRecommendation
) -> int:
    grade = parse_grade(profile.personal_info.grade) or 0
    education = recommendation.requirements.education
    fit = 70
    if grade >= 10 and any("12" in req for req in education):
        fit += 10
    if grade >= 12 and any("Bachelor" in req for req in education):
        fit += 10
    return min(fit, 100)


def calculate_reasoning_factors(
    profile: StudentProfile, recommendation: CareerRecommendation
) -> ReasoningFactors:
    return ReasoningFactors(
        interest_match=calculate_interest_match(
            profile.academic_data.interests, recommendation
        ),
        skill_alignment=calculate_skill_alignment(profile, recommendation),
        market_demand=calculate_market_demand(recommendation),
        financial_viability=calculate_financial_viability(profile, recommendation),
        educational_fit=calculate_educational_fit(profile, recommendation),
    )


def is_valid_recommendation(recommendation: CareerRecommendation) -> bool:
    return bool(
        recommendation.id
        and recommendation.title
        and recommendation.description
        and 0 <= recommendation.match_score <= 100
        and recommendation.requirements is not None
        and recommendation.prospects is not None
        and recommendation.visual_data is not None
    )


def identify_strengths(profile: StudentProfile) -> list[str]:
    academic = profile.academic_data
    strengths = [*academic.favorite_subjects, *academic.extracurricular_activities]
    if "excellent" in academic.performance.lower():
        strengths.append("Academic Excellence")
    return strengths


def identify_preferences(profile: StudentProfile) -> list[str]:
    aspirations = profile.aspirations
    if aspirations is None:
        return []
    preferences = [*aspirations.preferred_careers, *aspirations.preferred_locations]
    if aspirations.work_life_balance:
        preferences.append(f"{aspirations.work_life_balance} work-life balance")
    return preferences


def identify_constraints(profile: StudentProfile) -> list[str]:
    constraints = profile.constraints
    if constraints is None:
        return []
    result = ["Financial constraints"] if constraints.financial_constraints else []
    result.extend(constraints.location_constraints)
    result.extend(constraints.family_expectations)
    return result


class RankingEngine:
    """Scores, filters, sorts and truncates enriched recommendations."""

    def __init__(
        self, config: Optional[RankingConfig] = None, correlation_id: str = "ranking"
    ):
        self.config = config or RankingConfig()
        self.logger: Any = get_logger(
            correlation_id=correlation_id,
            phase="ranking",
            component="ranking_engine",
        )

    def score(
        self, recommendation: EnrichedRecommendation, profile: StudentProfile
    ) -> RankedRecommendation:
        factors = calculate_reasoning_factors(profile, recommendation)
        fields = dict(recommendation)
        fields["match_score"] = calculate_match_score(factors)
        return RankedRecommendation(
            **fields,
            seed_match_score=recommendation.match_score,
            score_breakdown=factors,
        )

    def rank(
        self,
        recommendations: list[EnrichedRecommendation],
        profile: StudentProfile,
        min_score: Optional[int] = None,
        max_count: Optional[int] = None,
    ) -> list[RankedRecommendation]:
        """Drop invalid entries, score, filter by ``min_score``, sort and truncate."""
        min_score = self.config.min_match_score if min_score is None else min_score
        max_count = self.config.max_recommendations if max_count is None else max_count

        valid = [r for r in recommendations if is_valid_recommendation(r)]
        scored = [self.score(r, profile) for r in valid]
        kept = [r for r in scored if r.match_score >= min_score]
        # sorted() is stable, so equal scores keep their input order
        ranked = sorted(kept, key=lambda r: r.match_score, reverse=True)[: max(max_count, 0)]

        self.logger.info(
            "Ranking complete",
            received=len(recommendations),
            invalid=len(recommendations) - len(valid),
            below_threshold=len(scored) - len(kept),
            returned=len(ranked),
            min_score=min_score,
            max_count=max_count,
        )
        return ranked

    def build_context(
        self, profile: StudentProfile, ranked: list[RankedRecommendation]
    ) -> RecommendationContext:
        """Mean sub-factor scores of the final list plus profile-derived summaries."""
        count = len(ranked)
        averages = {
            name: round_half_up(
                sum(getattr(r.score_breakdown, name) for r in ranked) / count
            )
            if count
            else 0
            for name in SCORE_WEIGHTS
        }
        return RecommendationContext(
            student_profile=StudentProfileSummary(
                interests=list(profile.academic_data.interests),
                strengths=identify_strengths(profile),
                preferences=identify_preferences(profile),
                constraints=identify_constraints(profile),
            ),
            reasoning_factors=ReasoningFactors(**averages),
        )
