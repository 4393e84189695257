"""Enrichment Matcher.

Cross-references validated recommendations against the reference data store:
merges facts from a matching reference career, and attaches relevant colleges
and applicable scholarships. Each recommendation is enriched independently;
a failure degrades that one recommendation to its unenriched form.
"""

import asyncio
from typing import Any, Optional

from src.models.config import EnrichmentConfig
from src.models.errors import EnrichmentError
from src.models.profile import StudentProfile
from src.models.recommendation import CareerRecommendation, EnrichedRecommendation, Salary
from src.models.reference import Career, College, Scholarship, ScholarshipCriteria
from src.utils.logger import get_logger
from src.utils.matching import (
    is_college_relevant,
    is_title_match,
    merge_unique,
    parse_family_income,
    rank_colleges,
)
from src.utils.reference_store import ReferenceDataStore
from src.utils.visualization import build_visualization_data


class EnrichmentMatcher:
    """Fuzzy-matches recommendations to colleges, careers and scholarships."""

    def __init__(
        self,
        store: ReferenceDataStore,
        config: Optional[EnrichmentConfig] = None,
        correlation_id: str = "enrichment",
    ):
        self.store = store
        self.config = config or EnrichmentConfig()
        self.logger: Any = get_logger(
            correlation_id=correlation_id,
            phase="enrichment",
            component="enrichment_matcher",
        )

    def find_relevant_colleges(self, recommendation: CareerRecommendation) -> list[College]:
        """Colleges offering a matching course or accepting a matching exam, best ranked first."""
        requirements = recommendation.requirements
        relevant = [
            college
            for college in self.store.all_colleges()
            if is_college_relevant(requirements.education, requirements.entrance_exams, college)
        ]
        return rank_colleges(relevant, self.config.max_colleges)

    def build_scholarship_criteria(
        self, recommendation: CareerRecommendation, profile: StudentProfile
    ) -> ScholarshipCriteria:
        education = recommendation.requirements.education
        return ScholarshipCriteria(
            category=profile.personal_info.category,
            family_income=parse_family_income(profile.family_income),
            course=education[0] if education else None,
            gender=profile.personal_info.gender,
            student_class=profile.personal_info.grade,
        )

    def find_applicable_scholarships(
        self, recommendation: CareerRecommendation, profile: StudentProfile
    ) -> list[Scholarship]:
        criteria = self.build_scholarship_criteria(recommendation, profile)
        return self.store.applicable_scholarships(criteria)[: self.config.max_scholarships]

    def find_matching_career(self, title: str) -> Optional[Career]:
        """First reference career whose title overlaps the recommended title."""
        return next(
            (c for c in self.store.all_careers() if is_title_match(title, c.title)),
            None,
        )

    def merge_career_data(
        self, recommendation: CareerRecommendation, career: Career
    ) -> CareerRecommendation:
        """Return a copy of the recommendation with the reference career's facts merged in."""
        prospects = recommendation.prospects
        salary = prospects.average_salary
        if career.average_salary.entry > 0:
            salary = Salary(
                entry=career.average_salary.entry,
                mid=career.average_salary.mid,
                senior=career.average_salary.senior,
                currency="INR",
            )

        requirements = recommendation.requirements
        merged_requirements = requirements.model_copy(
            update={
                "education": merge_unique(requirements.education, career.required_education),
                "skills": merge_unique(requirements.skills, career.skills),
                "entrance_exams": merge_unique(
                    requirements.entrance_exams, career.related_exams
                ),
            }
        )
        merged_prospects = prospects.model_copy(
            update={
                "average_salary": salary,
                "growth_rate": career.growth_projection or prospects.growth_rate,
            }
        )

        merged = recommendation.model_copy(
            update={"requirements": merged_requirements, "prospects": merged_prospects}
        )
        if merged.visual_data is not None:
            merged.visual_data = build_visualization_data(merged)
        return merged

    def _unenriched(self, recommendation: CareerRecommendation) -> EnrichedRecommendation:
        return EnrichedRecommendation.model_validate(recommendation.model_dump())

    def enrich(
        self, recommendation: CareerRecommendation, profile: StudentProfile
    ) -> EnrichedRecommendation:
        """Enrich one recommendation; never raises.

        Colleges and scholarships are matched against the recommendation as
        the model produced it, before reference career data is merged in.
        """
        if not self.config.enabled:
            return self._unenriched(recommendation)

        try:
            return self._enrich(recommendation, profile)
        except Exception as e:
            error = EnrichmentError(
                f"Enrichment failed: {e}",
                recommendation_id=recommendation.id,
                original_error=e,
            )
            self.logger.warning(
                "Enrichment failed, using unenriched data",
                recommendation_id=recommendation.id,
                error=error.message,
            )
            return self._unenriched(recommendation)

    def _enrich(
        self, recommendation: CareerRecommendation, profile: StudentProfile
    ) -> EnrichedRecommendation:
        colleges = self.find_relevant_colleges(recommendation)
        scholarships = self.find_applicable_scholarships(recommendation, profile)

        career = self.find_matching_career(recommendation.title)
        merged = (
            self.merge_career_data(recommendation, career)
            if career is not None
            else recommendation
        )

        self.logger.debug(
            "Recommendation enriched",
            recommendation_id=recommendation.id,
            reference_career_id=career.id if career else None,
            colleges=len(colleges),
            scholarships=len(scholarships),
        )
        return EnrichedRecommendation(
            **dict(merged),
            recommended_colleges=colleges,
            scholarships=scholarships,
            reference_career_id=career.id if career else None,
            enriched=True,
        )

    async def enrich_all(
        self, recommendations: list[CareerRecommendation], profile: StudentProfile
    ) -> list[EnrichedRecommendation]:
        """Enrich each recommendation independently, preserving input order."""
        if not self.config.enabled:
            return [self._unenriched(rec) for rec in recommendations]

        self.logger.info("Enriching recommendations", count=len(recommendations))
        results = await asyncio.gather(
            *(asyncio.to_thread(self.enrich, rec, profile) for rec in recommendations),
            return_exceptions=True,
        )

        enriched: list[EnrichedRecommendation] = []
        for rec, result in zip(recommendations, results):
            if isinstance(result, BaseException):
                self.logger.error(
                    "Unexpected exception in enrichment",
                    recommendation_id=rec.id,
                    error=str(result),
                )
                enriched.append(self._unenriched(rec))
            else:
                enriched.append(result)
        return enriched
