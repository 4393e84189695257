"""
Career Recommendation Data Models

Lifecycle of a recommendation through the pipeline:

    CareerRecommendation   validated model output (exactly the fields needed downstream)
    EnrichedRecommendation + merged career facts, matched colleges and scholarships
    RankedRecommendation   + composite match score and its five sub-factor scores

Wire format (model output, API responses) is camelCase.
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.models.reference import College, Scholarship


class RecommendationModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Salary(RecommendationModel):
    entry: float
    mid: float = 0
    senior: float = 0
    currency: str = "INR"


class CareerRequirements(RecommendationModel):
    education: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    entrance_exams: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    personality_traits: list[str] = Field(default_factory=list)


class CareerProspects(RecommendationModel):
    average_salary: Salary
    demand_level: Optional[Literal["high", "medium", "low"]] = None
    growth_rate: str = ""
    job_market: str = ""
    future_outlook: str = ""
    work_life_balance: str = ""

    @field_validator("demand_level", mode="before")
    @classmethod
    def normalize_demand_level(cls, v: Any) -> Any:
        """Accept "High"/"MEDIUM" etc. from the model."""
        if isinstance(v, str):
            return v.strip().lower() or None
        return v


class IndustryInsights(RecommendationModel):
    top_companies: list[str] = Field(default_factory=list)
    emerging_trends: list[str] = Field(default_factory=list)
    challenges: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)


class VisualizationData(RecommendationModel):
    """Chart-ready data for the presentation layer."""

    salary_trends: dict[str, Any] = Field(default_factory=dict)
    education_path: dict[str, Any] = Field(default_factory=dict)
    requirements: dict[str, Any] = Field(default_factory=dict)


class CareerRecommendation(RecommendationModel):
    """A single validated career recommendation from the model.

    match_score is the model's own 0-100 seed score, not the final ranking score.
    """

    id: str
    title: str
    description: str
    match_score: float = Field(..., ge=0, le=100)
    requirements: CareerRequirements
    prospects: CareerProspects
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    nep_alignment: str = ""
    day_in_life: Optional[str] = None
    career_path: list[str] = Field(default_factory=list)
    related_careers: list[str] = Field(default_factory=list)
    industry_insights: Optional[IndustryInsights] = None
    visual_data: Optional[VisualizationData] = None


class EnrichedRecommendation(CareerRecommendation):
    """Recommendation cross-referenced against the reference data store."""

    recommended_colleges: list[College] = Field(default_factory=list)
    scholarships: list[Scholarship] = Field(default_factory=list)
    reference_career_id: Optional[str] = None
    enriched: bool = False


class ReasoningFactors(RecommendationModel):
    """The five normalized (0-100) sub-factors of the composite match score."""

    interest_match: int = 0
    skill_alignment: int = 0
    market_demand: int = 0
    financial_viability: int = 0
    educational_fit: int = 0


class RankedRecommendation(EnrichedRecommendation):
    """Final output: composite match_score replaces the model's seed score."""

    match_score: int = Field(..., ge=0, le=100)  # type: ignore[assignment]
    seed_match_score: float = Field(..., ge=0, le=100)
    score_breakdown: ReasoningFactors


class AIResponse(RecommendationModel):
    """Orchestrator output: exactly N validated recommendations."""

    recommendations: list[CareerRecommendation]
    reasoning: str = ""
    confidence: int = Field(default=80, ge=0, le=100)


class StudentProfileSummary(RecommendationModel):
    interests: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    preferences: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)


class RecommendationContext(RecommendationModel):
    student_profile: StudentProfileSummary
    reasoning_factors: ReasoningFactors


class SynthesisMetadata(RecommendationModel):
    generated_at: datetime
    profile_id: str
    model_identifier: str
    processing_time_ms: int
    used_fallback: bool = False
    reasoning: str = ""
    confidence: int = 0


class SynthesisResult(RecommendationModel):
    """Pipeline entry point result."""

    recommendations: list[RankedRecommendation]
    context: RecommendationContext
    metadata: SynthesisMetadata
