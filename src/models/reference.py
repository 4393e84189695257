"""
Reference Data Models

Curated College, Career and Scholarship records. Owned by the reference data
store; the pipeline treats them as read-only.
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReferenceModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class CollegeFees(ReferenceModel):
    annual: float = 0
    currency: str = "INR"


class CollegeRankings(ReferenceModel):
    nirf: Optional[int] = None
    category: str = ""


class College(ReferenceModel):
    """Higher-education institution with offered courses and accepted exams."""

    id: str
    name: str
    location: str = ""
    type: Literal["government", "private", "deemed"] = "government"
    courses: list[str] = Field(default_factory=list)
    entrance_exams: list[str] = Field(default_factory=list)
    fees: CollegeFees = Field(default_factory=CollegeFees)
    rankings: Optional[CollegeRankings] = None
    website: Optional[str] = None
    established: Optional[int] = None

    @property
    def ranking(self) -> Optional[int]:
        """NIRF rank (lower is better), or None when unranked."""
        if self.rankings is None or not self.rankings.nirf:
            return None
        return self.rankings.nirf


class SalaryBand(ReferenceModel):
    entry: float = 0
    mid: float = 0
    senior: float = 0


class Career(ReferenceModel):
    """Curated career facts used to correct and extend model output."""

    id: str
    title: str
    description: str = ""
    nep_category: str = ""
    required_education: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    average_salary: SalaryBand = Field(default_factory=SalaryBand)
    growth_projection: str = ""
    related_exams: list[str] = Field(default_factory=list)
    work_environment: Optional[str] = None
    job_market: Optional[str] = None


class ScholarshipEligibility(ReferenceModel):
    """Eligibility rules. An absent rule means no restriction."""

    categories: Optional[list[str]] = None
    classes: Optional[list[str]] = None
    courses: Optional[list[str]] = None
    subjects: Optional[list[str]] = None
    income_limit: Optional[float] = None
    academic_criteria: Optional[str] = None
    gender: Optional[str] = None
    age_limit: Optional[int] = None
    qualification: Optional[list[str]] = None
    disability_percentage: Optional[float] = None


class Scholarship(ReferenceModel):
    id: str
    name: str
    description: str = ""
    provider: str = ""
    eligibility: ScholarshipEligibility = Field(default_factory=ScholarshipEligibility)
    amount: dict[str, Union[float, str]] = Field(default_factory=dict)
    application_period: str = ""
    website: Optional[str] = None
    renewable: bool = False
    type: Literal["Merit-based", "Need-based", "Merit-cum-Means"] = "Need-based"


class ScholarshipCriteria(BaseModel):
    """Profile-derived facts checked against scholarship eligibility."""

    model_config = ConfigDict(populate_by_name=True)

    category: Optional[str] = None
    family_income: int = 0
    course: Optional[str] = None
    gender: Optional[str] = None
    student_class: Optional[str] = Field(default=None, alias="class")
