"""
Student Profile Data Models

Immutable input records for recommendation synthesis. Field names are
snake_case in Python and camelCase on the wire (profile intake JSON).
"""

import json
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProfileModel(BaseModel):
    """Base for frozen, camelCase-aliased profile sections."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class PersonalInfo(ProfileModel):
    name: str = ""
    grade: str
    board: str
    language_preference: Literal["hindi", "english"] = "english"
    age: Optional[int] = None
    gender: Optional[Literal["male", "female", "other", "prefer-not-to-say"]] = None
    category: Optional[Literal["General", "OBC", "SC", "ST", "EWS"]] = None
    physically_disabled: bool = False


class AcademicData(ProfileModel):
    interests: list[str] = Field(default_factory=list)
    subjects: list[str] = Field(default_factory=list)
    performance: str = ""
    favorite_subjects: list[str] = Field(default_factory=list)
    difficult_subjects: list[str] = Field(default_factory=list)
    extracurricular_activities: list[str] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)


class ParentOccupation(ProfileModel):
    father: Optional[str] = None
    mother: Optional[str] = None


class SocioeconomicData(ProfileModel):
    location: str = ""
    family_background: str = ""
    economic_factors: list[str] = Field(default_factory=list)
    parent_occupation: Optional[ParentOccupation] = None
    household_size: Optional[int] = None
    rural_urban: Literal["rural", "urban", "semi-urban"] = "urban"
    transport_mode: Optional[str] = None
    internet_access: bool = True
    device_access: list[str] = Field(default_factory=list)


class Aspirations(ProfileModel):
    preferred_careers: list[str] = Field(default_factory=list)
    preferred_locations: list[str] = Field(default_factory=list)
    salary_expectations: Optional[str] = None
    work_life_balance: Optional[Literal["high", "medium", "low"]] = None


class Constraints(ProfileModel):
    financial_constraints: bool = False
    location_constraints: list[str] = Field(default_factory=list)
    family_expectations: list[str] = Field(default_factory=list)
    time_constraints: Optional[str] = None


class StudentProfile(ProfileModel):
    """Structured personal, academic and socioeconomic description of a student.

    Used only as a read-only key for cache and prompt derivation.
    """

    id: str
    personal_info: PersonalInfo
    academic_data: AcademicData
    socioeconomic_data: SocioeconomicData
    family_income: str = ""
    aspirations: Optional[Aspirations] = None
    constraints: Optional[Constraints] = None

    def cache_key(self) -> str:
        """Project the decision-relevant fields into a stable string.

        Profiles that agree on interests (order-insensitive), grade, board,
        performance, family income and location share a key even if every
        other field differs.
        """
        projection = {
            "interests": sorted(self.academic_data.interests),
            "grade": self.personal_info.grade,
            "board": self.personal_info.board,
            "performance": self.academic_data.performance,
            "familyIncome": self.family_income,
            "location": self.socioeconomic_data.location,
        }
        return json.dumps(projection, sort_keys=True, ensure_ascii=False)
