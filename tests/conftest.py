"""
Shared test fixtures.

Profiles, model responses and a scripted model client used across unit and
integration tests. Nothing here touches the network.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Optional, Union

import pytest

from src.models.config import ModelConfig, OrchestratorConfig
from src.models.profile import StudentProfile
from src.utils.model_client import ModelClient
from src.utils.reference_store import ReferenceDataStore

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SAMPLE_DATA_DIR = PROJECT_ROOT / "data"


def build_profile(
    profile_id: str = "student-1",
    name: str = "Test Student",
    interests: Optional[list[str]] = None,
    grade: str = "12",
    board: str = "CBSE",
    performance: str = "Good",
    family_income: str = "5-10 Lakh per annum",
    location: str = "Pune, Maharashtra",
    favorite_subjects: Optional[list[str]] = None,
    category: Optional[str] = None,
    gender: Optional[str] = None,
    rural_urban: str = "urban",
    physically_disabled: bool = False,
    financial_constraints: bool = False,
) -> StudentProfile:
    return StudentProfile.model_validate(
        {
            "id": profile_id,
            "personalInfo": {
                "name": name,
                "grade": grade,
                "board": board,
                "category": category,
                "gender": gender,
                "physicallyDisabled": physically_disabled,
            },
            "academicData": {
                "interests": ["Programming", "Mathematics"] if interests is None else interests,
                "subjects": ["Mathematics", "Physics"],
                "performance": performance,
                "favoriteSubjects": favorite_subjects or [],
            },
            "socioeconomicData": {"location": location, "ruralUrban": rural_urban},
            "familyIncome": family_income,
            "constraints": {"financialConstraints": financial_constraints},
        }
    )


def build_recommendation(index: int = 1, **overrides: Any) -> dict[str, Any]:
    """Wire-format (camelCase) recommendation as the model would return it."""
    rec: dict[str, Any] = {
        "id": f"career-{index}",
        "title": f"Career {index}",
        "description": f"Description of career {index}",
        "nepAlignment": "Multidisciplinary",
        "matchScore": 80,
        "requirements": {
            "education": ["Class 12 with PCM", "Bachelor of Technology"],
            "skills": ["Programming", "Problem Solving"],
            "entranceExams": ["JEE Main"],
        },
        "prospects": {
            "averageSalary": {"entry": 600000, "mid": 1200000, "senior": 2400000},
            "demandLevel": "high",
            "growthRate": "20%",
            "jobMarket": "Strong",
        },
        "pros": ["Good pay"],
        "cons": ["Long hours"],
        "careerPath": ["Junior", "Senior"],
    }
    rec.update(overrides)
    return rec


def build_model_response(
    count: int = 3, recommendations: Optional[list[dict[str, Any]]] = None, **extra: Any
) -> str:
    document: dict[str, Any] = {
        "recommendations": recommendations
        if recommendations is not None
        else [build_recommendation(i + 1) for i in range(count)],
        "reasoning": "Selected for strong technical interests",
        "confidence": 85,
    }
    document.update(extra)
    return json.dumps(document)


ScriptItem = Union[str, BaseException, Callable[[str], str]]


class ScriptedModelClient(ModelClient):
    """Model client that replays a script of responses and errors.

    When the script runs out, ``default`` is returned for every further call.
    """

    def __init__(
        self,
        script: Optional[list[ScriptItem]] = None,
        default: Optional[str] = None,
        delay: float = 0.0,
    ):
        super().__init__(ModelConfig(model_id="test-model"))
        self.script = list(script or [])
        self.default = default if default is not None else build_model_response()
        self.delay = delay
        self.prompts: list[str] = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        item: ScriptItem = self.script.pop(0) if self.script else self.default
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return item(prompt)
        return item


@pytest.fixture
def make_profile() -> Callable[..., StudentProfile]:
    return build_profile


@pytest.fixture
def profile() -> StudentProfile:
    return build_profile()


@pytest.fixture
def make_recommendation() -> Callable[..., dict[str, Any]]:
    return build_recommendation


@pytest.fixture
def make_model_response() -> Callable[..., str]:
    return build_model_response


@pytest.fixture
def fast_orchestrator_config() -> OrchestratorConfig:
    """No throttling, no backoff waits, short batch window."""
    return OrchestratorConfig(
        batch_size=3,
        batch_timeout_seconds=0.05,
        min_call_interval_seconds=0,
        cache_ttl_seconds=1800,
        max_attempts=3,
        retry_base_delay_seconds=0,
        retry_max_delay_seconds=0,
        max_concurrent_calls=3,
    )


@pytest.fixture
def sample_store() -> ReferenceDataStore:
    return ReferenceDataStore.from_directory(SAMPLE_DATA_DIR)


@pytest.fixture
def scripted_client() -> Callable[..., ScriptedModelClient]:
    """Factory for ScriptedModelClient instances."""
    return ScriptedModelClient
