"""Chart-ready visualization data derived from a validated recommendation."""

from typing import Any

from src.models.recommendation import CareerRecommendation, VisualizationData

SALARY_LEVEL_LABELS = ["Entry Level", "Mid Level", "Senior Level"]
TECHNICAL_SKILL_MARKERS = ("programming", "software", "technical")
SOFT_SKILL_MARKERS = ("communication", "leadership", "teamwork")


def _step_duration(index: int) -> str:
    if index == 0:
        return "2-4 years"
    if index == 1:
        return "1-2 years"
    return "2-5 years"


def _skills_with(skills: list[str], markers: tuple[str, ...]) -> list[str]:
    return [s for s in skills if any(m in s.lower() for m in markers)]


def build_visualization_data(recommendation: CareerRecommendation) -> VisualizationData:
    """Derive salary trend, education path and requirements breakdown data."""
    salary = recommendation.prospects.average_salary
    requirements = recommendation.requirements

    salary_trends: dict[str, Any] = {
        "labels": SALARY_LEVEL_LABELS,
        "datasets": [
            {
                "label": f"Average Salary ({salary.currency})",
                "data": [salary.entry, salary.mid, salary.senior],
            }
        ],
    }

    education_path: dict[str, Any] = {
        "steps": [
            {
                "title": step,
                "description": f"Step {index + 1} in career progression",
                "duration": _step_duration(index),
                "requirements": list(requirements.education),
            }
            for index, step in enumerate(recommendation.career_path)
        ],
        "totalDuration": "5-10 years",
        "alternativePaths": [
            {
                "title": "Fast Track",
                "description": "Accelerated path through certifications",
                "steps": [
                    "Online courses",
                    "Certifications",
                    "Portfolio building",
                    "Direct entry",
                ],
            }
        ],
    }

    requirement_breakdown: dict[str, Any] = {
        "education": {
            "level": requirements.education[0] if requirements.education else "Bachelor's degree",
            "subjects": list(requirements.education),
            "minimumMarks": "60%",
            "preferredBoards": ["CBSE", "ICSE", "State Board"],
        },
        "skills": {
            "technical": _skills_with(requirements.skills, TECHNICAL_SKILL_MARKERS),
            "soft": _skills_with(requirements.skills, SOFT_SKILL_MARKERS),
            "certifications": list(requirements.certifications),
        },
        "experience": {
            "internships": ["Industry internships", "Research projects"],
            "projects": ["Portfolio projects", "Academic projects"],
            "competitions": ["National competitions", "Hackathons", "Olympiads"],
        },
    }

    return VisualizationData(
        salary_trends=salary_trends,
        education_path=education_path,
        requirements=requirement_breakdown,
    )
