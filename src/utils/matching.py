"""Fuzzy text rules for reconciling model output with reference records.

All comparisons are case-insensitive. "Overlap" means one string contains
the other as a substring, in either direction.
"""

import re
from typing import Iterable, Optional, Sequence

from src.models.reference import College, Scholarship, ScholarshipCriteria

DOMAIN_KEYWORDS = ("computer", "engineering", "science", "commerce", "arts", "medicine")

TITLE_OVERLAP_THRESHOLD = 0.5

_FIRST_INTEGER = re.compile(r"(\d+)")


def texts_overlap(a: str, b: str) -> bool:
    """Return True if either string contains the other, ignoring case."""
    a_lower = a.lower()
    b_lower = b.lower()
    return a_lower in b_lower or b_lower in a_lower


def share_domain_keyword(a: str, b: str) -> bool:
    """Return True if both strings mention the same domain keyword."""
    a_lower = a.lower()
    b_lower = b.lower()
    return any(kw in a_lower and kw in b_lower for kw in DOMAIN_KEYWORDS)


def is_education_match(requirement: str, course: str) -> bool:
    """Education requirement vs. college course: overlap or shared domain keyword."""
    return texts_overlap(requirement, course) or share_domain_keyword(
        requirement, course
    )


def any_overlap(left: Iterable[str], right: Sequence[str]) -> bool:
    return any(texts_overlap(a, b) for a in left for b in right)


def is_college_relevant(
    education: Sequence[str], entrance_exams: Sequence[str], college: College
) -> bool:
    """A college is relevant if it offers a matching course or accepts a matching exam."""
    has_course = any(
        is_education_match(req, course)
        for req in education
        for course in college.courses
    )
    if has_course:
        return True
    return any_overlap(entrance_exams, college.entrance_exams)


def rank_colleges(colleges: Iterable[College], limit: int) -> list[College]:
    """Sort by ranking ascending (unranked last, original order on ties) and truncate."""
    ordered = sorted(
        colleges,
        key=lambda c: c.ranking if c.ranking is not None else float("inf"),
    )
    return ordered[:limit]


def is_title_match(
    recommended_title: str,
    reference_title: str,
    threshold: float = TITLE_OVERLAP_THRESHOLD,
) -> bool:
    """Word-overlap test between a recommended and a reference career title.

    Counts the recommended title's words that overlap any reference word and
    requires at least ``threshold`` of the shorter word list. Empty titles
    never match.
    """
    rec_words = recommended_title.lower().split()
    ref_words = reference_title.lower().split()
    if not rec_words or not ref_words:
        return False

    common = [w for w in rec_words if any(w in r or r in w for r in ref_words)]
    return len(common) >= min(len(rec_words), len(ref_words)) * threshold


def parse_family_income(income: Optional[str]) -> int:
    """Parse an income-range string into rupees.

    Takes the first integer in the string and scales it by 100,000 for
    "lakh" or 10,000,000 for "crore". No integer yields 0.

    Examples:
        >>> parse_family_income("5-10 Lakh per annum")
        500000
        >>> parse_family_income("2 Crore per annum")
        20000000
    """
    if not income:
        return 0
    match = _FIRST_INTEGER.search(income)
    if not match:
        return 0

    value = int(match.group(1))
    lowered = income.lower()
    if "lakh" in lowered:
        return value * 100_000
    if "crore" in lowered:
        return value * 10_000_000
    return value


def parse_grade(grade: Optional[str]) -> Optional[int]:
    """Leading integer of a grade string ("12", "10th", "Class 11" -> 11)."""
    if not grade:
        return None
    match = _FIRST_INTEGER.search(grade)
    return int(match.group(1)) if match else None


def merge_unique(*lists: Iterable[str]) -> list[str]:
    """Union of string lists, deduplicated case-insensitively.

    The first spelling seen wins and first-seen order is kept.
    """
    seen: set[str] = set()
    merged: list[str] = []
    for items in lists:
        for item in items:
            key = item.strip().lower()
            if not key or key in seen:
                continue
            seen.add(key)
            merged.append(item)
    return merged


def scholarship_applies(scholarship: Scholarship, criteria: ScholarshipCriteria) -> bool:
    """Check every eligibility rule the scholarship declares.

    A rule the scholarship does not declare always passes, and so does a rule
    on an attribute the criteria does not state.
    """
    rules = scholarship.eligibility

    if criteria.category and rules.categories is not None:
        if criteria.category not in rules.categories:
            return False

    if criteria.family_income and rules.income_limit:
        if criteria.family_income > rules.income_limit:
            return False

    if criteria.course and rules.courses is not None:
        if not any(texts_overlap(criteria.course, c) for c in rules.courses):
            return False

    if criteria.gender and rules.gender:
        if rules.gender.lower() != criteria.gender.lower():
            return False

    if criteria.student_class and rules.classes is not None:
        if criteria.student_class not in rules.classes:
            return False

    return True
