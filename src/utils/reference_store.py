"""
Reference Data Store

Read-only query interface over curated College, Career and Scholarship
records. The store is constructed explicitly and injected into the pipeline;
tests build one per fixture set.

Example Usage:
    from src.utils.reference_store import ReferenceDataStore

    store = ReferenceDataStore.from_directory(Path("data"))
    colleges = store.all_colleges()
    scholarships = store.applicable_scholarships(
        ScholarshipCriteria(category="OBC", family_income=300000, student_class="12")
    )
"""

from collections import Counter
from pathlib import Path
from typing import Any, Iterable, Optional

from src.models.reference import College, Career, Scholarship, ScholarshipCriteria
from src.utils.logger import get_logger
from src.utils.matching import scholarship_applies
from src.utils.validator import ReferenceDataValidator


class ReferenceDataStore:
    """In-memory snapshot of reference records with lookup/filter queries.

    Every query returns a new list; records themselves are frozen models, so
    callers cannot mutate the store through a query result.
    """

    def __init__(
        self,
        colleges: Iterable[College] = (),
        careers: Iterable[Career] = (),
        scholarships: Iterable[Scholarship] = (),
    ):
        self._colleges = list(colleges)
        self._careers = list(careers)
        self._scholarships = list(scholarships)
        self.logger = get_logger(
            correlation_id="reference-data",
            phase="reference_data",
            component="reference_store",
        )

    @classmethod
    def from_directory(
        cls, data_dir: Path | str, validator: Optional[ReferenceDataValidator] = None
    ) -> "ReferenceDataStore":
        """Load and schema-validate colleges.json, careers.json, scholarships.json.

        Raises:
            ConfigurationError: If a file is missing, unparsable or fails its schema
        """
        validator = validator or ReferenceDataValidator()
        documents = validator.validate_directory(Path(data_dir))

        store = cls(
            colleges=[College.model_validate(c) for c in documents["colleges"]["colleges"]],
            careers=[Career.model_validate(c) for c in documents["careers"]["careers"]],
            scholarships=[
                Scholarship.model_validate(s)
                for s in documents["scholarships"]["scholarships"]
            ],
        )
        store.logger.info(
            "Reference data loaded",
            data_dir=str(data_dir),
            colleges=len(store._colleges),
            careers=len(store._careers),
            scholarships=len(store._scholarships),
        )
        return store

    def all_colleges(self) -> list[College]:
        return list(self._colleges)

    def all_careers(self) -> list[Career]:
        return list(self._careers)

    def all_scholarships(self) -> list[Scholarship]:
        return list(self._scholarships)

    def applicable_scholarships(self, criteria: ScholarshipCriteria) -> list[Scholarship]:
        """Scholarships whose declared eligibility rules the criteria satisfy."""
        return [s for s in self._scholarships if scholarship_applies(s, criteria)]

    def search_colleges(
        self,
        college_type: Optional[str] = None,
        location: Optional[str] = None,
        course: Optional[str] = None,
        entrance_exam: Optional[str] = None,
        max_fees: Optional[float] = None,
    ) -> list[College]:
        """Filter colleges; every given criterion must hold (substring, case-insensitive)."""
        results = []
        for college in self._colleges:
            if college_type and college.type != college_type:
                continue
            if location and location.lower() not in college.location.lower():
                continue
            if course and not any(course.lower() in c.lower() for c in college.courses):
                continue
            if entrance_exam and not any(
                entrance_exam.lower() in e.lower() for e in college.entrance_exams
            ):
                continue
            if max_fees is not None and college.fees.annual > max_fees:
                continue
            results.append(college)
        return results

    def get_statistics(self) -> dict[str, Any]:
        return {
            "total_colleges": len(self._colleges),
            "total_careers": len(self._careers),
            "total_scholarships": len(self._scholarships),
            "colleges_by_type": dict(Counter(c.type for c in self._colleges)),
            "careers_by_category": dict(Counter(c.nep_category for c in self._careers)),
            "scholarships_by_type": dict(Counter(s.type for s in self._scholarships)),
        }
