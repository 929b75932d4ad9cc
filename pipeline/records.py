"""
Analysis records and the session record store.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from config import AnalysisType


def utc_timestamp() -> str:
    """Current time as ISO-8601 with millisecond precision, e.g. 2026-10-17T09:30:00.123Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


@dataclass(frozen=True)
class AnalysisRecord:
    """
    One completed prediction, as it appears in statistics and reports.

    Attributes:
        timestamp: ISO-8601 time the record was created
        batch_number: User-supplied batch identifier
        analysis_type: How the egg was submitted
        gender: Predicted gender label ('Male', 'Female' or 'Uncertain')
        confidence: Confidence label ('High', 'Medium' or 'Low')
        reasoning: Model explanation, prefixed with the shape index for
            measurement analyses
    """
    timestamp: str
    batch_number: str
    analysis_type: AnalysisType
    gender: str
    confidence: str
    reasoning: str

    @classmethod
    def create(
        cls,
        batch_number: str,
        analysis_type: AnalysisType,
        gender: str,
        confidence: str,
        reasoning: str
    ) -> 'AnalysisRecord':
        """Build a record stamped with the current time."""
        return cls(
            timestamp=utc_timestamp(),
            batch_number=batch_number,
            analysis_type=AnalysisType(analysis_type),
            gender=str(getattr(gender, 'value', gender)),
            confidence=str(getattr(confidence, 'value', confidence)),
            reasoning=reasoning,
        )

    def to_row(self) -> List[str]:
        """Values in report column order."""
        return [
            self.timestamp,
            self.batch_number,
            self.analysis_type.value,
            self.gender,
            self.confidence,
            self.reasoning,
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'batch_number': self.batch_number,
            'analysis_type': self.analysis_type.value,
            'gender': self.gender,
            'confidence': self.confidence,
            'reasoning': self.reasoning,
        }


class RecordStore:
    """
    Append-only, insertion-ordered collection of analysis records.

    One store lives for one session. Records are never updated or removed
    individually; ``clear()`` starts a fresh session.

    Example:
        store = RecordStore()
        coordinator = BatchCoordinator(predictor, store)
        coordinator.run_batch("B-17", AnalysisType.IMAGE, images)
        summarize(store.all())
    """

    def __init__(self, records: Iterable[AnalysisRecord] = ()):
        self._records: List[AnalysisRecord] = list(records)

    def append(self, record: AnalysisRecord) -> None:
        if not isinstance(record, AnalysisRecord):
            raise TypeError(f"Expected AnalysisRecord, got {type(record).__name__}")
        self._records.append(record)

    def extend(self, records: Iterable[AnalysisRecord]) -> None:
        for record in records:
            self.append(record)

    def all(self) -> Tuple[AnalysisRecord, ...]:
        """Snapshot of every record in insertion order."""
        return tuple(self._records)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[AnalysisRecord]:
        return iter(self.all())

    def __repr__(self) -> str:
        return f"RecordStore(records={len(self._records)})"
