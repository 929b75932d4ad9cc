"""
Gender Distribution Statistics

This module derives Male/Female counts and percentages from analysis
records, for the whole session or for one batch. Nothing is cached:
every call recomputes from the records it is given.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from config import COUNTED_GENDERS, Gender
from pipeline.records import AnalysisRecord

ALL_BATCHES = "all"


@dataclass(frozen=True)
class GenderSummary:
    """Male/Female distribution over a set of records."""
    male_count: int
    female_count: int
    male_pct: float
    female_pct: float
    total: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def filter_records(
    records: Iterable[AnalysisRecord],
    batch_filter: Optional[str] = None
) -> List[AnalysisRecord]:
    """
    Keep the records of one batch.

    Args:
        records: Records to filter
        batch_filter: Batch number to keep; None or 'all' keeps everything

    Returns:
        Matching records in their original order
    """
    if batch_filter is None or batch_filter == ALL_BATCHES:
        return list(records)
    return [r for r in records if r.batch_number == batch_filter]


def summarize(
    records: Iterable[AnalysisRecord],
    batch_filter: Optional[str] = None
) -> GenderSummary:
    """
    Count Male and Female predictions.

    Only records whose gender is exactly 'Male' or 'Female' are counted;
    anything else (e.g. 'Uncertain') is left out of the total as well.

    Args:
        records: Records to summarize, typically RecordStore.all()
        batch_filter: Batch number to restrict to; None or 'all' for every batch

    Returns:
        GenderSummary; percentages are 0.0 when nothing is counted
    """
    male_count = 0
    female_count = 0
    for record in filter_records(records, batch_filter):
        if record.gender not in COUNTED_GENDERS:
            continue
        if record.gender == Gender.MALE.value:
            male_count += 1
        else:
            female_count += 1

    total = male_count + female_count
    if total == 0:
        return GenderSummary(0, 0, 0.0, 0.0, 0)

    return GenderSummary(
        male_count=male_count,
        female_count=female_count,
        male_pct=male_count / total * 100,
        female_pct=female_count / total * 100,
        total=total
    )


def list_batches(records: Iterable[AnalysisRecord]) -> List[str]:
    """Distinct batch numbers in the order they were first recorded."""
    return list(dict.fromkeys(r.batch_number for r in records))


def summarize_by_batch(records: Iterable[AnalysisRecord]) -> pd.DataFrame:
    """
    One summary row per batch, plus an 'all' row at the end.

    Args:
        records: Records to summarize

    Returns:
        DataFrame with columns batch_number, male_count, female_count,
        male_pct, female_pct, total
    """
    records = list(records)
    rows = []
    for batch in list_batches(records) + [ALL_BATCHES]:
        row = {'batch_number': batch}
        row.update(summarize(records, batch).to_dict())
        rows.append(row)

    return pd.DataFrame(
        rows,
        columns=['batch_number', 'male_count', 'female_count', 'male_pct', 'female_pct', 'total']
    )


def format_summary(summary: GenderSummary, batch_filter: Optional[str] = None) -> str:
    """Human-readable block for console output."""
    label = batch_filter if batch_filter and batch_filter != ALL_BATCHES else "All batches"
    return "\n".join([
        f"Analysis Summary ({label})",
        f"  Male:   {summary.male_count:>4} ({summary.male_pct:.1f}%)",
        f"  Female: {summary.female_count:>4} ({summary.female_pct:.1f}%)",
        f"  Total Predictions: {summary.total}",
    ])
