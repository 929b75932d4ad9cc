"""
Statistics and charts for analysis records.

This package contains:
- aggregation: Gender distribution summaries, per batch or overall
- charts: Bar chart of the distribution
"""

__version__ = '1.0.0'

from evaluation.aggregation import (
    ALL_BATCHES,
    GenderSummary,
    filter_records,
    summarize,
    list_batches,
    summarize_by_batch,
    format_summary,
)

__all__ = [
    'ALL_BATCHES',
    'GenderSummary',
    'filter_records',
    'summarize',
    'list_batches',
    'summarize_by_batch',
    'format_summary',
]
