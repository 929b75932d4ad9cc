"""
Report export for analysis records.

The CSV layout is fixed: an unquoted header row followed by one row per
record, every field wrapped in double quotes with embedded quotes doubled.
"""

import csv
import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd

from config import DEFAULT_REPORT_DIR, REPORT_FILE_PREFIX, REPORT_HEADERS
from pipeline.records import AnalysisRecord

logger = logging.getLogger(__name__)


def records_to_dataframe(records: Iterable[AnalysisRecord]) -> pd.DataFrame:
    """Records as a DataFrame with the report column names, in store order."""
    return pd.DataFrame([r.to_row() for r in records], columns=REPORT_HEADERS, dtype=str)


def format_csv(records: Iterable[AnalysisRecord]) -> str:
    """
    Render records as report CSV text.

    Args:
        records: Records in report order

    Returns:
        Header line plus one line per record, joined with '\\n'
    """
    df = records_to_dataframe(records)
    header = ','.join(REPORT_HEADERS)
    if df.empty:
        return header

    body = df.to_csv(
        index=False,
        header=False,
        quoting=csv.QUOTE_ALL,
        doublequote=True,
        lineterminator='\n'
    )
    # to_csv terminates the last row too; the report has no trailing newline
    body = body.removesuffix('\n')
    return f"{header}\n{body}"


class ReportExporter:
    """
    Writes the session's records to dated report files.

    Example:
        exporter = ReportExporter('data/reports')
        path = exporter.export_csv(store.all())
        # data/reports/egg_gender_prediction_report_2026-10-17.csv
    """

    def __init__(self, output_dir: str = DEFAULT_REPORT_DIR):
        self.output_dir = Path(output_dir)

    def report_filename(self, extension: str = 'csv', today: Optional[date] = None) -> str:
        # Record timestamps are UTC, so the file is dated by the UTC day
        today = today or datetime.now(timezone.utc).date()
        return f"{REPORT_FILE_PREFIX}_{today.isoformat()}.{extension}"

    def export_csv(self, records: Iterable[AnalysisRecord], today: Optional[date] = None) -> Path:
        """
        Write the CSV report.

        Raises:
            ValueError: If there are no records to export
        """
        records = self._require_records(records)
        path = self._prepare_path('csv', today)
        path.write_text(format_csv(records), encoding='utf-8')
        logger.info(f"Saved CSV report with {len(records)} record(s): {path}")
        return path

    def export_json(self, records: Iterable[AnalysisRecord], today: Optional[date] = None) -> Path:
        """
        Write the records as a JSON list.

        Raises:
            ValueError: If there are no records to export
        """
        records = self._require_records(records)
        path = self._prepare_path('json', today)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump([r.to_dict() for r in records], f, indent=2, ensure_ascii=False)
        logger.info(f"Saved JSON report with {len(records)} record(s): {path}")
        return path

    def _prepare_path(self, extension: str, today: Optional[date]) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir / self.report_filename(extension, today)

    @staticmethod
    def _require_records(records: Iterable[AnalysisRecord]) -> List[AnalysisRecord]:
        records = list(records)
        if not records:
            raise ValueError("No analysis records to export")
        return records
