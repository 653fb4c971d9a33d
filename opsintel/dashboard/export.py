"""
CSV export of dashboard tables.

Format:
a header row taken from the keys of the first record, then one row per
record, every field (header included) wrapped in double quotes with embedded
quotes doubled, rows separated by ``\\n``.
"""

import csv
import logging
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence

import pandas as pd

from opsintel.dashboard.charts import historical_benchmarking_rows

logger = logging.getLogger(__name__)


def _cell(value) -> str:
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_csv(rows: Sequence[Mapping]) -> Optional[str]:
    """Render ``rows`` as CSV text.

    Returns:
        The CSV text, or ``None`` when ``rows`` is empty (nothing to export).
    """
    if not rows:
        return None

    headers = list(rows[0].keys())
    df = pd.DataFrame([[_cell(row.get(h)) for h in headers] for row in rows], columns=headers)
    logger.debug(f"Exporting {len(df)} rows x {len(headers)} columns")
    # No trailing separator after the last row
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator='\n').rstrip('\n')


def export_filename(label: str, today: Optional[date] = None) -> str:
    """``<label>_<YYYY-MM-DD>.csv``."""
    today = today or date.today()
    return f"{label}_{today.isoformat()}.csv"


def export_tables(result) -> Dict[str, List[Dict]]:
    """The exportable tables of one analysis, keyed by export label."""
    return {
        'historical_benchmarking': historical_benchmarking_rows(result),
        'staffing_recommendations': [r.to_dict() for r in result.staffing_recommendations],
        'agent_performance_analysis': [s.to_dict() for s in result.shift_analysis],
    }
