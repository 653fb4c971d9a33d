"""
OpsIntel Dashboard - Streamlit Web Interface.

Dark-themed dashboard over one analysis session:
- Per-period KPI cards with inferred baselines
- Interactive Plotly charts for shifts, staffing and revenue leakage
- Temporal congestion heatmap
- Global week-over-week synthesis
- CSV export of the dashboard tables

``app.py`` is a Streamlit script and is not imported here; launch it with
``python run.py``.
"""

from pathlib import Path

from .export import export_filename, export_tables, to_csv


def get_dashboard_path() -> Path:
    """Path of the Streamlit script, for ``streamlit run``."""
    return Path(__file__).parent / "app.py"


__all__ = ['export_filename', 'export_tables', 'to_csv', 'get_dashboard_path']
