"""
OpsIntel - AI-powered operational intelligence for IT service workflows.

This package turns raw ticket logs into an operations dashboard:
- Excel / CSV / JSON ingestion into a normalised text payload
- Structured analysis of each period by a generative model (SLA metrics,
  shift performance, staffing gaps, revenue leakage)
- Cross-period synthesis once two or more periods are analysed
- Streamlit + Plotly dashboard with CSV export
"""

__version__ = "1.0.0"
__author__ = "OpsIntel Team"

from .core.config import *
from .core.errors import OpsIntelError, AnalysisError, SynthesisError, IngestionError
from .core.ai_engine import GenerativeEngine

from .models import AnalysisResult, GlobalSynthesisResult, AppStatus, DatasetStatus
from .ingestion import ingest_file, read_clipboard
from .analysis import analyze_workflow, analyze_global_synthesis
from .session import SessionController, DatasetStore, ProgressTicker

__all__ = [
    '__version__',
    # Core
    'GenerativeEngine',
    'OpsIntelError',
    'AnalysisError',
    'SynthesisError',
    'IngestionError',
    # Models
    'AnalysisResult',
    'GlobalSynthesisResult',
    'AppStatus',
    'DatasetStatus',
    # Pipeline
    'ingest_file',
    'read_clipboard',
    'analyze_workflow',
    'analyze_global_synthesis',
    'SessionController',
    'DatasetStore',
    'ProgressTicker',
]
