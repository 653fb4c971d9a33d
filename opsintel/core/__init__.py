"""
Core module for OpsIntel.

Contains configuration, the error taxonomy, the generative engine and the
bundled demo dataset.
"""

from opsintel.core.config import *
from opsintel.core.errors import (
    OpsIntelError,
    IngestionError,
    UnsupportedFormatError,
    FileParseError,
    ClipboardError,
    SchemaValidationError,
    ServiceError,
    AnalysisError,
    SynthesisError,
)
from opsintel.core.ai_engine import GenerativeEngine, check_service
from opsintel.core.sample_data import SAMPLE_DATA
from opsintel.core.logging_setup import configure_logging

__all__ = [
    # Errors
    'OpsIntelError',
    'IngestionError',
    'UnsupportedFormatError',
    'FileParseError',
    'ClipboardError',
    'SchemaValidationError',
    'ServiceError',
    'AnalysisError',
    'SynthesisError',
    # AI Engine
    'GenerativeEngine',
    'check_service',
    # Logging
    'configure_logging',
    # Demo data
    'SAMPLE_DATA',
]
