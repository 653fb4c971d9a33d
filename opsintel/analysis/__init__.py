"""
Analysis module for OpsIntel.

Contains the per-dataset analysis client and the cross-period synthesis
client.
"""

from .workflow_analysis import (
    analyze_workflow,
    build_analysis_prompt,
    ANALYSIS_FAILED_MESSAGE,
    ANALYSIS_SYSTEM_INSTRUCTION,
)
from .global_synthesis import (
    analyze_global_synthesis,
    build_synthesis_context,
    build_synthesis_prompt,
    SYNTHESIS_FAILED_MESSAGE,
    SYNTHESIS_SYSTEM_INSTRUCTION,
)

__all__ = [
    'analyze_workflow',
    'build_analysis_prompt',
    'ANALYSIS_FAILED_MESSAGE',
    'ANALYSIS_SYSTEM_INSTRUCTION',
    'analyze_global_synthesis',
    'build_synthesis_context',
    'build_synthesis_prompt',
    'SYNTHESIS_FAILED_MESSAGE',
    'SYNTHESIS_SYSTEM_INSTRUCTION',
]
