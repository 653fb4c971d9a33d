"""
Models module for OpsIntel.

Contains the typed result records returned by the analysis service and the
structured-output schemas sent to it.
"""

from .data_models import (
    AppStatus,
    DatasetStatus,
    DatasetMetadata,
    ShiftPerformance,
    StaffingRecommendation,
    StaffingImpactROI,
    FinancialImpact,
    SummaryMetrics,
    ImprovementFlags,
    HistoricalComparison,
    BaselineMetrics,
    ChartDataPoint,
    TrendDataPoint,
    RecommendedAction,
    HeatmapDataPoint,
    AnalysisResult,
    WowSummaryRow,
    Finding,
    RiskSignal,
    GlobalSynthesisResult,
    parse_analysis_result,
    parse_synthesis_result,
)
from .schemas import ANALYSIS_SCHEMA, SYNTHESIS_SCHEMA, to_json_schema

__all__ = [
    'AppStatus',
    'DatasetStatus',
    'DatasetMetadata',
    'ShiftPerformance',
    'StaffingRecommendation',
    'StaffingImpactROI',
    'FinancialImpact',
    'SummaryMetrics',
    'ImprovementFlags',
    'HistoricalComparison',
    'BaselineMetrics',
    'ChartDataPoint',
    'TrendDataPoint',
    'RecommendedAction',
    'HeatmapDataPoint',
    'AnalysisResult',
    'WowSummaryRow',
    'Finding',
    'RiskSignal',
    'GlobalSynthesisResult',
    'parse_analysis_result',
    'parse_synthesis_result',
    'ANALYSIS_SCHEMA',
    'SYNTHESIS_SCHEMA',
    'to_json_schema',
]
