"""
Data models and validation for operational-intelligence results.

This module defines the **schema layer** of OpsIntel.  The generative
service is asked to answer with JSON matching
:data:`opsintel.models.schemas.ANALYSIS_SCHEMA` /
:data:`~opsintel.models.schemas.SYNTHESIS_SCHEMA`; the dataclasses below are
the typed, immutable Python view of those answers.

Role in the application
-----------------------
1. **Validation at the parse boundary** -- :func:`parse_analysis_result` and
   :func:`parse_synthesis_result` walk a decoded JSON document field by field
   and either return a fully populated record or raise
   :class:`~opsintel.core.errors.SchemaValidationError` naming the first
   offending field.  Nothing partially populated ever leaves this module.

2. **Immutability** -- every result record is a frozen dataclass and every
   list field is a tuple, so a cached result cannot be edited in place; the
   session controller can only replace or delete it.

3. **Serialisation** -- ``to_dict()`` gives back plain dicts for tables and
   CSV export.

Dataclass hierarchy
-------------------
::

    AnalysisResult
        ShiftPerformance[]          per-shift volume / breach / stress
        StaffingRecommendation[]    current vs recommended agents
        StaffingImpactROI           projected value of the staffing change
        FinancialImpact             monthly loss and narrative
        SummaryMetrics              headline KPIs for the period
        HistoricalComparison        deltas vs baseline (+ ImprovementFlags)
        BaselineMetrics             inferred baseline KPIs
        ChartDataPoint[]            capacity utilisation distribution
        TrendDataPoint[]            loss trend time series
        RecommendedAction[]         insight -> action -> impact
        HeatmapDataPoint[]          day x time-block intensity (0-10)

    GlobalSynthesisResult
        WowSummaryRow[]             period-over-period matrix
        Finding[]                   positives / negatives
        RiskSignal[]                signal -> trigger -> action

Range rules enforced on top of the types
----------------------------------------
- ``HeatmapDataPoint.intensity`` and ``ShiftPerformance.stress_score`` lie
  in ``[0, 10]``.
- ``WowSummaryRow.impact_level`` is one of ``High`` / ``Medium`` / ``Low``.
- Numbers must be finite; booleans are not accepted where a number is
  expected (JSON ``true`` is not a ticket count).
"""

import math
import logging
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Dict, Tuple, get_args, get_origin, get_type_hints

from opsintel.core.config import IMPACT_LEVELS
from opsintel.core.errors import SchemaValidationError

logger = logging.getLogger(__name__)


# ============================================================================
# STATUS ENUMS
# ============================================================================

class AppStatus(str, Enum):
    """Lifecycle of one analysis (per dataset id, or for ``global``)."""
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class DatasetStatus(str, Enum):
    """Sync state shown next to a dataset slot in the sidebar."""
    PENDING = "pending"
    SYNCED = "synced"
    EMPTY = "empty"


@dataclass
class DatasetMetadata:
    """One of the fixed dataset slots.

    The raw content itself lives in the dataset store, not here, so that
    metadata can be listed cheaply.
    """
    id: str
    name: str
    timestamp: str
    status: DatasetStatus = DatasetStatus.PENDING


# ============================================================================
# VALIDATION HELPERS
# ============================================================================

def _range(low: float, high: float) -> Dict[str, Any]:
    return {"range": (low, high)}


def _describe(value: Any) -> str:
    return "null" if value is None else type(value).__name__


def _coerce(tp, value, path: str, meta) -> Any:
    """Check ``value`` against the annotation ``tp`` and return it converted."""
    if get_origin(tp) is tuple:
        if not isinstance(value, list):
            raise SchemaValidationError(path, f"expected array, got {_describe(value)}")
        item_tp = get_args(tp)[0]
        return tuple(
            _coerce(item_tp, item, f"{path}[{i}]", meta) for i, item in enumerate(value)
        )

    if is_dataclass(tp):
        return _parse_record(tp, value, path)

    if tp is str:
        if not isinstance(value, str):
            raise SchemaValidationError(path, f"expected string, got {_describe(value)}")
        choices = meta.get("choices")
        if choices and value not in choices:
            raise SchemaValidationError(path, f"expected one of {list(choices)}, got '{value}'")
        return value

    if tp is bool:
        if not isinstance(value, bool):
            raise SchemaValidationError(path, f"expected boolean, got {_describe(value)}")
        return value

    if tp is float:
        # bool is a subclass of int; reject it explicitly
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise SchemaValidationError(path, f"expected number, got {_describe(value)}")
        try:
            number = float(value)
        except OverflowError:
            # JSON integers are unbounded; 10**400 has no float
            raise SchemaValidationError(path, "number out of range") from None
        if not math.isfinite(number):
            raise SchemaValidationError(path, "expected a finite number")
        bounds = meta.get("range")
        if bounds and not bounds[0] <= number <= bounds[1]:
            raise SchemaValidationError(path, f"{number:g} outside [{bounds[0]}, {bounds[1]}]")
        return number

    raise TypeError(f"Unsupported field annotation {tp!r} at {path}")


def _parse_record(cls, data, path: str = ""):
    """Build dataclass ``cls`` from a decoded JSON object, field by field."""
    if not isinstance(data, dict):
        raise SchemaValidationError(path, f"expected object, got {_describe(data)}")

    hints = get_type_hints(cls)
    values = {}
    for f in fields(cls):
        field_path = f"{path}.{f.name}" if path else f.name
        if f.name not in data:
            raise SchemaValidationError(field_path, "missing required field")
        values[f.name] = _coerce(hints[f.name], data[f.name], field_path, f.metadata)

    extra = set(data) - set(values)
    if extra:
        logger.debug(f"Ignoring unexpected fields at '{path or '<root>'}': {sorted(extra)}")
    return cls(**values)


class _Record:
    """Mixin giving result records a plain-dict view."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================================
# PER-DATASET ANALYSIS RECORDS
# ============================================================================

@dataclass(frozen=True)
class ShiftPerformance(_Record):
    shift_name: str
    ticket_volume: float
    breach_rate_percent: float
    avg_handling_time_hours: float
    stress_score: float = field(metadata=_range(0, 10))


@dataclass(frozen=True)
class StaffingRecommendation(_Record):
    shift_name: str
    current_estimated_agents: float
    recommended_agents: float
    gap: float
    justification: str


@dataclass(frozen=True)
class StaffingImpactROI(_Record):
    estimated_delay_reduction_percent: float
    sla_adherence_improvement_percent: float
    monthly_revenue_leakage_savings: float
    total_optimized_value: float


@dataclass(frozen=True)
class FinancialImpact(_Record):
    estimated_monthly_loss: float
    revenue_leakage_analysis: str
    management_invisibility_reason: str
    business_risk_assessment: str


@dataclass(frozen=True)
class SummaryMetrics(_Record):
    avg_resolution_time_hours: float
    sla_breach_rate_percent: float
    total_tickets_analyzed: float
    peak_volume_hour: str


@dataclass(frozen=True)
class ImprovementFlags(_Record):
    resolution_time: bool
    breach_rate: bool
    loss: bool


@dataclass(frozen=True)
class HistoricalComparison(_Record):
    period_label: str
    resolution_time_change_percent: float
    breach_rate_change_percent: float
    loss_change_percent: float
    is_improvement: ImprovementFlags


@dataclass(frozen=True)
class BaselineMetrics(_Record):
    avg_resolution_time_hours: float
    sla_breach_rate_percent: float
    estimated_monthly_loss: float
    total_tickets_analyzed: float


@dataclass(frozen=True)
class ChartDataPoint(_Record):
    name: str
    value: float


@dataclass(frozen=True)
class TrendDataPoint(_Record):
    date: str
    loss_value: float
    ticket_volume: float


@dataclass(frozen=True)
class RecommendedAction(_Record):
    insight: str
    action: str
    expected_impact: str


@dataclass(frozen=True)
class HeatmapDataPoint(_Record):
    day: str
    time_block: str
    intensity: float = field(metadata=_range(0, 10))


@dataclass(frozen=True)
class AnalysisResult(_Record):
    """Structured analysis of one dataset, exactly as the service returned it.

    Produced once per successful analysis call and cached against the
    dataset id.  Frozen: the session can replace or drop it, never edit it.
    """
    executive_summary: str
    shift_analysis: Tuple[ShiftPerformance, ...]
    staffing_recommendations: Tuple[StaffingRecommendation, ...]
    staffing_roi: StaffingImpactROI
    financial_impact: FinancialImpact
    bottlenecks: Tuple[str, ...]
    summary_metrics: SummaryMetrics
    historical_comparison: HistoricalComparison
    baseline_metrics: BaselineMetrics
    capacity_utilization_distribution: Tuple[ChartDataPoint, ...]
    loss_trend: Tuple[TrendDataPoint, ...]
    recommended_actions: Tuple[RecommendedAction, ...]
    temporal_heatmap: Tuple[HeatmapDataPoint, ...]

    @property
    def sla_breach_rate(self) -> float:
        """Headline SLA breach rate (percent) for the period."""
        return self.summary_metrics.sla_breach_rate_percent

    @property
    def estimated_monthly_loss(self) -> float:
        """Projected monthly revenue leakage in dollars."""
        return self.financial_impact.estimated_monthly_loss


# ============================================================================
# CROSS-PERIOD SYNTHESIS RECORDS
# ============================================================================

@dataclass(frozen=True)
class WowSummaryRow(_Record):
    metric: str
    current_state: str
    previous_state: str
    trend_description: str
    impact_level: str = field(metadata={"choices": IMPACT_LEVELS})


@dataclass(frozen=True)
class Finding(_Record):
    area: str
    outcome: str
    cause: str
    implication: str


@dataclass(frozen=True)
class RiskSignal(_Record):
    signal: str
    trigger: str
    action: str


@dataclass(frozen=True)
class GlobalSynthesisResult(_Record):
    """Cross-period comparison derived from two or more analyses."""
    management_insights: str
    wow_summary_table: Tuple[WowSummaryRow, ...]
    positives: Tuple[Finding, ...]
    negatives: Tuple[Finding, ...]
    risk_signals: Tuple[RiskSignal, ...]
    structural_assessment: str


# ============================================================================
# PARSE ENTRY POINTS
# ============================================================================

def parse_analysis_result(data: Any) -> AnalysisResult:
    """Validate a decoded analysis response.

    Args:
        data: The object produced by ``json.loads`` on the service response.

    Returns:
        A fully populated :class:`AnalysisResult`.

    Raises:
        SchemaValidationError: On the first missing, mistyped or
            out-of-range field.  No partial result is returned.
    """
    return _parse_record(AnalysisResult, data)


def parse_synthesis_result(data: Any) -> GlobalSynthesisResult:
    """Validate a decoded synthesis response (see :func:`parse_analysis_result`)."""
    return _parse_record(GlobalSynthesisResult, data)
