"""
Plotly charts and KPI helpers for the OpsIntel dashboard.

Every function here is a pure function of an ``AnalysisResult`` or a
``GlobalSynthesisResult``: no Streamlit calls, no session access.  The page
in :mod:`opsintel.dashboard.app` decides where each figure goes.

Per-dataset view:
- KPI cards with baseline and delta
- Shift capacity (volume vs breach rate) and stress scores
- Staffing gap (current vs recommended agents)
- Capacity utilisation donut
- Revenue leakage trend
- Current vs baseline comparison
- Temporal heatmap on the fixed 7 x 6 grid

Global view:
- Week-over-week matrix, positives / negatives and risk signal tables
"""

import plotly.express as px
import plotly.graph_objects as go
from plotly.subplots import make_subplots
import pandas as pd
import numpy as np
from typing import Dict, List

from opsintel.core.config import (
    BREACH_ALERT_THRESHOLD,
    COLORS,
    HEATMAP_DAYS,
    HEATMAP_TIME_BLOCKS,
)


def create_plotly_theme():
    """Get consistent Plotly theme settings."""
    return dict(
        paper_bgcolor='rgba(0,0,0,0)',
        plot_bgcolor='rgba(0,0,0,0)',
        font=dict(family='Inter', color='#E0E0E0'),
        margin=dict(l=40, r=40, t=50, b=40),
    )


def _empty_figure(message: str) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(text=message, x=0.5, y=0.5, showarrow=False)
    fig.update_layout(**create_plotly_theme(), height=350)
    return fig


# =============================================================================
# KPI CARDS
# =============================================================================

def format_delta(delta: float) -> str:
    """``5`` -> ``+5%``, ``-3.2`` -> ``-3.2%``."""
    sign = '+' if delta > 0 else ''
    return f"{sign}{delta:g}%"


def breach_color(rate: float) -> str:
    return COLORS['danger'] if rate > BREACH_ALERT_THRESHOLD else COLORS['success']


def kpi_cards(result) -> List[Dict]:
    """Headline metrics with their inferred baseline.

    Returns a list of dicts with ``label``, ``value``, ``baseline``,
    ``delta`` (formatted string or ``None``), ``is_improvement`` (bool or
    ``None``), ``color`` and ``help``.
    """
    metrics = result.summary_metrics
    base = result.baseline_metrics
    comp = result.historical_comparison
    loss = result.financial_impact.estimated_monthly_loss

    return [
        {
            'label': 'SLA Breach Rate',
            'value': f"{metrics.sla_breach_rate_percent:g}%",
            'baseline': f"{base.sla_breach_rate_percent:g}%",
            'delta': format_delta(comp.breach_rate_change_percent),
            'is_improvement': comp.is_improvement.breach_rate,
            'color': breach_color(metrics.sla_breach_rate_percent),
            'help': 'Overall SLA health vs historical baseline.',
        },
        {
            'label': 'Est. Monthly Loss',
            'value': f"${loss / 1000:.1f}k",
            'baseline': f"${base.estimated_monthly_loss / 1000:.1f}k",
            'delta': format_delta(comp.loss_change_percent),
            'is_improvement': comp.is_improvement.loss,
            'color': COLORS['danger'],
            'help': 'Quantified revenue leakage in the current period.',
        },
        {
            'label': 'Avg. Resolution',
            'value': f"{metrics.avg_resolution_time_hours:.1f}h",
            'baseline': f"{base.avg_resolution_time_hours:.1f}h",
            'delta': format_delta(comp.resolution_time_change_percent),
            'is_improvement': comp.is_improvement.resolution_time,
            'color': COLORS['primary'],
            'help': 'Average time taken to resolve tickets.',
        },
        {
            'label': 'Workflow Load',
            'value': f"{metrics.total_tickets_analyzed:,.0f}",
            'baseline': f"{base.total_tickets_analyzed:,.0f}",
            'delta': None,
            'is_improvement': None,
            'color': COLORS['muted'],
            'help': 'Total volume of tickets analyzed.',
        },
    ]


# =============================================================================
# SHIFTS AND STAFFING
# =============================================================================

def stress_color(score: float) -> str:
    if score > 7:
        return COLORS['danger']
    if score > 4:
        return COLORS['warning']
    return COLORS['success']


def chart_shift_capacity(result) -> go.Figure:
    """Ticket volume and breach rate per shift."""
    shifts = result.shift_analysis
    if not shifts:
        return _empty_figure("No shift data available")

    names = [s.shift_name for s in shifts]
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=names, y=[s.ticket_volume for s in shifts],
        name='Ticket Volume', marker_color=COLORS['primary'],
        hovertemplate='<b>%{x}</b><br>Volume: %{y:,.0f}<extra></extra>',
    ))
    fig.add_trace(go.Bar(
        x=names, y=[s.breach_rate_percent for s in shifts],
        name='Breach Rate %', marker_color=COLORS['danger'],
        hovertemplate='<b>%{x}</b><br>Breach rate: %{y:.1f}%<extra></extra>',
    ))
    fig.update_layout(
        **create_plotly_theme(),
        title=dict(text='Shift Capacity Dynamics', font=dict(size=18)),
        barmode='group',
        height=380,
        legend=dict(orientation='h', y=-0.15),
    )
    return fig


def chart_stress_scores(result) -> go.Figure:
    """Stress score (0-10) per shift, coloured by severity."""
    shifts = result.shift_analysis
    if not shifts:
        return _empty_figure("No shift data available")

    fig = go.Figure(go.Bar(
        x=[s.shift_name for s in shifts],
        y=[s.stress_score for s in shifts],
        marker_color=[stress_color(s.stress_score) for s in shifts],
        text=[f"{s.stress_score:g}/10" for s in shifts],
        textposition='outside',
        hovertemplate='<b>%{x}</b><br>Stress: %{y}/10<extra></extra>',
    ))
    fig.update_layout(
        **create_plotly_theme(),
        title=dict(text='Shift Stress Score', font=dict(size=18)),
        yaxis=dict(range=[0, 10.5]),
        height=350,
        showlegend=False,
    )
    return fig


def chart_staffing_gap(result) -> go.Figure:
    """Current vs recommended agents per shift."""
    recs = result.staffing_recommendations
    if not recs:
        return _empty_figure("No staffing recommendations")

    names = [r.shift_name for r in recs]
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=names, y=[r.current_estimated_agents for r in recs],
        name='Current Agents', marker_color=COLORS['muted'],
    ))
    fig.add_trace(go.Bar(
        x=names, y=[r.recommended_agents for r in recs],
        name='Recommended Agents', marker_color=COLORS['indigo'],
        customdata=[r.gap for r in recs],
        hovertemplate='<b>%{x}</b><br>Recommended: %{y}<br>Gap: %{customdata:+g}<extra></extra>',
    ))
    fig.update_layout(
        **create_plotly_theme(),
        title=dict(text='Workforce Capacity Optimizer', font=dict(size=18)),
        barmode='group',
        height=380,
        legend=dict(orientation='h', y=-0.15),
    )
    return fig


def chart_utilization_donut(result) -> go.Figure:
    points = result.capacity_utilization_distribution
    if not points:
        return _empty_figure("No utilisation data")

    fig = px.pie(
        names=[p.name for p in points],
        values=[p.value for p in points],
        hole=0.55,
        color_discrete_sequence=[COLORS['primary'], COLORS['indigo'], COLORS['warning'],
                                 COLORS['danger'], COLORS['success']],
    )
    fig.update_traces(textinfo='percent+label')
    fig.update_layout(
        **create_plotly_theme(),
        title=dict(text='Capacity Utilization', font=dict(size=18)),
        height=350,
        showlegend=False,
    )
    return fig


# =============================================================================
# FINANCIAL
# =============================================================================

def chart_loss_trend(result) -> go.Figure:
    """Loss intensity as an area, ticket volume as a line on a second axis."""
    points = result.loss_trend
    if not points:
        return _empty_figure("No trend data")

    dates = [p.date for p in points]
    fig = make_subplots(specs=[[{"secondary_y": True}]])
    fig.add_trace(go.Scatter(
        x=dates, y=[p.loss_value for p in points],
        name='Loss Intensity', fill='tozeroy', mode='lines',
        line=dict(color=COLORS['danger'], width=2),
        hovertemplate='%{x}<br>Loss: $%{y:,.0f}<extra></extra>',
    ), secondary_y=False)
    fig.add_trace(go.Scatter(
        x=dates, y=[p.ticket_volume for p in points],
        name='Ticket Volume', mode='lines+markers',
        line=dict(color=COLORS['primary'], width=2, dash='dot'),
    ), secondary_y=True)
    fig.update_layout(
        **create_plotly_theme(),
        title=dict(text='Revenue Leakage Forecast', font=dict(size=18)),
        height=380,
        legend=dict(orientation='h', y=-0.15),
    )
    fig.update_yaxes(title_text='Loss ($)', secondary_y=False)
    fig.update_yaxes(title_text='Tickets', secondary_y=True)
    return fig


def chart_baseline_comparison(result) -> go.Figure:
    """Current period against the inferred baseline on three headline metrics."""
    metrics = result.summary_metrics
    base = result.baseline_metrics
    labels = ['Breach %', 'Resolution (h)', 'Loss ($k)']
    current = [
        metrics.sla_breach_rate_percent,
        metrics.avg_resolution_time_hours,
        result.financial_impact.estimated_monthly_loss / 1000,
    ]
    baseline = [
        base.sla_breach_rate_percent,
        base.avg_resolution_time_hours,
        base.estimated_monthly_loss / 1000,
    ]

    fig = go.Figure()
    fig.add_trace(go.Bar(x=labels, y=current, name='Current Performance', marker_color=COLORS['primary']))
    fig.add_trace(go.Bar(x=labels, y=baseline,
                         name=f"Baseline ({result.historical_comparison.period_label})",
                         marker_color='#334155'))
    fig.update_layout(
        **create_plotly_theme(),
        title=dict(text='Comparative Metric Analysis', font=dict(size=18)),
        barmode='group',
        height=380,
        legend=dict(orientation='h', y=-0.15),
    )
    return fig


def historical_benchmarking_rows(result) -> List[Dict]:
    """Current vs baseline rows, in the shape used by the CSV export."""
    metrics = result.summary_metrics
    base = result.baseline_metrics
    comp = result.historical_comparison
    return [
        {'metric': 'SLA Breach Rate', 'current': metrics.sla_breach_rate_percent,
         'baseline': base.sla_breach_rate_percent, 'change': comp.breach_rate_change_percent},
        {'metric': 'Resolution velocity', 'current': metrics.avg_resolution_time_hours,
         'baseline': base.avg_resolution_time_hours, 'change': comp.resolution_time_change_percent},
        {'metric': 'Monthly Loss', 'current': result.financial_impact.estimated_monthly_loss,
         'baseline': base.estimated_monthly_loss, 'change': comp.loss_change_percent},
    ]


def benchmarking_frame(result) -> pd.DataFrame:
    flags = result.historical_comparison.is_improvement
    df = pd.DataFrame(historical_benchmarking_rows(result))
    df['status'] = [
        'Target Achieved' if ok else 'Improvement Required'
        for ok in (flags.breach_rate, flags.resolution_time, flags.loss)
    ]
    return df


# =============================================================================
# TEMPORAL HEATMAP
# =============================================================================

HEATMAP_BANDS = [
    # (upper bound exclusive, label, colour)
    (3, 'low', COLORS['success']),
    (6, 'moderate', COLORS['warning']),
    (8, 'high', '#F97316'),
]


def heatmap_band(intensity: float) -> str:
    """Map a 0-10 intensity to its colour band label."""
    if intensity == 0:
        return 'none'
    for upper, label, _ in HEATMAP_BANDS:
        if intensity < upper:
            return label
    return 'critical'


def heatmap_intensity(result, day: str, time_block: str) -> float:
    """Intensity of one grid cell; 0 when the model returned no point for it.

    Days match on their first three letters, case-insensitively, so
    ``"monday"`` and ``"MON"`` both land on ``Mon``.  Time blocks must match
    exactly.
    """
    key = day[:3].lower()
    for point in result.temporal_heatmap:
        if point.day[:3].lower() == key and point.time_block == time_block:
            return point.intensity
    return 0


def heatmap_matrix(result) -> pd.DataFrame:
    """Fixed ``HEATMAP_DAYS`` x ``HEATMAP_TIME_BLOCKS`` intensity grid."""
    return pd.DataFrame(
        [[heatmap_intensity(result, day, block) for block in HEATMAP_TIME_BLOCKS] for day in HEATMAP_DAYS],
        index=HEATMAP_DAYS,
        columns=HEATMAP_TIME_BLOCKS,
    )


# Stepped colourscale matching heatmap_band on a 0-10 axis
_HEATMAP_COLORSCALE = [
    [0.0, '#1E293B'], [0.001, '#1E293B'],
    [0.001, COLORS['success']], [0.3, COLORS['success']],
    [0.3, COLORS['warning']], [0.6, COLORS['warning']],
    [0.6, '#F97316'], [0.8, '#F97316'],
    [0.8, COLORS['danger']], [1.0, COLORS['danger']],
]


def heatmap_peak(result):
    """``(day, time_block, intensity)`` of the hottest cell, or ``None`` if all zero."""
    grid = heatmap_matrix(result)
    values = grid.to_numpy(dtype=float)
    if not values.any():
        return None
    row, col = np.unravel_index(values.argmax(), values.shape)
    return grid.index[row], grid.columns[col], values[row, col]


def chart_temporal_heatmap(result) -> go.Figure:
    grid = heatmap_matrix(result)
    peak = heatmap_peak(result)
    subtitle = f'Peak: {peak[0]} {peak[1]} ({peak[2]:g}/10)' if peak else 'No congestion reported'
    fig = go.Figure(go.Heatmap(
        z=grid.values,
        x=list(grid.columns),
        y=list(grid.index),
        zmin=0,
        zmax=10,
        colorscale=_HEATMAP_COLORSCALE,
        text=grid.values,
        texttemplate='%{text:g}',
        xgap=3,
        ygap=3,
        hovertemplate='<b>%{y} %{x}</b><br>Stress %{z}/10<extra></extra>',
    ))
    fig.update_layout(
        **create_plotly_theme(),
        title=dict(
            text=f'Temporal Workflow Heatmap<br><span style="font-size:14px">{subtitle}</span>',
            font=dict(size=18)
        ),
        yaxis=dict(autorange='reversed'),
        height=400,
    )
    return fig


# =============================================================================
# GLOBAL SYNTHESIS
# =============================================================================

IMPACT_COLORS = {
    'High': COLORS['danger'],
    'Medium': COLORS['warning'],
    'Low': COLORS['success'],
}


def wow_frame(synthesis) -> pd.DataFrame:
    return pd.DataFrame(
        [row.to_dict() for row in synthesis.wow_summary_table],
        columns=['metric', 'current_state', 'previous_state', 'trend_description', 'impact_level'],
    )


def findings_frame(findings) -> pd.DataFrame:
    return pd.DataFrame([f.to_dict() for f in findings], columns=['area', 'outcome', 'cause', 'implication'])


def risk_signals_frame(synthesis) -> pd.DataFrame:
    return pd.DataFrame([r.to_dict() for r in synthesis.risk_signals], columns=['signal', 'trigger', 'action'])


def style_impact(level: str) -> str:
    """CSS for a WoW ``impact_level`` cell (used with ``Styler.map``)."""
    color = IMPACT_COLORS.get(level)
    return f'color: {color}; font-weight: bold' if color else ''
