"""
OpsIntel - Operational Intelligence Dashboard

Streamlit page over one ``SessionController`` per browser session:
- Sidebar with the three dataset slots, global synthesis and reset
- Upload (.xlsx / .xls / .csv / .json), paste, clipboard and sample data
- Per-period dashboard: KPIs, capacity, staffing and benchmarking tabs
- Global synthesis view: week-over-week matrix, findings and risk signals
- CSV export of the benchmarking, staffing and shift tables

Run with ``python run.py`` or ``streamlit run opsintel/dashboard/app.py``.
"""

import os
import sys
import logging
from pathlib import Path

import streamlit as st
from streamlit.runtime.scriptrunner import add_script_run_ctx

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from opsintel.core.config import BACKEND, GEN_MODEL, GLOBAL_ID, OLLAMA_MODEL, BACKEND_GEMINI, DEFAULT_DATASETS
from opsintel.core.config import ANALYSIS_STEPS, MIN_SYNTHESIS_DATASETS
from opsintel.core.logging_setup import configure_logging, is_configured
from opsintel.models import AppStatus
from opsintel.session import ProgressTicker, SessionController
from opsintel.dashboard.charts import (
    benchmarking_frame,
    chart_baseline_comparison,
    chart_loss_trend,
    chart_shift_capacity,
    chart_staffing_gap,
    chart_stress_scores,
    chart_temporal_heatmap,
    chart_utilization_donut,
    findings_frame,
    kpi_cards,
    risk_signals_frame,
    style_impact,
    wow_frame,
)
from opsintel.dashboard.export import export_filename, export_tables, to_csv

# Streamlit re-executes this script on every interaction
if not is_configured():
    configure_logging("dashboard", verbose=os.environ.get("OPSINTEL_VERBOSE") == "1")

logger = logging.getLogger(__name__)

# ============================================================================
# PAGE CONFIG
# ============================================================================

st.set_page_config(
    page_title="OpsIntel | Operational Intelligence",
    page_icon="🧠",
    layout="wide",
    initial_sidebar_state="expanded"
)

# ============================================================================
# SESSION STATE INITIALIZATION
# ============================================================================

if 'controller' not in st.session_state:
    st.session_state.controller = SessionController()
if 'last_upload' not in st.session_state:
    st.session_state.last_upload = None


def get_controller() -> SessionController:
    return st.session_state.controller


# ============================================================================
# RENDER HELPERS
# ============================================================================

def render_header(title: str, subtitle: str, icon: str = "🧠"):
    """Render the gradient page header."""
    st.markdown(f"""
    <div style="background: linear-gradient(135deg, #0a1628 0%, #1a365d 50%, #0a1628 100%);
                padding: 22px 32px; border-radius: 16px; margin-bottom: 20px;
                border: 1px solid rgba(59, 130, 246, 0.3);">
        <h1 style="font-size: 1.8rem; font-weight: 800; margin: 0; color: #ffffff;">{icon} {title}</h1>
        <p style="color: #94a3b8; font-size: 0.9rem; margin: 6px 0 0 0; letter-spacing: 1px;">{subtitle}</p>
    </div>
    """, unsafe_allow_html=True)


def render_kpi_card(card: dict):
    delta_html = ""
    if card['delta'] is not None:
        delta_color = '#10B981' if card['is_improvement'] else '#F43F5E'
        delta_html = f'<span style="color:{delta_color}; font-weight:700;">{card["delta"]}</span>'
    st.markdown(f"""
    <div title="{card['help']}" style="background:#1e293b; border:1px solid #334155; border-radius:14px; padding:16px 20px;">
        <div style="color:#94a3b8; font-size:0.7rem; text-transform:uppercase; letter-spacing:1px;">{card['label']}</div>
        <div style="color:{card['color']}; font-size:1.8rem; font-weight:800;">{card['value']}</div>
        <div style="color:#64748b; font-size:0.75rem;">Baseline {card['baseline']} &nbsp; {delta_html}</div>
    </div>
    """, unsafe_allow_html=True)


def render_export_button(rows, label: str):
    csv_text = to_csv(rows)
    st.download_button(
        "📥 Export CSV",
        data=csv_text or "",
        file_name=export_filename(label),
        mime="text/csv",
        disabled=csv_text is None,
        key=f"export_{label}",
    )


def make_ticker_factory(slot):
    """Progress tickers that draw into ``slot`` from their own thread."""
    total = len(ANALYSIS_STEPS)

    def on_step(index, title, desc):
        slot.info(f"**Step {index + 1}/{total}: {title}**\n\n{desc}")

    return lambda: ProgressTicker(on_step=on_step, thread_hook=add_script_run_ctx)


def request_activation():
    """Ask the next script run to activate the active dataset."""
    st.session_state.activation_requested = True


def run_pending_analysis(controller: SessionController):
    """Analyse the active dataset if it has content but no result yet.

    A dataset whose last attempt failed is only retried on an explicit
    request (re-selecting it, new content or the retry button); otherwise
    every rerun would fire a new request.
    """
    dataset_id = controller.active_id
    requested = st.session_state.pop('activation_requested', False)
    if dataset_id == GLOBAL_ID:
        return
    if not controller.content_of(dataset_id) or controller.result_of(dataset_id) is not None:
        return
    if controller.status_of(dataset_id) == AppStatus.ERROR and not requested:
        return

    progress_slot = st.empty()
    controller.ticker_factory = make_ticker_factory(progress_slot)
    with st.spinner("Analyzing workflow data..."):
        controller.activate(dataset_id)
    progress_slot.empty()
    st.rerun()


# ============================================================================
# SIDEBAR
# ============================================================================

def render_sidebar(controller: SessionController):
    with st.sidebar:
        st.markdown("## 🧠 OpsIntel")
        st.markdown("*Operational Intelligence Platform*")
        st.markdown("---")
        st.markdown("### Datasets")

        for dataset in controller.datasets:
            status = controller.status_of(dataset.id)
            if status == AppStatus.ANALYZING:
                badge = "⏳"
            elif controller.result_of(dataset.id) is not None:
                badge = "✅"
            elif status == AppStatus.ERROR:
                badge = "⚠️"
            else:
                badge = "📄" if controller.content_of(dataset.id) else "○"
            is_active = controller.active_id == dataset.id
            if st.button(f"{badge} {dataset.name}", key=f"ds_{dataset.id}",
                         type="primary" if is_active else "secondary", use_container_width=True):
                # Analysis (if needed) starts in the main area, where progress is drawn
                controller.select(dataset.id)
                request_activation()
                st.rerun()
            st.caption(f"{dataset.timestamp} · {dataset.status.value}")

        st.markdown("---")
        ready = controller.readiness_count
        st.caption(f"{ready}/{len(DEFAULT_DATASETS)} periods analyzed")
        if st.button("🌐 Global Synthesis", disabled=not controller.can_synthesize,
                     use_container_width=True,
                     help=f"Needs at least {MIN_SYNTHESIS_DATASETS} analyzed periods"):
            with st.spinner("Synthesizing capacity trends..."):
                controller.run_global_synthesis()
            st.rerun()
        if controller.result_of(GLOBAL_ID) is not None and controller.active_id != GLOBAL_ID:
            if st.button("📈 Open Global View", use_container_width=True):
                controller.select(GLOBAL_ID)
                st.rerun()

        st.markdown("---")
        if st.button("🗑️ Reset All", use_container_width=True):
            controller.reset_all()
            st.session_state.last_upload = None
            st.rerun()

        model = GEN_MODEL if BACKEND == BACKEND_GEMINI else OLLAMA_MODEL
        st.caption(f"Engine: {BACKEND} · {model}")


# ============================================================================
# INPUT PANEL
# ============================================================================

def render_input_panel(controller: SessionController):
    dataset_id = controller.active_id
    name = next(d.name for d in controller.datasets if d.id == dataset_id)
    st.markdown(f"### Load workflow data for **{name}**")

    uploaded = st.file_uploader(
        "Upload ticket log",
        type=["xlsx", "xls", "csv", "json"],
        key=f"uploader_{dataset_id}",
    )
    if uploaded is not None:
        upload_key = (dataset_id, uploaded.file_id)
        if st.session_state.last_upload != upload_key:
            st.session_state.last_upload = upload_key
            if controller.ingest_upload(uploaded.getvalue(), uploaded.name):
                request_activation()
            st.rerun()

    pasted = st.text_area("Or paste raw data", height=200, key=f"paste_{dataset_id}",
                          placeholder="Paste JSON or CSV ticket data here...")

    col1, col2, col3 = st.columns(3)
    with col1:
        if st.button("✅ Use pasted data", disabled=not pasted.strip(), use_container_width=True):
            controller.set_content(dataset_id, pasted)
            request_activation()
            st.rerun()
    with col2:
        if st.button("📋 Paste from clipboard", use_container_width=True):
            if controller.paste_from_clipboard():
                request_activation()
            st.rerun()
    with col3:
        if st.button("✨ Load sample data", use_container_width=True):
            controller.load_sample()
            request_activation()
            st.rerun()

    status = controller.status_of(dataset_id)
    if status == AppStatus.ERROR and controller.content_of(dataset_id):
        if st.button("🔁 Retry analysis"):
            request_activation()
            st.rerun()


# ============================================================================
# PER-DATASET DASHBOARD
# ============================================================================

def render_dataset_dashboard(controller: SessionController, result):
    dataset_id = controller.active_id

    col_summary, col_reset = st.columns([5, 1])
    with col_summary:
        st.markdown("#### Executive Summary")
        st.write(result.executive_summary)
    with col_reset:
        if st.button("🆕 New Analysis", use_container_width=True):
            controller.reset_dataset(dataset_id)
            st.session_state.last_upload = None
            st.rerun()

    cols = st.columns(4)
    for col, card in zip(cols, kpi_cards(result)):
        with col:
            render_kpi_card(card)

    st.markdown("")
    tables = export_tables(result)
    tab_capacity, tab_staffing, tab_comparison = st.tabs(
        ["📊 Capacity", "👥 Staffing", "📈 Benchmarking"]
    )

    with tab_capacity:
        col1, col2 = st.columns([2, 1])
        with col1:
            st.plotly_chart(chart_shift_capacity(result), use_container_width=True)
        with col2:
            st.plotly_chart(chart_utilization_donut(result), use_container_width=True)

        st.markdown("#### Agent Performance by Shift")
        render_export_button(tables['agent_performance_analysis'], 'agent_performance_analysis')
        st.dataframe(tables['agent_performance_analysis'], use_container_width=True, hide_index=True)
        st.plotly_chart(chart_stress_scores(result), use_container_width=True)

        st.plotly_chart(chart_temporal_heatmap(result), use_container_width=True)

        if result.bottlenecks:
            st.markdown("#### Critical Risk Signals")
            for item in result.bottlenecks:
                st.markdown(f"- 🚨 {item}")

    with tab_staffing:
        roi = result.staffing_roi
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Delay Reduction", f"{roi.estimated_delay_reduction_percent:g}%")
        c2.metric("SLA Adherence", f"+{roi.sla_adherence_improvement_percent:g}%")
        c3.metric("Leakage Savings", f"${roi.monthly_revenue_leakage_savings:,.0f}")
        c4.metric("Optimized Value", f"${roi.total_optimized_value:,.0f}")

        st.markdown("#### Workforce Capacity Optimizer")
        render_export_button(tables['staffing_recommendations'], 'staffing_recommendations')
        st.dataframe(tables['staffing_recommendations'], use_container_width=True, hide_index=True)
        st.plotly_chart(chart_staffing_gap(result), use_container_width=True)

        st.markdown("#### Actionable Staffing Plan")
        for action in result.recommended_actions:
            with st.expander(f"⚡ {action.action}"):
                st.markdown(f"**Insight:** {action.insight}")
                st.markdown(f"**Expected impact:** {action.expected_impact}")

    with tab_comparison:
        st.markdown(f"#### Historical Performance Comparison ({result.historical_comparison.period_label})")
        render_export_button(tables['historical_benchmarking'], 'historical_benchmarking')
        st.dataframe(benchmarking_frame(result), use_container_width=True, hide_index=True)
        st.plotly_chart(chart_baseline_comparison(result), use_container_width=True)

        st.markdown("#### Financial Impact")
        fin = result.financial_impact
        st.plotly_chart(chart_loss_trend(result), use_container_width=True)
        st.markdown(f"**Revenue leakage:** {fin.revenue_leakage_analysis}")
        st.markdown(f"**Why management does not see it:** {fin.management_invisibility_reason}")
        st.markdown(f"**Business risk:** {fin.business_risk_assessment}")


# ============================================================================
# GLOBAL SYNTHESIS VIEW
# ============================================================================

def render_global_view(controller: SessionController):
    status = controller.status_of(GLOBAL_ID)
    synthesis = controller.global_result

    if synthesis is None:
        if status == AppStatus.ERROR:
            st.warning("Global synthesis did not complete. Retry from the sidebar.")
        else:
            st.info(f"Analyze at least {MIN_SYNTHESIS_DATASETS} periods, then run Global Synthesis from the sidebar.")
        return

    st.markdown("#### Management Insights")
    st.write(synthesis.management_insights)

    st.markdown("#### Week-over-Week Matrix")
    st.dataframe(wow_frame(synthesis).style.map(style_impact, subset=['impact_level']),
                 use_container_width=True, hide_index=True)

    col_pos, col_neg = st.columns(2)
    with col_pos:
        st.markdown("#### ✅ Positives")
        st.dataframe(findings_frame(synthesis.positives), use_container_width=True, hide_index=True)
    with col_neg:
        st.markdown("#### ❌ Negatives")
        st.dataframe(findings_frame(synthesis.negatives), use_container_width=True, hide_index=True)

    st.markdown("#### 🚨 Risk Signals")
    st.dataframe(risk_signals_frame(synthesis), use_container_width=True, hide_index=True)

    st.markdown("#### Structural Assessment")
    st.write(synthesis.structural_assessment)


# ============================================================================
# MAIN
# ============================================================================

def main():
    """Main application entry point."""
    controller = get_controller()
    render_sidebar(controller)

    if controller.active_id == GLOBAL_ID:
        render_header("Global Operational Synthesis", "Cross-period capacity trends", "🌐")
    else:
        name = next(d.name for d in controller.datasets if d.id == controller.active_id)
        render_header("Operational Intelligence", f"{name} · workflow performance analysis")

    if controller.error:
        col_err, col_btn = st.columns([6, 1])
        col_err.error(controller.error)
        if col_btn.button("Dismiss"):
            controller.dismiss_error()
            st.rerun()

    if controller.active_id == GLOBAL_ID:
        render_global_view(controller)
        return

    run_pending_analysis(controller)

    result = controller.result_of(controller.active_id)
    if result is not None:
        render_dataset_dashboard(controller, result)
    else:
        render_input_panel(controller)


main()
