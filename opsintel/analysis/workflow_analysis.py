"""
Per-dataset workflow analysis.

One call, one period: the raw ticket log of a dataset is embedded in a fixed
prompt and sent to the generative engine together with
:data:`~opsintel.models.schemas.ANALYSIS_SCHEMA`.  The JSON answer is
validated into an :class:`~opsintel.models.AnalysisResult`.

The client does not deduplicate, cache or retry;
those decisions belong to the session controller, which knows whether a
result already exists for the dataset.
"""

import json
import logging

from opsintel.core.ai_engine import GenerativeEngine
from opsintel.core.errors import AnalysisError, SchemaValidationError, ServiceError
from opsintel.models import ANALYSIS_SCHEMA, AnalysisResult, parse_analysis_result

logger = logging.getLogger(__name__)

ANALYSIS_FAILED_MESSAGE = "Analysis failed."

ANALYSIS_SYSTEM_INSTRUCTION = (
    "Expert Operations Planner. Produce strict JSON. "
    "Focus on accuracy and data-driven insights."
)


def build_analysis_prompt(workflow_data: str) -> str:
    """Embed the raw ticket log in the analysis prompt."""
    return f"""SYSTEM PROMPT: You are a stateless Enterprise Operational Intelligence Analyst.

TASK: Analyze ONLY the provided IT workflow data.
1. Extract core execution metrics (SLA, Volume, Resolution Velocity).
2. Segment performance by Morning (08-12), Afternoon (12-16), Evening (16-20) shifts.
3. To support benchmarking features, infer a realistic baseline from the provided data variance.

STRICT DATA: {workflow_data}"""


def analyze_workflow(workflow_data: str, engine=None) -> AnalysisResult:
    """Analyse one dataset's raw content.

    Args:
        workflow_data: Dataset content as stored by ingestion or paste.
        engine: A :class:`~opsintel.core.ai_engine.GenerativeEngine`; a new
            one is created from configuration when omitted.

    Returns:
        The validated analysis record.

    Raises:
        ValueError: ``workflow_data`` is empty or whitespace (no request is
            made).
        AnalysisError: The service failed, or its answer was not valid JSON
            or did not match the schema.
    """
    if not workflow_data or not workflow_data.strip():
        raise ValueError("No workflow data to analyze.")

    engine = engine or GenerativeEngine()
    logger.info(f"Analyzing workflow data ({len(workflow_data):,} chars)")

    try:
        text = engine.generate_json(
            build_analysis_prompt(workflow_data),
            ANALYSIS_SCHEMA,
            ANALYSIS_SYSTEM_INSTRUCTION,
        )
    except ServiceError as e:
        raise AnalysisError(str(e) or ANALYSIS_FAILED_MESSAGE) from e

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error(f"Analysis response is not valid JSON: {e}")
        raise AnalysisError("The analysis service returned malformed JSON.") from e

    try:
        result = parse_analysis_result(payload)
    except SchemaValidationError as e:
        logger.error(f"Analysis response failed validation: {e}")
        raise AnalysisError(f"The analysis response did not match the expected format ({e}).") from e

    logger.info(f"  ✓ Analysis complete: breach rate {result.sla_breach_rate}%, "
                f"{len(result.shift_analysis)} shifts, {len(result.recommended_actions)} actions")
    return result
