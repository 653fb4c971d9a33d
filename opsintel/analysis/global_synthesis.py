"""
Cross-period synthesis.

Once two or more periods have an :class:`~opsintel.models.AnalysisResult`,
their headline numbers are condensed into a short context, one block per
period::

    PERIOD: curr
    SLA Breach: 18.5%
    Loss: $42000

and sent to the engine with
:data:`~opsintel.models.schemas.SYNTHESIS_SCHEMA`.  Only the condensed
context is sent, never the raw ticket logs, so the request stays small no
matter how large the uploads were.
"""

import json
import logging
from typing import Mapping

from opsintel.core.ai_engine import GenerativeEngine
from opsintel.core.config import MIN_SYNTHESIS_DATASETS
from opsintel.core.errors import SchemaValidationError, ServiceError, SynthesisError
from opsintel.models import (
    SYNTHESIS_SCHEMA,
    AnalysisResult,
    GlobalSynthesisResult,
    parse_synthesis_result,
)

logger = logging.getLogger(__name__)

SYNTHESIS_FAILED_MESSAGE = "Global Synthesis failed."

SYNTHESIS_SYSTEM_INSTRUCTION = "Operational Analyst synthesizing capacity trends across multiple weeks."


def _format_number(value: float):
    """Drop the trailing ``.0`` of whole numbers (``42000.0`` -> ``42000``)."""
    return int(value) if float(value).is_integer() else value


def build_synthesis_context(results: Mapping[str, AnalysisResult]) -> str:
    """Condense each period's result into a ``PERIOD`` block.

    Blocks follow the mapping's iteration order and are separated by a blank
    line.
    """
    blocks = []
    for period_id, result in results.items():
        blocks.append(
            f"PERIOD: {period_id}\n"
            f"SLA Breach: {_format_number(result.sla_breach_rate)}%\n"
            f"Loss: ${_format_number(result.estimated_monthly_loss)}"
        )
    return "\n\n".join(blocks)


def build_synthesis_prompt(results: Mapping[str, AnalysisResult]) -> str:
    return (
        "Perform Global Operational Synthesis across multiple analyzed periods.\n"
        f"{build_synthesis_context(results)}"
    )


def analyze_global_synthesis(results: Mapping[str, AnalysisResult], engine=None) -> GlobalSynthesisResult:
    """Compare two or more analysed periods.

    Args:
        results: Analysis results keyed by dataset id.
        engine: Optional :class:`~opsintel.core.ai_engine.GenerativeEngine`.

    Returns:
        The validated synthesis record.

    Raises:
        ValueError: Fewer than two results were supplied (no request is made).
        SynthesisError: The service failed or its answer did not validate.
    """
    if len(results) < MIN_SYNTHESIS_DATASETS:
        raise ValueError(
            f"Global synthesis needs at least {MIN_SYNTHESIS_DATASETS} analyzed periods, got {len(results)}."
        )

    engine = engine or GenerativeEngine()
    logger.info(f"Running global synthesis across {len(results)} periods: {list(results)}")

    try:
        text = engine.generate_json(
            build_synthesis_prompt(results),
            SYNTHESIS_SCHEMA,
            SYNTHESIS_SYSTEM_INSTRUCTION,
        )
        result = parse_synthesis_result(json.loads(text))
    except ServiceError as e:
        raise SynthesisError(str(e) or SYNTHESIS_FAILED_MESSAGE) from e
    except json.JSONDecodeError as e:
        logger.error(f"Synthesis response is not valid JSON: {e}")
        raise SynthesisError("The synthesis service returned malformed JSON.") from e
    except SchemaValidationError as e:
        logger.error(f"Synthesis response failed validation: {e}")
        raise SynthesisError(f"The synthesis response did not match the expected format ({e}).") from e

    logger.info(f"  ✓ Synthesis complete: {len(result.wow_summary_table)} WoW rows, "
                f"{len(result.risk_signals)} risk signals")
    return result
