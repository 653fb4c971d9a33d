"""
Structured-output schemas sent to the generative service.

Both schemas are expressed in the OpenAPI subset the Gemini API accepts for
``response_schema`` (upper-case type names).  ``to_json_schema`` converts
them to plain JSON Schema for backends, such as Ollama's ``format`` field,
that expect lower-case types.

The same field lists drive validation in :mod:`opsintel.models.data_models`,
so the contract the model is asked to honour and the contract the parser
enforces cannot drift apart.
"""

import copy

STRING = {"type": "STRING"}
NUMBER = {"type": "NUMBER"}
BOOLEAN = {"type": "BOOLEAN"}


def _object(properties: dict, required=None) -> dict:
    return {
        "type": "OBJECT",
        "properties": properties,
        "required": list(required if required is not None else properties.keys()),
    }


def _array(items: dict) -> dict:
    return {"type": "ARRAY", "items": items}


# ============================================================================
# PER-DATASET ANALYSIS
# ============================================================================

ANALYSIS_SCHEMA = _object({
    "executive_summary": {
        "type": "STRING",
        "description": "Executive summary focusing on capacity bottlenecks and staffing risks.",
    },
    "shift_analysis": _array(_object({
        "shift_name": STRING,
        "ticket_volume": NUMBER,
        "breach_rate_percent": NUMBER,
        "avg_handling_time_hours": NUMBER,
        "stress_score": NUMBER,
    })),
    "staffing_recommendations": _array(_object({
        "shift_name": STRING,
        "current_estimated_agents": NUMBER,
        "recommended_agents": NUMBER,
        "gap": NUMBER,
        "justification": STRING,
    })),
    "staffing_roi": _object({
        "estimated_delay_reduction_percent": NUMBER,
        "sla_adherence_improvement_percent": NUMBER,
        "monthly_revenue_leakage_savings": NUMBER,
        "total_optimized_value": NUMBER,
    }),
    "financial_impact": _object({
        "estimated_monthly_loss": NUMBER,
        "revenue_leakage_analysis": STRING,
        "management_invisibility_reason": STRING,
        "business_risk_assessment": STRING,
    }),
    "bottlenecks": _array(STRING),
    "summary_metrics": _object({
        "avg_resolution_time_hours": NUMBER,
        "sla_breach_rate_percent": NUMBER,
        "total_tickets_analyzed": NUMBER,
        "peak_volume_hour": STRING,
    }),
    "historical_comparison": _object({
        "period_label": STRING,
        "resolution_time_change_percent": NUMBER,
        "breach_rate_change_percent": NUMBER,
        "loss_change_percent": NUMBER,
        "is_improvement": _object({
            "resolution_time": BOOLEAN,
            "breach_rate": BOOLEAN,
            "loss": BOOLEAN,
        }),
    }),
    "baseline_metrics": _object({
        "avg_resolution_time_hours": NUMBER,
        "sla_breach_rate_percent": NUMBER,
        "estimated_monthly_loss": NUMBER,
        "total_tickets_analyzed": NUMBER,
    }),
    "capacity_utilization_distribution": _array(_object({
        "name": STRING,
        "value": NUMBER,
    })),
    "loss_trend": _array(_object({
        "date": STRING,
        "loss_value": NUMBER,
        "ticket_volume": NUMBER,
    })),
    "recommended_actions": _array(_object({
        "insight": STRING,
        "action": STRING,
        "expected_impact": STRING,
    })),
    "temporal_heatmap": _array(_object({
        "day": STRING,
        "time_block": STRING,
        "intensity": NUMBER,
    })),
})


# ============================================================================
# CROSS-PERIOD SYNTHESIS
# ============================================================================

_FINDING = _object({
    "area": STRING,
    "outcome": STRING,
    "cause": STRING,
    "implication": STRING,
})

SYNTHESIS_SCHEMA = _object({
    "management_insights": STRING,
    "wow_summary_table": _array(_object({
        "metric": STRING,
        "current_state": STRING,
        "previous_state": STRING,
        "trend_description": STRING,
        "impact_level": {"type": "STRING", "enum": ["High", "Medium", "Low"]},
    })),
    "positives": _array(_FINDING),
    "negatives": _array(_FINDING),
    "risk_signals": _array(_object({
        "signal": STRING,
        "trigger": STRING,
        "action": STRING,
    })),
    "structural_assessment": STRING,
})


def to_json_schema(schema: dict) -> dict:
    """Return a copy of ``schema`` with JSON-Schema (lower-case) type names."""
    converted = copy.deepcopy(schema)

    def _lower(node):
        if isinstance(node, dict):
            if isinstance(node.get("type"), str):
                node["type"] = node["type"].lower()
            for value in node.values():
                _lower(value)
        elif isinstance(node, list):
            for value in node:
                _lower(value)

    _lower(converted)
    return converted
