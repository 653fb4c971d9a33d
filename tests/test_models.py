"""
Unit tests for opsintel.models

Covers response validation at the parse boundary:
- Well-formed analysis and synthesis responses
- Missing, mistyped and out-of-range fields
- Immutability and dict views of the records
"""

import unittest
from dataclasses import FrozenInstanceError
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from opsintel.core.errors import SchemaValidationError
from opsintel.models import (
    ANALYSIS_SCHEMA,
    SYNTHESIS_SCHEMA,
    AnalysisResult,
    GlobalSynthesisResult,
    parse_analysis_result,
    parse_synthesis_result,
    to_json_schema,
)
from tests.fixtures.sample_data import create_analysis_payload, create_synthesis_payload


class TestParseAnalysisResult(unittest.TestCase):
    """Test suite for analysis response validation."""

    def test_valid_payload(self):
        result = parse_analysis_result(create_analysis_payload())

        self.assertIsInstance(result, AnalysisResult)
        self.assertEqual(result.sla_breach_rate, 18.5)
        self.assertEqual(result.estimated_monthly_loss, 42000.0)
        self.assertEqual(len(result.shift_analysis), 3)
        self.assertEqual(result.shift_analysis[2].shift_name, 'Evening')
        self.assertFalse(result.historical_comparison.is_improvement.breach_rate)
        self.assertEqual(result.bottlenecks, ('Manual triage', 'Handoff between L1 and L2'))

    def test_integers_become_floats(self):
        result = parse_analysis_result(create_analysis_payload())
        self.assertIsInstance(result.summary_metrics.total_tickets_analyzed, float)

    def test_missing_field_names_path(self):
        payload = create_analysis_payload()
        del payload['financial_impact']['estimated_monthly_loss']

        with self.assertRaises(SchemaValidationError) as ctx:
            parse_analysis_result(payload)
        self.assertEqual(ctx.exception.path, 'financial_impact.estimated_monthly_loss')

    def test_wrong_type_in_list_item(self):
        payload = create_analysis_payload()
        payload['shift_analysis'][1]['ticket_volume'] = 'ninety-five'

        with self.assertRaises(SchemaValidationError) as ctx:
            parse_analysis_result(payload)
        self.assertEqual(ctx.exception.path, 'shift_analysis[1].ticket_volume')

    def test_boolean_is_not_a_number(self):
        payload = create_analysis_payload()
        payload['summary_metrics']['total_tickets_analyzed'] = True

        with self.assertRaises(SchemaValidationError):
            parse_analysis_result(payload)

    def test_integer_too_large_for_float(self):
        payload = create_analysis_payload()
        payload['summary_metrics']['total_tickets_analyzed'] = 10 ** 400

        with self.assertRaises(SchemaValidationError) as ctx:
            parse_analysis_result(payload)
        self.assertEqual(ctx.exception.path, 'summary_metrics.total_tickets_analyzed')

    def test_heatmap_intensity_out_of_range(self):
        payload = create_analysis_payload()
        payload['temporal_heatmap'][0]['intensity'] = 11

        with self.assertRaises(SchemaValidationError) as ctx:
            parse_analysis_result(payload)
        self.assertIn('temporal_heatmap[0].intensity', str(ctx.exception))

    def test_stress_score_bounds_inclusive(self):
        payload = create_analysis_payload()
        payload['shift_analysis'][0]['stress_score'] = 0
        payload['shift_analysis'][1]['stress_score'] = 10

        result = parse_analysis_result(payload)
        self.assertEqual(result.shift_analysis[1].stress_score, 10.0)

    def test_string_where_array_expected(self):
        payload = create_analysis_payload()
        payload['bottlenecks'] = 'Manual triage'

        with self.assertRaises(SchemaValidationError):
            parse_analysis_result(payload)

    def test_non_object_root(self):
        with self.assertRaises(SchemaValidationError):
            parse_analysis_result([create_analysis_payload()])

    def test_extra_fields_ignored(self):
        payload = create_analysis_payload()
        payload['model_notes'] = 'extra'
        result = parse_analysis_result(payload)
        self.assertNotIn('model_notes', result.to_dict())

    def test_result_is_frozen(self):
        result = parse_analysis_result(create_analysis_payload())
        with self.assertRaises(FrozenInstanceError):
            result.executive_summary = 'edited'

    def test_to_dict(self):
        result = parse_analysis_result(create_analysis_payload())
        row = result.staffing_recommendations[0].to_dict()
        self.assertEqual(row['recommended_agents'], 6.0)
        self.assertEqual(set(row), {'shift_name', 'current_estimated_agents', 'recommended_agents',
                                    'gap', 'justification'})


class TestParseSynthesisResult(unittest.TestCase):
    """Test suite for synthesis response validation."""

    def test_valid_payload(self):
        result = parse_synthesis_result(create_synthesis_payload())

        self.assertIsInstance(result, GlobalSynthesisResult)
        self.assertEqual(result.wow_summary_table[0].impact_level, 'High')
        self.assertEqual(result.negatives[0].cause, 'Understaffed')

    def test_impact_level_must_be_known(self):
        payload = create_synthesis_payload()
        payload['wow_summary_table'][1]['impact_level'] = 'Severe'

        with self.assertRaises(SchemaValidationError) as ctx:
            parse_synthesis_result(payload)
        self.assertEqual(ctx.exception.path, 'wow_summary_table[1].impact_level')

    def test_validation_error_is_value_error(self):
        with self.assertRaises(ValueError):
            parse_synthesis_result({})


class TestSchemas(unittest.TestCase):
    """Test suite for the response schema definitions."""

    def test_analysis_schema_requires_every_section(self):
        self.assertEqual(
            set(ANALYSIS_SCHEMA['required']),
            {f for f in AnalysisResult.__dataclass_fields__},
        )

    def test_synthesis_schema_requires_every_section(self):
        self.assertEqual(
            set(SYNTHESIS_SCHEMA['required']),
            {f for f in GlobalSynthesisResult.__dataclass_fields__},
        )

    def test_to_json_schema_lowercases_types(self):
        converted = to_json_schema(SYNTHESIS_SCHEMA)
        self.assertEqual(converted['type'], 'object')
        self.assertEqual(converted['properties']['wow_summary_table']['type'], 'array')
        # The original is left untouched
        self.assertEqual(SYNTHESIS_SCHEMA['type'], 'OBJECT')


if __name__ == '__main__':
    unittest.main()
