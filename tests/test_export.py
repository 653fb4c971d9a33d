"""
Unit tests for opsintel.dashboard.export
"""

import unittest
from datetime import date
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from opsintel.dashboard.export import export_filename, export_tables, to_csv
from opsintel.models import parse_analysis_result
from tests.fixtures.sample_data import create_analysis_payload


class TestToCsv(unittest.TestCase):
    """Test suite for CSV rendering."""

    def test_comma_preserved_by_quoting(self):
        self.assertEqual(to_csv([{'a': 1, 'b': 'x,y'}]), '"a","b"\n"1","x,y"')

    def test_embedded_quotes_doubled(self):
        self.assertEqual(to_csv([{'note': 'the "spill" window'}]), '"note"\n"the ""spill"" window"')

    def test_header_from_first_row(self):
        csv_text = to_csv([{'a': 1, 'b': 2}, {'b': 3, 'a': 4, 'c': 5}])
        self.assertEqual(csv_text.split('\n'), ['"a","b"', '"1","2"', '"4","3"'])

    def test_cell_rendering(self):
        csv_text = to_csv([{'n': 6.0, 'f': 2.5, 'ok': True, 'none': None}])
        self.assertEqual(csv_text.split('\n')[1], '"6","2.5","true",""')

    def test_multiline_cell_and_no_trailing_newline(self):
        csv_text = to_csv([{'note': 'line one\nline two'}, {'note': 'x'}])
        self.assertEqual(csv_text, '"note"\n"line one\nline two"\n"x"')

    def test_empty_rows(self):
        self.assertIsNone(to_csv([]))


class TestExportHelpers(unittest.TestCase):
    """Test suite for export file names and tables."""

    def test_filename(self):
        self.assertEqual(
            export_filename('staffing_recommendations', today=date(2023, 11, 2)),
            'staffing_recommendations_2023-11-02.csv',
        )

    def test_tables(self):
        tables = export_tables(parse_analysis_result(create_analysis_payload()))

        self.assertEqual(list(tables), ['historical_benchmarking', 'staffing_recommendations',
                                        'agent_performance_analysis'])
        self.assertEqual(len(tables['agent_performance_analysis']), 3)
        self.assertEqual(tables['historical_benchmarking'][0]['metric'], 'SLA Breach Rate')

        csv_text = to_csv(tables['staffing_recommendations'])
        self.assertTrue(csv_text.startswith('"shift_name","current_estimated_agents"'))
        self.assertIn('"Backlog carried into the night ""spill"" window."', csv_text)


if __name__ == '__main__':
    unittest.main()
