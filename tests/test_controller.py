"""
Unit tests for opsintel.session

Tests the session state machine with the analysis and synthesis clients
replaced by mocks:
- Activation analyses a dataset exactly once
- Synthesis readiness gate
- Per-dataset reset and reset-all
- Failure recovery and the progress ticker lifecycle
"""

import unittest
from unittest.mock import MagicMock
from datetime import datetime
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from opsintel.core.config import GLOBAL_ID
from opsintel.core.errors import AnalysisError, ClipboardError, SynthesisError
from opsintel.core.sample_data import SAMPLE_DATA
from opsintel.models import AppStatus, DatasetStatus, parse_analysis_result, parse_synthesis_result
from opsintel.session import DatasetStore, SessionController
from tests.fixtures.sample_data import (
    create_analysis_payload,
    create_sample_csv_bytes,
    create_synthesis_payload,
)


class ControllerTestCase(unittest.TestCase):
    """Shared set-up: a controller with mocked clients and a fixed clock."""

    def setUp(self):
        self.result = parse_analysis_result(create_analysis_payload())
        self.synthesis = parse_synthesis_result(create_synthesis_payload())
        self.analyzer = MagicMock(return_value=self.result)
        self.synthesizer = MagicMock(return_value=self.synthesis)
        self.ticker = MagicMock()
        self.store = DatasetStore(clock=lambda: datetime(2023, 11, 2, 14, 30))
        self.controller = SessionController(
            store=self.store,
            analyzer=self.analyzer,
            synthesizer=self.synthesizer,
            ticker_factory=lambda: self.ticker,
        )

    def analyse(self, *dataset_ids):
        for dataset_id in dataset_ids:
            self.controller.set_content(dataset_id, f'tickets for {dataset_id}')
            self.controller.activate(dataset_id)


class TestActivation(ControllerTestCase):
    """Test suite for select / activate."""

    def test_initial_state(self):
        self.assertEqual(self.controller.active_id, 'curr')
        self.assertEqual([d.id for d in self.controller.datasets], ['curr', 'prev', 'hist'])
        self.assertEqual(self.controller.readiness_count, 0)
        self.assertEqual(self.controller.status_of('curr'), AppStatus.IDLE)

    def test_activate_with_content_analyses_once(self):
        self.controller.set_content('prev', 'raw log')

        self.assertTrue(self.controller.activate('prev'))
        self.assertFalse(self.controller.activate('prev'))
        self.assertFalse(self.controller.activate('prev'))

        self.analyzer.assert_called_once_with('raw log')
        self.assertEqual(self.controller.active_id, 'prev')
        self.assertIs(self.controller.result_of('prev'), self.result)
        self.assertEqual(self.controller.status_of('prev'), AppStatus.COMPLETED)

    def test_reactivation_while_in_flight_is_ignored(self):
        calls = []

        def reentrant_analyzer(content):
            calls.append(content)
            self.assertTrue(self.controller.is_in_flight('curr'))
            self.assertEqual(self.controller.status_of('curr'), AppStatus.ANALYZING)
            self.assertFalse(self.controller.activate('curr'))
            return self.result

        self.controller.analyzer = reentrant_analyzer
        self.controller.set_content('curr', 'raw log')
        self.controller.activate('curr')

        self.assertEqual(calls, ['raw log'])
        self.assertFalse(self.controller.is_in_flight('curr'))

    def test_activate_without_content_does_nothing(self):
        self.assertFalse(self.controller.activate('hist'))
        self.analyzer.assert_not_called()
        self.assertEqual(self.controller.active_id, 'hist')

    def test_select_does_not_analyse(self):
        self.controller.set_content('prev', 'raw log')
        self.controller.select('prev')
        self.analyzer.assert_not_called()

    def test_unknown_id(self):
        with self.assertRaises(KeyError):
            self.controller.select('next-week')

    def test_writing_content_does_not_analyse(self):
        self.controller.set_content('curr', 'raw log')
        self.analyzer.assert_not_called()
        self.assertEqual(self.controller.status_of('curr'), AppStatus.IDLE)

    def test_success_marks_slot_synced(self):
        self.analyse('curr')
        slot = self.store.get('curr')
        self.assertEqual(slot.status, DatasetStatus.SYNCED)
        self.assertEqual(slot.timestamp, '2023-11-02 14:30')


class TestAnalysisFailure(ControllerTestCase):
    """Test suite for failure and retry."""

    def test_failure_then_success(self):
        self.analyzer.side_effect = [AnalysisError('Cannot reach the analysis service'), self.result]
        self.controller.set_content('curr', 'raw log')

        self.assertFalse(self.controller.activate('curr'))
        self.assertIsNone(self.controller.result_of('curr'))
        self.assertEqual(self.controller.status_of('curr'), AppStatus.ERROR)
        self.assertEqual(self.controller.error, 'Cannot reach the analysis service')
        self.assertEqual(self.controller.readiness_count, 0)

        self.assertTrue(self.controller.activate('curr'))
        self.assertEqual(self.controller.status_of('curr'), AppStatus.COMPLETED)
        self.assertIs(self.controller.result_of('curr'), self.result)
        self.assertIsNone(self.controller.error)

    def test_empty_error_message_gets_fallback(self):
        self.analyzer.side_effect = AnalysisError()
        self.analyse('curr')
        self.assertEqual(self.controller.error, 'Analysis failed.')

    def test_ticker_stopped_on_success(self):
        self.analyse('curr')
        self.ticker.start.assert_called_once()
        self.ticker.stop.assert_called_once()
        self.assertIsNone(self.controller.ticker)

    def test_ticker_stopped_on_failure(self):
        self.analyzer.side_effect = AnalysisError('boom')
        self.analyse('curr')
        self.ticker.stop.assert_called_once()
        self.assertFalse(self.controller.is_in_flight('curr'))

    def test_unexpected_error_marks_error_and_allows_retry(self):
        self.analyzer.side_effect = [OverflowError('int too large to convert to float'), self.result]
        self.controller.set_content('curr', 'raw log')

        self.assertFalse(self.controller.activate('curr'))
        self.ticker.stop.assert_called_once()
        self.assertFalse(self.controller.is_in_flight('curr'))
        self.assertEqual(self.controller.status_of('curr'), AppStatus.ERROR)
        self.assertEqual(self.controller.error, 'Analysis failed.')

        self.assertTrue(self.controller.activate('curr'))
        self.assertEqual(self.controller.status_of('curr'), AppStatus.COMPLETED)
        self.assertEqual(self.analyzer.call_count, 2)

    def test_completed_dataset_is_not_reanalysed(self):
        self.analyse('curr')
        self.analyzer.side_effect = AnalysisError('down')

        self.assertFalse(self.controller.analyze('curr'))
        self.analyzer.assert_called_once()
        self.assertIs(self.controller.result_of('curr'), self.result)
        self.assertEqual(self.controller.status_of('curr'), AppStatus.COMPLETED)
        self.assertIsNone(self.controller.error)

    def test_reset_then_failed_analysis_leaves_no_result(self):
        self.analyse('curr')
        self.controller.reset_dataset('curr')
        self.analyzer.side_effect = AnalysisError('down')

        self.analyse('curr')

        self.assertIsNone(self.controller.result_of('curr'))
        self.assertEqual(self.controller.status_of('curr'), AppStatus.ERROR)
        self.assertEqual(self.controller.readiness_count, 0)


class TestGlobalSynthesis(ControllerTestCase):
    """Test suite for the readiness gate and synthesis transitions."""

    def test_refused_below_two(self):
        self.analyse('curr')

        self.assertFalse(self.controller.can_synthesize)
        self.assertFalse(self.controller.run_global_synthesis())
        self.synthesizer.assert_not_called()
        self.assertEqual(self.controller.status_of(GLOBAL_ID), AppStatus.IDLE)
        self.assertIsNone(self.controller.error)
        self.assertEqual(self.controller.active_id, 'curr')

    def test_available_at_exactly_two(self):
        self.analyse('curr', 'prev')

        self.assertTrue(self.controller.can_synthesize)
        self.assertTrue(self.controller.run_global_synthesis())
        self.assertEqual(self.controller.active_id, GLOBAL_ID)
        self.assertEqual(self.controller.status_of(GLOBAL_ID), AppStatus.COMPLETED)
        self.assertIs(self.controller.result_of(GLOBAL_ID), self.synthesis)
        results = self.synthesizer.call_args[0][0]
        self.assertEqual(list(results), ['curr', 'prev'])

    def test_failure(self):
        self.analyse('curr', 'prev', 'hist')
        self.controller.run_global_synthesis()
        self.synthesizer.side_effect = SynthesisError('timeout')

        self.assertFalse(self.controller.run_global_synthesis())
        self.assertEqual(self.controller.status_of(GLOBAL_ID), AppStatus.ERROR)
        self.assertIsNone(self.controller.global_result)
        self.assertEqual(self.controller.error, 'Global Synthesis failed.')

    def test_unexpected_failure_is_surfaced(self):
        self.analyse('curr', 'prev')
        self.synthesizer.side_effect = KeyError('wow_summary_table')

        self.assertFalse(self.controller.run_global_synthesis())
        self.assertEqual(self.controller.status_of(GLOBAL_ID), AppStatus.ERROR)
        self.assertEqual(self.controller.error, 'Global Synthesis failed.')
        self.assertTrue(self.controller.can_synthesize)

    def test_writes_to_global_ignored(self):
        self.assertFalse(self.controller.set_content(GLOBAL_ID, 'text'))
        self.controller.select(GLOBAL_ID)
        self.assertFalse(self.controller.load_sample())
        self.assertFalse(self.controller.activate(GLOBAL_ID))
        self.analyzer.assert_not_called()


class TestResets(ControllerTestCase):
    """Test suite for reset_dataset and reset_all."""

    def test_reset_dataset_leaves_others(self):
        self.analyse('curr', 'prev')

        self.controller.reset_dataset('curr')

        self.assertIsNone(self.controller.result_of('curr'))
        self.assertIsNone(self.controller.content_of('curr'))
        self.assertEqual(self.controller.status_of('curr'), AppStatus.IDLE)
        self.assertEqual(self.store.get('curr').status, DatasetStatus.PENDING)
        self.assertIs(self.controller.result_of('prev'), self.result)
        self.assertEqual(self.controller.content_of('prev'), 'tickets for prev')
        self.assertEqual(self.controller.status_of('prev'), AppStatus.COMPLETED)
        self.assertEqual(self.controller.readiness_count, 1)

    def test_reset_all(self):
        self.analyse('curr', 'prev')
        self.controller.run_global_synthesis()
        self.analyzer.side_effect = AnalysisError('down')
        self.analyse('hist')
        self.assertEqual(self.controller.status_of('hist'), AppStatus.ERROR)
        self.assertEqual(self.controller.error, 'down')

        self.controller.reset_all()

        self.assertEqual(self.controller.readiness_count, 0)
        self.assertIsNone(self.controller.error)
        self.assertIsNone(self.controller.global_result)
        for dataset_id in ['curr', 'prev', 'hist', GLOBAL_ID]:
            self.assertNotIn(self.controller.status_of(dataset_id), (AppStatus.COMPLETED, AppStatus.ERROR))
            self.assertIsNone(self.controller.content_of(dataset_id))


class TestContentSources(ControllerTestCase):
    """Test suite for upload, clipboard and sample data."""

    def test_upload_csv(self):
        self.assertTrue(self.controller.ingest_upload(create_sample_csv_bytes(), 'tickets.csv'))
        self.assertTrue(self.controller.content_of('curr').startswith('['))

    def test_rejected_upload_keeps_content(self):
        self.controller.set_content('curr', 'previous text')

        self.assertFalse(self.controller.ingest_upload(b'data', 'report.docx'))
        self.assertEqual(self.controller.content_of('curr'), 'previous text')
        self.assertIn('Unsupported file format', self.controller.error)

    def test_clipboard(self):
        self.assertTrue(self.controller.paste_from_clipboard(reader=lambda: 'pasted rows'))
        self.assertEqual(self.controller.content_of('curr'), 'pasted rows')

    def test_clipboard_denied(self):
        reader = MagicMock(side_effect=ClipboardError('Clipboard access denied or empty.'))
        self.assertFalse(self.controller.paste_from_clipboard(reader=reader))
        self.assertEqual(self.controller.error, 'Clipboard access denied or empty.')
        self.assertIsNone(self.controller.content_of('curr'))

    def test_load_sample(self):
        self.controller.select('hist')
        self.controller.load_sample()
        self.assertEqual(self.controller.content_of('hist'), SAMPLE_DATA)

    def test_dismiss_error(self):
        self.controller.ingest_upload(b'', 'x.pdf')
        self.controller.dismiss_error()
        self.assertIsNone(self.controller.error)


if __name__ == '__main__':
    unittest.main()
