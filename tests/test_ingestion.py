"""
Unit tests for opsintel.ingestion

Tests the conversion of uploads into dataset content:
- Extension detection and rejection of unsupported formats
- Spreadsheet / CSV rows rendered as JSON records
- JSON passthrough
- Corrupt input and clipboard failures
"""

import json
import unittest
from unittest.mock import patch
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from pandas.io.clipboard import PyperclipException

from opsintel.core.errors import ClipboardError, FileParseError, UnsupportedFormatError
from opsintel.ingestion.file_loader import (
    CLIPBOARD_MESSAGE,
    PARSE_FAILED_MESSAGE,
    UNSUPPORTED_FORMAT_MESSAGE,
    get_extension,
    ingest_file,
    read_clipboard,
)
from tests.fixtures.sample_data import (
    create_sample_csv_bytes,
    create_sample_json_bytes,
    create_sample_xlsx_bytes,
)


class TestGetExtension(unittest.TestCase):
    """Test suite for extension detection."""

    def test_file_name(self):
        self.assertEqual(get_extension('week 44.XLSX'), '.xlsx')

    def test_bare_extension(self):
        self.assertEqual(get_extension('.csv'), '.csv')
        self.assertEqual(get_extension('json'), '.json')

    def test_last_dot_wins(self):
        self.assertEqual(get_extension('export.2023.10.xls'), '.xls')


class TestIngestFile(unittest.TestCase):
    """Test suite for ingest_file."""

    def test_csv_rows_become_json_records(self):
        text = ingest_file(create_sample_csv_bytes(), 'tickets.csv')
        records = json.loads(text)

        self.assertEqual(len(records), 2)
        self.assertEqual(list(records[0]), ['ticket_id', 'priority', 'created_at', 'resolution_hours'])
        self.assertEqual(records[0]['ticket_id'], 'INC-1')
        self.assertEqual(records[0]['resolution_hours'], 3.5)
        self.assertIsNone(records[1]['resolution_hours'])

    def test_zero_padded_ids_stay_text(self):
        payload = b"site_id,tickets,ratio\n007,12,0.5\n042,3,1.25\n"
        records = json.loads(ingest_file(payload, 'sites.csv'))

        self.assertEqual([r['site_id'] for r in records], ['007', '042'])
        self.assertEqual([r['tickets'] for r in records], [12, 3])
        self.assertEqual(records[0]['ratio'], 0.5)

    def test_output_is_indented(self):
        text = ingest_file(create_sample_csv_bytes(), '.csv')
        self.assertTrue(text.startswith('[\n  {'))

    def test_xlsx_reads_first_sheet_only(self):
        records = json.loads(ingest_file(create_sample_xlsx_bytes(), 'week.xlsx'))

        self.assertEqual([r['ticket_id'] for r in records], ['INC-10', 'INC-11'])
        self.assertNotIn('ignore', records[0])
        self.assertEqual(records[1]['resolution_hours'], 1.5)

    def test_json_passthrough(self):
        payload = create_sample_json_bytes()
        text = ingest_file(payload, 'export.JSON')
        self.assertEqual(text, payload.decode('utf-8'))
        self.assertIn('Café', text)

    def test_json_is_not_validated(self):
        self.assertEqual(ingest_file(b'not json at all', '.json'), 'not json at all')

    def test_invalid_utf8_json(self):
        with self.assertRaises(FileParseError) as ctx:
            ingest_file(b'\xff\xfe\x00bad', 'export.json')
        self.assertEqual(str(ctx.exception), PARSE_FAILED_MESSAGE)

    def test_unsupported_extension(self):
        with self.assertRaises(UnsupportedFormatError) as ctx:
            ingest_file(b'%PDF-1.7', 'report.pdf')
        self.assertEqual(str(ctx.exception), UNSUPPORTED_FORMAT_MESSAGE)

    def test_corrupt_workbook(self):
        with self.assertRaises(FileParseError):
            ingest_file(b'this is not a zip archive', 'broken.xlsx')

    def test_empty_csv(self):
        with self.assertRaises(FileParseError):
            ingest_file(b'', 'empty.csv')


class TestReadClipboard(unittest.TestCase):
    """Test suite for the clipboard surface."""

    @patch('opsintel.ingestion.file_loader.clipboard_get')
    def test_returns_text(self, mock_get):
        mock_get.return_value = 'INC-1,P1'
        self.assertEqual(read_clipboard(), 'INC-1,P1')

    @patch('opsintel.ingestion.file_loader.clipboard_get')
    def test_backend_missing(self, mock_get):
        mock_get.side_effect = PyperclipException('no clipboard mechanism')

        with self.assertRaises(ClipboardError) as ctx:
            read_clipboard()
        self.assertEqual(str(ctx.exception), CLIPBOARD_MESSAGE)

    @patch('opsintel.ingestion.file_loader.clipboard_get')
    def test_blank_clipboard(self, mock_get):
        mock_get.return_value = '   \n'
        with self.assertRaises(ClipboardError):
            read_clipboard()


if __name__ == '__main__':
    unittest.main()
