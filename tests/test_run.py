"""
Unit tests for run.py

Tests the functions of the run.py entry point script:
- Argument parsing
- Package and backend checks
- Health check report
- Streamlit command construction and launch guards
"""

import unittest
from unittest.mock import patch, MagicMock
from pathlib import Path
import sys

# Add parent directory to path to import run module
sys.path.insert(0, str(Path(__file__).parent.parent))

import run


class TestParseArgs(unittest.TestCase):
    """Test suite for command-line parsing."""

    def test_defaults(self):
        args = run.parse_args([])
        self.assertEqual(args.port, 8501)
        self.assertFalse(args.no_browser)
        self.assertFalse(args.verbose)
        self.assertFalse(args.health_check)

    def test_flags(self):
        args = run.parse_args(['--port', '8502', '--no-browser', '-v', '--health-check'])
        self.assertEqual(args.port, 8502)
        self.assertTrue(args.no_browser)
        self.assertTrue(args.verbose)
        self.assertTrue(args.health_check)


class TestRequiredPackages(unittest.TestCase):
    """Test suite for check_required_packages."""

    @patch('builtins.__import__')
    def test_all_installed(self, mock_import):
        mock_import.return_value = MagicMock()
        ok, missing = run.check_required_packages()
        self.assertTrue(ok)
        self.assertEqual(missing, [])

    @patch('builtins.__import__')
    def test_reports_pip_names(self, mock_import):
        def fake_import(name, *args, **kwargs):
            if name in ('google.genai', 'xlrd'):
                raise ImportError(name)
            return MagicMock()

        mock_import.side_effect = fake_import
        ok, missing = run.check_required_packages()

        self.assertFalse(ok)
        self.assertEqual(sorted(missing), ['google-genai', 'xlrd'])


class TestHealthCheck(unittest.TestCase):
    """Test suite for the health check report."""

    @patch('run.check_analysis_backend', return_value=(True, 'gemini:gemini-3-flash-preview'))
    @patch('run.check_required_packages', return_value=(True, []))
    def test_all_checks_pass(self, mock_packages, mock_backend):
        self.assertTrue(run.health_check())

    @patch('run.check_analysis_backend', return_value=(False, 'gemini:gemini-3-flash-preview'))
    @patch('run.check_required_packages', return_value=(True, []))
    def test_backend_not_ready(self, mock_packages, mock_backend):
        self.assertFalse(run.health_check())

    @patch('run.check_analysis_backend', return_value=(True, 'ollama:qwen3:14b'))
    @patch('run.check_required_packages', return_value=(False, ['xlrd']))
    def test_missing_package(self, mock_packages, mock_backend):
        self.assertFalse(run.health_check())

    @patch('opsintel.core.ai_engine.check_service', return_value=True)
    def test_backend_description(self, mock_check):
        ok, desc = run.check_analysis_backend()
        self.assertTrue(ok)
        self.assertRegex(desc, r'^(gemini|ollama):')

    @patch('run.configure_logging', return_value=Path('logs/launcher.log'))
    @patch('run.sys.exit')
    @patch('run.health_check', return_value=False)
    def test_main_exit_code(self, mock_health, mock_exit, mock_logging):
        mock_exit.side_effect = SystemExit
        with self.assertRaises(SystemExit):
            run.main(['--health-check'])
        mock_exit.assert_called_once_with(1)
        mock_logging.assert_called_once_with('launcher', verbose=False)


class TestLaunch(unittest.TestCase):
    """Test suite for dashboard launching."""

    def test_streamlit_command(self):
        cmd = run.build_streamlit_command(Path('opsintel/dashboard/app.py'), 8600)

        self.assertEqual(cmd[1:4], ['-m', 'streamlit', 'run'])
        self.assertIn('app.py', cmd[4])
        self.assertEqual(cmd[cmd.index('--server.port') + 1], '8600')
        self.assertEqual(cmd[cmd.index('--theme.base') + 1], 'dark')

    @patch('run.subprocess.Popen')
    @patch('run.is_port_in_use', return_value=True)
    def test_port_in_use(self, mock_port, mock_popen):
        self.assertFalse(run.launch_dashboard(port=8501, open_browser=False))
        mock_popen.assert_not_called()

    @patch('run.atexit.register')
    @patch('run.subprocess.Popen')
    @patch('run.is_port_in_use', return_value=False)
    def test_launch_waits_for_process(self, mock_port, mock_popen, mock_register):
        process = MagicMock()
        process.poll.return_value = 0
        mock_popen.return_value = process

        self.assertTrue(run.launch_dashboard(port=8501, open_browser=False))
        process.wait.assert_called_once()
        self.assertIn('--server.port', mock_popen.call_args[0][0])
        self.assertEqual(mock_popen.call_args.kwargs['env']['OPSINTEL_VERBOSE'], '0')
        mock_register.assert_called_once()


if __name__ == '__main__':
    unittest.main()
