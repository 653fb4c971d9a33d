#!/usr/bin/env python3
"""
OpsIntel - Launcher
===================

Starts the OpsIntel operational-intelligence dashboard, or diagnoses why it
would not start.

    python run.py                  # Dashboard on http://localhost:8501
    python run.py --port 8502      # Another port
    python run.py --no-browser     # Server only, no browser tab
    python run.py --health-check   # Print a diagnostics report and exit
    python run.py -v               # INFO-level console output (both processes)

The dashboard itself is a Streamlit script (opsintel/dashboard/app.py) run
in a child process with the dark theme.  Ticket logs are uploaded inside the
dashboard; nothing is read from disk by the launcher.

Environment:
    GEMINI_API_KEY (or API_KEY)    credential for the default Gemini backend
    OPSINTEL_BACKEND=ollama        use a local Ollama server instead
    OLLAMA_BASE_URL / OLLAMA_MODEL local server URL and model tag
"""

import os
import sys
import time
import atexit
import socket
import logging
import argparse
import threading
import subprocess
import webbrowser
from pathlib import Path

from opsintel.core.logging_setup import configure_logging

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent
MIN_PYTHON = (3, 9)
BROWSER_DELAY_SECONDS = 3

# import name -> distribution name on PyPI
REQUIRED_PACKAGES = {
    'pandas': 'pandas',
    'numpy': 'numpy',
    'streamlit': 'streamlit',
    'plotly': 'plotly',
    'openpyxl': 'openpyxl',
    'xlrd': 'xlrd',
    'requests': 'requests',
    'google.genai': 'google-genai',
}

REQUIRED_DIRS = ['opsintel', 'opsintel/session', 'opsintel/dashboard']


# ==========================================
# DIAGNOSTICS
# ==========================================

def check_required_packages():
    """Try importing every runtime dependency.

    Returns:
        ``(ok, missing)`` where ``missing`` lists distribution names, ready
        to paste after ``pip install``.
    """
    missing = []
    for module, dist in REQUIRED_PACKAGES.items():
        try:
            __import__(module)
        except ImportError:
            missing.append(dist)
    return not missing, missing


def check_analysis_backend():
    """Check the configured generative backend.

    Returns:
        ``(ok, label)`` with ``label`` as ``"<backend>:<model>"``.
    """
    try:
        from opsintel.core.ai_engine import GenerativeEngine, check_service
    except ImportError as e:
        logger.error(f"OpsIntel engine could not be imported: {e}")
        return False, "engine unavailable"

    engine = GenerativeEngine()
    return check_service(engine), f"{engine.backend}:{engine.model}"


def _check_python():
    v = sys.version_info
    ok = v >= MIN_PYTHON
    hint = None if ok else f"Python {MIN_PYTHON[0]}.{MIN_PYTHON[1]} or newer is required"
    return "Python", ok, f"{v.major}.{v.minor}.{v.micro}", hint


def _check_packages():
    ok, missing = check_required_packages()
    if ok:
        return "Packages", True, "all importable", None
    return "Packages", False, f"missing {', '.join(missing)}", f"pip install {' '.join(missing)}"


def _check_layout():
    absent = [d for d in REQUIRED_DIRS if not (PROJECT_ROOT / d).is_dir()]
    if not absent:
        return "Project layout", True, "ok", None
    return "Project layout", False, f"missing {', '.join(absent)}", "Run from a complete checkout"


def _check_backend():
    ok, label = check_analysis_backend()
    hint = None if ok else "Set GEMINI_API_KEY, or OPSINTEL_BACKEND=ollama with `ollama serve` running"
    return "Analysis backend", ok, label, hint


def health_check():
    """Run every diagnostic and print one line per check.

    Returns:
        bool: True when all checks passed.
    """
    results = [check() for check in (_check_python, _check_packages, _check_layout, _check_backend)]

    print()
    print("=" * 60)
    print("  \U0001f3e5 OPSINTEL HEALTH CHECK")
    print("=" * 60)
    for name, ok, detail, hint in results:
        print(f"{'✅' if ok else '❌'} {name}: {detail}")
        if hint:
            print(f"   -> {hint}")
        logger.info(f"Health check {name}: {'ok' if ok else 'FAILED'} ({detail})")
    print("=" * 60)

    passed = all(ok for _, ok, _, _ in results)
    print("  ✅ Ready to launch." if passed else "  ❌ Fix the failed checks above, then retry.")
    print()
    return passed


# ==========================================
# COMMAND LINE
# ==========================================

def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='run.py',
        description='Launch the OpsIntel operational-intelligence dashboard.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py                  Start the dashboard
  python run.py --port 8502      Serve on another port
  python run.py --health-check   Diagnose the installation and exit
        """
    )
    parser.add_argument('--port', type=int, default=8501,
                        help='Streamlit server port (default: 8501)')
    parser.add_argument('--no-browser', action='store_true',
                        help='Do not open a browser tab after start-up')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Print INFO-level log lines to the console')
    parser.add_argument('--health-check', action='store_true',
                        help='Print a diagnostics report and exit')
    return parser.parse_args(argv)


# ==========================================
# DASHBOARD PROCESS
# ==========================================

def build_streamlit_command(dashboard_path: Path, port: int):
    """``streamlit run`` invocation for the dashboard script."""
    return [
        sys.executable, "-m", "streamlit", "run", str(dashboard_path),
        "--server.port", str(port),
        "--server.headless", "true",
        "--browser.gatherUsageStats", "false",
        "--theme.base", "dark",
        "--theme.primaryColor", "#3B82F6",
        "--theme.backgroundColor", "#0F172A",
        "--theme.secondaryBackgroundColor", "#1E293B",
        "--theme.textColor", "#E2E8F0",
    ]


def is_port_in_use(port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        return sock.connect_ex(('localhost', port)) == 0


def _stop_process(process):
    """Terminate ``process`` if still running; kill it after a 5s grace period."""
    if process is None or process.poll() is not None:
        return
    logger.info(f"Stopping Streamlit (pid {process.pid})")
    process.terminate()
    try:
        process.wait(timeout=5)
    except subprocess.TimeoutExpired:
        logger.warning("Streamlit ignored SIGTERM, killing it")
        process.kill()


def _open_browser_later(url: str):
    def _open():
        time.sleep(BROWSER_DELAY_SECONDS)
        try:
            webbrowser.open(url)
        except webbrowser.Error as e:
            logger.warning(f"Could not open a browser for {url}: {e}")

    threading.Thread(target=_open, name="opsintel-browser", daemon=True).start()


def launch_dashboard(port: int = 8501, open_browser: bool = True, verbose: bool = False):
    """Run the Streamlit dashboard in a child process until it exits.

    Args:
        port: TCP port for the Streamlit server.
        open_browser: Open the dashboard URL once the server had time to bind.
        verbose: Forwarded to the child so its console logging matches ours.

    Returns:
        bool: False when the dashboard could not be started, True otherwise
        (including a Ctrl+C stop).
    """
    from opsintel.dashboard import get_dashboard_path

    dashboard_path = get_dashboard_path()
    if not dashboard_path.exists():
        print(f"❌ Dashboard script not found: {dashboard_path}")
        return False

    try:
        if is_port_in_use(port):
            print(f"❌ Port {port} is taken. Choose another one with --port.")
            return False
    except OSError as e:
        logger.warning(f"Port check failed, starting anyway: {e}")

    url = f"http://localhost:{port}"
    print()
    print(f"  \U0001f310 OpsIntel dashboard starting on {url}  (Ctrl+C to stop)")
    print("-" * 60)
    sys.stdout.flush()

    env = dict(os.environ, OPSINTEL_VERBOSE="1" if verbose else "0")
    process = None
    try:
        process = subprocess.Popen(build_streamlit_command(dashboard_path, port), env=env)
        atexit.register(_stop_process, process)
        logger.info(f"Streamlit running as pid {process.pid} on port {port}")
        if open_browser:
            _open_browser_later(url)
        process.wait()
        return True
    except KeyboardInterrupt:
        print("\n✅ Dashboard stopped.")
        _stop_process(process)
        return True
    except FileNotFoundError:
        print("❌ Streamlit is not installed. Run: pip install streamlit plotly")
        return False
    except OSError as e:
        logger.error(f"Dashboard launch failed: {e}", exc_info=True)
        print(f"❌ Could not launch the dashboard: {e}")
        _stop_process(process)
        return False


def main(argv=None):
    """Parse arguments, set up logging, then diagnose or launch."""
    args = parse_args(argv)
    log_file = configure_logging("launcher", verbose=args.verbose)
    print(f"\U0001f4dd Launcher log: {log_file}")

    if args.health_check:
        sys.exit(0 if health_check() else 1)

    if not launch_dashboard(port=args.port, open_browser=not args.no_browser, verbose=args.verbose):
        sys.exit(1)


if __name__ == "__main__":
    main()
