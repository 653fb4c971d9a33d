"""
Process-wide logging for OpsIntel.

Both processes of a dashboard run log through here: the launcher
(``run.py``) and the Streamlit server it spawns.  Each process writes its
own file under ``logs/`` so the launcher output and the per-session
analysis traces can be read separately.

The file handler records everything from DEBUG up; the console handler
stays at WARNING unless verbose output was asked for, because Streamlit
already prints its own banner to the same terminal.
"""

import logging
import time
from pathlib import Path

FILE_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(message)s'
CONSOLE_FORMAT = '%(asctime)s | %(levelname)s | %(message)s'
DEFAULT_LOG_DIR = Path(__file__).resolve().parent.parent.parent / "logs"

# Marks handlers installed here, so a second call replaces only those
_HANDLER_TAG = '_opsintel_handler'


def configure_logging(process: str = "opsintel", verbose: bool = False, log_dir=None) -> Path:
    """Attach a per-run log file and a console handler to the root logger.

    Args:
        process: Prefix of the log file name (``launcher``, ``dashboard``).
        verbose: Lower the console threshold from WARNING to INFO.
        log_dir: Directory for the log file; ``logs/`` at the project root
            by default.

    Returns:
        Path of the log file written by this process.
    """
    log_dir = Path(log_dir) if log_dir is not None else DEFAULT_LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{process}_{time.strftime('%Y%m%d_%H%M%S')}.log"

    to_file = logging.FileHandler(log_file, encoding='utf-8')
    to_file.setLevel(logging.DEBUG)
    to_file.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))

    to_console = logging.StreamHandler()
    to_console.setLevel(logging.INFO if verbose else logging.WARNING)
    to_console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in [h for h in root.handlers if getattr(h, _HANDLER_TAG, False)]:
        root.removeHandler(handler)
        handler.close()
    for handler in (to_file, to_console):
        setattr(handler, _HANDLER_TAG, True)
        root.addHandler(handler)

    # Chatty third-party loggers stay at WARNING even in the debug file
    for name in ('urllib3', 'httpx', 'httpcore', 'google_genai'):
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file


def is_configured() -> bool:
    """Whether :func:`configure_logging` already ran in this process."""
    return any(getattr(h, _HANDLER_TAG, False) for h in logging.getLogger().handlers)
