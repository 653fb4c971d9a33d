"""
Session module for OpsIntel.

Contains the per-session dataset store, the progress ticker and the
controller that drives them.
"""

from .store import DatasetStore
from .progress import ProgressTicker
from .controller import SessionController

__all__ = [
    'DatasetStore',
    'ProgressTicker',
    'SessionController',
]
