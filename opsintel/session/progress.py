"""
Cosmetic progress ticker shown while an analysis call is in flight.

The ticker advances through ``ANALYSIS_STEPS`` on a fixed interval.  It knows
nothing about the real request; it only gives the user something to watch.
It lives for exactly one analysis call: the controller starts it before the
call and stops it when the call settles, success or failure.
"""

import logging
import threading

from opsintel.core.config import ANALYSIS_STEPS, PROGRESS_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class ProgressTicker:
    """Step index advanced by a daemon thread until :meth:`stop` is called.

    Args:
        steps: ``(title, description)`` pairs.
        interval: Seconds between steps.
        on_step: Optional callback ``on_step(index, title, description)``,
            called from the ticker thread on every advance and once
            synchronously on :meth:`start`.
        thread_hook: Optional callable applied to the worker thread before it
            starts.  The Streamlit app passes ``add_script_run_ctx`` so the
            callback may write to page placeholders.
    """

    def __init__(self, steps=None, interval=PROGRESS_INTERVAL_SECONDS, on_step=None, thread_hook=None):
        self.steps = list(steps if steps is not None else ANALYSIS_STEPS)
        self.interval = interval
        self.on_step = on_step
        self.thread_hook = thread_hook
        self._stop_event = threading.Event()
        self._thread = None
        self.index = 0

    @property
    def current(self):
        return self.steps[self.index]

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _notify(self):
        if self.on_step is not None:
            title, desc = self.current
            self.on_step(self.index, title, desc)

    def _run(self):
        while not self._stop_event.wait(self.interval):
            # Holds on the last step until stopped
            if self.index < len(self.steps) - 1:
                self.index += 1
                self._notify()

    def start(self):
        if self.running:
            return
        self.index = 0
        self._stop_event.clear()
        self._notify()
        self._thread = threading.Thread(target=self._run, name="opsintel-progress", daemon=True)
        if self.thread_hook is not None:
            self.thread_hook(self._thread)
        self._thread.start()

    def stop(self):
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval * 2)
            if thread.is_alive():
                logger.warning("Progress ticker thread did not exit in time")
        self._thread = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False
