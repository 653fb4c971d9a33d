"""
Session / view controller.

=== PURPOSE ===
Owns the per-session state machine of the dashboard.  The Streamlit page is
a thin view over one ``SessionController`` kept in ``st.session_state``; every
button press and upload is translated into one controller call.

=== STATE MACHINE ===
Per dataset id::

    no-content --(content written)--> pending
    pending    --(activate / analyze)--> ANALYZING --> COMPLETED | ERROR
    COMPLETED  --(reset_dataset)--> no-content

Global pseudo-id ``global``::

    IDLE --(run_global_synthesis, readiness >= 2)--> ANALYZING --> COMPLETED | ERROR

=== AUTO-ANALYSIS ===
Selecting a dataset that has content but no result starts its analysis.
This is an explicit guard inside :meth:`SessionController.activate`, not a
side effect of observing state: the analysis starts only when the id is not
``global``, content is present, no result is cached, and the id is not
already in flight.  Re-activating an id while its call is running is a
no-op, so one selection produces at most one request.

Writing content (upload, paste, sample) never starts an analysis by itself;
the view calls :meth:`activate` on the active id afterwards.

=== ERRORS ===
Every ingestion, clipboard, analysis and synthesis failure is caught here,
logged, and surfaced as ``controller.error`` (a user-facing string).  None is
fatal to the session.
"""

import logging
from typing import Optional

from opsintel.analysis import (
    ANALYSIS_FAILED_MESSAGE,
    SYNTHESIS_FAILED_MESSAGE,
    analyze_global_synthesis,
    analyze_workflow,
)
from opsintel.core.config import GLOBAL_ID, MIN_SYNTHESIS_DATASETS
from opsintel.core.errors import ClipboardError, IngestionError, OpsIntelError
from opsintel.core.sample_data import SAMPLE_DATA
from opsintel.ingestion import ingest_file, read_clipboard
from opsintel.models import AppStatus
from opsintel.session.progress import ProgressTicker
from opsintel.session.store import DatasetStore

logger = logging.getLogger(__name__)


class SessionController:
    """Drives dataset analysis and cross-period synthesis for one session.

    Args:
        store: Dataset store; a fresh one with the default slots if omitted.
        analyzer: ``analyzer(content) -> AnalysisResult``.
        synthesizer: ``synthesizer(results) -> GlobalSynthesisResult``.
        ticker_factory: Zero-argument callable returning an object with
            ``start()`` / ``stop()``; one is created per analysis call.
    """

    def __init__(self, store=None, analyzer=analyze_workflow,
                 synthesizer=analyze_global_synthesis, ticker_factory=ProgressTicker):
        self.store = store or DatasetStore()
        self.analyzer = analyzer
        self.synthesizer = synthesizer
        self.ticker_factory = ticker_factory
        self.active_id = self.store.ids[0]
        self.error: Optional[str] = None
        self.ticker = None
        self._in_flight = set()

    # ==================================================================
    # QUERIES
    # ==================================================================

    @property
    def datasets(self):
        return self.store.datasets

    @property
    def readiness_count(self) -> int:
        return self.store.readiness_count

    @property
    def can_synthesize(self) -> bool:
        return self.readiness_count >= MIN_SYNTHESIS_DATASETS and GLOBAL_ID not in self._in_flight

    @property
    def global_result(self):
        return self.store.global_result

    def status_of(self, dataset_id: str) -> AppStatus:
        return self.store.status_of(dataset_id)

    def result_of(self, dataset_id: str):
        if dataset_id == GLOBAL_ID:
            return self.store.global_result
        return self.store.result_of(dataset_id)

    def content_of(self, dataset_id: str) -> Optional[str]:
        return self.store.content_of(dataset_id)

    def is_in_flight(self, dataset_id: str) -> bool:
        return dataset_id in self._in_flight

    # ==================================================================
    # NAVIGATION AND ANALYSIS
    # ==================================================================

    def _needs_analysis(self, dataset_id: str) -> bool:
        return (
            dataset_id != GLOBAL_ID
            and bool(self.store.content_of(dataset_id))
            and self.store.result_of(dataset_id) is None
            and dataset_id not in self._in_flight
            and self.store.status_of(dataset_id) != AppStatus.ANALYZING
        )

    def select(self, dataset_id: str):
        """Switch the active view without starting an analysis."""
        if dataset_id != GLOBAL_ID and not self.store.has_slot(dataset_id):
            raise KeyError(f"Unknown dataset id '{dataset_id}'")
        self.active_id = dataset_id

    def activate(self, dataset_id: str) -> bool:
        """Make ``dataset_id`` the active view, analysing it if needed.

        Returns:
            ``True`` if this call ran an analysis.
        """
        self.select(dataset_id)
        if self._needs_analysis(dataset_id):
            return self.analyze(dataset_id)
        return False

    def analyze(self, dataset_id: str) -> bool:
        """Run one analysis call for ``dataset_id``.

        Returns:
            ``True`` on success; ``False`` if there was nothing to analyse, the
            id was already in flight, or the call failed (see ``error``).
        """
        content = self.store.content_of(dataset_id)
        if not content or dataset_id in self._in_flight:
            return False
        if self.store.result_of(dataset_id) is not None:
            # COMPLETED is left only through reset_dataset
            logger.info(f"Dataset '{dataset_id}' already analysed; reset it to analyse again")
            return False

        self._in_flight.add(dataset_id)
        self.store.set_status(dataset_id, AppStatus.ANALYZING)
        self.error = None
        self.ticker = self.ticker_factory()
        self.ticker.start()
        logger.info(f"Analysis started for dataset '{dataset_id}'")
        try:
            result = self.analyzer(content)
        except (OpsIntelError, ValueError) as e:
            self.error = str(e) or ANALYSIS_FAILED_MESSAGE
            self.store.set_status(dataset_id, AppStatus.ERROR)
            logger.error(f"Analysis failed for dataset '{dataset_id}': {e}")
            return False
        except Exception as e:
            self.error = ANALYSIS_FAILED_MESSAGE
            self.store.set_status(dataset_id, AppStatus.ERROR)
            logger.error(f"Unexpected error analysing dataset '{dataset_id}': {e}", exc_info=True)
            return False
        else:
            self.store.set_result(dataset_id, result)
            self.store.set_status(dataset_id, AppStatus.COMPLETED)
            logger.info(f"Analysis completed for dataset '{dataset_id}'")
            return True
        finally:
            self.ticker.stop()
            self.ticker = None
            self._in_flight.discard(dataset_id)

    def run_global_synthesis(self) -> bool:
        """Synthesise every completed analysis into the global view.

        Refused (returns ``False`` with no state change) while fewer than two
        datasets are analysed or a synthesis is already running.
        """
        if not self.can_synthesize:
            logger.info(f"Global synthesis refused: {self.readiness_count} dataset(s) ready")
            return False

        self._in_flight.add(GLOBAL_ID)
        self.active_id = GLOBAL_ID
        self.store.set_status(GLOBAL_ID, AppStatus.ANALYZING)
        self.error = None
        try:
            result = self.synthesizer(self.store.results)
        except Exception as e:
            self.store.global_result = None
            self.store.set_status(GLOBAL_ID, AppStatus.ERROR)
            self.error = SYNTHESIS_FAILED_MESSAGE
            logger.error(f"Global synthesis failed: {e}", exc_info=not isinstance(e, OpsIntelError))
            return False
        else:
            self.store.global_result = result
            self.store.set_status(GLOBAL_ID, AppStatus.COMPLETED)
            return True
        finally:
            self._in_flight.discard(GLOBAL_ID)

    # ==================================================================
    # CONTENT
    # ==================================================================

    def set_content(self, dataset_id: str, text: str) -> bool:
        """Store raw content for a dataset.  Writes to ``global`` are ignored."""
        if dataset_id == GLOBAL_ID:
            return False
        self.store.set_content(dataset_id, text)
        return True

    def ingest_upload(self, payload: bytes, filename: str) -> bool:
        """Parse an upload into the active dataset.

        On failure the error is surfaced and the dataset content is left as
        it was.
        """
        if self.active_id == GLOBAL_ID:
            return False
        try:
            text = ingest_file(payload, filename)
        except IngestionError as e:
            self.error = str(e)
            logger.warning(f"Upload '{filename}' rejected: {e}")
            return False
        return self.set_content(self.active_id, text)

    def paste_from_clipboard(self, reader=read_clipboard) -> bool:
        if self.active_id == GLOBAL_ID:
            return False
        try:
            text = reader()
        except ClipboardError as e:
            self.error = str(e)
            return False
        return self.set_content(self.active_id, text)

    def load_sample(self) -> bool:
        return self.set_content(self.active_id, SAMPLE_DATA)

    # ==================================================================
    # RESETS
    # ==================================================================

    def reset_dataset(self, dataset_id: str):
        """Forget the result, content and status of one dataset only."""
        self.store.reset(dataset_id)
        logger.info(f"Dataset '{dataset_id}' reset")

    def reset_all(self):
        """Forget every result, content and status, and any surfaced error."""
        self.store.clear()
        self.error = None
        logger.info("Session reset")

    def dismiss_error(self):
        self.error = None
