"""
In-memory dataset store for one dashboard session.

Holds four maps keyed by dataset id:

- slot metadata (:class:`~opsintel.models.DatasetMetadata`), fixed at start-up
- raw content text, as produced by ingestion or paste
- cached :class:`~opsintel.models.AnalysisResult` records
- :class:`~opsintel.models.AppStatus` per id, including the ``global``
  pseudo-id used by cross-period synthesis

The store does no I/O and makes no decisions; the session controller owns the
state machine and is the only writer.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from opsintel.core.config import DEFAULT_DATASETS, GLOBAL_ID, TIMESTAMP_FORMAT
from opsintel.models import (
    AnalysisResult,
    AppStatus,
    DatasetMetadata,
    DatasetStatus,
    GlobalSynthesisResult,
)

logger = logging.getLogger(__name__)


class DatasetStore:
    """Dataset slots, their content, results and statuses."""

    def __init__(self, slots=None, clock=datetime.now):
        self._slot_defaults = [dict(s) for s in (slots if slots is not None else DEFAULT_DATASETS)]
        self._clock = clock
        self._datasets: Dict[str, DatasetMetadata] = {}
        self._contents: Dict[str, str] = {}
        self._results: Dict[str, AnalysisResult] = {}
        self._statuses: Dict[str, AppStatus] = {}
        self.global_result: Optional[GlobalSynthesisResult] = None
        for slot in self._slot_defaults:
            self._datasets[slot["id"]] = self._fresh_slot(slot["id"])

    def _fresh_slot(self, dataset_id: str) -> DatasetMetadata:
        slot = next(s for s in self._slot_defaults if s["id"] == dataset_id)
        return DatasetMetadata(id=slot["id"], name=slot["name"], timestamp=slot["timestamp"])

    def _require_slot(self, dataset_id: str):
        if dataset_id not in self._datasets:
            raise KeyError(f"Unknown dataset id '{dataset_id}'")

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    @property
    def datasets(self) -> List[DatasetMetadata]:
        return list(self._datasets.values())

    @property
    def ids(self) -> List[str]:
        return list(self._datasets)

    def has_slot(self, dataset_id: str) -> bool:
        return dataset_id in self._datasets

    def get(self, dataset_id: str) -> DatasetMetadata:
        self._require_slot(dataset_id)
        return self._datasets[dataset_id]

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def content_of(self, dataset_id: str) -> Optional[str]:
        return self._contents.get(dataset_id)

    def set_content(self, dataset_id: str, text: str):
        self._require_slot(dataset_id)
        self._contents[dataset_id] = text
        logger.debug(f"Dataset '{dataset_id}' content set ({len(text):,} chars)")

    # ------------------------------------------------------------------
    # Results and statuses
    # ------------------------------------------------------------------

    def result_of(self, dataset_id: str) -> Optional[AnalysisResult]:
        return self._results.get(dataset_id)

    @property
    def results(self) -> Dict[str, AnalysisResult]:
        """Completed results in slot order (a copy)."""
        return {i: self._results[i] for i in self._datasets if i in self._results}

    def set_result(self, dataset_id: str, result: AnalysisResult):
        """Cache ``result`` and mark the slot synced as of now."""
        self._require_slot(dataset_id)
        self._results[dataset_id] = result
        slot = self._datasets[dataset_id]
        slot.status = DatasetStatus.SYNCED
        slot.timestamp = self._clock().strftime(TIMESTAMP_FORMAT)

    def status_of(self, dataset_id: str) -> AppStatus:
        return self._statuses.get(dataset_id, AppStatus.IDLE)

    def set_status(self, dataset_id: str, status: AppStatus):
        if dataset_id != GLOBAL_ID:
            self._require_slot(dataset_id)
        self._statuses[dataset_id] = status

    @property
    def readiness_count(self) -> int:
        """Number of datasets holding a completed analysis."""
        return len(self._results)

    # ------------------------------------------------------------------
    # Resets
    # ------------------------------------------------------------------

    def reset(self, dataset_id: str):
        """Drop the result, content and status of one id only."""
        if dataset_id == GLOBAL_ID:
            self.global_result = None
            self._statuses.pop(GLOBAL_ID, None)
            return
        self._require_slot(dataset_id)
        self._results.pop(dataset_id, None)
        self._contents.pop(dataset_id, None)
        self._statuses.pop(dataset_id, None)
        self._datasets[dataset_id] = self._fresh_slot(dataset_id)

    def clear(self):
        """Drop every result, content and status, and the global result."""
        self._results.clear()
        self._contents.clear()
        self._statuses.clear()
        self.global_result = None
        for dataset_id in self._datasets:
            self._datasets[dataset_id] = self._fresh_slot(dataset_id)
