"""Application tracking on top of saved analyses.

Moving an application to a final outcome (Offer or Rejected) asks the model
why the résumé worked or not and stores the answer on the record. The
status change is kept even when that inference fails.
"""
from __future__ import annotations
import logging
from typing import Any, List, Tuple

from .errors import InferenceError
from .persistence import AnalysisStore
from .state import OUTCOME_STATUSES, ApplicationStatus, SavedAnalysis

logger = logging.getLogger(__name__)


class ApplicationTracker:
    def __init__(self, store: AnalysisStore, service: Any):
        self.store = store
        self.service = service

    def applications(self) -> List[Tuple[str, SavedAnalysis]]:
        return self.store.list()

    def set_status(self, record_id: str, status: ApplicationStatus | str) -> SavedAnalysis:
        record = self.store.update_status(record_id, ApplicationStatus(status))
        if record.status not in OUTCOME_STATUSES:
            return record
        try:
            insights = self.service.generate_insights(record.resume_content, record.job_description, record.status)
        except InferenceError as e:
            logger.warning(f"Insight generation failed for {record_id}: {e}")
            return record
        logger.info(f"Stored insights for {record_id} ({record.status.value})")
        return self.store.set_insights(record_id, insights)
