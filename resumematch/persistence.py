from __future__ import annotations
import logging
import uuid
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

from .errors import RecordNotFoundError
from .graph.stages import resume_text_for
from .state import ApplicationInsights, ApplicationStatus, ResultSnapshot, SavedAnalysis

logger = logging.getLogger(__name__)


def to_saved_analysis(snapshot: ResultSnapshot,
                      status: ApplicationStatus = ApplicationStatus.ANALYZED) -> SavedAnalysis:
    """Flatten a snapshot into the record the storage layer keeps.

    Slots whose stage did not succeed are stored empty. A document-only
    session keeps the text rendered from its parse result.
    """
    inputs = snapshot.inputs
    match = snapshot.match_analysis
    suggestions = snapshot.suggestions
    return SavedAnalysis(
        job_description=inputs.job_description or "",
        resume_content=resume_text_for(inputs, snapshot) or inputs.document_ref or "",
        match_score=match.match_score if match else None,
        relevance_highlights=match.relevance_highlights if match else "",
        missing_skills=list(match.missing_skills) if match else [],
        suggestions=suggestions.suggestions if suggestions else "",
        skill_gap_analysis=snapshot.skill_gap_analysis,
        status=status,
        created_at=snapshot.created_at,
    )


class AnalysisStore(Protocol):
    def save(self, record: SavedAnalysis) -> str: ...

    def get(self, record_id: str) -> Optional[SavedAnalysis]: ...

    def list(self) -> List[Tuple[str, SavedAnalysis]]: ...

    def update_status(self, record_id: str, status: ApplicationStatus) -> SavedAnalysis: ...

    def set_insights(self, record_id: str, insights: ApplicationInsights) -> SavedAnalysis: ...


class JsonFileStore:
    """One JSON file per saved analysis in a directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, record_id: str) -> Path:
        return self.root / f"{record_id}.json"

    def _write(self, record_id: str, record: SavedAnalysis) -> None:
        self._path(record_id).write_text(record.model_dump_json(indent=2), encoding="utf-8")

    def _require(self, record_id: str) -> SavedAnalysis:
        record = self.get(record_id)
        if record is None:
            raise RecordNotFoundError(f"No saved analysis with id {record_id!r} in {self.root}")
        return record

    def save(self, record: SavedAnalysis) -> str:
        record_id = uuid.uuid4().hex[:12]
        self._write(record_id, record)
        logger.info(f"Saved analysis {record_id} to {self.root}")
        return record_id

    def get(self, record_id: str) -> Optional[SavedAnalysis]:
        path = self._path(record_id)
        if not path.exists():
            return None
        return SavedAnalysis.model_validate_json(path.read_text(encoding="utf-8"))

    def list(self) -> List[Tuple[str, SavedAnalysis]]:
        """All saved analyses, newest first."""
        records = [
            (path.stem, SavedAnalysis.model_validate_json(path.read_text(encoding="utf-8")))
            for path in self.root.glob("*.json")
        ]
        return sorted(records, key=lambda item: item[1].created_at, reverse=True)

    def update_status(self, record_id: str, status: ApplicationStatus) -> SavedAnalysis:
        record = self._require(record_id).model_copy(update={"status": ApplicationStatus(status)})
        self._write(record_id, record)
        logger.info(f"Analysis {record_id} status -> {record.status.value}")
        return record

    def set_insights(self, record_id: str, insights: ApplicationInsights) -> SavedAnalysis:
        record = self._require(record_id).model_copy(update={"insights": insights})
        self._write(record_id, record)
        return record
