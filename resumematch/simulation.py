"""What-if re-scoring of an edited résumé against the session's job description."""
from __future__ import annotations
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Optional

from .errors import InferenceError, NoSessionError, SimulationPreconditionError
from .state import (
    MatchAnalysis,
    ResultSnapshot,
    SimulationRun,
    SimulationStatus,
    StageName,
    StageStatus,
    utcnow,
)

logger = logging.getLogger(__name__)


def baseline_from(snapshot: Optional[ResultSnapshot]) -> Optional[int]:
    """Match score of a Succeeded ``match`` run, or None."""
    if snapshot is None or snapshot.status(StageName.MATCH) != StageStatus.SUCCEEDED:
        return None
    return snapshot.match_analysis.match_score


class SimulationRunner:
    """Re-invokes only ``score_match``. The newest request wins.

    Calls may overlap (e.g. one per UI click on different threads). A call
    that finishes after a newer one started gets its own result back marked
    SUPERSEDED, and ``latest`` keeps pointing at the newer run.
    """

    def __init__(self, service: Any, *, timeout: Optional[float] = None, max_workers: int = 4):
        self._service = service
        self._timeout = timeout
        self._lock = threading.Lock()
        self._generation = 0
        self._latest: Optional[SimulationRun] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        if timeout is not None:
            self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="resumematch-sim")

    @property
    def latest(self) -> Optional[SimulationRun]:
        with self._lock:
            return self._latest

    def simulate(self,
                 candidate_document: str,
                 *,
                 job_description: Optional[str],
                 baseline_score: Optional[int]) -> SimulationRun:
        if job_description is None:
            raise NoSessionError("simulate() needs the job description of an analysis session")
        if baseline_score is None:
            raise SimulationPreconditionError(
                "No baseline match score yet. Run an analysis with a successful match stage first."
            )

        with self._lock:
            self._generation += 1
            generation = self._generation
            run = SimulationRun(candidate_document=candidate_document, baseline_score=baseline_score)
            self._latest = run

        try:
            analysis = self._score(job_description, candidate_document)
        except InferenceError as e:
            outcome = run.model_copy(update={
                "status": SimulationStatus.FAILED, "error": str(e), "finished_at": utcnow(),
            })
        except FuturesTimeoutError:
            outcome = run.model_copy(update={
                "status": SimulationStatus.FAILED,
                "error": f"score_match timed out after {self._timeout}s",
                "finished_at": utcnow(),
            })
        else:
            outcome = run.model_copy(update={
                "status": SimulationStatus.SUCCEEDED, "score": analysis.match_score, "finished_at": utcnow(),
            })

        with self._lock:
            if generation != self._generation:
                logger.info(f"Simulation {generation} superseded by {self._generation}")
                return outcome.model_copy(update={"status": SimulationStatus.SUPERSEDED})
            self._latest = outcome
        if outcome.status == SimulationStatus.FAILED:
            logger.warning(f"Simulation failed: {outcome.error}")
        return outcome

    def simulate_against(self, snapshot: Optional[ResultSnapshot], candidate_document: str) -> SimulationRun:
        """Simulate using the job description and baseline of an observed snapshot."""
        if snapshot is None:
            raise NoSessionError("no analysis session has been started")
        baseline = baseline_from(snapshot)
        if baseline is None:
            raise SimulationPreconditionError(
                f"Session {snapshot.session_id[:8]} has no successful match score to compare against."
            )
        return self.simulate(
            candidate_document,
            job_description=snapshot.inputs.job_description,
            baseline_score=baseline,
        )

    def close(self, wait: bool = False) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait, cancel_futures=True)

    def _score(self, job_description: str, candidate_document: str) -> MatchAnalysis:
        if self._executor is None:
            return self._service.score_match(job_description, candidate_document)
        future = self._executor.submit(self._service.score_match, job_description, candidate_document)
        try:
            return future.result(timeout=self._timeout)
        except FuturesTimeoutError:
            # Still queued behind hung calls: never send it
            if future.cancel():
                logger.debug("Timed-out simulation was still queued and has been dropped")
            raise
