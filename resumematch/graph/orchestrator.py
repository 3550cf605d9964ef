"""Runs the analysis stages for one session at a time.

The orchestrator owns a single ResultSnapshot. It:

1. Creates a fresh session and one NotStarted run per stage on ``start``
2. After ``start`` and after every terminal transition, skips or dispatches
   every NotStarted stage whose predicate holds (fan-out on a thread pool)
3. Merges each completion under one lock by replacing the snapshot object,
   so readers never see half of a merge
4. Drops completions that belong to a superseded session or to a run that
   already timed out

A stage failure only fails that run. Stages gated on it never become ready
and stay NotStarted; consumers see them as ``blocked``.
"""
from __future__ import annotations
import functools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

from ..state import (
    ResultSnapshot,
    Session,
    SessionInputs,
    StageName,
    StageRun,
    StageStatus,
    utcnow,
)
from .stages import GENERIC_LABEL, Stage, stages

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


class _Dispatch(NamedTuple):
    session_id: str
    stage: Stage
    inputs: SessionInputs
    snapshot: ResultSnapshot


class AnalysisOrchestrator:
    def __init__(
        self,
        service: Any,
        *,
        registry: Optional[Sequence[Stage]] = None,
        timeout: Optional[float] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        on_complete: Optional[Callable[[ResultSnapshot], None]] = None,
    ):
        self._service = service
        self._registry: Tuple[Stage, ...] = tuple(registry) if registry is not None else stages()
        self._labels: Dict[StageName, str] = {s.name: s.label for s in self._registry}
        self._timeout = timeout
        self._on_complete = on_complete
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="resumematch-stage")
        self._lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()
        self._session: Optional[Session] = None
        self._snapshot: Optional[ResultSnapshot] = None
        self._timers: Dict[StageName, threading.Timer] = {}

    # -------- Public API --------
    @property
    def session(self) -> Optional[Session]:
        return self._session

    def start(self, inputs: SessionInputs | dict) -> Session:
        """Discard any previous session and begin a new one."""
        if not isinstance(inputs, SessionInputs):
            inputs = SessionInputs(**inputs)
        with self._lock:
            self._cancel_timers()
            session = Session(inputs=inputs)
            self._session = session
            self._snapshot = ResultSnapshot(
                session_id=session.session_id,
                inputs=inputs,
                created_at=session.created_at,
                runs={s.name: StageRun(stage=s.name) for s in self._registry},
            )
            self._idle.clear()
            launches = self._advance()
            completed = self._mark_idle()
        logger.info(
            f"Started session {session.session_id[:8]}: "
            f"dispatching {[d.stage.name.value for d in launches]}"
        )
        self._launch(launches)
        self._notify(completed)
        return session

    def observe(self) -> Tuple[Optional[ResultSnapshot], Optional[str]]:
        """Return a private copy of the current snapshot and a progress label."""
        with self._lock:
            snapshot = self._snapshot
        if snapshot is None:
            return None, None
        return snapshot.model_copy(deep=True), self._progress_label(snapshot)

    def is_active(self) -> bool:
        with self._lock:
            return self._snapshot is not None and not self._snapshot.is_idle

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until no stage is running. Returns False on timeout."""
        return self._idle.wait(timeout)

    def close(self, wait: bool = False) -> None:
        """Stop the worker pool. With ``wait`` set, block until in-flight calls have returned."""
        with self._lock:
            self._cancel_timers()
        self._executor.shutdown(wait=wait, cancel_futures=True)

    def __enter__(self) -> "AnalysisOrchestrator":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # -------- State machine (call with lock held) --------
    def _advance(self) -> List[_Dispatch]:
        session = self._session
        launches: List[_Dispatch] = []
        progressed = True
        while progressed:
            progressed = False
            for stage in self._registry:
                snap = self._snapshot
                run = snap.run(stage.name)
                if run.status != StageStatus.NOT_STARTED:
                    continue
                if stage.skip(session.inputs, snap):
                    self._snapshot = snap.with_run(
                        run.model_copy(update={"status": StageStatus.SKIPPED, "finished_at": utcnow()})
                    )
                    logger.info(f"Session {session.session_id[:8]}: stage {stage.name.value} skipped")
                    progressed = True
                elif stage.ready(session.inputs, snap):
                    self._snapshot = snap.with_run(
                        run.model_copy(update={"status": StageStatus.RUNNING, "started_at": utcnow()})
                    )
                    launches.append(_Dispatch(session.session_id, stage, session.inputs, self._snapshot))
                    progressed = True
        return launches

    def _mark_idle(self) -> Optional[ResultSnapshot]:
        if self._snapshot.is_idle and not self._idle.is_set():
            self._idle.set()
            return self._snapshot
        return None

    def _cancel_timers(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    def _progress_label(self, snapshot: ResultSnapshot) -> Optional[str]:
        running = snapshot.running
        if not running:
            return None
        if len(running) == 1:
            return self._labels[running[0]]
        return GENERIC_LABEL

    # -------- Dispatch & completion --------
    def _launch(self, launches: List[_Dispatch]) -> None:
        for d in launches:
            if self._timeout is not None:
                timer = threading.Timer(self._timeout, self._on_timeout, args=(d.session_id, d.stage.name))
                timer.daemon = True
                with self._lock:
                    if self._session is None or self._session.session_id != d.session_id:
                        continue
                    self._timers[d.stage.name] = timer
                    timer.start()
            try:
                future = self._executor.submit(d.stage.invoke, self._service, d.inputs, d.snapshot)
            except RuntimeError as e:
                # Pool already shut down
                self._finish(d.session_id, d.stage.name, error=f"could not dispatch: {e}")
                continue
            future.add_done_callback(functools.partial(self._on_done, d.session_id, d.stage.name))

    def _on_done(self, session_id: str, name: StageName, future: Future) -> None:
        if future.cancelled():
            self._finish(session_id, name, error="cancelled")
            return
        exc = future.exception()
        if exc is not None:
            self._finish(session_id, name, error=str(exc) or exc.__class__.__name__)
        else:
            self._finish(session_id, name, result=future.result())

    def _on_timeout(self, session_id: str, name: StageName) -> None:
        self._finish(session_id, name, error=f"timed out after {self._timeout}s")

    def _finish(self, session_id: str, name: StageName, result: Any = None, error: Optional[str] = None) -> None:
        with self._lock:
            if self._session is None or self._session.session_id != session_id:
                logger.debug(f"Discarding stale {name.value} result from session {session_id[:8]}")
                return
            run = self._snapshot.run(name)
            if run.status != StageStatus.RUNNING:
                logger.debug(f"Discarding late {name.value} result (run is {run.status.value})")
                return
            timer = self._timers.pop(name, None)
            if timer is not None:
                timer.cancel()
            if error is None:
                update = {"status": StageStatus.SUCCEEDED, "result": result, "finished_at": utcnow()}
            else:
                update = {"status": StageStatus.FAILED, "error": error, "finished_at": utcnow()}
            self._snapshot = self._snapshot.with_run(run.model_copy(update=update))
            launches = self._advance()
            completed = self._mark_idle()

        if error is None:
            logger.info(f"Session {session_id[:8]}: stage {name.value} succeeded")
        else:
            logger.warning(f"Session {session_id[:8]}: stage {name.value} failed: {error}")
        self._launch(launches)
        self._notify(completed)

    def _notify(self, snapshot: Optional[ResultSnapshot]) -> None:
        if snapshot is None:
            return
        logger.info(f"Session {snapshot.session_id[:8]} idle")
        if self._on_complete is not None:
            self._on_complete(snapshot.model_copy(deep=True))
