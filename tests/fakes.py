from __future__ import annotations

import threading
import time
from types import SimpleNamespace
from typing import Any, Callable, Dict, Iterable, List, Optional

from resumematch.errors import InferenceError
from resumematch.state import (
    AlignedResume,
    ApplicationInsights,
    MatchAnalysis,
    ResultSnapshot,
    ResumeAnalysis,
    SessionInputs,
    SkillDetail,
    SkillGapAnalysis,
    StageName,
    StageRun,
    StageStatus,
    Suggestions,
    utcnow,
)

JD_GO = "Senior Go engineer, gRPC, Kubernetes"
RESUME_PY = "5 years backend engineer, Python, Docker"


class FakeService:
    """In-memory InferenceService.

    ``responses`` maps an operation name to a value or a callable taking the
    operation's arguments. ``gates`` holds an Event per operation that calls
    wait on before answering; ``entered`` is set when a call arrives.
    """

    def __init__(self,
                 responses: Optional[Dict[str, Any]] = None,
                 failures: Iterable[str] = (),
                 gates: Optional[Dict[str, threading.Event]] = None):
        self.responses: Dict[str, Any] = {
            "parse_document": ResumeAnalysis(
                skills=["Python", "Docker"],
                experience_summary="5 years backend engineer",
                education_summary="BSc Computer Science",
            ),
            "score_match": MatchAnalysis(
                match_score=40,
                relevance_highlights="Backend experience",
                missing_skills=["Go", "gRPC", "Kubernetes"],
            ),
            "analyze_skill_gap": SkillGapAnalysis(skill_analysis=[SkillDetail(skill="Go", importance="Core language")]),
            "suggest_improvements": Suggestions(suggestions="Mention container orchestration work."),
            "generate_aligned_resume": AlignedResume(
                generated_resume="5 years backend engineer, Python, Docker, Kubernetes exposure",
                improvement_summary="Surfaced orchestration keywords.",
            ),
            "generate_insights": ApplicationInsights(
                positive_factors=["Backend depth"],
                negative_factors=["No Go experience"],
                recommendations=["Ship a small Go service"],
            ),
        }
        self.responses.update(responses or {})
        self.failures = set(failures)
        self.gates = gates or {}
        self.entered: Dict[str, threading.Event] = {op: threading.Event() for op in self.responses}
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def _call(self, op: str, *args: Any) -> Any:
        with self._lock:
            self.calls.append((op,) + args)
        self.entered[op].set()
        gate = self.gates.get(op)
        if gate is not None:
            gate.wait(5)
        if op in self.failures:
            raise InferenceError(op, "upstream failure")
        resp = self.responses[op]
        return resp(*args) if callable(resp) else resp

    def ops(self) -> List[str]:
        with self._lock:
            return [c[0] for c in self.calls]

    def parse_document(self, document_ref):
        return self._call("parse_document", document_ref)

    def score_match(self, job_description, resume_text):
        return self._call("score_match", job_description, resume_text)

    def analyze_skill_gap(self, job_description, resume_text, missing_skills):
        return self._call("analyze_skill_gap", job_description, resume_text, missing_skills)

    def suggest_improvements(self, job_description, resume_text):
        return self._call("suggest_improvements", job_description, resume_text)

    def generate_aligned_resume(self, original_resume, job_description, missing_skills, relevance_highlights, mode):
        return self._call("generate_aligned_resume", original_resume, job_description, missing_skills,
                          relevance_highlights, mode)

    def generate_insights(self, resume_version, job_description, outcome):
        return self._call("generate_insights", resume_version, job_description, outcome)


class FakeLLM:
    """Chat model stand-in: returns queued replies, or raises a queued exception."""

    def __init__(self, *replies: Any):
        self.replies = list(replies)
        self.messages: List[list] = []

    def invoke(self, messages: list) -> Any:
        self.messages.append(messages)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(content=reply)


def make_snapshot(inputs: SessionInputs, **runs: StageRun) -> ResultSnapshot:
    all_runs = {name: StageRun(stage=name) for name in StageName}
    for key, run in runs.items():
        all_runs[StageName(key)] = run
    return ResultSnapshot(session_id="s1", inputs=inputs, created_at=utcnow(), runs=all_runs)


def succeeded(stage: StageName, result: Any) -> StageRun:
    return StageRun(stage=stage, status=StageStatus.SUCCEEDED, result=result)


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()
