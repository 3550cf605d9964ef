"""Static description of the analysis stages.

Scheduling is driven by readiness predicates over the session inputs and
the current snapshot. They hinge on what data is available (a parsed
document, a non-empty missing-skills list), not only on which stage
finished. ``depends_on`` only records whose failure blocks a stage.

The orchestrator evaluates ``skip`` before ``ready`` for every NotStarted
stage after each transition.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, FrozenSet, Optional, Tuple

from ..state import (
    Availability,
    ResultSnapshot,
    ResumeAnalysis,
    SessionInputs,
    StageName,
    StageStatus,
)

if TYPE_CHECKING:
    from ..agents.service import InferenceService

Predicate = Callable[[SessionInputs, ResultSnapshot], bool]
InputCheck = Callable[[SessionInputs], bool]
Invoker = Callable[["InferenceService", SessionInputs, ResultSnapshot], Any]

GENERIC_LABEL = "Running analysis..."


def _never(inputs: SessionInputs, snapshot: ResultSnapshot) -> bool:
    return False


def _always(inputs: SessionInputs) -> bool:
    return True


@dataclass(frozen=True)
class Stage:
    name: StageName
    label: str
    depends_on: FrozenSet[StageName]
    ready: Predicate
    invoke: Invoker
    skip: Predicate = _never
    # False when the session inputs alone rule the stage out
    possible: InputCheck = _always


def placeholder_resume_text(analysis: ResumeAnalysis) -> str:
    """Stand-in résumé text rendered from a parsed document."""
    lines = ["Resume (parsed from uploaded document)"]
    if analysis.skills:
        lines += ["", "Skills:", ", ".join(analysis.skills)]
    if analysis.experience_summary.strip():
        lines += ["", "Experience:", analysis.experience_summary.strip()]
    if analysis.education_summary.strip():
        lines += ["", "Education:", analysis.education_summary.strip()]
    return "\n".join(lines)


def resume_text_for(inputs: SessionInputs, snapshot: ResultSnapshot) -> Optional[str]:
    """Pasted résumé text, else the parsed-document placeholder, else None."""
    if inputs.resume_text:
        return inputs.resume_text
    parsed = snapshot.resume_analysis
    if snapshot.status(StageName.PARSE) == StageStatus.SUCCEEDED and parsed is not None:
        return placeholder_resume_text(parsed)
    return None


def _missing_skills(snapshot: ResultSnapshot) -> Optional[list]:
    if snapshot.status(StageName.MATCH) != StageStatus.SUCCEEDED:
        return None
    return list(snapshot.match_analysis.missing_skills)


# -------- Readiness --------
def _parse_ready(inputs: SessionInputs, snapshot: ResultSnapshot) -> bool:
    return inputs.document_ref is not None


def _match_ready(inputs: SessionInputs, snapshot: ResultSnapshot) -> bool:
    return inputs.job_description is not None and resume_text_for(inputs, snapshot) is not None


def _skill_gap_ready(inputs: SessionInputs, snapshot: ResultSnapshot) -> bool:
    return bool(_missing_skills(snapshot))


def _skill_gap_skip(inputs: SessionInputs, snapshot: ResultSnapshot) -> bool:
    missing = _missing_skills(snapshot)
    return missing is not None and not missing


def _has_document(inputs: SessionInputs) -> bool:
    return inputs.document_ref is not None


def _has_resume_source(inputs: SessionInputs) -> bool:
    return inputs.job_description is not None and (inputs.resume_text is not None or inputs.document_ref is not None)


def _has_pasted_pair(inputs: SessionInputs) -> bool:
    return inputs.job_description is not None and inputs.resume_text is not None


def _suggest_ready(inputs: SessionInputs, snapshot: ResultSnapshot) -> bool:
    return _has_pasted_pair(inputs)


# -------- Invocation --------
def _invoke_parse(service: "InferenceService", inputs: SessionInputs, snapshot: ResultSnapshot) -> Any:
    return service.parse_document(inputs.document_ref)


def _invoke_match(service: "InferenceService", inputs: SessionInputs, snapshot: ResultSnapshot) -> Any:
    return service.score_match(inputs.job_description, resume_text_for(inputs, snapshot))


def _invoke_skill_gap(service: "InferenceService", inputs: SessionInputs, snapshot: ResultSnapshot) -> Any:
    return service.analyze_skill_gap(
        inputs.job_description,
        resume_text_for(inputs, snapshot),
        _missing_skills(snapshot),
    )


def _invoke_suggest(service: "InferenceService", inputs: SessionInputs, snapshot: ResultSnapshot) -> Any:
    return service.suggest_improvements(inputs.job_description, inputs.resume_text)


STAGES: Tuple[Stage, ...] = (
    Stage(
        name=StageName.PARSE,
        label="Parsing your resume...",
        depends_on=frozenset(),
        ready=_parse_ready,
        invoke=_invoke_parse,
        possible=_has_document,
    ),
    Stage(
        name=StageName.MATCH,
        label="Calculating match score...",
        depends_on=frozenset({StageName.PARSE}),
        ready=_match_ready,
        invoke=_invoke_match,
        possible=_has_resume_source,
    ),
    Stage(
        name=StageName.SKILL_GAP,
        label="Analyzing skill gap and building roadmap...",
        depends_on=frozenset({StageName.MATCH}),
        ready=_skill_gap_ready,
        invoke=_invoke_skill_gap,
        skip=_skill_gap_skip,
        possible=_has_resume_source,
    ),
    Stage(
        name=StageName.SUGGEST,
        label="Generating optimization suggestions...",
        depends_on=frozenset(),
        ready=_suggest_ready,
        invoke=_invoke_suggest,
        possible=_has_pasted_pair,
    ),
)


def stages() -> Tuple[Stage, ...]:
    return STAGES


def get_stage(name: StageName | str) -> Stage:
    key = StageName(name)
    for stage in STAGES:
        if stage.name == key:
            return stage
    raise KeyError(name)


def availability(snapshot: ResultSnapshot, name: StageName | str,
                 registry: Tuple[Stage, ...] = STAGES) -> Availability:
    """Consumer-facing state of one stage slot.

    Separates "failed" from "skipped" from "never going to run": a NotStarted
    stage whose prerequisite failed is BLOCKED. One the inputs rule out is
    UNAVAILABLE at once; one whose data never arrived becomes UNAVAILABLE when
    the session goes idle.
    """
    key = StageName(name)
    run = snapshot.run(key)
    if run.status != StageStatus.NOT_STARTED:
        return Availability(run.status.value.lower())
    stage = next(s for s in registry if s.name == key)
    if not stage.possible(snapshot.inputs):
        return Availability.UNAVAILABLE
    if any(snapshot.status(dep) == StageStatus.FAILED for dep in stage.depends_on):
        return Availability.BLOCKED
    if snapshot.is_idle:
        return Availability.UNAVAILABLE
    return Availability.PENDING
