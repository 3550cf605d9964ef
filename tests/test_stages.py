from __future__ import annotations

from fakes import JD_GO, RESUME_PY, make_snapshot, succeeded

from resumematch.graph import stages as registry
from resumematch.state import (
    Availability,
    MatchAnalysis,
    ResumeAnalysis,
    SessionInputs,
    StageName,
    StageRun,
    StageStatus,
)


def test_stage_order_and_dependencies() -> None:
    names = [s.name for s in registry.stages()]
    assert names == [StageName.PARSE, StageName.MATCH, StageName.SKILL_GAP, StageName.SUGGEST]
    assert registry.get_stage("skillGap").depends_on == frozenset({StageName.MATCH})
    assert registry.get_stage(StageName.SUGGEST).depends_on == frozenset()


def test_parse_ready_only_with_document() -> None:
    parse = registry.get_stage(StageName.PARSE)
    with_doc = SessionInputs(document_ref="cv.pdf")
    assert parse.ready(with_doc, make_snapshot(with_doc))
    without = SessionInputs(job_description=JD_GO, resume_text=RESUME_PY)
    assert not parse.ready(without, make_snapshot(without))


def test_match_waits_for_parsed_document_when_no_text() -> None:
    match = registry.get_stage(StageName.MATCH)
    inputs = SessionInputs(job_description=JD_GO, document_ref="cv.pdf")
    assert not match.ready(inputs, make_snapshot(inputs))

    parsed = ResumeAnalysis(skills=["Python"], experience_summary="Backend work")
    snapshot = make_snapshot(inputs, parse=succeeded(StageName.PARSE, parsed))
    assert match.ready(inputs, snapshot)
    text = registry.resume_text_for(inputs, snapshot)
    assert "Skills:\nPython" in text
    assert "Experience:\nBackend work" in text


def test_pasted_text_wins_over_parsed_placeholder() -> None:
    inputs = SessionInputs(job_description=JD_GO, resume_text=RESUME_PY, document_ref="cv.pdf")
    snapshot = make_snapshot(inputs, parse=succeeded(StageName.PARSE, ResumeAnalysis(skills=["Go"])))
    assert registry.resume_text_for(inputs, snapshot) == RESUME_PY


def test_suggest_needs_pasted_text() -> None:
    suggest = registry.get_stage(StageName.SUGGEST)
    inputs = SessionInputs(job_description=JD_GO, document_ref="cv.pdf")
    snapshot = make_snapshot(inputs, parse=succeeded(StageName.PARSE, ResumeAnalysis(skills=["Go"])))
    assert not suggest.ready(inputs, snapshot)


def test_skill_gap_gate_on_missing_skills() -> None:
    gap = registry.get_stage(StageName.SKILL_GAP)
    inputs = SessionInputs(job_description=JD_GO, resume_text=RESUME_PY)

    pending = make_snapshot(inputs)
    assert not gap.ready(inputs, pending)
    assert not gap.skip(inputs, pending)

    missing = make_snapshot(inputs, match=succeeded(StageName.MATCH, MatchAnalysis(match_score=40, missing_skills=["Go"])))
    assert gap.ready(inputs, missing)
    assert not gap.skip(inputs, missing)

    nothing = make_snapshot(inputs, match=succeeded(StageName.MATCH, MatchAnalysis(match_score=99, missing_skills=[])))
    assert not gap.ready(inputs, nothing)
    assert gap.skip(inputs, nothing)

    failed = make_snapshot(inputs, match=StageRun(stage=StageName.MATCH, status=StageStatus.FAILED, error="boom"))
    assert not gap.ready(inputs, failed)
    assert not gap.skip(inputs, failed)


def test_availability_distinguishes_pending_from_blocked() -> None:
    inputs = SessionInputs(job_description=JD_GO, resume_text=RESUME_PY)
    running = make_snapshot(inputs, match=StageRun(stage=StageName.MATCH, status=StageStatus.RUNNING))
    assert registry.availability(running, StageName.MATCH) == Availability.RUNNING
    assert registry.availability(running, StageName.SKILL_GAP) == Availability.PENDING

    failed = make_snapshot(inputs, match=StageRun(stage=StageName.MATCH, status=StageStatus.FAILED, error="boom"))
    assert registry.availability(failed, StageName.MATCH) == Availability.FAILED
    assert registry.availability(failed, StageName.SKILL_GAP) == Availability.BLOCKED


def test_stages_ruled_out_by_inputs_are_unavailable_while_others_run() -> None:
    pasted = SessionInputs(job_description=JD_GO, resume_text=RESUME_PY)
    running = make_snapshot(pasted, match=StageRun(stage=StageName.MATCH, status=StageStatus.RUNNING))
    assert registry.availability(running, StageName.PARSE) == Availability.UNAVAILABLE

    document_only = SessionInputs(job_description=JD_GO, document_ref="cv.pdf")
    parsing = make_snapshot(document_only, parse=StageRun(stage=StageName.PARSE, status=StageStatus.RUNNING))
    assert registry.availability(parsing, StageName.SUGGEST) == Availability.UNAVAILABLE
    assert registry.availability(parsing, StageName.MATCH) == Availability.PENDING
    assert registry.availability(parsing, StageName.SKILL_GAP) == Availability.PENDING
