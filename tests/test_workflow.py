from __future__ import annotations

from fakes import JD_GO, RESUME_PY, FakeService

from resumematch.diff_engine import new_text, old_text
from resumematch.graph.workflow import rewrite_resume
from resumematch.state import MatchAnalysis, OptimizationMode

BASELINE = MatchAnalysis(match_score=40, relevance_highlights="Backend work", missing_skills=["Go", "Kubernetes"])


def test_rewrite_generates_then_rescores() -> None:
    service = FakeService(responses={"score_match": MatchAnalysis(match_score=58, missing_skills=["Go"])})
    result = rewrite_resume(service, RESUME_PY, JD_GO, BASELINE, "Aggressive")

    assert result.errors == []
    assert result.aligned.improvement_summary == "Surfaced orchestration keywords."
    assert result.new_score == 58
    assert result.improvement == 18
    assert service.ops() == ["generate_aligned_resume", "score_match"]
    gen_call = service.calls[0]
    assert gen_call[3] == ["Go", "Kubernetes"]
    assert gen_call[5] == OptimizationMode.AGGRESSIVE
    assert service.calls[1] == ("score_match", JD_GO, result.aligned.generated_resume)


def test_rewrite_diff_spans_original_and_generated() -> None:
    result = rewrite_resume(FakeService(), RESUME_PY, JD_GO, BASELINE)
    assert old_text(result.diff) == RESUME_PY
    assert new_text(result.diff) == result.aligned.generated_resume


def test_generation_failure_stops_before_rescore() -> None:
    service = FakeService(failures={"generate_aligned_resume"})
    result = rewrite_resume(service, RESUME_PY, JD_GO, BASELINE, OptimizationMode.CONSERVATIVE)

    assert result.aligned is None
    assert result.new_score is None
    assert result.diff is None
    assert len(result.errors) == 1
    assert "Resume generation error" in result.errors[0]
    assert service.ops() == ["generate_aligned_resume"]


def test_rewrite_without_prior_match_has_no_improvement() -> None:
    result = rewrite_resume(FakeService(), RESUME_PY, JD_GO)
    assert result.baseline_score is None
    assert result.new_score == 40
    assert result.improvement is None
