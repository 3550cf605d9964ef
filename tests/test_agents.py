from __future__ import annotations

from pathlib import Path

import pytest
from fakes import JD_GO, RESUME_PY, FakeLLM

from resumematch.agents.cv_parser import detect_layout_issues, parse_document
from resumematch.agents.insights import generate_insights
from resumematch.agents.matcher import score_match
from resumematch.agents.skill_gap import analyze_skill_gap, normalize_skills
from resumematch.errors import InferenceError
from resumematch.llm_provider import MultiProviderLLM, normalize_provider
from resumematch.state import ApplicationStatus, LearningLevel


def test_score_match_reads_fenced_json() -> None:
    reply = '```json\n{"match_score": 72.6, "relevance_highlights": "APIs", "missing_skills": ["Go", "go ", "gRPC"]}\n```'
    llm = FakeLLM(reply)
    analysis = score_match(JD_GO, RESUME_PY, llm)
    assert analysis.match_score == 73
    assert analysis.missing_skills == ["Go", "gRPC"]
    prompt = llm.messages[0][1].content
    assert JD_GO in prompt and RESUME_PY in prompt


def test_score_match_accepts_percent_string() -> None:
    analysis = score_match(JD_GO, RESUME_PY, FakeLLM('{"match_score": "64%", "missing_skills": []}'))
    assert analysis.match_score == 64


@pytest.mark.parametrize("reply", [
    "I think this candidate is a decent fit.",
    '{"match_score": 140}',
    '["not", "an", "object"]',
    "",
    RuntimeError("quota exceeded"),
])
def test_score_match_failures_are_inference_errors(reply) -> None:
    with pytest.raises(InferenceError) as exc:
        score_match(JD_GO, RESUME_PY, FakeLLM(reply))
    assert exc.value.operation == "score_match"


def test_score_match_requires_both_inputs() -> None:
    llm = FakeLLM()
    with pytest.raises(InferenceError):
        score_match(JD_GO, "   ", llm)
    assert llm.messages == []


def test_parse_document_flags_layout_issues(tmp_path: Path) -> None:
    cv = tmp_path / "cv.txt"
    cv.write_text("Jane Doe ★\nSkills:\nPython\tDocker\n", encoding="utf-8")
    llm = FakeLLM('{"skills": ["Python", "Docker", "Python "], "experience_summary": "", '
                  '"education_summary": "", "formatting_issues": "Uses a star glyph."}')

    analysis = parse_document(str(cv), llm)

    assert analysis.skills == ["Docker", "Python"]
    lines = analysis.formatting_issues.splitlines()
    assert lines[0] == "Uses a star glyph."
    assert "- No standard 'Experience' section heading found." in lines
    assert "- No standard 'Education' section heading found." in lines
    assert not any("'Skills'" in line for line in lines)
    assert any("★" in line for line in lines)
    assert any("Tab characters" in line for line in lines)


def test_parse_document_rejects_unsupported_and_missing_files(tmp_path: Path) -> None:
    docx = tmp_path / "cv.docx"
    docx.write_bytes(b"PK\x03\x04")
    with pytest.raises(InferenceError, match="Unsupported document format"):
        parse_document(str(docx), FakeLLM())
    with pytest.raises(InferenceError):
        parse_document(str(tmp_path / "absent.txt"), FakeLLM())


def test_clean_resume_has_no_layout_issues() -> None:
    text = "Summary\nExperience:\nAcme, 2019-2024\nEducation:\nBSc\nSkills:\nPython, Go\n"
    assert detect_layout_issues(text) == []


def test_skill_gap_parses_learning_plan() -> None:
    reply = ('{"skill_analysis": [{"skill": "Go", "importance": "Primary language", '
             '"learning_level": "Intermediate", "learning_steps": '
             '[{"step": "Port a Python service", "practice_ideas": "Rewrite a small CLI in Go"}]}]}')
    llm = FakeLLM(reply)
    gap = analyze_skill_gap(JD_GO, RESUME_PY, ["Go", " go", ""], llm)
    assert gap.skill_analysis[0].learning_level == LearningLevel.INTERMEDIATE
    assert gap.skill_analysis[0].learning_steps[0].step == "Port a Python service"
    assert "- Go\n" in llm.messages[0][1].content + "\n"


def test_skill_gap_without_missing_skills_fails() -> None:
    with pytest.raises(InferenceError):
        analyze_skill_gap(JD_GO, RESUME_PY, [" ", ""], FakeLLM())
    assert normalize_skills(["Go", "GO", " Kubernetes "]) == ["Go", "Kubernetes"]


def test_multi_provider_fails_over_to_next() -> None:
    llm = MultiProviderLLM([
        lambda: FakeLLM(RuntimeError("429 quota")),
        lambda: FakeLLM('{"ok": true}'),
    ])
    assert llm.invoke([]).content == '{"ok": true}'


def test_multi_provider_reports_every_failure() -> None:
    def missing_key():
        raise RuntimeError("MISTRAL_API_KEY is missing")

    llm = MultiProviderLLM([lambda: FakeLLM(RuntimeError("503")), missing_key])
    with pytest.raises(RuntimeError, match="All providers failed") as exc:
        llm.invoke([])
    assert "invoke[0]: 503" in str(exc.value)
    assert "build[1]: MISTRAL_API_KEY is missing" in str(exc.value)


def test_normalize_provider() -> None:
    assert normalize_provider(None) == "auto"
    assert normalize_provider(" Mistral ") == "mistral"
    assert normalize_provider("openai") == "auto"


def test_insights_for_final_outcome() -> None:
    reply = ('{"positive_factors": ["Strong API work"], "negative_factors": ["No Go"], '
             '"recommendations": ["Add a Go side project"]}')
    llm = FakeLLM(reply)
    insights = generate_insights(RESUME_PY, JD_GO, "Rejected", llm)
    assert insights.negative_factors == ["No Go"]
    prompt = llm.messages[0][1].content
    assert "APPLICATION OUTCOME: Rejected" in prompt
    assert "no final outcome yet" not in prompt


def test_insights_for_open_application_stay_general() -> None:
    llm = FakeLLM('{"positive_factors": [], "negative_factors": [], "recommendations": ["Follow up"]}')
    generate_insights(RESUME_PY, JD_GO, ApplicationStatus.INTERVIEWING, llm)
    assert "no final outcome yet" in llm.messages[0][1].content
    with pytest.raises(InferenceError):
        generate_insights("", JD_GO, "Offer", FakeLLM())
