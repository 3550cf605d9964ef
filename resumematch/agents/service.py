"""The inference operations the analysis pipeline consumes.

``InferenceService`` is the seam: the orchestrator, the simulation runner and
the rewrite workflow only ever see this protocol. ``LLMInferenceService``
implements it on top of a LangChain chat model, with one agent module per
operation. Every operation either returns its pydantic result or raises
``InferenceError``.
"""
from __future__ import annotations
from typing import Any, List, Protocol

from ..llm_provider import get_llm
from ..state import (
    AlignedResume,
    ApplicationInsights,
    ApplicationStatus,
    MatchAnalysis,
    OptimizationMode,
    ResumeAnalysis,
    SkillGapAnalysis,
    Suggestions,
)
from .cv_parser import parse_document
from .insights import generate_insights
from .matcher import score_match
from .resume_writer import generate_aligned_resume
from .skill_gap import analyze_skill_gap
from .suggestions import suggest_improvements


class InferenceService(Protocol):
    def parse_document(self, document_ref: str) -> ResumeAnalysis: ...

    def score_match(self, job_description: str, resume_text: str) -> MatchAnalysis: ...

    def analyze_skill_gap(self, job_description: str, resume_text: str,
                          missing_skills: List[str]) -> SkillGapAnalysis: ...

    def suggest_improvements(self, job_description: str, resume_text: str) -> Suggestions: ...

    def generate_aligned_resume(self, original_resume: str, job_description: str,
                                missing_skills: List[str], relevance_highlights: str,
                                mode: OptimizationMode) -> AlignedResume: ...

    def generate_insights(self, resume_version: str, job_description: str,
                          outcome: ApplicationStatus) -> ApplicationInsights: ...


class LLMInferenceService:
    def __init__(self, llm: Any):
        self.llm = llm

    @classmethod
    def from_provider(cls, provider: str = "auto", temperature: float = 0.2,
                      timeout: float | None = None) -> "LLMInferenceService":
        return cls(get_llm(provider=provider, temperature=temperature, timeout=timeout))

    def parse_document(self, document_ref: str) -> ResumeAnalysis:
        return parse_document(document_ref, self.llm)

    def score_match(self, job_description: str, resume_text: str) -> MatchAnalysis:
        return score_match(job_description, resume_text, self.llm)

    def analyze_skill_gap(self, job_description: str, resume_text: str,
                          missing_skills: List[str]) -> SkillGapAnalysis:
        return analyze_skill_gap(job_description, resume_text, missing_skills, self.llm)

    def suggest_improvements(self, job_description: str, resume_text: str) -> Suggestions:
        return suggest_improvements(job_description, resume_text, self.llm)

    def generate_aligned_resume(self, original_resume: str, job_description: str,
                                missing_skills: List[str], relevance_highlights: str,
                                mode: OptimizationMode) -> AlignedResume:
        return generate_aligned_resume(original_resume, job_description, missing_skills,
                                       relevance_highlights, mode, self.llm)

    def generate_insights(self, resume_version: str, job_description: str,
                          outcome: ApplicationStatus) -> ApplicationInsights:
        return generate_insights(resume_version, job_description, outcome, self.llm)
