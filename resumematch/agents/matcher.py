from __future__ import annotations
from typing import Any, List
from langchain_core.messages import HumanMessage, SystemMessage

from ..errors import InferenceError
from ..state import MatchAnalysis
from ..utils import invoke_json

OPERATION = "score_match"


def build_match_prompt(job_description: str, resume_text: str) -> List[Any]:
    system = SystemMessage(content=(
        "You are an AI expert in recruiting and talent acquisition. Return ONLY JSON, no markdown, no code fences."
    ))
    schema_json = '{"match_score": int 0-100, "relevance_highlights": str, "missing_skills": string[]}'
    human = HumanMessage(content="\n".join([
        "Tasks:",
        "1. match_score: how well the resume fits the job description (0-100, higher is better).",
        "2. relevance_highlights: summarize the resume's skills and experience that align with the job.",
        "3. missing_skills: key skills the job description asks for that the resume does not show. "
        "Use an empty list if nothing is missing.",
        "",
        "JOB DESCRIPTION:",
        job_description,
        "",
        "RESUME:",
        resume_text,
        "",
        "SCHEMA:",
        schema_json,
    ]))
    return [system, human]


def score_match(job_description: str, resume_text: str, llm: Any) -> MatchAnalysis:
    if not job_description.strip() or not resume_text.strip():
        raise InferenceError(OPERATION, "job description and resume text are both required")
    return invoke_json(llm, build_match_prompt(job_description, resume_text), MatchAnalysis, OPERATION)
