from __future__ import annotations
from typing import Any, List
from langchain_core.messages import HumanMessage, SystemMessage

from ..errors import InferenceError
from ..state import OUTCOME_STATUSES, ApplicationInsights, ApplicationStatus
from ..utils import invoke_json

OPERATION = "generate_insights"


def build_insights_prompt(resume_version: str, job_description: str, outcome: ApplicationStatus) -> List[Any]:
    system = SystemMessage(content=(
        "You are an expert career advisor analyzing why a resume did or did not perform well for a job "
        "application. Return ONLY JSON, no markdown, no code fences."
    ))
    schema_json = '{"positive_factors": string[], "negative_factors": string[], "recommendations": string[]}'
    lines = [
        "Based on the resume, the job description and the application outcome, look for patterns in keyword "
        "alignment, skill relevance and formatting. In simple, non-technical language:",
        "1. positive_factors: what likely worked well.",
        "2. negative_factors: what likely did not work.",
        "3. recommendations: concrete changes for future applications.",
    ]
    if outcome not in OUTCOME_STATUSES:
        lines.append("The application has no final outcome yet, so keep the observations general.")
    human = HumanMessage(content="\n".join(lines + [
        "",
        "RESUME VERSION:",
        resume_version,
        "",
        "JOB DESCRIPTION:",
        job_description,
        "",
        f"APPLICATION OUTCOME: {outcome.value}",
        "",
        "SCHEMA:",
        schema_json,
    ]))
    return [system, human]


def generate_insights(resume_version: str,
                      job_description: str,
                      outcome: ApplicationStatus | str,
                      llm: Any) -> ApplicationInsights:
    if not resume_version.strip() or not job_description.strip():
        raise InferenceError(OPERATION, "resume version and job description are both required")
    messages = build_insights_prompt(resume_version, job_description, ApplicationStatus(outcome))
    return invoke_json(llm, messages, ApplicationInsights, OPERATION)
