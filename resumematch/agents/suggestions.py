from __future__ import annotations
from typing import Any, List
from langchain_core.messages import HumanMessage, SystemMessage

from ..errors import InferenceError
from ..state import Suggestions
from ..utils import invoke_json

OPERATION = "suggest_improvements"


def build_suggestions_prompt(job_description: str, resume_text: str) -> List[Any]:
    system = SystemMessage(content=(
        "You are an expert resume writer. Return ONLY JSON of the form {\"suggestions\": str}. "
        "No markdown fences around the JSON."
    ))
    human = HumanMessage(content=(
        "Suggest how to improve the resume for this job: rewrite weak bullet points and insert relevant "
        "keywords from the job description where they fit the candidate's real experience.\n\n"
        f"RESUME:\n{resume_text}\n\nJOB DESCRIPTION:\n{job_description}"
    ))
    return [system, human]


def suggest_improvements(job_description: str, resume_text: str, llm: Any) -> Suggestions:
    if not job_description.strip() or not resume_text.strip():
        raise InferenceError(OPERATION, "job description and resume text are both required")
    return invoke_json(llm, build_suggestions_prompt(job_description, resume_text), Suggestions, OPERATION)
