from __future__ import annotations
from typing import Any, List
from langchain_core.messages import HumanMessage, SystemMessage

from ..errors import InferenceError
from ..state import SkillGapAnalysis
from ..utils import invoke_json

OPERATION = "analyze_skill_gap"


def normalize_skills(skills: List[str]) -> List[str]:
    """Strip and dedupe case-insensitively, keeping first-seen order."""
    seen = set()
    out: List[str] = []
    for s in skills:
        token = (s or "").strip()
        if token and token.lower() not in seen:
            seen.add(token.lower())
            out.append(token)
    return out


def build_skill_gap_prompt(job_description: str, resume_text: str, missing_skills: List[str]) -> List[Any]:
    system = SystemMessage(content=(
        "You are an expert career coach and learning strategist. Return ONLY JSON, no markdown, no code fences. "
        "Keep language simple, explainable and non-technical. Do not recommend paid courses or external platforms."
    ))
    schema_json = (
        '{"skill_analysis": [{"skill": str, "importance": str, '
        '"learning_level": "Beginner"|"Intermediate"|"Advanced", '
        '"learning_steps": [{"step": str, "practice_ideas": str}]}]}'
    )
    human = HumanMessage(content="\n".join([
        "For each missing skill:",
        "- rank by importance for this role, most critical first in the array;",
        "- explain briefly why it matters for this job;",
        "- pick the level the candidate should start learning at;",
        "- give 2-3 actionable learning steps, each with a small practice idea or mini-project.",
        "",
        "JOB DESCRIPTION:",
        job_description,
        "",
        "RESUME:",
        resume_text,
        "",
        "MISSING SKILLS:",
        "\n".join(f"- {s}" for s in missing_skills),
        "",
        "SCHEMA:",
        schema_json,
    ]))
    return [system, human]


def analyze_skill_gap(job_description: str, resume_text: str, missing_skills: List[str], llm: Any) -> SkillGapAnalysis:
    skills = normalize_skills(missing_skills)
    if not skills:
        raise InferenceError(OPERATION, "no missing skills to analyze")
    messages = build_skill_gap_prompt(job_description, resume_text, skills)
    return invoke_json(llm, messages, SkillGapAnalysis, OPERATION)
