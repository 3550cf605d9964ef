from __future__ import annotations
from typing import Any, List
from langchain_core.messages import HumanMessage, SystemMessage

from ..errors import InferenceError
from ..state import AlignedResume, OptimizationMode
from ..utils import invoke_json

OPERATION = "generate_aligned_resume"

MODE_GUIDANCE = {
    OptimizationMode.CONSERVATIVE: (
        "Make minimal changes. Rephrase a few key bullet points and add missing keywords only where they fit naturally."
    ),
    OptimizationMode.BALANCED: (
        "Reorder sections or bullet points so the most relevant experience comes first, rewrite several sections "
        "in the job description's language and incorporate a good number of missing keywords."
    ),
    OptimizationMode.AGGRESSIVE: (
        "Perform a full rewrite. Mirror the job description's language for maximum keyword and skill alignment, "
        "shortening less relevant sections."
    ),
}


def build_rewrite_prompt(original_resume: str,
                         job_description: str,
                         missing_skills: List[str],
                         relevance_highlights: str,
                         mode: OptimizationMode) -> List[Any]:
    system = SystemMessage(content=(
        "You are an expert resume writer optimizing a resume for a specific job description. "
        "NEVER invent skills, experience, projects or qualifications that are not in the original resume: "
        "only rephrase, reorder and emphasize existing content. Output plain text with standard section headings "
        "(Summary, Skills, Experience, Education). Return ONLY JSON, no markdown fences."
    ))
    human = HumanMessage(content="\n".join([
        "ORIGINAL RESUME:",
        original_resume,
        "",
        "TARGET JOB DESCRIPTION:",
        job_description,
        "",
        "MISSING KEYWORDS:",
        "\n".join(f"- {s}" for s in missing_skills) or "- (none)",
        "",
        "RELEVANT HIGHLIGHTS:",
        relevance_highlights or "-",
        "",
        f"OPTIMIZATION MODE: {mode.value}. {MODE_GUIDANCE[mode]}",
        "",
        "Also write improvement_summary: a short explanation of the key changes you made.",
        'SCHEMA: {"generated_resume": str, "improvement_summary": str}',
    ]))
    return [system, human]


def generate_aligned_resume(original_resume: str,
                            job_description: str,
                            missing_skills: List[str],
                            relevance_highlights: str,
                            mode: OptimizationMode,
                            llm: Any) -> AlignedResume:
    if not original_resume.strip() or not job_description.strip():
        raise InferenceError(OPERATION, "original resume and job description are both required")
    messages = build_rewrite_prompt(original_resume, job_description, missing_skills,
                                    relevance_highlights, OptimizationMode(mode))
    result = invoke_json(llm, messages, AlignedResume, OPERATION)
    if not result.generated_resume.strip():
        raise InferenceError(OPERATION, "model returned an empty resume")
    return result
