from __future__ import annotations
import logging
import re
from typing import Any, Dict, List
from langchain_core.messages import HumanMessage, SystemMessage
from pypdf.errors import PyPdfError

from ..errors import InferenceError
from ..state import ResumeAnalysis
from ..utils import invoke_json, load_document

logger = logging.getLogger(__name__)

OPERATION = "parse_document"

SECTION_PATTERNS = {
    "experience": r"(experience|work experience|employment)\s*[:\n]",
    "education": r"(education|academic background)\s*[:\n]",
    "skills": r"(skills|technical skills|core competencies)\s*[:\n]",
}


def naive_section_split(text: str) -> Dict[str, str]:
    sections = {"summary": "", "experience": "", "education": "", "skills": ""}
    t = text.replace("\r", "")
    idxs = []
    for name, pat in SECTION_PATTERNS.items():
        m = re.search(pat, t, flags=re.I)
        if m:
            idxs.append((m.start(), name))
    idxs.sort()
    if not idxs:
        sections["summary"] = t.strip()
        return sections
    sections["summary"] = t[:idxs[0][0]].strip()
    for i, (start, name) in enumerate(idxs):
        end = idxs[i + 1][0] if i + 1 < len(idxs) else len(t)
        sections[name] = t[start:end].strip()
    return sections


def detect_layout_issues(text: str) -> List[str]:
    """Cheap ATS checks that do not need a model: missing headings, odd glyphs, tabs."""
    issues: List[str] = []
    sections = naive_section_split(text)
    for name in SECTION_PATTERNS:
        if not sections[name]:
            issues.append(f"No standard '{name.capitalize()}' section heading found.")
    odd = sorted(set(re.findall(r"[☀-➿\U0001f300-\U0001faff]", text)))
    if odd:
        issues.append("Decorative symbols may not survive ATS parsing: " + " ".join(odd))
    if "\t" in text:
        issues.append("Tab characters suggest table or column layout, which ATS parsers often scramble.")
    return issues


def build_parse_prompt(text: str) -> List[Any]:
    system = SystemMessage(content=(
        "You are an expert resume parser. Extract structured data from the resume into a strict JSON schema. "
        "Output ONLY JSON. No commentary, no markdown."
    ))
    schema_json = (
        '{"skills": string[], "experience_summary": str, "education_summary": str, '
        '"formatting_issues": str (potential ATS blockers: formatting problems, unusual characters, missing keywords)}'
    )
    human = HumanMessage(content=(
        "Resume text:\n" + text + "\n\nSchema (JSON) you must return exactly:\n" + schema_json
    ))
    return [system, human]


def parse_resume_text(text: str, llm: Any) -> ResumeAnalysis:
    if not text.strip():
        raise InferenceError(OPERATION, "document contains no text")
    analysis = invoke_json(llm, build_parse_prompt(text), ResumeAnalysis, OPERATION)
    analysis.skills = sorted(set(s.strip() for s in analysis.skills if s and s.strip()), key=str.lower)
    layout = detect_layout_issues(text)
    if layout:
        joined = "\n".join(f"- {i}" for i in layout)
        analysis.formatting_issues = (analysis.formatting_issues.strip() + "\n" + joined).strip()
    return analysis


def parse_document(document_ref: str, llm: Any) -> ResumeAnalysis:
    """Load an uploaded résumé file and parse it into a ResumeAnalysis."""
    try:
        text = load_document(document_ref)
    except (OSError, ValueError, PyPdfError) as e:
        logger.warning(f"Could not load document {document_ref}: {e}")
        raise InferenceError(OPERATION, str(e)) from e
    return parse_resume_text(text, llm)
