from __future__ import annotations
import json
import re
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar
from pydantic import BaseModel, ValidationError
from pypdf import PdfReader

from .errors import InferenceError

M = TypeVar("M", bound=BaseModel)

TEXT_SUFFIXES = (".txt", ".md")


def read_text_file(path: str) -> str:
    p = Path(path)
    return p.read_text(encoding="utf-8")


def pdf_to_text(path: str) -> Optional[str]:
    reader = PdfReader(path)
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n".join(pages).strip() or None


def load_document(path: str) -> str:
    """Read an uploaded résumé (.txt, .md or .pdf) into plain text."""
    path_lower = path.lower()
    if path_lower.endswith(TEXT_SUFFIXES):
        return read_text_file(path)
    if path_lower.endswith(".pdf"):
        txt = pdf_to_text(path)
        if txt:
            return txt
        raise ValueError("Could not extract text from PDF. Make sure the file is not encrypted or scanned.")
    raise ValueError(f"Unsupported document format: {path}. Use .txt, .md or .pdf")


def extract_json_block(text: str) -> str:
    """Extract JSON from LLM response, handling code fences and finding first {...} block."""
    t = text.strip()
    # Strip code fences if any
    t = re.sub(r"^```[a-zA-Z]*\n|```$", "", t, flags=re.MULTILINE)
    m = re.search(r"\{[\s\S]*\}", t)
    if m:
        return t[m.start():m.end()]
    return t


def loads_json_object(text: str) -> Dict[str, Any]:
    data = json.loads(extract_json_block(text))
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def invoke_json(llm: Any, messages: list[Any], schema: Type[M], operation: str) -> M:
    """Send ``messages`` to ``llm`` and validate the JSON reply against ``schema``.

    Provider errors, unparseable replies and schema violations all surface as
    ``InferenceError`` so callers only handle one failure type.
    """
    try:
        resp = llm.invoke(messages)
    except Exception as e:
        raise InferenceError(operation, f"model call failed: {e}") from e
    content = str(getattr(resp, "content", "") or "").strip()
    if not content:
        raise InferenceError(operation, "model returned an empty response")
    try:
        return schema.model_validate(loads_json_object(content))
    except (ValueError, ValidationError) as e:
        raise InferenceError(operation, f"malformed model output: {e}") from e
