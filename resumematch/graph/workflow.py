from __future__ import annotations
import logging
from typing import Any, Callable, List, Optional
from langgraph.graph import END, StateGraph
from pydantic import BaseModel, Field

from ..diff_engine import DiffScript, compute_diff
from ..errors import InferenceError
from ..state import AlignedResume, MatchAnalysis, OptimizationMode

logger = logging.getLogger(__name__)


class RewriteState(BaseModel):
    # Input
    original_resume: str
    job_description: str
    missing_skills: List[str] = Field(default_factory=list)
    relevance_highlights: str = ""
    mode: OptimizationMode = OptimizationMode.BALANCED
    baseline_score: Optional[int] = None

    # Output
    aligned: Optional[AlignedResume] = None
    new_score: Optional[int] = None
    errors: List[str] = Field(default_factory=list)

    @property
    def improvement(self) -> Optional[int]:
        if self.new_score is None or self.baseline_score is None:
            return None
        return self.new_score - self.baseline_score

    @property
    def diff(self) -> Optional[DiffScript]:
        if self.aligned is None:
            return None
        return compute_diff(self.original_resume, self.aligned.generated_resume)


def build_rewrite_graph(service: Any) -> Callable[[RewriteState], RewriteState]:
    def generate_node(state: RewriteState) -> dict:
        try:
            aligned = service.generate_aligned_resume(
                state.original_resume,
                state.job_description,
                state.missing_skills,
                state.relevance_highlights,
                state.mode,
            )
        except InferenceError as e:
            return {"errors": state.errors + [f"Resume generation error: {e}"]}
        return {"aligned": aligned}

    def rescore_node(state: RewriteState) -> dict:
        try:
            analysis = service.score_match(state.job_description, state.aligned.generated_resume)
        except InferenceError as e:
            return {"errors": state.errors + [f"Rescore error: {e}"]}
        return {"new_score": analysis.match_score}

    def after_generate(state: RewriteState) -> str:
        return "rescore" if state.aligned is not None else END

    g = StateGraph(RewriteState)
    g.add_node("generate", generate_node)
    g.add_node("rescore", rescore_node)

    g.set_entry_point("generate")
    g.add_conditional_edges("generate", after_generate, {"rescore": "rescore", END: END})
    g.add_edge("rescore", END)

    app = g.compile()

    def runner(state: RewriteState) -> RewriteState:
        final = app.invoke(state)
        # LangGraph app.invoke may return a plain dict; coerce into RewriteState for uniform handling
        if isinstance(final, dict):
            final = RewriteState.model_validate(final)
        return final

    return runner


def rewrite_resume(service: Any,
                   original_resume: str,
                   job_description: str,
                   match: Optional[MatchAnalysis] = None,
                   mode: OptimizationMode | str = OptimizationMode.BALANCED) -> RewriteState:
    """Generate a JD-aligned résumé, then score it to report the improvement."""
    state = RewriteState(
        original_resume=original_resume,
        job_description=job_description,
        missing_skills=list(match.missing_skills) if match else [],
        relevance_highlights=match.relevance_highlights if match else "",
        mode=OptimizationMode(mode),
        baseline_score=match.match_score if match else None,
    )
    final = build_rewrite_graph(service)(state)
    for err in final.errors:
        logger.warning(err)
    return final
