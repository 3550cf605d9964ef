from __future__ import annotations
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StageName(str, Enum):
    PARSE = "parse"
    MATCH = "match"
    SKILL_GAP = "skillGap"
    SUGGEST = "suggest"


class StageStatus(str, Enum):
    NOT_STARTED = "NotStarted"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    SKIPPED = "Skipped"


TERMINAL_STATUSES = frozenset({StageStatus.SUCCEEDED, StageStatus.FAILED, StageStatus.SKIPPED})


class Availability(str, Enum):
    """What a consumer should show for a stage slot."""
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    BLOCKED = "blocked"          # a prerequisite failed
    UNAVAILABLE = "unavailable"  # inputs never satisfied the stage


class LearningLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class OptimizationMode(str, Enum):
    CONSERVATIVE = "Conservative"
    BALANCED = "Balanced"
    AGGRESSIVE = "Aggressive"


class ApplicationStatus(str, Enum):
    ANALYZED = "Analyzed"
    APPLIED = "Applied"
    INTERVIEWING = "Interviewing"
    OFFER = "Offer"
    REJECTED = "Rejected"


# Outcomes that trigger an insights pass
OUTCOME_STATUSES = frozenset({ApplicationStatus.OFFER, ApplicationStatus.REJECTED})


# -------- Inputs --------
class SessionInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    job_description: Optional[str] = None
    resume_text: Optional[str] = None
    document_ref: Optional[str] = None

    @field_validator("job_description", "resume_text", "document_ref", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class Session(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    inputs: SessionInputs
    created_at: datetime = Field(default_factory=utcnow)


# -------- Stage outputs --------
class ResumeAnalysis(BaseModel):
    skills: List[str] = Field(default_factory=list)
    experience_summary: str = ""
    education_summary: str = ""
    formatting_issues: str = ""


class MatchAnalysis(BaseModel):
    match_score: int = Field(ge=0, le=100)
    relevance_highlights: str = ""
    missing_skills: List[str] = Field(default_factory=list)

    @field_validator("match_score", mode="before")
    @classmethod
    def _round_score(cls, v: Any) -> Any:
        # Models sometimes answer 72.5 or "72"
        if isinstance(v, str) and v.strip():
            v = float(v.strip().rstrip("%"))
        if isinstance(v, float):
            v = int(round(v))
        return v

    @field_validator("missing_skills")
    @classmethod
    def _dedupe_skills(cls, v: List[str]) -> List[str]:
        seen = set()
        out = []
        for s in v:
            key = s.strip().lower()
            if key and key not in seen:
                seen.add(key)
                out.append(s.strip())
        return out


class LearningStep(BaseModel):
    step: str
    practice_ideas: str = ""


class SkillDetail(BaseModel):
    skill: str
    importance: str = ""
    learning_level: LearningLevel = LearningLevel.BEGINNER
    learning_steps: List[LearningStep] = Field(default_factory=list)


class SkillGapAnalysis(BaseModel):
    # Most important skill first.
    skill_analysis: List[SkillDetail] = Field(default_factory=list)


class Suggestions(BaseModel):
    suggestions: str


class AlignedResume(BaseModel):
    generated_resume: str
    improvement_summary: str = ""


# -------- Runs & snapshot --------
class StageRun(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage: StageName
    status: StageStatus = StageStatus.NOT_STARTED
    result: Optional[Any] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class ResultSnapshot(BaseModel):
    """Merged view of one session. Replaced wholesale on every merge."""
    model_config = ConfigDict(frozen=True)

    session_id: str
    inputs: SessionInputs
    created_at: datetime
    runs: Dict[StageName, StageRun]

    def run(self, stage: StageName) -> StageRun:
        return self.runs[StageName(stage)]

    def status(self, stage: StageName) -> StageStatus:
        return self.run(stage).status

    def result(self, stage: StageName) -> Any:
        return self.run(stage).result

    @property
    def resume_analysis(self) -> Optional[ResumeAnalysis]:
        return self.result(StageName.PARSE)

    @property
    def match_analysis(self) -> Optional[MatchAnalysis]:
        return self.result(StageName.MATCH)

    @property
    def skill_gap_analysis(self) -> Optional[SkillGapAnalysis]:
        return self.result(StageName.SKILL_GAP)

    @property
    def suggestions(self) -> Optional[Suggestions]:
        return self.result(StageName.SUGGEST)

    @property
    def running(self) -> List[StageName]:
        return [name for name, r in self.runs.items() if r.status == StageStatus.RUNNING]

    @property
    def is_idle(self) -> bool:
        return not self.running

    def with_run(self, run: StageRun) -> "ResultSnapshot":
        runs = dict(self.runs)
        runs[run.stage] = run
        return self.model_copy(update={"runs": runs})


# -------- Simulation --------
class SimulationStatus(str, Enum):
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    SUPERSEDED = "Superseded"


class SimulationRun(BaseModel):
    candidate_document: str
    baseline_score: int
    score: Optional[int] = None
    status: SimulationStatus = SimulationStatus.RUNNING
    error: Optional[str] = None
    started_at: datetime = Field(default_factory=utcnow)
    finished_at: Optional[datetime] = None

    @property
    def delta(self) -> Optional[int]:
        if self.score is None:
            return None
        return self.score - self.baseline_score


# -------- Persistence shape --------
class ApplicationInsights(BaseModel):
    positive_factors: List[str] = Field(default_factory=list)
    negative_factors: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class SavedAnalysis(BaseModel):
    job_description: str = ""
    resume_content: str = ""
    match_score: Optional[int] = None
    relevance_highlights: str = ""
    missing_skills: List[str] = Field(default_factory=list)
    suggestions: str = ""
    skill_gap_analysis: Optional[SkillGapAnalysis] = None
    status: ApplicationStatus = ApplicationStatus.ANALYZED
    created_at: datetime = Field(default_factory=utcnow)
    insights: Optional[ApplicationInsights] = None
