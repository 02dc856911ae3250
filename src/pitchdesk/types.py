from __future__ import annotations

import secrets
import string
import time
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

JobStatus = Literal["lead", "applied", "interviewing", "hired", "declined"]
ProposalTone = Literal["bold", "professional", "friendly", "minimalist", "detailed", "like_myself"]
ApplyRecommendation = Literal["apply", "maybe_apply", "do_not_apply"]
MessageRole = Literal["client", "me"]
FlagLevel = Literal["low", "medium", "high"]

JOB_STATUSES: tuple[str, ...] = ("lead", "applied", "interviewing", "hired", "declined")
PROPOSAL_TONES: tuple[str, ...] = ("bold", "professional", "friendly", "minimalist", "detailed", "like_myself")

_ID_ALPHABET = string.ascii_lowercase + string.digits


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_id(existing: set[str] | None = None, length: int = 9) -> str:
    taken = existing or set()
    while True:
        candidate = "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))
        if candidate not in taken:
            return candidate


class PortfolioLink(BaseModel):
    name: str = ""
    url: str = ""


class UserProfile(BaseModel):
    id: str
    label: str = "General Profile"
    profile_name: str | None = None
    profile_headline: str | None = None
    upwork_profile_text: str | None = None
    your_profile_skills: list[str] = Field(default_factory=list)
    your_rate_preferences: str | None = None

    @field_validator("your_profile_skills")
    @classmethod
    def dedupe_skills(cls, value: list[str]) -> list[str]:
        return merge_skills([], value)


class UserIdentity(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    profiles: list[UserProfile] = Field(min_length=1)
    active_profile_id: str = Field(alias="activeProfileId")
    previous_proposals: str | None = None
    portfolio_links: list[PortfolioLink] = Field(default_factory=list)
    preferred_tone: ProposalTone = "professional"

    def get_profile(self, profile_id: str) -> UserProfile | None:
        for profile in self.profiles:
            if profile.id == profile_id:
                return profile
        return None

    def active_profile(self) -> UserProfile:
        return self.get_profile(self.active_profile_id) or self.profiles[0]


class Message(BaseModel):
    role: MessageRole
    text: str
    timestamp: int = Field(default_factory=now_ms)


class RedFlag(BaseModel):
    title: str = ""
    severity: str = "medium"
    explanation: str = ""


class GreenFlag(BaseModel):
    title: str = ""
    importance: str = "medium"
    explanation: str = ""


class ProposalDraft(BaseModel):
    cover_letter: str = ""
    proposed_budget: float | None = None
    proposed_rate_text: str | None = None
    suggested_first_message: str | None = None


class FlagCounts(BaseModel):
    red: int = 0
    green: int = 0


class RiskFactor(BaseModel):
    factor: str = ""
    score: float = 0.0
    notes: str = ""


class SkillMatch(BaseModel):
    skill: str = ""
    match_score: float = 0.0
    status: str = "missing"


class ClientMetrics(BaseModel):
    responsiveness: float = 0.0
    generosity: float = 0.0
    clarity: float = 0.0


class Analytics(BaseModel):
    flag_counts: FlagCounts = Field(default_factory=FlagCounts)
    risk_factors: list[RiskFactor] = Field(default_factory=list)
    skill_match: list[SkillMatch] = Field(default_factory=list)
    client_metrics: ClientMetrics = Field(default_factory=ClientMetrics)


class MissingInfo(BaseModel):
    missing_field: str = ""
    impact_if_missing: str = ""
    how_to_resolve: str = ""


class AnalysisResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    apply_recommendation: ApplyRecommendation
    confidence: float
    opportunity_score: float
    job_title: str
    analytics: Analytics
    detailed_report: str
    structured_reasons: list[str]
    red_flags: list[RedFlag] = Field(default_factory=list)
    green_flags: list[GreenFlag] = Field(default_factory=list)
    opinion: str = ""
    proposal: ProposalDraft | None = None
    missing_info_sensitivity: list[MissingInfo] = Field(default_factory=list)

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, value: float) -> float:
        if value < 0 or value > 1:
            raise ValueError("confidence must be between 0 and 1")
        return value

    @property
    def cover_letter(self) -> str | None:
        if self.proposal is None:
            return None
        return self.proposal.cover_letter


class SavedJob(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    timestamp: int = Field(default_factory=now_ms)
    job_title: str = Field(alias="jobTitle")
    client_name: str = Field(default="Client", alias="clientName")
    raw_text: str = Field(alias="rawText")
    analysis: AnalysisResult
    messages: list[Message] = Field(default_factory=list)
    status: JobStatus = "lead"
    edited_proposal: str | None = Field(default=None, alias="editedProposal")

    def draft_text(self) -> str:
        if self.edited_proposal is not None:
            return self.edited_proposal
        return self.analysis.cover_letter or ""


class UserAccount(BaseModel):
    username: str
    password: str = ""
    identity: UserIdentity
    history: list[SavedJob] = Field(default_factory=list)


class JobInput(BaseModel):
    raw_text: str
    active_profile: UserProfile | None = None
    previous_proposals: str | None = None
    portfolio_links: list[PortfolioLink] = Field(default_factory=list)
    preferred_tone: ProposalTone = "professional"


class ExtractedProfile(BaseModel):
    name: str
    headline: str
    skills: list[str]
    rate: str


class ModelResponse(BaseModel):
    content: str
    raw: dict[str, Any] = Field(default_factory=dict)


def merge_skills(existing: list[str], incoming: list[str]) -> list[str]:
    """Union of two skill lists, keeping first-seen order and dropping blanks."""
    merged: list[str] = []
    seen: set[str] = set()
    for skill in [*existing, *incoming]:
        cleaned = skill.strip()
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        merged.append(cleaned)
    return merged


def default_identity() -> UserIdentity:
    return UserIdentity(
        profiles=[UserProfile(id="main", label="General Profile")],
        active_profile_id="main",
        portfolio_links=[],
        preferred_tone="professional",
    )
