from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from pitchdesk.types import (
    AnalysisResult,
    ExtractedProfile,
    JobStatus,
    Message,
    PortfolioLink,
    ProposalTone,
    SavedJob,
    UserIdentity,
    UserProfile,
)


class CredentialsRequest(BaseModel):
    username: str
    password: str


class IdentityUpdateRequest(BaseModel):
    preferred_tone: ProposalTone | None = None
    previous_proposals: str | None = None


class PortfolioLinkUpdateRequest(BaseModel):
    name: str | None = None
    url: str | None = None


class ProfileUpdateRequest(BaseModel):
    label: str | None = None
    profile_name: str | None = None
    profile_headline: str | None = None
    upwork_profile_text: str | None = None
    your_profile_skills: list[str] | None = None
    your_rate_preferences: str | None = None


class SkillRequest(BaseModel):
    skill: str


class ExtractRequest(BaseModel):
    bio_text: str | None = None


class ExtractResponse(BaseModel):
    extracted: ExtractedProfile | None
    profile: UserProfile


class ProfileListResponse(BaseModel):
    active_profile_id: str
    profiles: list[UserProfile]


class AnalyzeRequest(BaseModel):
    raw_text: str
    client_name: str = "Client"


class SearchRequest(BaseModel):
    term: str = ""


class StatusRequest(BaseModel):
    status: JobStatus


class LeadSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    timestamp: int
    job_title: str = Field(alias="jobTitle")
    client_name: str = Field(alias="clientName")
    status: JobStatus
    selected: bool = False
    current: bool = False


class SelectionResponse(BaseModel):
    managing_archive: bool
    selected_job_ids: list[str]


class DeleteResponse(BaseModel):
    deleted: int


class SessionResponse(BaseModel):
    username: str
    identity: UserIdentity
    lead_count: int
    current_job_id: str | None
    current_result: AnalysisResult | None
    search_term: str
    managing_archive: bool
    selected_job_ids: list[str]
    editing_profile: bool
    suggestion: str | None
    error: str | None


class MessageRequest(BaseModel):
    text: str


class ConversationResponse(BaseModel):
    job: SavedJob
    suggestion: str | None


class AcceptSuggestionResponse(BaseModel):
    message: Message
    job: SavedJob


class DraftRequest(BaseModel):
    text: str


class DraftResponse(BaseModel):
    job_id: str | None
    text: str
    word_count: int
    pending: bool


class RegenerateRequest(BaseModel):
    tone: ProposalTone


class RegenerateResponse(BaseModel):
    regenerated: bool
    draft: DraftResponse


class ErrorResponse(BaseModel):
    detail: str
    kind: Literal[
        "duplicate_username",
        "invalid_credentials",
        "not_logged_in",
        "confirmation_required",
        "validation_error",
        "account_unreadable",
    ]


class LinksResponse(BaseModel):
    portfolio_links: list[PortfolioLink]
