from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from pitchdesk.api.deps import get_account_store, get_router, get_session
from pitchdesk.api.schemas import (
    AcceptSuggestionResponse,
    AnalyzeRequest,
    ConversationResponse,
    CredentialsRequest,
    DeleteResponse,
    DraftRequest,
    DraftResponse,
    ExtractRequest,
    ExtractResponse,
    IdentityUpdateRequest,
    LeadSummary,
    LinksResponse,
    MessageRequest,
    PortfolioLinkUpdateRequest,
    ProfileListResponse,
    ProfileUpdateRequest,
    RegenerateRequest,
    RegenerateResponse,
    SearchRequest,
    SelectionResponse,
    SessionResponse,
    SkillRequest,
    StatusRequest,
)
from pitchdesk.core import conversation, drafting, history, identity, runtime
from pitchdesk.core.accounts import AccountStore
from pitchdesk.core.session import UserSession
from pitchdesk.llm.router import LLMRouter
from pitchdesk.types import PortfolioLink, SavedJob, UserProfile

router = APIRouter(prefix="/api", tags=["api"])


def _session_response(session: UserSession) -> SessionResponse:
    return SessionResponse(
        username=session.username,
        identity=session.identity,
        lead_count=len(session.history),
        current_job_id=session.current_job_id,
        current_result=session.current_result,
        search_term=session.search_term,
        managing_archive=session.managing_archive,
        selected_job_ids=sorted(session.selected_job_ids),
        editing_profile=session.editing_profile,
        suggestion=session.suggestion,
        error=session.error,
    )


def _draft_response(session: UserSession) -> DraftResponse:
    text = drafting.current_draft(session)
    return DraftResponse(
        job_id=session.current_job_id,
        text=text,
        word_count=drafting.word_count(text),
        pending=session.draft.pending,
    )


def _selection_response(session: UserSession) -> SelectionResponse:
    return SelectionResponse(
        managing_archive=session.managing_archive,
        selected_job_ids=sorted(session.selected_job_ids),
    )


def _lead_summaries(session: UserSession, jobs: list[SavedJob]) -> list[LeadSummary]:
    return [
        LeadSummary(
            id=job.id,
            timestamp=job.timestamp,
            job_title=job.job_title,
            client_name=job.client_name,
            status=job.status,
            selected=job.id in session.selected_job_ids,
            current=job.id == session.current_job_id,
        )
        for job in jobs
    ]


@router.post("/auth/signup", response_model=SessionResponse)
def sign_up(payload: CredentialsRequest, store: AccountStore = Depends(get_account_store)) -> SessionResponse:
    runtime.flush_current_session()
    session = store.sign_up(payload.username, payload.password)
    runtime.set_current_session(session)
    return _session_response(session)


@router.post("/auth/login", response_model=SessionResponse)
def login(payload: CredentialsRequest, store: AccountStore = Depends(get_account_store)) -> SessionResponse:
    runtime.flush_current_session()
    session = store.login(payload.username, payload.password)
    runtime.set_current_session(session)
    return _session_response(session)


@router.post("/auth/logout")
def logout(store: AccountStore = Depends(get_account_store)) -> dict:
    store.logout(runtime.get_current_session())
    runtime.set_current_session(None)
    return {"ok": True}


@router.get("/session", response_model=SessionResponse)
def get_session_state(session: UserSession = Depends(get_session)) -> SessionResponse:
    return _session_response(session)


@router.patch("/identity", response_model=SessionResponse)
def patch_identity(payload: IdentityUpdateRequest, session: UserSession = Depends(get_session)) -> SessionResponse:
    identity.update_identity(session, **payload.model_dump(exclude_unset=True))
    return _session_response(session)


@router.post("/identity/links", response_model=LinksResponse)
def add_link(session: UserSession = Depends(get_session)) -> LinksResponse:
    return LinksResponse(portfolio_links=identity.add_portfolio_link(session))


@router.patch("/identity/links/{index}", response_model=PortfolioLink)
def patch_link(
    index: int,
    payload: PortfolioLinkUpdateRequest,
    session: UserSession = Depends(get_session),
) -> PortfolioLink:
    return identity.update_portfolio_link(session, index, name=payload.name, url=payload.url)


@router.delete("/identity/links/{index}", response_model=LinksResponse)
def delete_link(index: int, session: UserSession = Depends(get_session)) -> LinksResponse:
    return LinksResponse(portfolio_links=identity.remove_portfolio_link(session, index))


@router.get("/profiles", response_model=ProfileListResponse)
def list_profiles(session: UserSession = Depends(get_session)) -> ProfileListResponse:
    return ProfileListResponse(
        active_profile_id=session.identity.active_profile_id,
        profiles=session.identity.profiles,
    )


@router.post("/profiles", response_model=UserProfile)
def create_profile(session: UserSession = Depends(get_session)) -> UserProfile:
    return identity.add_profile(session)


@router.patch("/profiles/active", response_model=UserProfile)
def patch_active_profile(
    payload: ProfileUpdateRequest,
    session: UserSession = Depends(get_session),
) -> UserProfile:
    return identity.update_active_profile(session, **payload.model_dump(exclude_unset=True))


@router.post("/profiles/active/skills", response_model=list[str])
def add_skill(payload: SkillRequest, session: UserSession = Depends(get_session)) -> list[str]:
    return identity.add_skill(session, payload.skill)


@router.delete("/profiles/active/skills/{skill}", response_model=list[str])
def remove_skill(skill: str, session: UserSession = Depends(get_session)) -> list[str]:
    return identity.remove_skill(session, skill)


@router.post("/profiles/active/extract", response_model=ExtractResponse)
def extract_profile(
    payload: ExtractRequest,
    session: UserSession = Depends(get_session),
    llm: LLMRouter = Depends(get_router),
) -> ExtractResponse:
    extracted = identity.extract_profile_details(session, llm, bio_text=payload.bio_text)
    return ExtractResponse(extracted=extracted, profile=session.active_profile)


@router.post("/profiles/{profile_id}/select", response_model=UserProfile)
def select_profile(profile_id: str, session: UserSession = Depends(get_session)) -> UserProfile:
    return identity.select_profile(session, profile_id)


@router.delete("/profiles/{profile_id}", response_model=ProfileListResponse)
def delete_profile(
    profile_id: str,
    confirmed: bool = False,
    session: UserSession = Depends(get_session),
) -> ProfileListResponse:
    identity.remove_profile(session, profile_id, confirmed=confirmed)
    return ProfileListResponse(
        active_profile_id=session.identity.active_profile_id,
        profiles=session.identity.profiles,
    )


@router.post("/jobs/analyze", response_model=SavedJob)
def analyze_job(
    payload: AnalyzeRequest,
    session: UserSession = Depends(get_session),
    llm: LLMRouter = Depends(get_router),
) -> SavedJob:
    job = history.analyze_job(session, payload.raw_text, llm, client_name=payload.client_name)
    if job is None:
        raise HTTPException(status_code=502, detail=session.error or history.ANALYSIS_FAILED_MESSAGE)
    return job


@router.get("/jobs", response_model=list[LeadSummary])
def list_jobs(q: str | None = None, session: UserSession = Depends(get_session)) -> list[LeadSummary]:
    jobs = history.visible_history(session) if q is None else history.filter_history(session.history, q)
    return _lead_summaries(session, jobs)


@router.put("/jobs/search", response_model=list[LeadSummary])
def set_search(payload: SearchRequest, session: UserSession = Depends(get_session)) -> list[LeadSummary]:
    return _lead_summaries(session, history.set_search_term(session, payload.term))


@router.get("/jobs/summary", response_model=dict[str, int])
def jobs_summary(session: UserSession = Depends(get_session)) -> dict[str, int]:
    return history.pipeline_summary(session.history)


@router.post("/jobs/reset")
def reset_current_job(session: UserSession = Depends(get_session)) -> dict:
    history.reset_current(session)
    return {"ok": True}


@router.post("/jobs/archive/toggle", response_model=SelectionResponse)
def toggle_archive(session: UserSession = Depends(get_session)) -> SelectionResponse:
    history.toggle_archive_management(session)
    return _selection_response(session)


@router.post("/jobs/selection/all", response_model=SelectionResponse)
def toggle_select_all(session: UserSession = Depends(get_session)) -> SelectionResponse:
    history.toggle_select_all(session)
    return _selection_response(session)


@router.delete("/jobs/selection", response_model=DeleteResponse)
def delete_selection(confirmed: bool = False, session: UserSession = Depends(get_session)) -> DeleteResponse:
    return DeleteResponse(deleted=history.delete_selected_jobs(session, confirmed=confirmed))


@router.post("/jobs/selection/{job_id}", response_model=SelectionResponse)
def toggle_selection(job_id: str, session: UserSession = Depends(get_session)) -> SelectionResponse:
    history.toggle_job_selection(session, job_id)
    return _selection_response(session)


@router.post("/jobs/{job_id}/open", response_model=SavedJob)
def open_job(job_id: str, session: UserSession = Depends(get_session)) -> SavedJob:
    return history.open_job(session, job_id)


@router.put("/jobs/{job_id}/status", response_model=SavedJob)
def set_status(job_id: str, payload: StatusRequest, session: UserSession = Depends(get_session)) -> SavedJob:
    return history.set_job_status(session, job_id, payload.status)


@router.delete("/jobs/{job_id}", response_model=DeleteResponse)
def delete_job(job_id: str, confirmed: bool = False, session: UserSession = Depends(get_session)) -> DeleteResponse:
    history.delete_job(session, job_id, confirmed=confirmed)
    return DeleteResponse(deleted=1)


@router.post("/current/messages", response_model=ConversationResponse)
def add_message(
    payload: MessageRequest,
    session: UserSession = Depends(get_session),
    llm: LLMRouter = Depends(get_router),
) -> ConversationResponse:
    suggestion = conversation.add_client_message(session, payload.text, llm)
    return ConversationResponse(job=_current_job(session), suggestion=suggestion)


@router.post("/current/suggestion/accept", response_model=AcceptSuggestionResponse)
def accept_suggestion(session: UserSession = Depends(get_session)) -> AcceptSuggestionResponse:
    message = conversation.accept_suggestion(session)
    return AcceptSuggestionResponse(message=message, job=_current_job(session))


@router.delete("/current/suggestion")
def dismiss_suggestion(session: UserSession = Depends(get_session)) -> dict:
    conversation.dismiss_suggestion(session)
    return {"ok": True}


@router.get("/current/draft", response_model=DraftResponse)
def get_draft(session: UserSession = Depends(get_session)) -> DraftResponse:
    return _draft_response(session)


@router.put("/current/draft", response_model=DraftResponse)
def edit_draft(payload: DraftRequest, session: UserSession = Depends(get_session)) -> DraftResponse:
    drafting.edit_draft(session, payload.text)
    return _draft_response(session)


@router.post("/current/draft/flush", response_model=DraftResponse)
def flush_draft(session: UserSession = Depends(get_session)) -> DraftResponse:
    drafting.flush_draft(session, force=True)
    return _draft_response(session)


@router.post("/current/draft/regenerate", response_model=RegenerateResponse)
def regenerate_draft(
    payload: RegenerateRequest,
    session: UserSession = Depends(get_session),
    llm: LLMRouter = Depends(get_router),
) -> RegenerateResponse:
    text = drafting.regenerate_proposal(session, payload.tone, llm)
    return RegenerateResponse(regenerated=text is not None, draft=_draft_response(session))


def _current_job(session: UserSession) -> SavedJob:
    job = session.current_job
    if job is None:
        raise HTTPException(status_code=404, detail="No lead is open.")
    return job
