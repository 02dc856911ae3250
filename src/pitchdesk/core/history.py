from __future__ import annotations

import logging
from typing import Protocol

from pitchdesk.core.session import UserSession
from pitchdesk.errors import ConfirmationRequired, ExternalServiceFailure, ValidationError
from pitchdesk.llm.router import describe_request
from pitchdesk.types import (
    JOB_STATUSES,
    AnalysisResult,
    JobInput,
    SavedJob,
    generate_id,
    now_ms,
)

logger = logging.getLogger(__name__)

ANALYSIS_FAILED_MESSAGE = "Analysis failed. Try checking your API key or job text."
DEFAULT_CLIENT_NAME = "Client"
DELETE_LEAD_PROMPT = "Permanently remove this lead from archive?"


class JobAnalyzer(Protocol):
    def analyze_job_posting(self, job_input: JobInput) -> AnalysisResult: ...


def build_job_input(session: UserSession, raw_text: str) -> JobInput:
    identity = session.identity
    return JobInput(
        raw_text=raw_text,
        active_profile=session.active_profile,
        previous_proposals=identity.previous_proposals,
        portfolio_links=list(identity.portfolio_links),
        preferred_tone=identity.preferred_tone,
    )


def analyze_job(
    session: UserSession,
    raw_text: str,
    analyzer: JobAnalyzer,
    *,
    client_name: str = DEFAULT_CLIENT_NAME,
) -> SavedJob | None:
    """Analyze a pasted posting and file it as a new lead at the head of history.

    Returns None when the service fails; ``session.error`` then carries the
    message to show and history is left alone.
    """
    if not raw_text.strip():
        raise ValidationError("Job text is required.")

    job_input = build_job_input(session, raw_text)
    session.loading = True
    session.error = None
    try:
        analysis = analyzer.analyze_job_posting(job_input)
    except ExternalServiceFailure:
        logger.exception("Job analysis failed username=%s request=%s", session.username, describe_request(job_input))
        session.error = ANALYSIS_FAILED_MESSAGE
        return None
    finally:
        session.loading = False

    history = session.history
    timestamp = now_ms()
    if history:
        timestamp = max(timestamp, history[0].timestamp)

    job = SavedJob(
        id=generate_id({j.id for j in history}),
        timestamp=timestamp,
        job_title=analysis.job_title,
        client_name=client_name or DEFAULT_CLIENT_NAME,
        raw_text=raw_text,
        analysis=analysis,
        messages=[],
        status="lead",
        edited_proposal=analysis.cover_letter,
    )
    history.insert(0, job)
    session.commit()

    _show(session, job)
    logger.info(
        "Filed lead id=%s recommendation=%s score=%s",
        job.id,
        analysis.apply_recommendation,
        analysis.opportunity_score,
    )
    return job


def get_job(session: UserSession, job_id: str) -> SavedJob | None:
    for job in session.history:
        if job.id == job_id:
            return job
    return None


def update_job(session: UserSession, job: SavedJob) -> bool:
    """Replace the history entry with the same id. Unknown ids are ignored."""
    history = session.history
    for index, existing in enumerate(history):
        if existing.id == job.id:
            history[index] = job
            break
    else:
        logger.debug("update_job ignored unknown id=%s", job.id)
        return False

    session.commit()
    if session.current_job_id == job.id:
        session.current_result = job.analysis
    return True


def set_job_status(session: UserSession, job_id: str, status: str) -> SavedJob:
    if status not in JOB_STATUSES:
        raise ValidationError(f"unsupported status '{status}'")
    job = _require_job(session, job_id)
    updated = job.model_copy(update={"status": status})
    update_job(session, updated)
    return updated


def open_job(session: UserSession, job_id: str) -> SavedJob:
    job = _require_job(session, job_id)
    commit_pending_draft(session)
    session.selected_job_ids = set()
    _show(session, job)
    return job


def reset_current(session: UserSession) -> None:
    commit_pending_draft(session)
    session.current_job_id = None
    session.current_result = None
    session.suggestion = None
    session.draft.clear()


def commit_pending_draft(session: UserSession) -> bool:
    """Write an unsaved draft edit back to its lead, if one is waiting."""
    draft = session.draft
    if not draft.pending:
        return False

    draft.last_edit_at = None
    job = get_job(session, draft.job_id)
    if job is None or job.edited_proposal == draft.text:
        return False
    return update_job(session, job.model_copy(update={"edited_proposal": draft.text}))


def filter_history(history: list[SavedJob], term: str) -> list[SavedJob]:
    needle = term.lower()
    return [
        job
        for job in history
        if needle in job.job_title.lower() or needle in job.client_name.lower()
    ]


def visible_history(session: UserSession) -> list[SavedJob]:
    return filter_history(session.history, session.search_term)


def set_search_term(session: UserSession, term: str) -> list[SavedJob]:
    session.search_term = term
    return visible_history(session)


def toggle_archive_management(session: UserSession) -> bool:
    session.managing_archive = not session.managing_archive
    session.selected_job_ids = set()
    return session.managing_archive


def toggle_job_selection(session: UserSession, job_id: str) -> set[str]:
    if job_id in session.selected_job_ids:
        session.selected_job_ids.discard(job_id)
    else:
        session.selected_job_ids.add(job_id)
    return session.selected_job_ids


def select_job(session: UserSession, job_id: str) -> set[str]:
    _require_job(session, job_id)
    session.selected_job_ids.add(job_id)
    return session.selected_job_ids


def toggle_select_all(session: UserSession) -> set[str]:
    visible_ids = {job.id for job in visible_history(session)}
    if session.selected_job_ids == visible_ids:
        session.selected_job_ids = set()
    else:
        session.selected_job_ids = visible_ids
    return session.selected_job_ids


def delete_selected_jobs(session: UserSession, *, confirmed: bool = False) -> int:
    selected = set(session.selected_job_ids)
    if not selected:
        return 0
    if not confirmed:
        raise ConfirmationRequired(f"Delete {len(selected)} selected leads?")

    before = len(session.history)
    session.account.history = [job for job in session.history if job.id not in selected]
    removed = before - len(session.account.history)
    session.commit()

    if session.current_job_id in selected:
        _hide(session)
    session.selected_job_ids = set()
    session.managing_archive = False
    logger.info("Deleted %d leads username=%s", removed, session.username)
    return removed


def delete_job(session: UserSession, job_id: str, *, confirmed: bool = False) -> None:
    _require_job(session, job_id)
    if not confirmed:
        raise ConfirmationRequired(DELETE_LEAD_PROMPT)

    session.account.history = [job for job in session.history if job.id != job_id]
    session.selected_job_ids.discard(job_id)
    session.commit()
    if session.current_job_id == job_id:
        _hide(session)


def pipeline_summary(history: list[SavedJob]) -> dict[str, int]:
    counts = {status: 0 for status in JOB_STATUSES}
    for job in history:
        counts[job.status] += 1
    return counts


def _require_job(session: UserSession, job_id: str) -> SavedJob:
    job = get_job(session, job_id)
    if job is None:
        raise ValidationError(f"lead {job_id} not found")
    return job


def _show(session: UserSession, job: SavedJob) -> None:
    session.current_job_id = job.id
    session.current_result = job.analysis
    session.suggestion = None
    session.draft.load(job)


def _hide(session: UserSession) -> None:
    session.current_job_id = None
    session.current_result = None
    session.suggestion = None
    session.draft.clear()
