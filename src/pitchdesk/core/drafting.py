from __future__ import annotations

import logging
import time
from typing import Protocol

from pitchdesk.core.history import commit_pending_draft, get_job, update_job
from pitchdesk.core.session import UserSession
from pitchdesk.errors import ExternalServiceFailure, ValidationError
from pitchdesk.types import PROPOSAL_TONES, SavedJob

logger = logging.getLogger(__name__)


class ProposalWriter(Protocol):
    def regenerate_proposal(
        self,
        job: SavedJob,
        tone: str,
        bio: str | None = None,
        samples: str | None = None,
    ) -> str: ...


def current_draft(session: UserSession) -> str:
    job = session.current_job
    if job is None:
        return ""
    if session.draft.job_id != job.id:
        session.draft.load(job)
    return session.draft.text


def edit_draft(session: UserSession, text: str, *, now: float | None = None) -> None:
    """Record a keystroke-level edit. Nothing is written until the draft goes idle."""
    job = session.current_job
    if job is None:
        raise ValidationError("No lead is open.")
    if session.draft.job_id != job.id:
        session.draft.load(job)

    session.draft.text = text
    session.draft.last_edit_at = time.monotonic() if now is None else now


def flush_draft(session: UserSession, *, now: float | None = None, force: bool = False) -> bool:
    """Persist the pending edit once ``debounce_sec`` has passed since the last one."""
    draft = session.draft
    if not draft.pending:
        return False
    if not force:
        current = time.monotonic() if now is None else now
        if current - draft.last_edit_at < session.debounce_sec:
            return False
    return commit_pending_draft(session)


def regenerate_proposal(session: UserSession, tone: str, writer: ProposalWriter) -> str | None:
    if tone not in PROPOSAL_TONES:
        raise ValidationError(f"unsupported tone '{tone}'")
    job = session.current_job
    if job is None:
        raise ValidationError("No lead is open.")

    try:
        text = writer.regenerate_proposal(
            job,
            tone,
            bio=session.active_profile.upwork_profile_text,
            samples=session.identity.previous_proposals,
        )
    except ExternalServiceFailure as exc:
        logger.warning("Proposal regeneration failed job=%s tone=%s: %s", job.id, tone, exc)
        return None

    target = get_job(session, job.id) or job
    if session.draft.job_id == target.id:
        session.draft.text = text
        session.draft.last_edit_at = None
    update_job(session, target.model_copy(update={"edited_proposal": text}))
    return text


def word_count(text: str) -> int:
    return len(text.split())
