from __future__ import annotations

import logging
from typing import Protocol

from pitchdesk.core.history import update_job
from pitchdesk.core.session import UserSession
from pitchdesk.errors import ExternalServiceFailure, ValidationError
from pitchdesk.types import Message, SavedJob

logger = logging.getLogger(__name__)


class FollowUpCoach(Protocol):
    def suggest_follow_up(self, job: SavedJob) -> str: ...


def add_client_message(session: UserSession, text: str, coach: FollowUpCoach) -> str | None:
    """Log a client reply on the current lead and ask for a suggested answer.

    The message is stored before the suggestion is requested, so a failed
    request still leaves it in the thread. The suggestion itself stays in
    the session until accepted or dismissed.
    """
    if not text.strip():
        raise ValidationError("Message text is required.")
    job = _require_current_job(session)

    updated = job.model_copy(update={"messages": [*job.messages, Message(role="client", text=text)]})
    update_job(session, updated)
    session.suggestion = None

    try:
        suggestion = coach.suggest_follow_up(updated)
    except ExternalServiceFailure as exc:
        logger.warning("Follow-up suggestion failed job=%s: %s", updated.id, exc)
        return None

    # The user may have opened another lead while the request was running.
    if session.current_job_id != updated.id:
        logger.info("Dropping follow-up suggestion for job=%s; no longer current", updated.id)
        return None
    session.suggestion = suggestion
    return suggestion


def accept_suggestion(session: UserSession) -> Message:
    if not session.suggestion:
        raise ValidationError("There is no suggestion to accept.")
    job = _require_current_job(session)

    message = Message(role="me", text=session.suggestion)
    update_job(session, job.model_copy(update={"messages": [*job.messages, message]}))
    session.suggestion = None
    return message


def dismiss_suggestion(session: UserSession) -> None:
    session.suggestion = None


def _require_current_job(session: UserSession) -> SavedJob:
    job = session.current_job
    if job is None:
        raise ValidationError("No lead is open.")
    return job
