from __future__ import annotations

from pitchdesk.core import runtime
from pitchdesk.core.accounts import AccountStore
from pitchdesk.core.drafting import flush_draft
from pitchdesk.core.session import UserSession
from pitchdesk.errors import NotLoggedIn
from pitchdesk.llm.router import LLMRouter


def get_account_store() -> AccountStore:
    return runtime.get_account_store()


def get_router() -> LLMRouter:
    return runtime.get_router()


def get_session() -> UserSession:
    session = runtime.get_current_session()
    if session is None:
        raise NotLoggedIn()
    # Debounced draft edits are written on the first request after the idle window.
    flush_draft(session)
    return session
