from __future__ import annotations

from pitchdesk.core.accounts import AccountStore
from pitchdesk.core.drafting import flush_draft
from pitchdesk.core.session import UserSession
from pitchdesk.llm.router import LLMRouter

_ACCOUNT_STORE: AccountStore | None = None
_ROUTER: LLMRouter | None = None
_SESSION: UserSession | None = None
_RESTORED = False


def get_account_store() -> AccountStore:
    global _ACCOUNT_STORE
    if _ACCOUNT_STORE is None:
        _ACCOUNT_STORE = AccountStore()
    return _ACCOUNT_STORE


def get_router() -> LLMRouter:
    global _ROUTER
    if _ROUTER is None:
        _ROUTER = LLMRouter()
    return _ROUTER


def get_current_session() -> UserSession | None:
    """The single logged-in session, reopened from storage on first use."""
    global _SESSION, _RESTORED
    if _SESSION is None and not _RESTORED:
        _RESTORED = True
        _SESSION = get_account_store().restore()
    return _SESSION


def flush_current_session() -> None:
    """Persist an idle draft edit of the current session before it is replaced."""
    if _SESSION is not None:
        flush_draft(_SESSION)


def set_current_session(session: UserSession | None) -> None:
    global _SESSION, _RESTORED
    _SESSION = session
    _RESTORED = True


def reset_runtime() -> None:
    global _ACCOUNT_STORE, _ROUTER, _SESSION, _RESTORED
    _ACCOUNT_STORE = None
    _ROUTER = None
    _SESSION = None
    _RESTORED = False
