from __future__ import annotations

import logging
import secrets
from collections.abc import Callable

from sqlalchemy.orm import Session

from pitchdesk.config import Settings, get_settings
from pitchdesk.core.drafting import flush_draft
from pitchdesk.core.session import UserSession
from pitchdesk.db.repositories import AccountRepository
from pitchdesk.db.session import SessionLocal
from pitchdesk.errors import AccountUnreadable, DuplicateUsername, InvalidCredentials, ValidationError
from pitchdesk.types import UserAccount, default_identity

logger = logging.getLogger(__name__)


class AccountStore:
    """Sign-up, login and logout against the durable account mapping.

    Passwords are kept and compared in plain text. Saves overwrite the whole
    account record with no version check, so two sessions for one user
    overwrite each other (last writer wins).
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        settings: Settings | None = None,
    ):
        self.session_factory = session_factory
        self.settings = settings or get_settings()

    def sign_up(self, username: str, password: str) -> UserSession:
        _require_credentials(username, password)
        with self.session_factory() as db:
            repo = AccountRepository(db, self.settings)
            if repo.exists(username):
                raise DuplicateUsername(username)

            account = UserAccount(
                username=username,
                password=password,
                identity=default_identity(),
                history=[],
            )
            repo.save_account(account)
            repo.set_session_username(username)

        logger.info("Created account username=%s", username)
        return self._open(account)

    def login(self, username: str, password: str) -> UserSession:
        with self.session_factory() as db:
            repo = AccountRepository(db, self.settings)
            account = repo.get_account(username)
            if account is None or not secrets.compare_digest(
                account.password.encode("utf-8"), password.encode("utf-8")
            ):
                logger.info("Rejected login username=%s", username)
                raise InvalidCredentials()
            repo.set_session_username(username)

        logger.info("Logged in username=%s", username)
        return self._open(account)

    def restore(self) -> UserSession | None:
        """Reopen the session recorded by the logged-in pointer, if any."""
        with self.session_factory() as db:
            repo = AccountRepository(db, self.settings)
            username = repo.get_session_username()
            if not username:
                return None
            try:
                account = repo.get_account(username)
            except AccountUnreadable:
                logger.warning("Not restoring unreadable account username=%s", username)
                return None

        if account is None:
            logger.warning("Session pointer names unknown account username=%s", username)
            return None
        return self._open(account)

    def logout(self, session: UserSession | None = None) -> None:
        if session is not None:
            # An edit that has already gone idle counts as saved.
            flush_draft(session)
        with self.session_factory() as db:
            AccountRepository(db, self.settings).clear_session_username()
        if session is not None:
            logger.info("Logged out username=%s", session.username)
            session.clear_view_state()
            session.on_change = None

    def save(self, account: UserAccount) -> None:
        with self.session_factory() as db:
            AccountRepository(db, self.settings).save_account(account)

    def load(self, username: str) -> UserAccount | None:
        with self.session_factory() as db:
            return AccountRepository(db, self.settings).get_account(username)

    def _open(self, account: UserAccount) -> UserSession:
        return UserSession(
            account=account,
            on_change=self.save,
            debounce_sec=self.settings.draft_debounce_sec,
        )


def _require_credentials(username: str, password: str) -> None:
    if not username.strip():
        raise ValidationError("Username is required.")
    if not password:
        raise ValidationError("Password is required.")
