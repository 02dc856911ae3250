from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError as SchemaError
from sqlalchemy import select
from sqlalchemy.orm import Session

from pitchdesk.config import Settings, get_settings
from pitchdesk.db.models import StorageItem
from pitchdesk.errors import AccountUnreadable
from pitchdesk.types import UserAccount

logger = logging.getLogger(__name__)


class LocalStorage:
    """String key/value store with the same surface as browser local storage."""

    def __init__(self, session: Session):
        self.session = session

    def get_item(self, key: str) -> str | None:
        item = self.session.get(StorageItem, key)
        if item is None:
            return None
        return item.value

    def set_item(self, key: str, value: str) -> None:
        item = self.session.get(StorageItem, key)
        if item is None:
            self.session.add(StorageItem(key=key, value=value))
        else:
            item.value = value
        self.session.commit()

    def remove_item(self, key: str) -> None:
        item = self.session.get(StorageItem, key)
        if item is None:
            return
        self.session.delete(item)
        self.session.commit()

    def keys(self) -> list[str]:
        return list(self.session.scalars(select(StorageItem.key).order_by(StorageItem.key)).all())


class AccountRepository:
    """Account records under one JSON mapping key plus a logged-in pointer key."""

    def __init__(self, session: Session, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.storage = LocalStorage(session)

    @property
    def users_key(self) -> str:
        return self.settings.storage_users_key

    @property
    def session_key(self) -> str:
        return self.settings.storage_session_key

    def load_users(self) -> dict[str, dict[str, Any]]:
        raw = self.storage.get_item(self.users_key)
        if not raw:
            return {}
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Stored account mapping is not valid JSON; treating as empty")
            return {}
        return value if isinstance(value, dict) else {}

    def exists(self, username: str) -> bool:
        return username in self.load_users()

    def get_account(self, username: str) -> UserAccount | None:
        record = self.load_users().get(username)
        if record is None:
            return None
        try:
            return UserAccount.model_validate({**record, "username": username})
        except SchemaError as exc:
            logger.error("Stored account %s could not be loaded: %s", username, exc)
            raise AccountUnreadable(username) from exc

    def save_account(self, account: UserAccount) -> None:
        users = self.load_users()
        users[account.username] = account.model_dump(mode="json", by_alias=True)
        self.storage.set_item(self.users_key, json.dumps(users, ensure_ascii=False))

    def get_session_username(self) -> str | None:
        return self.storage.get_item(self.session_key) or None

    def set_session_username(self, username: str) -> None:
        self.storage.set_item(self.session_key, username)

    def clear_session_username(self) -> None:
        self.storage.remove_item(self.session_key)
