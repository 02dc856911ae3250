from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from pitchdesk.types import AnalysisResult, SavedJob, UserAccount, UserIdentity, UserProfile


@dataclass(slots=True)
class DraftBuffer:
    """Editable proposal text for the current lead, plus the time of the last unsaved edit."""

    job_id: str | None = None
    text: str = ""
    last_edit_at: float | None = None

    @property
    def pending(self) -> bool:
        return self.job_id is not None and self.last_edit_at is not None

    def load(self, job: SavedJob) -> None:
        self.job_id = job.id
        self.text = job.draft_text()
        self.last_edit_at = None

    def clear(self) -> None:
        self.job_id = None
        self.text = ""
        self.last_edit_at = None


@dataclass
class UserSession:
    """Everything that belongs to one logged-in user between login and logout.

    ``account`` is the durable part; every mutation of it must be followed by
    ``commit()``, which hands the whole record to ``on_change`` for a full
    overwrite in storage. The remaining fields are view state and are never
    persisted.
    """

    account: UserAccount
    on_change: Callable[[UserAccount], None] | None = None
    debounce_sec: float = 1.0

    current_job_id: str | None = None
    current_result: AnalysisResult | None = None
    selected_job_ids: set[str] = field(default_factory=set)
    search_term: str = ""
    managing_archive: bool = False
    editing_profile: bool = False
    loading: bool = False
    error: str | None = None
    suggestion: str | None = None
    draft: DraftBuffer = field(default_factory=DraftBuffer)

    @property
    def username(self) -> str:
        return self.account.username

    @property
    def identity(self) -> UserIdentity:
        return self.account.identity

    @property
    def history(self) -> list[SavedJob]:
        return self.account.history

    @property
    def active_profile(self) -> UserProfile:
        return self.account.identity.active_profile()

    @property
    def current_job(self) -> SavedJob | None:
        if self.current_job_id is None:
            return None
        for job in self.account.history:
            if job.id == self.current_job_id:
                return job
        return None

    def commit(self) -> None:
        if self.on_change is not None:
            self.on_change(self.account)

    def clear_view_state(self) -> None:
        self.current_job_id = None
        self.current_result = None
        self.selected_job_ids = set()
        self.search_term = ""
        self.managing_archive = False
        self.editing_profile = False
        self.loading = False
        self.error = None
        self.suggestion = None
        self.draft.clear()
