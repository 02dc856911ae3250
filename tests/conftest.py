from __future__ import annotations

import os
import tempfile
from pathlib import Path

_TEST_DIR = Path(tempfile.mkdtemp(prefix="pitchdesk-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR / 'pitchdesk.db'}"
os.environ["DATA_DIR"] = str(_TEST_DIR)
os.environ["APP_ENV"] = "test"
os.environ["OPENAI_API_KEY"] = ""
os.environ["LOCAL_LLM_ENABLED"] = "false"

import pytest  # noqa: E402

from pitchdesk.core import runtime  # noqa: E402
from pitchdesk.core.session import UserSession  # noqa: E402
from pitchdesk.db.base import Base  # noqa: E402
from pitchdesk.db import models  # noqa: E402,F401
from pitchdesk.db.session import engine  # noqa: E402
from pitchdesk.errors import ExternalServiceFailure  # noqa: E402
from pitchdesk.types import (  # noqa: E402
    AnalysisResult,
    ExtractedProfile,
    JobInput,
    SavedJob,
    UserAccount,
    default_identity,
)


def analysis_payload(**overrides) -> dict:
    payload = {
        "apply_recommendation": "apply",
        "confidence": 0.82,
        "opportunity_score": 74,
        "job_title": "Senior React Developer",
        "red_flags": [{"title": "Vague scope", "severity": "medium", "explanation": "No milestones"}],
        "green_flags": [{"title": "Payment verified", "importance": "high", "explanation": "Verified"}],
        "detailed_report": "Solid client with a clear stack.",
        "opinion": "Worth a proposal.",
        "proposal": {
            "cover_letter": "Hi, I read your post about the React dashboard. Which charts matter most?",
            "proposed_budget": None,
            "proposed_rate_text": "$50/hr",
            "suggested_first_message": "Quick question about your data source.",
        },
        "analytics": {
            "flag_counts": {"red": 1, "green": 1},
            "risk_factors": [{"factor": "Scope", "score": 40, "notes": "Unclear"}],
            "skill_match": [{"skill": "React", "match_score": 95, "status": "expert"}],
            "client_metrics": {"responsiveness": 70, "generosity": 60, "clarity": 55},
        },
        "structured_reasons": ["Stack matches", "Budget fits"],
        "missing_info_sensitivity": [],
    }
    payload.update(overrides)
    return payload


class FakeRouter:
    """Stand-in for LLMRouter that records calls and replays canned results."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.analysis: dict | None = analysis_payload()
        self.extracted: ExtractedProfile | None = ExtractedProfile(
            name="Alice Smith",
            headline="React and Node engineer",
            skills=["React", "Node.js"],
            rate="$60/hr",
        )
        self.proposal_text: str | None = "Rewritten proposal text."
        self.suggestion_text: str | None = "Monday works. Should I set up the repo access first?"

    def analyze_job_posting(self, job_input: JobInput) -> AnalysisResult:
        self.calls.append(("analyze", {"job_input": job_input}))
        if self.analysis is None:
            raise ExternalServiceFailure("analysis", "boom")
        return AnalysisResult.model_validate(self.analysis)

    def extract_profile_details(self, bio_text: str) -> ExtractedProfile:
        self.calls.append(("extract", {"bio_text": bio_text}))
        if self.extracted is None:
            raise ExternalServiceFailure("extract", "boom")
        return self.extracted

    def regenerate_proposal(self, job: SavedJob, tone: str, bio=None, samples=None) -> str:
        self.calls.append(("regenerate", {"job": job, "tone": tone, "bio": bio, "samples": samples}))
        if self.proposal_text is None:
            raise ExternalServiceFailure("writer", "boom")
        return self.proposal_text

    def suggest_follow_up(self, job: SavedJob) -> str:
        self.calls.append(("suggest", {"job": job}))
        if self.suggestion_text is None:
            raise ExternalServiceFailure("coach", "boom")
        return self.suggestion_text


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    runtime.reset_runtime()
    yield
    runtime.reset_runtime()


@pytest.fixture
def fake_router() -> FakeRouter:
    return FakeRouter()


@pytest.fixture
def saved_accounts() -> list[UserAccount]:
    return []


@pytest.fixture
def session(saved_accounts: list[UserAccount]) -> UserSession:
    account = UserAccount(username="alice", password="pw1", identity=default_identity(), history=[])
    return UserSession(
        account=account,
        on_change=lambda acc: saved_accounts.append(acc.model_copy(deep=True)),
        debounce_sec=1.0,
    )


@pytest.fixture
def make_analysis():
    return analysis_payload
