from __future__ import annotations

import pytest
from pydantic import ValidationError

from pitchdesk.types import (
    AnalysisResult,
    SavedJob,
    UserAccount,
    UserIdentity,
    UserProfile,
    default_identity,
    generate_id,
    merge_skills,
)


def test_merge_skills_is_a_union_without_duplicates() -> None:
    assert merge_skills(["React", "CSS"], ["CSS", " Node.js ", "", "React"]) == ["React", "CSS", "Node.js"]


def test_profile_skills_are_deduplicated_on_load() -> None:
    profile = UserProfile(id="p1", your_profile_skills=["Go", "Go", "Rust"])
    assert profile.your_profile_skills == ["Go", "Rust"]


def test_default_identity_has_one_general_profile() -> None:
    identity = default_identity()
    assert [p.label for p in identity.profiles] == ["General Profile"]
    assert identity.active_profile_id == identity.profiles[0].id
    assert identity.preferred_tone == "professional"


def test_identity_requires_at_least_one_profile() -> None:
    with pytest.raises(ValidationError):
        UserIdentity(profiles=[], activeProfileId="main")


def test_analysis_rejects_confidence_outside_unit_interval(make_analysis) -> None:
    with pytest.raises(ValidationError):
        AnalysisResult.model_validate(make_analysis(confidence=1.4))


def test_analysis_requires_core_fields(make_analysis) -> None:
    payload = make_analysis()
    del payload["structured_reasons"]
    with pytest.raises(ValidationError):
        AnalysisResult.model_validate(payload)


def test_saved_job_uses_stored_field_names(make_analysis) -> None:
    job = SavedJob(
        id="abc",
        timestamp=1,
        job_title="Title",
        raw_text="raw",
        analysis=AnalysisResult.model_validate(make_analysis()),
    )
    stored = job.model_dump(mode="json", by_alias=True)
    assert {"jobTitle", "clientName", "rawText", "editedProposal"} <= set(stored)
    assert stored["clientName"] == "Client"
    assert stored["status"] == "lead"


def test_old_account_record_without_optional_fields_loads(make_analysis) -> None:
    record = {
        "username": "bob",
        "password": "pw",
        "identity": {
            "profiles": [{"id": "main", "label": "General Profile", "your_profile_skills": []}],
            "activeProfileId": "main",
            "portfolio_links": [],
            "preferred_tone": "friendly",
        },
        "history": [
            {
                "id": "j1",
                "timestamp": 5,
                "jobTitle": "Old job",
                "clientName": "Client",
                "rawText": "text",
                "analysis": make_analysis(proposal=None),
                "messages": [],
                "status": "applied",
            }
        ],
    }
    account = UserAccount.model_validate(record)
    job = account.history[0]
    assert job.edited_proposal is None
    assert job.draft_text() == ""
    assert account.identity.previous_proposals is None


def test_draft_text_prefers_edited_proposal(make_analysis) -> None:
    job = SavedJob(
        id="abc",
        job_title="Title",
        raw_text="raw",
        analysis=AnalysisResult.model_validate(make_analysis()),
    )
    assert job.draft_text().startswith("Hi, I read your post")
    job.edited_proposal = "My own version"
    assert job.draft_text() == "My own version"


def test_generate_id_avoids_existing_ids() -> None:
    taken = {generate_id() for _ in range(20)}
    new_id = generate_id(taken)
    assert new_id not in taken
    assert len(new_id) == 9
