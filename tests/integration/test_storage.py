from __future__ import annotations

import json

from pitchdesk.config import get_settings
from pitchdesk.db.init import init_database
from pitchdesk.db.repositories import AccountRepository, LocalStorage
from pitchdesk.db.session import SessionLocal
from pitchdesk.types import AnalysisResult, SavedJob, UserAccount, default_identity


def test_init_database_creates_storage_table() -> None:
    assert "storage_items" in init_database()["tables"]


def test_local_storage_round_trip() -> None:
    with SessionLocal() as db:
        storage = LocalStorage(db)
        assert storage.get_item("missing") is None

        storage.set_item("a", "1")
        storage.set_item("a", "2")
        storage.set_item("b", "x")
        assert storage.get_item("a") == "2"
        assert storage.keys() == ["a", "b"]

        storage.remove_item("a")
        storage.remove_item("a")
        assert storage.keys() == ["b"]


def test_accounts_live_under_a_single_json_mapping() -> None:
    settings = get_settings()
    with SessionLocal() as db:
        repo = AccountRepository(db)
        repo.save_account(UserAccount(username="alice", password="pw1", identity=default_identity()))
        repo.save_account(UserAccount(username="bob", password="pw2", identity=default_identity()))

        raw = LocalStorage(db).get_item(settings.storage_users_key)

    users = json.loads(raw)
    assert set(users) == {"alice", "bob"}
    assert users["alice"]["password"] == "pw1"
    assert users["alice"]["identity"]["activeProfileId"] == "main"


def test_saved_jobs_use_camel_case_keys(make_analysis) -> None:
    job = SavedJob(
        id="abc123def",
        timestamp=1,
        job_title="Logo",
        raw_text="Need a logo",
        analysis=AnalysisResult.model_validate(make_analysis()),
    )
    account = UserAccount(username="alice", password="pw1", identity=default_identity(), history=[job])
    with SessionLocal() as db:
        repo = AccountRepository(db)
        repo.save_account(account)
        record = repo.load_users()["alice"]["history"][0]
        loaded = repo.get_account("alice")

    assert record["jobTitle"] == "Logo"
    assert record["rawText"] == "Need a logo"
    assert record["clientName"] == "Client"
    assert loaded.history[0].job_title == "Logo"


def test_corrupt_mapping_reads_as_empty() -> None:
    with SessionLocal() as db:
        LocalStorage(db).set_item(get_settings().storage_users_key, "{not json")
        repo = AccountRepository(db)
        assert repo.load_users() == {}
        assert repo.get_account("alice") is None


def test_old_records_without_new_fields_still_load(make_analysis) -> None:
    old_record = {
        "password": "pw1",
        "identity": {
            "profiles": [{"id": "main", "label": "General Profile"}],
            "activeProfileId": "main",
        },
        "history": [
            {
                "id": "legacy0001",
                "timestamp": 1700000000000,
                "jobTitle": "Old lead",
                "rawText": "posting",
                "analysis": make_analysis(proposal=None),
            }
        ],
    }
    with SessionLocal() as db:
        LocalStorage(db).set_item(get_settings().storage_users_key, json.dumps({"alice": old_record}))
        account = AccountRepository(db).get_account("alice")

    assert account is not None
    assert account.identity.preferred_tone == "professional"
    assert account.history[0].status == "lead"
    assert account.history[0].messages == []


def test_session_pointer() -> None:
    with SessionLocal() as db:
        repo = AccountRepository(db)
        assert repo.get_session_username() is None
        repo.set_session_username("alice")
        assert repo.get_session_username() == "alice"
        repo.clear_session_username()
        assert repo.get_session_username() is None
