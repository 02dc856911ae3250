from __future__ import annotations

import pytest
from typer.testing import CliRunner

from pitchdesk.cli.app import app
from pitchdesk.core import runtime

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_router(monkeypatch, fake_router):
    monkeypatch.setattr(runtime, "get_router", lambda: fake_router)
    return fake_router


def _signup() -> None:
    result = runner.invoke(app, ["signup", "--username", "alice", "--password", "pw1"])
    assert result.exit_code == 0, result.output


def test_signup_and_whoami() -> None:
    _signup()
    result = runner.invoke(app, ["whoami"])
    assert result.exit_code == 0
    assert '"username": "alice"' in result.output
    assert '"label": "General Profile"' in result.output


def test_duplicate_signup_exits_with_error() -> None:
    _signup()
    result = runner.invoke(app, ["signup", "--username", "alice", "--password", "pw1"])
    assert result.exit_code == 1
    assert "Username already exists." in result.output


def test_commands_need_login() -> None:
    result = runner.invoke(app, ["history", "list"])
    assert result.exit_code == 1
    assert "Not logged in" in result.output


def test_analyze_list_and_delete(tmp_path) -> None:
    _signup()
    posting = tmp_path / "job.txt"
    posting.write_text("Senior React Developer, $50/hr", encoding="utf-8")

    result = runner.invoke(app, ["analyze", "--file", str(posting), "--client", "Acme"])
    assert result.exit_code == 0, result.output
    assert '"apply_recommendation": "apply"' in result.output

    session = runtime.get_current_session()
    job_id = session.history[0].id

    listing = runner.invoke(app, ["history", "list", "--search", "acme"])
    assert job_id in listing.output

    declined = runner.invoke(app, ["lead", "delete", job_id], input="n\n")
    assert declined.exit_code == 1
    assert len(session.history) == 1

    deleted = runner.invoke(app, ["lead", "delete", job_id], input="y\n")
    assert deleted.exit_code == 0
    assert session.history == []


def test_analysis_failure_reports_message(tmp_path, cli_router) -> None:
    _signup()
    cli_router.analysis = None
    posting = tmp_path / "job.txt"
    posting.write_text("posting", encoding="utf-8")

    result = runner.invoke(app, ["analyze", "--file", str(posting)])
    assert result.exit_code == 2
    assert "Analysis failed." in result.output


def _analyze(tmp_path, text: str, client: str) -> str:
    posting = tmp_path / "job.txt"
    posting.write_text(text, encoding="utf-8")
    result = runner.invoke(app, ["analyze", "--file", str(posting), "--client", client])
    assert result.exit_code == 0, result.output
    return runtime.get_current_session().history[0].id


def test_history_delete_combines_search_and_explicit_ids(tmp_path) -> None:
    _signup()
    acme_one = _analyze(tmp_path, "first", "Acme")
    _analyze(tmp_path, "second", "Acme")
    other = _analyze(tmp_path, "third", "Other Co")
    keep = _analyze(tmp_path, "fourth", "Keep Ltd")

    result = runner.invoke(app, ["history", "delete", "--all-matching", "acme", "--yes", acme_one, other])

    assert result.exit_code == 0, result.output
    assert '"deleted": 3' in result.output
    assert [job.id for job in runtime.get_current_session().history] == [keep]


def test_history_delete_rejects_unknown_ids(tmp_path) -> None:
    _signup()
    job_id = _analyze(tmp_path, "first", "Acme")

    result = runner.invoke(app, ["history", "delete", "--yes", job_id, "missing-id"])

    assert result.exit_code == 1
    assert "lead missing-id not found" in result.output
    assert [job.id for job in runtime.get_current_session().history] == [job_id]
