from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import typer
import uvicorn

from pitchdesk.config import get_settings
from pitchdesk.core import conversation, drafting, history, identity, runtime
from pitchdesk.core.session import UserSession
from pitchdesk.db.init import init_database
from pitchdesk.errors import ConfirmationRequired, PitchdeskError
from pitchdesk.logging_config import configure_logging
from pitchdesk.types import JOB_STATUSES, PROPOSAL_TONES

app = typer.Typer(help="Pitchdesk CLI")
profile_app = typer.Typer(help="Manage skill profiles and identity")
history_app = typer.Typer(help="Browse and prune the lead archive")
lead_app = typer.Typer(help="Work on a single lead")

app.add_typer(profile_app, name="profile")
app.add_typer(history_app, name="history")
app.add_typer(lead_app, name="lead")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    configure_logging()
    init_database()
    _INITIALIZED = True


@contextmanager
def handled() -> Iterator[None]:
    try:
        yield
    except PitchdeskError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def require_session() -> UserSession:
    ensure_initialized()
    session = runtime.get_current_session()
    if session is None:
        typer.echo("Not logged in. Run `pitchdesk login` first.", err=True)
        raise typer.Exit(code=1)
    return session


def confirm_and_retry(action):
    """Run a destructive action, asking the user when it needs confirmation."""
    try:
        return action(False)
    except ConfirmationRequired as exc:
        if not typer.confirm(exc.prompt, default=False):
            raise typer.Exit(code=1) from exc
        return action(True)


def _echo(payload) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


@app.command("init")
def init_cmd() -> None:
    """Create the data directory and storage tables."""
    configure_logging()
    result = init_database()
    _echo({"ok": True, **result})


@app.command("serve")
def serve(
    host: str = typer.Option(None, "--host"),
    port: int = typer.Option(None, "--port"),
) -> None:
    """Run the JSON API."""
    settings = get_settings()
    configure_logging()
    uvicorn.run(
        "pitchdesk.api.app:create_app",
        factory=True,
        host=host or settings.app_host,
        port=port or settings.app_port,
    )


@app.command("signup")
def signup(
    username: str = typer.Option(..., "--username", prompt=True),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, confirmation_prompt=True),
) -> None:
    ensure_initialized()
    runtime.flush_current_session()
    with handled():
        session = runtime.get_account_store().sign_up(username, password)
    runtime.set_current_session(session)
    _echo({"username": session.username, "profiles": len(session.identity.profiles)})


@app.command("login")
def login(
    username: str = typer.Option(..., "--username", prompt=True),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True),
) -> None:
    ensure_initialized()
    runtime.flush_current_session()
    with handled():
        session = runtime.get_account_store().login(username, password)
    runtime.set_current_session(session)
    _echo({"username": session.username, "leads": len(session.history)})


@app.command("logout")
def logout() -> None:
    ensure_initialized()
    runtime.get_account_store().logout(runtime.get_current_session())
    runtime.set_current_session(None)
    _echo({"ok": True})


@app.command("whoami")
def whoami() -> None:
    session = require_session()
    profile = session.active_profile
    _echo(
        {
            "username": session.username,
            "active_profile": {"id": profile.id, "label": profile.label},
            "preferred_tone": session.identity.preferred_tone,
            "leads": len(session.history),
        }
    )


@profile_app.command("list")
def profile_list() -> None:
    session = require_session()
    active_id = session.identity.active_profile_id
    _echo(
        [
            {
                "id": p.id,
                "label": p.label,
                "active": p.id == active_id,
                "skills": p.your_profile_skills,
            }
            for p in session.identity.profiles
        ]
    )


@profile_app.command("add")
def profile_add(label: str = typer.Option("", "--label")) -> None:
    session = require_session()
    with handled():
        profile = identity.add_profile(session)
        if label:
            profile = identity.update_active_profile(session, label=label)
    _echo(profile.model_dump())


@profile_app.command("select")
def profile_select(profile_id: str = typer.Argument(...)) -> None:
    session = require_session()
    with handled():
        profile = identity.select_profile(session, profile_id)
    _echo({"active_profile_id": profile.id, "label": profile.label})


@profile_app.command("remove")
def profile_remove(
    profile_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    session = require_session()
    with handled():
        if yes:
            identity.remove_profile(session, profile_id, confirmed=True)
        else:
            confirm_and_retry(lambda ok: identity.remove_profile(session, profile_id, confirmed=ok))
    _echo({"active_profile_id": session.identity.active_profile_id})


@profile_app.command("update")
def profile_update(
    label: str = typer.Option(None, "--label"),
    name: str = typer.Option(None, "--name"),
    headline: str = typer.Option(None, "--headline"),
    rate: str = typer.Option(None, "--rate"),
    bio_file: Path = typer.Option(None, "--bio-file", exists=True, readable=True),
) -> None:
    session = require_session()
    fields = {
        "label": label,
        "profile_name": name,
        "profile_headline": headline,
        "your_rate_preferences": rate,
        "upwork_profile_text": bio_file.read_text(encoding="utf-8") if bio_file else None,
    }
    with handled():
        profile = identity.update_active_profile(session, **{k: v for k, v in fields.items() if v is not None})
    _echo(profile.model_dump())


@profile_app.command("skill-add")
def skill_add(skill: str = typer.Argument(...)) -> None:
    session = require_session()
    _echo(identity.add_skill(session, skill))


@profile_app.command("skill-remove")
def skill_remove(skill: str = typer.Argument(...)) -> None:
    session = require_session()
    _echo(identity.remove_skill(session, skill))


@profile_app.command("extract")
def profile_extract() -> None:
    """Fill name, headline, rate and skills of the active profile from its bio."""
    session = require_session()
    extracted = identity.extract_profile_details(session, runtime.get_router())
    if extracted is None:
        typer.echo("Nothing extracted (empty bio or service failure).", err=True)
        raise typer.Exit(code=1)
    _echo(session.active_profile.model_dump())


@profile_app.command("tone")
def profile_tone(tone: str = typer.Argument(..., help=", ".join(PROPOSAL_TONES))) -> None:
    session = require_session()
    with handled():
        identity.update_identity(session, preferred_tone=tone)
    _echo({"preferred_tone": session.identity.preferred_tone})


@profile_app.command("samples")
def profile_samples(file: Path = typer.Option(..., "--file", exists=True, readable=True)) -> None:
    """Store previous proposals used as writing samples."""
    session = require_session()
    identity.update_identity(session, previous_proposals=file.read_text(encoding="utf-8"))
    _echo({"ok": True})


@profile_app.command("link-add")
def link_add(name: str = typer.Option(..., "--name"), url: str = typer.Option(..., "--url")) -> None:
    session = require_session()
    links = identity.add_portfolio_link(session)
    identity.update_portfolio_link(session, len(links) - 1, name=name, url=url)
    _echo([link.model_dump() for link in session.identity.portfolio_links])


@profile_app.command("link-remove")
def link_remove(index: int = typer.Argument(...)) -> None:
    session = require_session()
    with handled():
        links = identity.remove_portfolio_link(session, index)
    _echo([link.model_dump() for link in links])


@app.command("analyze")
def analyze(
    file: Path = typer.Option(..., "--file", exists=True, readable=True),
    client_name: str = typer.Option("Client", "--client"),
) -> None:
    """Analyze a pasted job posting and file it as a new lead."""
    session = require_session()
    with handled():
        job = history.analyze_job(
            session,
            file.read_text(encoding="utf-8"),
            runtime.get_router(),
            client_name=client_name,
        )
    if job is None:
        typer.echo(session.error or history.ANALYSIS_FAILED_MESSAGE, err=True)
        raise typer.Exit(code=2)

    analysis = job.analysis
    _echo(
        {
            "id": job.id,
            "job_title": job.job_title,
            "apply_recommendation": analysis.apply_recommendation,
            "confidence": analysis.confidence,
            "opportunity_score": analysis.opportunity_score,
            "red_flags": [flag.title for flag in analysis.red_flags],
            "green_flags": [flag.title for flag in analysis.green_flags],
            "cover_letter": job.edited_proposal,
        }
    )


@history_app.command("list")
def history_list(search: str = typer.Option("", "--search", "-s")) -> None:
    session = require_session()
    _echo(
        [
            {
                "id": job.id,
                "date": datetime.fromtimestamp(job.timestamp / 1000).strftime("%Y-%m-%d"),
                "job_title": job.job_title,
                "client": job.client_name,
                "status": job.status,
            }
            for job in history.set_search_term(session, search)
        ]
    )


@history_app.command("summary")
def history_summary() -> None:
    session = require_session()
    _echo(history.pipeline_summary(session.history))


@history_app.command("delete")
def history_delete(
    job_ids: list[str] = typer.Argument(None),
    search: str = typer.Option(None, "--all-matching", help="Select every lead matching this search"),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    """Delete the given leads, or every lead matching a search."""
    session = require_session()
    history.toggle_archive_management(session)
    if search is not None:
        history.set_search_term(session, search)
        history.toggle_select_all(session)
    with handled():
        for job_id in job_ids or []:
            history.select_job(session, job_id)
        if yes:
            removed = history.delete_selected_jobs(session, confirmed=True)
        else:
            removed = confirm_and_retry(lambda ok: history.delete_selected_jobs(session, confirmed=ok))
    _echo({"deleted": removed})


@lead_app.command("show")
def lead_show(job_id: str = typer.Argument(...)) -> None:
    session = require_session()
    with handled():
        job = history.open_job(session, job_id)
    _echo(job.model_dump(mode="json", by_alias=True))


@lead_app.command("status")
def lead_status(
    job_id: str = typer.Argument(...),
    status: str = typer.Argument(..., help=", ".join(JOB_STATUSES)),
) -> None:
    session = require_session()
    with handled():
        job = history.set_job_status(session, job_id, status)
    _echo({"id": job.id, "status": job.status})


@lead_app.command("message")
def lead_message(
    job_id: str = typer.Argument(...),
    text: str = typer.Option(..., "--text", prompt="Client message"),
) -> None:
    """Log a client message and offer a suggested reply."""
    session = require_session()
    with handled():
        history.open_job(session, job_id)
        suggestion = conversation.add_client_message(session, text, runtime.get_router())
    if suggestion is None:
        typer.echo("Message saved; no suggestion available.")
        return

    typer.echo(f"\nSuggested reply:\n{suggestion}\n")
    if typer.confirm("Add this reply to the thread?", default=False):
        conversation.accept_suggestion(session)
        typer.echo("Reply added.")
    else:
        conversation.dismiss_suggestion(session)


@lead_app.command("proposal")
def lead_proposal(
    job_id: str = typer.Argument(...),
    tone: str = typer.Option(None, "--regenerate", help="Rewrite the draft in this tone"),
    file: Path = typer.Option(None, "--set-from", exists=True, readable=True),
) -> None:
    """Print, replace or regenerate the proposal draft of a lead."""
    session = require_session()
    with handled():
        history.open_job(session, job_id)
        if file is not None:
            drafting.edit_draft(session, file.read_text(encoding="utf-8"))
            drafting.flush_draft(session, force=True)
        if tone is not None and drafting.regenerate_proposal(session, tone, runtime.get_router()) is None:
            typer.echo("Regeneration failed; draft unchanged.", err=True)

    text = drafting.current_draft(session)
    typer.echo(text)
    typer.echo(f"\n({drafting.word_count(text)} words)", err=True)


@lead_app.command("delete")
def lead_delete(job_id: str = typer.Argument(...), yes: bool = typer.Option(False, "--yes", "-y")) -> None:
    session = require_session()
    with handled():
        if yes:
            history.delete_job(session, job_id, confirmed=True)
        else:
            confirm_and_retry(lambda ok: history.delete_job(session, job_id, confirmed=ok))
    _echo({"deleted": job_id})
