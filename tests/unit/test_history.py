import pytest

from pitchdesk.core import history
from pitchdesk.errors import ConfirmationRequired, ValidationError


def _file_leads(session, fake_router, titles_and_clients):
    jobs = []
    for title, client in titles_and_clients:
        fake_router.analysis = {**fake_router.analysis, "job_title": title}
        jobs.append(history.analyze_job(session, f"{title} posting", fake_router, client_name=client))
    return jobs


def test_analyze_job_prepends_lead(session, fake_router, saved_accounts) -> None:
    first = history.analyze_job(session, "Senior React Developer, $50/hr", fake_router)

    assert len(session.history) == 1
    assert first.status == "lead"
    assert first.messages == []
    assert first.client_name == "Client"
    assert first.edited_proposal == fake_router.analysis["proposal"]["cover_letter"]
    assert session.current_job_id == first.id
    assert session.current_result == first.analysis
    assert session.draft.text == first.edited_proposal
    assert session.loading is False
    assert saved_accounts[-1].history[0].id == first.id

    second = history.analyze_job(session, "Another posting", fake_router)
    assert [job.id for job in session.history] == [second.id, first.id]
    assert second.timestamp >= first.timestamp


def test_analyze_job_sends_identity_context(session, fake_router) -> None:
    session.identity.previous_proposals = "Hey! Loved your brief."
    session.identity.preferred_tone = "bold"
    session.active_profile.your_profile_skills = ["React"]

    history.analyze_job(session, "Build a dashboard", fake_router)

    job_input = fake_router.calls[0][1]["job_input"]
    assert job_input.raw_text == "Build a dashboard"
    assert job_input.active_profile.id == "main"
    assert job_input.active_profile.your_profile_skills == ["React"]
    assert job_input.previous_proposals == "Hey! Loved your brief."
    assert job_input.preferred_tone == "bold"


def test_analyze_job_failure_leaves_history_untouched(session, fake_router, saved_accounts) -> None:
    fake_router.analysis = None

    assert history.analyze_job(session, "Some posting", fake_router) is None
    assert session.history == []
    assert session.error == history.ANALYSIS_FAILED_MESSAGE
    assert session.loading is False
    assert saved_accounts == []


def test_analyze_job_without_cover_letter(session, fake_router) -> None:
    fake_router.analysis = {**fake_router.analysis, "proposal": None}
    job = history.analyze_job(session, "posting", fake_router)
    assert job.edited_proposal is None


def test_blank_job_text_is_rejected(session, fake_router) -> None:
    with pytest.raises(ValidationError):
        history.analyze_job(session, "   ", fake_router)
    assert fake_router.calls == []


def test_update_job_ignores_unknown_id(session, fake_router, saved_accounts) -> None:
    job = history.analyze_job(session, "posting", fake_router)
    writes = len(saved_accounts)

    ghost = job.model_copy(update={"id": "ghost", "status": "hired"})
    assert history.update_job(session, ghost) is False
    assert len(saved_accounts) == writes
    assert session.history[0].status == "lead"


def test_status_is_freely_settable(session, fake_router) -> None:
    job = history.analyze_job(session, "posting", fake_router)
    for status in ["hired", "lead", "declined", "applied", "interviewing"]:
        history.set_job_status(session, job.id, status)
        assert session.history[0].status == status

    with pytest.raises(ValidationError):
        history.set_job_status(session, job.id, "ghosted")


def test_filter_is_case_insensitive_on_title_or_client(session, fake_router) -> None:
    _file_leads(
        session,
        fake_router,
        [("React Dashboard", "Acme"), ("Logo design", "react labs"), ("Data entry", "Globex")],
    )

    titles = [job.job_title for job in history.filter_history(session.history, "REACT")]
    assert titles == ["Logo design", "React Dashboard"]
    assert len(history.filter_history(session.history, "")) == 3
    assert len(session.history) == 3


def test_select_all_selects_exactly_the_filtered_subset(session, fake_router) -> None:
    jobs = _file_leads(session, fake_router, [("React app", "A"), ("Vue app", "B"), ("React native", "C")])
    history.set_search_term(session, "react")

    selected = history.toggle_select_all(session)
    assert selected == {jobs[0].id, jobs[2].id}

    assert history.toggle_select_all(session) == set()


def test_delete_selected_removes_exactly_selection_and_keeps_order(session, fake_router) -> None:
    jobs = _file_leads(session, fake_router, [(f"Job {i}", "Client") for i in range(5)])
    order_before = [job.id for job in session.history]
    history.open_job(session, jobs[1].id)

    history.toggle_archive_management(session)
    history.toggle_job_selection(session, jobs[1].id)
    history.toggle_job_selection(session, jobs[3].id)

    with pytest.raises(ConfirmationRequired, match="Delete 2 selected leads"):
        history.delete_selected_jobs(session)
    assert len(session.history) == 5

    removed = history.delete_selected_jobs(session, confirmed=True)

    assert removed == 2
    assert [job.id for job in session.history] == [i for i in order_before if i not in {jobs[1].id, jobs[3].id}]
    assert session.current_job_id is None
    assert session.current_result is None
    assert session.selected_job_ids == set()
    assert session.managing_archive is False


def test_toggle_selection_and_archive_mode(session, fake_router) -> None:
    job = history.analyze_job(session, "posting", fake_router)
    history.toggle_job_selection(session, job.id)
    assert session.selected_job_ids == {job.id}
    history.toggle_job_selection(session, job.id)
    assert session.selected_job_ids == set()

    history.toggle_job_selection(session, job.id)
    assert history.toggle_archive_management(session) is True
    assert session.selected_job_ids == set()


def test_delete_single_job(session, fake_router) -> None:
    first, second = _file_leads(session, fake_router, [("One", "A"), ("Two", "B")])

    with pytest.raises(ConfirmationRequired):
        history.delete_job(session, first.id)

    history.delete_job(session, second.id, confirmed=True)
    assert [job.id for job in session.history] == [first.id]
    assert session.current_job_id is None


def test_pipeline_summary_counts_every_status(session, fake_router) -> None:
    jobs = _file_leads(session, fake_router, [("One", "A"), ("Two", "B"), ("Three", "C")])
    history.set_job_status(session, jobs[0].id, "hired")

    assert history.pipeline_summary(session.history) == {
        "lead": 2,
        "applied": 0,
        "interviewing": 0,
        "hired": 1,
        "declined": 0,
    }


def test_reset_current_clears_view(session, fake_router) -> None:
    history.analyze_job(session, "posting", fake_router)
    history.reset_current(session)
    assert session.current_job is None
    assert session.current_result is None
    assert session.draft.job_id is None
