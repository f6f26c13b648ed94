# eldercare/tests/test_autosave.py
import asyncio

import pytest

from eldercare.engine.autosave import AutoSaveScheduler
from eldercare.engine.persistence import Failed
from eldercare.engine.sections import SectionKey
from eldercare.engine.session import AssessmentSession
from eldercare.engine.state import AssessmentFormState

QUIET = 0.05


@pytest.fixture
def auto_session(store, user):
    s = AssessmentSession(store, user, quiet_period=QUIET, auto_save_enabled=True)
    yield s
    s.close()


@pytest.mark.asyncio
async def test_burst_of_edits_saves_once_after_quiet_period(auto_session, store):
    auto_session.update_field("basic", "clientId", "client-1")
    auto_session.update_field("basic", "assessmentDate", "2026-10-01")
    auto_session.update_field("medical", "allergies", "none")

    assert store.creates == 0
    assert auto_session.scheduler.pending is True

    await asyncio.sleep(QUIET * 4)

    assert store.creates == 1
    assert auto_session.scheduler.fired == 1
    assert auto_session.state.has_unsaved_changes is False
    assert auto_session.state.data.metadata.last_auto_save is not None
    assert auto_session.scheduler.pending is False


@pytest.mark.asyncio
async def test_each_edit_restarts_the_quiet_period(store, user):
    quiet = 0.1
    s = AssessmentSession(store, user, quiet_period=quiet, auto_save_enabled=True)
    try:
        s.update_field("basic", "clientId", "client-1")       # t = 0
        await asyncio.sleep(quiet * 0.6)
        s.update_field("basic", "assessmentDate", "2026-10-01")  # t = 0.6Q
        await asyncio.sleep(quiet * 0.6)

        # t = 1.2Q: a timer started at the first edit would already have saved
        assert store.creates == 0
        assert s.scheduler.pending is True

        await asyncio.sleep(quiet * 0.8)

        # t = 2Q: one save, a full quiet period after the last edit
        assert store.creates == 1
        assert s.scheduler.fired == 1
        assert s.state.has_unsaved_changes is False
    finally:
        s.close()


@pytest.mark.asyncio
async def test_auto_save_writes_a_draft_even_when_incomplete(auto_session, store):
    auto_session.update_field("basic", "clientId", "client-1")
    await asyncio.sleep(QUIET * 4)

    assert store.records["rec-1"]["status"] == "draft"
    assert auto_session.state.data.status == "draft"


@pytest.mark.asyncio
async def test_auto_save_only_ever_requests_draft(auto_session, fill_all):
    requested = []
    real_save = auto_session.coordinator.save

    async def spy(status="draft"):
        requested.append(status)
        return await real_save(status)

    auto_session.coordinator.save = spy
    fill_all(auto_session)
    await asyncio.sleep(QUIET * 4)

    assert requested == ["draft"]
    assert auto_session.state.data.status == "draft"


@pytest.mark.asyncio
async def test_disabled_auto_save_never_fires(session, store, fill_basic):
    fill_basic(session)
    assert session.scheduler.pending is False
    await asyncio.sleep(QUIET * 2)
    assert store.calls == 0


@pytest.mark.asyncio
async def test_clean_form_schedules_nothing(auto_session, store):
    auto_session.set_current_section("medical")
    assert auto_session.scheduler.pending is False
    await asyncio.sleep(QUIET * 2)
    assert store.calls == 0


@pytest.mark.asyncio
async def test_close_cancels_pending_timer(auto_session, store):
    auto_session.update_field("basic", "clientId", "client-1")
    assert auto_session.scheduler.pending is True

    auto_session.close()
    await asyncio.sleep(QUIET * 3)

    assert store.calls == 0
    assert auto_session.scheduler.fired == 0


@pytest.mark.asyncio
async def test_failed_auto_save_is_recorded_and_retried(auto_session, store):
    store.fail_create = True
    auto_session.update_field("basic", "clientId", "client-1")
    await asyncio.sleep(QUIET * 4)

    assert isinstance(auto_session.scheduler.last_outcome, Failed)
    assert auto_session.state.has_unsaved_changes is True

    store.fail_create = False
    auto_session.update_field("basic", "assessmentDate", "2026-10-01")
    await asyncio.sleep(QUIET * 4)

    assert store.creates == 2
    assert auto_session.state.data.id == "rec-2"
    assert auto_session.state.has_unsaved_changes is False


@pytest.mark.asyncio
async def test_missing_client_auto_save_fails_quietly(auto_session, store):
    auto_session.update_field("medical", "allergies", "none")
    await asyncio.sleep(QUIET * 4)

    assert store.calls == 0
    assert isinstance(auto_session.scheduler.last_outcome, Failed)
    assert auto_session.state.has_unsaved_changes is True


@pytest.mark.asyncio
async def test_edits_during_save_do_not_cancel_it(store, user):
    store.delay = 0.1
    s = AssessmentSession(store, user, quiet_period=0.02, auto_save_enabled=True)
    try:
        s.update_field("basic", "clientId", "client-1")
        await asyncio.sleep(0.06)  # first save is in flight
        s.update_field("medical", "allergies", "none")
        await asyncio.sleep(0.4)

        assert store.creates == 1
        assert store.updates == 1
        assert s.state.has_unsaved_changes is False
    finally:
        s.close()


def test_notify_without_event_loop_is_a_no_op():
    calls = []

    async def save_draft():
        calls.append(1)

    state = AssessmentFormState(has_unsaved_changes=True)
    scheduler = AutoSaveScheduler(save_draft, lambda: state, quiet_period=QUIET)
    scheduler.notify()
    assert scheduler.pending is False
    assert calls == []


@pytest.mark.asyncio
async def test_basic_progress_does_not_arm_auto_save(auto_session, store):
    auto_session.update_field("basic", "clientId", "client-1")
    await auto_session.save()
    assert auto_session.state.has_unsaved_changes is False
    assert auto_session.scheduler.pending is False

    assert auto_session.refresh_basic_progress() == 25

    state = auto_session.state
    assert state.data.sections[SectionKey.BASIC].completion_percentage == 25
    assert state.has_unsaved_changes is False
    assert auto_session.scheduler.pending is False
    await asyncio.sleep(QUIET * 2)
    assert (store.creates, store.updates) == (1, 0)
