# eldercare/tests/test_sessions_registry.py
import pytest

from eldercare.engine.persistence import CurrentUser
from eldercare.errors import SessionNotFound, UserInputError
from eldercare.sessions import SessionRegistry


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(store, clock):
    reg = SessionRegistry(store, limit=2, idle_seconds=60, clock=clock)
    yield reg
    reg.close_all()


@pytest.mark.asyncio
async def test_limit_refuses_new_sessions(registry, user):
    await registry.open(user)
    await registry.open(user)
    with pytest.raises(UserInputError):
        await registry.open(user)
    assert len(registry) == 2


@pytest.mark.asyncio
async def test_idle_sessions_are_closed_to_free_slots(registry, user, clock):
    stale = await registry.open(user)
    clock.now += 30
    active = await registry.open(user)
    clock.now += 40  # stale idle 70s, active idle 40s

    fresh = await registry.open(user)

    assert len(registry) == 2
    assert stale.closed is True
    with pytest.raises(SessionNotFound):
        registry.get(stale.id, user)
    assert registry.get(active.id, user) is active
    assert registry.get(fresh.id, user) is fresh


@pytest.mark.asyncio
async def test_use_keeps_a_session_alive(registry, user, clock):
    kept = await registry.open(user)
    clock.now += 50
    registry.get(kept.id, user)
    clock.now += 50  # 100s since open, 50s since last use

    assert registry.expire_idle() == 0
    assert kept.closed is False


@pytest.mark.asyncio
async def test_sessions_are_scoped_to_their_user(registry, user):
    session = await registry.open(user)
    with pytest.raises(SessionNotFound):
        registry.get(session.id, CurrentUser("nurse-2"))
    registry.close(session.id)
    assert session.closed is True
    with pytest.raises(SessionNotFound):
        registry.close(session.id)
