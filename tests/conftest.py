import pytest

from wellness.services.timer import BreakTimer, InMemoryPersistence

from tests.fakes import BreakSink, FakeClock, FakeLimiter, RecordingNotifier


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def persistence():
    return InMemoryPersistence()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def sink():
    return BreakSink()


@pytest.fixture
def limiter():
    return FakeLimiter()


@pytest.fixture
def make_timer(clock, persistence, notifier, sink, limiter):
    def _make(**overrides):
        kwargs = dict(
            user_id="user-1",
            clock=clock,
            persistence=persistence,
            notifier=notifier,
            on_break=sink,
            usage_limiter=limiter,
        )
        kwargs.update(overrides)
        return BreakTimer(**kwargs)
    return _make


@pytest.fixture
def timer(make_timer):
    return make_timer()
