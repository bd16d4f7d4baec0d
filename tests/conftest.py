"""Shared fixtures for the rate limiter test suite."""
import httpx
import pytest
import pytest_asyncio

from bpeople_ratelimit.rate_limiter import RateLimiter

START_MS = 1_700_000_000_000


class FakeClock:
    """Injectable millisecond clock that only moves when told to."""

    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(sweep_interval_seconds=0.01, clock=clock)


@pytest_asyncio.fixture
async def client(limiter):
    """httpx.AsyncClient using ASGITransport — bypasses lifespan.

    The lifespan would build its own limiter on the wall clock and start the
    sweeper; tests install the fake-clock limiter on app.state instead.
    """
    from main import app

    app.state.rate_limiter = limiter
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    await limiter.stop()
    del app.state.rate_limiter
