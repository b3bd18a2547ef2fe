"""Tests for avatarpin.core.retry - bounded retry with backoff."""

from __future__ import annotations

import pytest

from avatarpin.core import retry
from avatarpin.core.retry import call_with_retry


class Flaky:
    def __init__(self, failures: int, exc: type[Exception] = ConnectionError) -> None:
        self.failures = failures
        self.exc = exc
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc(f"attempt {self.calls}")
        return "ok"


@pytest.fixture
def sleeps(monkeypatch) -> list[float]:
    recorded: list[float] = []

    async def fake_sleep(delay: float) -> None:
        recorded.append(delay)

    monkeypatch.setattr(retry.asyncio, "sleep", fake_sleep)
    return recorded


@pytest.mark.asyncio
async def test_no_retries_fails_after_one_attempt(sleeps):
    """With no retries the first failure propagates without sleeping."""
    func = Flaky(failures=1)
    with pytest.raises(ConnectionError, match="attempt 1"):
        await call_with_retry(func, retries=0, backoff=1.0, retry_on=(ConnectionError,), label="t")
    assert func.calls == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_recovers_within_budget(sleeps):
    """Backoff doubles between attempts until one succeeds."""
    func = Flaky(failures=2)
    result = await call_with_retry(
        func, retries=2, backoff=0.5, retry_on=(ConnectionError,), label="t"
    )
    assert result == "ok"
    assert func.calls == 3
    assert sleeps == [0.5, 1.0]


@pytest.mark.asyncio
async def test_exhausted_budget_raises_last_error(sleeps):
    """The last attempt's error propagates once retries run out."""
    func = Flaky(failures=5)
    with pytest.raises(ConnectionError, match="attempt 3"):
        await call_with_retry(func, retries=2, backoff=0.1, retry_on=(ConnectionError,), label="t")
    assert func.calls == 3


@pytest.mark.asyncio
async def test_non_retryable_error_propagates_immediately(sleeps):
    """Exceptions outside retry_on are not retried."""
    func = Flaky(failures=1, exc=ValueError)
    with pytest.raises(ValueError):
        await call_with_retry(func, retries=3, backoff=0.1, retry_on=(ConnectionError,), label="t")
    assert func.calls == 1
    assert sleeps == []
