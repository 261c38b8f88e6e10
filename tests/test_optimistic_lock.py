"""Retry decorator behaviour for version conflicts."""
import pytest

from qrmenu.core.optimistic_lock import ConcurrentUpdateError, StaleDataError, with_optimistic_retry


@pytest.mark.asyncio
async def test_retries_until_success():
    calls = []

    @with_optimistic_retry(max_retries=3)
    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise StaleDataError("lost race")
        return "ok"

    assert await flaky() == "ok"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_gives_up_with_conflict_error():
    calls = []

    @with_optimistic_retry(max_retries=2)
    async def always_stale():
        calls.append(1)
        raise StaleDataError("lost race")

    with pytest.raises(ConcurrentUpdateError) as exc:
        await always_stale()
    assert exc.value.status_code == 409
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_other_errors_are_not_retried():
    calls = []

    @with_optimistic_retry(max_retries=5)
    async def broken():
        calls.append(1)
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await broken()
    assert len(calls) == 1
