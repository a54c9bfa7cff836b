import anyio
import pytest

from assetvault.errors import InconsistentState
from assetvault.storage.saga import Saga


@pytest.mark.anyio
async def test_saga_success_keeps_everything():
    done = []
    async with Saga("test") as saga:
        assert await saga.step("one", lambda: done.append(1) or "result", compensate=lambda: done.remove(1)) == "result"
        await saga.step("two", lambda: done.append(2), compensate=lambda: done.remove(2))
    assert done == [1, 2]


@pytest.mark.anyio
async def test_saga_rolls_back_in_reverse_order():
    undone = []

    async def undo_async():
        undone.append("async")

    with pytest.raises(KeyError):
        async with Saga("test") as saga:
            await saga.step("sync", lambda: None, compensate=lambda: undone.append("sync"))
            await saga.step("async", lambda: None, compensate=undo_async)
            await saga.step("no undo", lambda: None)
            raise KeyError("boom")
    assert undone == ["async", "sync"]


@pytest.mark.anyio
async def test_saga_failing_step_is_not_compensated():
    undone = []

    def fail():
        raise ValueError("step failed")

    with pytest.raises(ValueError):
        async with Saga("test") as saga:
            await saga.step("ok", lambda: None, compensate=lambda: undone.append("ok"))
            await saga.step("fail", fail, compensate=lambda: undone.append("fail"))
    assert undone == ["ok"]


@pytest.mark.anyio
async def test_saga_failed_compensation_is_inconsistent():
    undone = []

    def broken_undo():
        raise OSError("disk on fire")

    with pytest.raises(InconsistentState) as exc_info:
        async with Saga("test op") as saga:
            await saga.step("first", lambda: None, compensate=lambda: undone.append("first"))
            await saga.step("second", lambda: None, compensate=broken_undo)
            raise KeyError("boom")
    # the remaining compensations still ran
    assert undone == ["first"]
    error = exc_info.value
    assert error.operation == "test op"
    assert isinstance(error.original, KeyError)
    assert [step for step, _ in error.failures] == ["second"]
    assert isinstance(error.__cause__, OSError)


@pytest.mark.anyio
async def test_saga_rolls_back_when_cancelled():
    undone = []

    async def undo():
        # compensations can still await while the caller is being cancelled
        await anyio.sleep(0)
        undone.append("first")

    with anyio.move_on_after(0.1) as scope:
        async with Saga("test") as saga:
            await saga.step("first", lambda: None, compensate=undo)
            await saga.step("slow", lambda: anyio.sleep(10), compensate=lambda: undone.append("slow"))
    assert scope.cancelled_caught
    assert undone == ["first"]
