"""Concurrency gate tests."""

import asyncio

import pytest

from docsmith.llm import ConcurrencyGate


async def test_gate_never_exceeds_limit():
    """Concurrent holders never exceed the configured limit."""
    gate = ConcurrencyGate(3)
    in_flight = 0
    observed = 0

    async def work():
        nonlocal in_flight, observed
        async with gate:
            in_flight += 1
            observed = max(observed, in_flight)
            await asyncio.sleep(0.001)
            in_flight -= 1

    await asyncio.gather(*(work() for _ in range(30)))

    assert observed == 3
    assert gate.peak == 3
    assert gate.active == 0


async def test_gate_releases_on_exception():
    """A failing holder does not leak its slot."""
    gate = ConcurrencyGate(1)

    with pytest.raises(RuntimeError):
        async with gate:
            raise RuntimeError("boom")

    assert gate.active == 0
    await asyncio.wait_for(gate.acquire(), timeout=1)
    await gate.release()


def test_gate_rejects_non_positive_limit():
    """A gate must admit at least one holder."""
    with pytest.raises(ValueError):
        ConcurrencyGate(0)
