"""Unit tests for core/utils/locks.py"""

import asyncio

import pytest

from docstore.core.utils.locks import KeyedLocks, StoreGate


# --- StoreGate ---

@pytest.mark.asyncio
async def test_gate_allows_concurrent_shared_holders():
    """Shared holders overlap."""
    gate, peak = StoreGate(), []

    async def reader():
        async with gate.shared():
            await asyncio.sleep(0.01)
            peak.append(gate.shared_holders)

    await asyncio.gather(reader(), reader())
    assert max(peak) == 2
    assert gate.shared_holders == 0


@pytest.mark.asyncio
async def test_gate_exclusive_waits_for_shared():
    """An exclusive holder enters only after every shared holder has left."""
    gate, events = StoreGate(), []

    async def reader():
        async with gate.shared():
            events.append("read-start")
            await asyncio.sleep(0.02)
            events.append("read-end")

    async def writer():
        await asyncio.sleep(0.005)
        async with gate.exclusive():
            assert gate.exclusive_held
            events.append("write")

    await asyncio.gather(reader(), writer())
    assert events == ["read-start", "read-end", "write"]
    assert not gate.exclusive_held


@pytest.mark.asyncio
async def test_gate_waiting_exclusive_blocks_new_shared():
    """Once an exclusive holder is waiting, later shared holders queue behind it."""
    gate, events = StoreGate(), []

    async def reader(tag, delay):
        await asyncio.sleep(delay)
        async with gate.shared():
            events.append(tag)
            await asyncio.sleep(0.02)

    async def writer():
        await asyncio.sleep(0.005)
        async with gate.exclusive():
            events.append("write")

    await asyncio.gather(reader("r1", 0), writer(), reader("r2", 0.01))
    assert events == ["r1", "write", "r2"]


@pytest.mark.asyncio
async def test_gate_released_on_error():
    gate = StoreGate()
    with pytest.raises(RuntimeError):
        async with gate.exclusive():
            raise RuntimeError("boom")
    async with gate.shared():
        assert gate.shared_holders == 1


# --- KeyedLocks ---

@pytest.mark.asyncio
async def test_keyed_locks_serialize_same_key():
    locks, events = KeyedLocks(), []

    async def worker(tag):
        async with locks.hold("a"):
            events.append(f"{tag}-in")
            await asyncio.sleep(0.01)
            events.append(f"{tag}-out")

    await asyncio.gather(worker("1"), worker("2"))
    assert events == ["1-in", "1-out", "2-in", "2-out"]


@pytest.mark.asyncio
async def test_keyed_locks_independent_keys_overlap():
    locks, events = KeyedLocks(), []

    async def worker(key):
        async with locks.hold(key):
            events.append(f"{key}-in")
            await asyncio.sleep(0.01)
            events.append(f"{key}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert events[:2] == ["a-in", "b-in"]


@pytest.mark.asyncio
async def test_keyed_locks_dropped_when_unused():
    """Per-key locks are released once no task holds or awaits them."""
    locks = KeyedLocks()
    async with locks.hold("a"):
        assert len(locks) == 1
    assert len(locks) == 0
