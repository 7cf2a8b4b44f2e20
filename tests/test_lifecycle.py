import asyncio

import pytest

from wsbridge.lifecycle import RunOnceGate


@pytest.mark.asyncio
async def test_only_one_admission_among_simultaneous_attempts(fake_connection):
    gate = RunOnceGate()
    connections = [fake_connection() for _ in range(50)]

    async def attempt(connection):
        await asyncio.sleep(0)
        return gate.admit(connection)

    admitted = await asyncio.gather(*(attempt(c) for c in connections))
    assert admitted.count(True) == 1
    assert gate.shutdown


@pytest.mark.asyncio
async def test_finished_once_admitted_connection_closes(fake_connection):
    gate = RunOnceGate()
    connection = fake_connection()
    assert gate.admit(connection)

    await asyncio.sleep(0)
    assert not gate.finished.is_set()

    connection.closed.set()
    await asyncio.wait_for(gate.wait(), 1)
    assert not gate.admit(fake_connection())


def test_fresh_gate_is_open():
    assert not RunOnceGate().shutdown
