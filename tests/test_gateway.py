"""SessionManager routing and fire-and-forget delivery."""
import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from api.gateway import Session, SessionManager
from engine.model import Event


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


def sent(ws):
    return [json.loads(c.args[0]) for c in ws.send_text.await_args_list]


@pytest.mark.asyncio
async def test_dispatch_routes_direct_and_broadcast_events():
    mgr = SessionManager()
    a, b, c = AsyncMock(), AsyncMock(), AsyncMock()
    mgr.open("a", a)
    mgr.open("b", b)
    mgr.open("c", c)

    mgr.dispatch([
        Event("hit", 0, {"damage": 25, "attacker": "b"}, to="a"),
        Event("shootSound", 0, {"x": 1, "y": 2}, exclude="b"),
        Event("state", 0, {"players": {}, "bullets": [], "timestamp": 0}),
    ])
    await settle()

    assert [m["type"] for m in sent(a)] == ["hit", "shootSound", "state"]
    assert [m["type"] for m in sent(b)] == ["state"]
    assert [m["type"] for m in sent(c)] == ["shootSound", "state"]
    assert sent(a)[0] == {"type": "hit", "data": {"damage": 25, "attacker": "b"}}

    for sid in ("a", "b", "c"):
        await mgr.close(sid)
    assert mgr.sessions == {}


@pytest.mark.asyncio
async def test_events_for_unknown_sessions_are_dropped():
    mgr = SessionManager()
    ws = AsyncMock()
    mgr.open("a", ws)
    mgr.dispatch([Event("kill", 0, {"victim": "x"}, to="gone")])
    assert mgr.send_to("gone", {"type": "x"}) is False
    await settle()
    ws.send_text.assert_not_awaited()
    await mgr.close("a")


@pytest.mark.asyncio
async def test_full_queue_drops_oldest_message():
    session = Session("slow", AsyncMock(), queue_size=2)
    for i in range(5):
        session.offer(str(i))
    assert session.dropped == 3
    assert [session.queue.get_nowait() for _ in range(2)] == ["3", "4"]

    session.closed = True
    session.offer("5")
    assert session.queue.empty()


@pytest.mark.asyncio
async def test_failed_send_drops_the_session():
    mgr = SessionManager()
    broken = AsyncMock()
    broken.send_text.side_effect = RuntimeError("socket closed")
    healthy = AsyncMock()
    mgr.open("broken", broken)
    mgr.open("healthy", healthy)

    mgr.dispatch([Event("state", 0, {}), Event("state", 0, {})])
    await settle()

    assert broken.send_text.await_count == 1
    assert healthy.send_text.await_count == 2
    assert list(mgr.sessions) == ["healthy"]

    mgr.dispatch([Event("state", 0, {})])
    await settle()
    assert broken.send_text.await_count == 1
    assert healthy.send_text.await_count == 3

    await mgr.close("broken")
    await mgr.close("healthy")
