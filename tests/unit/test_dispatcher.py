"""Unit tests for livebridge.dispatcher.ToolCallDispatcher."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from livebridge.dispatcher import ToolCallDispatcher, UnknownToolPolicy
from livebridge.session.local import LocalSession
from livebridge.session.types import (
    TOOLCALL_EVENT,
    ToolCall,
    ToolCallBatch,
    ToolDeclaration,
    object_schema,
)
from livebridge.tools.registry import HandlerKind, ToolRegistry

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _decl(name: str) -> ToolDeclaration:
    return ToolDeclaration(name=name, description=f"{name} tool.", parameters=object_schema({}))


def _batch(*calls: tuple[str, str, dict[str, Any]]) -> ToolCallBatch:
    """Build a batch from (id, name, args) tuples."""
    return ToolCallBatch(tuple(ToolCall(id=i, name=n, args=a) for i, n, a in calls))


async def _echo(args: dict[str, Any]) -> dict[str, Any]:
    return {"echo": args}


async def _boom(args: dict[str, Any]) -> dict[str, Any]:
    raise RuntimeError("handler exploded")


def _make_dispatcher(
    policy: UnknownToolPolicy = UnknownToolPolicy.IGNORE,
    **handlers: Any,
) -> tuple[ToolCallDispatcher, LocalSession]:
    registry = ToolRegistry()
    for name, handler in handlers.items():
        kind = HandlerKind.NOTIFY if name.startswith("notify") else HandlerKind.RESPOND
        registry.register(_decl(name), handler, kind=kind)
    session = LocalSession()
    dispatcher = ToolCallDispatcher(session, registry, unknown_tool_policy=policy)
    dispatcher.acquire()
    return dispatcher, session


def _sent_wire(session: LocalSession) -> list[dict[str, Any]]:
    return [r.to_wire() for m in session.sent for r in m.function_responses]


# ---------------------------------------------------------------------------
# Correlation
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_one_response_per_known_call() -> None:
    _, session = _make_dispatcher(echo=_echo, other=_echo)

    await session.emit_tool_call(
        _batch(("c1", "echo", {"x": 1}), ("c2", "other", {}), ("c3", "echo", {"x": 3}))
    )

    ids = sorted(r["id"] for r in _sent_wire(session))
    assert ids == ["c1", "c2", "c3"]


@pytest.mark.anyio
async def test_response_shape() -> None:
    _, session = _make_dispatcher(echo=_echo)

    await session.emit_tool_call(_batch(("c1", "echo", {"x": 1})))

    assert session.sent[0].to_wire() == {
        "functionResponses": [{"id": "c1", "response": {"output": {"echo": {"x": 1}}}}]
    }


@pytest.mark.anyio
async def test_each_response_sent_in_its_own_message() -> None:
    _, session = _make_dispatcher(echo=_echo)

    await session.emit_tool_call(_batch(("c1", "echo", {}), ("c2", "echo", {})))

    assert len(session.sent) == 2
    assert all(len(m.function_responses) == 1 for m in session.sent)


@pytest.mark.anyio
async def test_handler_failure_becomes_error_response() -> None:
    _, session = _make_dispatcher(echo=_echo, boom=_boom)

    await session.emit_tool_call(_batch(("c1", "boom", {}), ("c2", "echo", {"ok": True})))

    by_id = {r["id"]: r["response"]["output"] for r in _sent_wire(session)}
    assert by_id["c1"] == {"error": "handler exploded"}
    assert by_id["c2"] == {"echo": {"ok": True}}


@pytest.mark.anyio
async def test_handler_failure_without_message_uses_exception_name() -> None:
    async def _silent(args: dict[str, Any]) -> dict[str, Any]:
        raise KeyError

    _, session = _make_dispatcher(silent=_silent)

    await session.emit_tool_call(_batch(("c1", "silent", {})))

    assert _sent_wire(session)[0]["response"]["output"] == {"error": "KeyError"}


@pytest.mark.anyio
async def test_handler_returning_none_still_responds() -> None:
    async def _nothing(args: dict[str, Any]) -> None:
        return None

    _, session = _make_dispatcher(nothing=_nothing)

    await session.emit_tool_call(_batch(("c1", "nothing", {})))

    assert _sent_wire(session) == [{"id": "c1", "response": {"output": {}}}]


@pytest.mark.anyio
async def test_calls_run_concurrently() -> None:
    """A slow call does not delay the response of a fast one."""
    release_slow = asyncio.Event()

    async def _slow(args: dict[str, Any]) -> dict[str, Any]:
        await release_slow.wait()
        return {"slow": True}

    dispatcher, session = _make_dispatcher(slow=_slow, echo=_echo)

    async def _release_after_fast() -> None:
        while not session.sent:
            await asyncio.sleep(0)
        release_slow.set()

    await asyncio.gather(
        dispatcher.handle_tool_call(_batch(("s", "slow", {}), ("f", "echo", {}))),
        _release_after_fast(),
    )

    assert [m.function_responses[0].id for m in session.sent] == ["f", "s"]


@pytest.mark.anyio
async def test_handle_tool_call_returns_responses() -> None:
    dispatcher, _ = _make_dispatcher(echo=_echo)

    responses = await dispatcher.handle_tool_call(_batch(("c1", "echo", {})))

    assert [r.id for r in responses] == ["c1"]
    assert responses[0].is_error is False


# ---------------------------------------------------------------------------
# Notify handlers
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_notify_handler_runs_without_response() -> None:
    handler = AsyncMock(return_value=None)
    _, session = _make_dispatcher(notify_graph=handler)

    await session.emit_tool_call(_batch(("n1", "notify_graph", {"json_graph": "{}"})))

    handler.assert_awaited_once_with({"json_graph": "{}"})
    assert session.sent == []


@pytest.mark.anyio
async def test_notify_failure_is_contained() -> None:
    handler = AsyncMock(side_effect=RuntimeError("bad"))
    _, session = _make_dispatcher(notify_graph=handler, echo=_echo)

    await session.emit_tool_call(_batch(("n1", "notify_graph", {}), ("c1", "echo", {})))

    assert [r["id"] for r in _sent_wire(session)] == ["c1"]


# ---------------------------------------------------------------------------
# Unknown tools
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_unknown_tool_ignored_by_default() -> None:
    _, session = _make_dispatcher(echo=_echo)

    await session.emit_tool_call(_batch(("u1", "nope", {}), ("c1", "echo", {})))

    assert [r["id"] for r in _sent_wire(session)] == ["c1"]


@pytest.mark.anyio
async def test_unknown_tool_name_match_is_case_sensitive() -> None:
    _, session = _make_dispatcher(echo=_echo)

    await session.emit_tool_call(_batch(("u1", "ECHO", {})))

    assert session.sent == []


@pytest.mark.anyio
async def test_unknown_tool_error_policy_responds() -> None:
    _, session = _make_dispatcher(UnknownToolPolicy.ERROR, echo=_echo)

    await session.emit_tool_call(_batch(("u1", "nope", {})))

    assert _sent_wire(session) == [
        {"id": "u1", "response": {"output": {"error": "Unsupported tool: 'nope'"}}}
    ]


def test_policy_accepts_string_value() -> None:
    dispatcher = ToolCallDispatcher(LocalSession(), ToolRegistry(), unknown_tool_policy="error")
    assert dispatcher.unknown_tool_policy is UnknownToolPolicy.ERROR


@pytest.mark.anyio
async def test_registry_changes_after_construction_are_not_seen() -> None:
    registry = ToolRegistry()
    session = LocalSession()
    dispatcher = ToolCallDispatcher(session, registry)
    dispatcher.acquire()
    registry.register(_decl("late"), _echo)

    await session.emit_tool_call(_batch(("c1", "late", {})))

    assert session.sent == []


# ---------------------------------------------------------------------------
# Send failures
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_send_failure_does_not_propagate() -> None:
    registry = ToolRegistry()
    registry.register(_decl("echo"), _echo)
    session = MagicMock()
    session.send_tool_response.side_effect = [ConnectionError("closed"), None]
    dispatcher = ToolCallDispatcher(session, registry)
    dispatcher.acquire()

    responses = await dispatcher.handle_tool_call(_batch(("c1", "echo", {}), ("c2", "echo", {})))

    assert len(responses) == 2
    assert session.send_tool_response.call_count == 2


# ---------------------------------------------------------------------------
# Subscription lifecycle
# ---------------------------------------------------------------------------


def test_acquire_subscribes_once() -> None:
    session = LocalSession()
    dispatcher = ToolCallDispatcher(session, ToolRegistry())

    dispatcher.acquire()
    dispatcher.acquire()

    assert dispatcher.active is True
    assert session.listener_count(TOOLCALL_EVENT) == 1


def test_release_is_idempotent() -> None:
    session = LocalSession()
    dispatcher = ToolCallDispatcher(session, ToolRegistry())
    dispatcher.acquire()

    dispatcher.release()
    dispatcher.release()

    assert dispatcher.active is False
    assert session.listener_count(TOOLCALL_EVENT) == 0


@pytest.mark.anyio
async def test_after_release_no_handler_runs_and_nothing_is_sent() -> None:
    handler = AsyncMock(return_value={"ok": True})
    dispatcher, session = _make_dispatcher(echo=handler)
    dispatcher.release()

    await session.emit_tool_call(_batch(("c1", "echo", {})))
    responses = await dispatcher.handle_tool_call(_batch(("c2", "echo", {})))

    handler.assert_not_awaited()
    assert responses == []
    assert session.sent == []


@pytest.mark.anyio
async def test_async_context_manager() -> None:
    session = LocalSession()
    dispatcher = ToolCallDispatcher(session, ToolRegistry())

    async with dispatcher:
        assert session.listener_count() == 1

    assert session.listener_count() == 0
