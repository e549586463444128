"""Tests for the ConversationController state machine."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from cds_chat.chat.controller import FALLBACK_MESSAGE, ChatState, ConversationController
from cds_chat.chat.message import Role
from cds_chat.errors import TransportError
from cds_chat.llm.transport import CompletionResult, NormalizedResponse
from cds_chat.preferences import Preferences

GREETING = "Hello! How can I help you today?"


def _controller(transport, store) -> ConversationController:
    return ConversationController(transport, store, greeting=GREETING)


def _roles_and_text(controller: ConversationController) -> list[tuple[str, str]]:
    return [(str(m.role), m.content) for m in controller.history]


def test_initial_state(transport, store) -> None:
    c = _controller(transport, store)
    assert c.state is ChatState.IDLE
    assert not c.is_sending
    assert _roles_and_text(c) == [("assistant", GREETING)]
    assert c.history[0].synthetic


async def test_send_success_end_to_end(transport, store) -> None:
    c = _controller(transport, store)

    await c.send("Hello")

    assert _roles_and_text(c) == [
        ("assistant", GREETING),
        ("user", "Hello"),
        ("assistant", "World"),
    ]
    assert c.state is ChatState.IDLE
    assert not c.history[-1].synthetic


async def test_send_failure_end_to_end(transport, store) -> None:
    transport.complete.return_value = CompletionResult(error=TransportError("status 500"))
    c = _controller(transport, store)

    await c.send("Hello")

    assert _roles_and_text(c) == [
        ("assistant", GREETING),
        ("user", "Hello"),
        ("assistant", FALLBACK_MESSAGE),
    ]
    assert c.state is ChatState.IDLE
    assert c.history[-1].synthetic


async def test_send_swallows_raising_transport(transport, store) -> None:
    transport.complete.side_effect = RuntimeError("socket exploded")
    c = _controller(transport, store)

    await c.send("Hello")  # must not raise

    assert c.history[-1].content == FALLBACK_MESSAGE
    assert c.state is ChatState.IDLE


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
async def test_blank_input_is_noop(transport, store, text: str) -> None:
    c = _controller(transport, store)
    before = c.history

    await c.send(text)

    assert c.history == before
    assert c.state is ChatState.IDLE
    transport.complete.assert_not_awaited()


async def test_state_transitions_once_per_turn(transport, store) -> None:
    c = _controller(transport, store)
    states: list[ChatState] = []
    c.subscribe(lambda ctrl: states.append(ctrl.state))

    await c.send("Hello")

    # user appended (idle) → sending → reply appended (sending) → idle
    assert states == [ChatState.IDLE, ChatState.SENDING, ChatState.SENDING, ChatState.IDLE]


async def test_send_while_sending_is_rejected(store) -> None:
    release = asyncio.Event()

    async def slow_complete(messages, prefs):
        await release.wait()
        return CompletionResult(response=NormalizedResponse(content="World"))

    transport = AsyncMock()
    transport.complete.side_effect = slow_complete
    c = _controller(transport, store)

    first = asyncio.create_task(c.send("first"))
    await asyncio.sleep(0)
    assert c.state is ChatState.SENDING
    snapshot = c.history

    await c.send("second")
    assert c.history == snapshot
    assert c.submit("third") is None

    release.set()
    await first

    assert _roles_and_text(c) == [
        ("assistant", GREETING),
        ("user", "first"),
        ("assistant", "World"),
    ]
    assert transport.complete.await_count == 1


async def test_turns_strictly_alternate(transport, store) -> None:
    c = _controller(transport, store)
    for text in ("one", "two", "three"):
        await c.send(text)

    roles = [str(m.role) for m in c.history[1:]]
    assert roles == ["user", "assistant"] * 3


async def test_outbound_messages_start_with_preamble(transport, store, monkeypatch) -> None:
    monkeypatch.setattr("cds_chat.config.settings.system_preamble", "Use markdown.")
    c = _controller(transport, store)

    await c.send("Hello")

    messages, _prefs = transport.complete.await_args.args
    assert [(str(m.role), m.content) for m in messages] == [
        ("system", "Use markdown."),
        ("user", "Hello"),
    ]
    # The preamble never lands in history
    assert all(m.role != Role.SYSTEM for m in c.history)


async def test_outbound_messages_skip_synthetic_entries(transport, store) -> None:
    c = _controller(transport, store)
    transport.complete.return_value = CompletionResult(error=TransportError("down"))
    await c.send("first")

    transport.complete.return_value = CompletionResult(
        response=NormalizedResponse(content="ok")
    )
    await c.send("second")

    messages, _prefs = transport.complete.await_args.args
    assert [(str(m.role), m.content) for m in messages[1:]] == [
        ("user", "first"),
        ("user", "second"),
    ]


async def test_prior_turns_are_sent(transport, store) -> None:
    c = _controller(transport, store)
    await c.send("Hello")
    await c.send("Again")

    messages, _prefs = transport.complete.await_args.args
    assert [(str(m.role), m.content) for m in messages[1:]] == [
        ("user", "Hello"),
        ("assistant", "World"),
        ("user", "Again"),
    ]


async def test_uses_current_preferences(transport, store) -> None:
    c = _controller(transport, store)
    store.set(Preferences(model="o3-mini", temperature=0.9))

    await c.send("Hello")

    _messages, prefs = transport.complete.await_args.args
    assert prefs == Preferences(model="o3-mini", temperature=0.9)


async def test_submit_schedules_turn(transport, store) -> None:
    c = _controller(transport, store)

    task = c.submit("Hello")
    assert task is not None
    await task

    assert c.history[-1].content == "World"
    assert c.submit("  ") is None


async def test_failing_subscriber_does_not_break_turn(transport, store) -> None:
    c = _controller(transport, store)

    def bad(_ctrl) -> None:
        raise RuntimeError("render failed")

    c.subscribe(bad)
    await c.send("Hello")

    assert c.history[-1].content == "World"
    assert c.state is ChatState.IDLE


async def test_unsubscribe_stops_notifications(transport, store) -> None:
    c = _controller(transport, store)
    calls: list[int] = []
    unsubscribe = c.subscribe(lambda _c: calls.append(1))
    unsubscribe()

    await c.send("Hello")

    assert calls == []


def test_history_is_read_only_view(transport, store) -> None:
    c = _controller(transport, store)
    assert isinstance(c.history, tuple)


def test_greeting_defaults_to_settings(transport, store, monkeypatch) -> None:
    monkeypatch.setattr("cds_chat.config.settings.greeting", "Hi there")
    c = ConversationController(transport, store)
    assert c.history[0].content == "Hi there"
