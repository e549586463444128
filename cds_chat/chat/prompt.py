"""Outbound message list assembly."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cds_chat.chat.message import Message, Role
from cds_chat.config import settings

if TYPE_CHECKING:
    from collections.abc import Iterable


def build_preamble() -> Message:
    """A fresh system preamble. Regenerated per request, never stored."""
    return Message(role=Role.SYSTEM, content=settings.system_preamble)


def build_request_messages(history: Iterable[Message]) -> list[Message]:
    """Return ``[preamble, *turns]`` for a completion request.

    Synthetic entries and any stored system messages are dropped so the
    endpoint only sees the real user/assistant exchange.
    """
    turns = [m for m in history if not m.synthetic and m.role != Role.SYSTEM]
    return [build_preamble(), *turns]
