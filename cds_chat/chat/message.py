"""Message data model."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


class Role(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """A single conversation entry. Immutable once created.

    Attributes:
        role: Who authored the message.
        content: Message text (markdown for assistant replies).
        id: Unique identifier (UUID hex).
        created_at: UTC creation time.
        synthetic: True for client-generated entries (the greeting and
            error fallbacks) that are shown to the user but never sent
            to the completion endpoint.
    """

    role: Role
    content: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    synthetic: bool = False

    def to_api(self) -> dict[str, str]:
        """Format for the completion request body."""
        return {"role": str(self.role), "content": self.content}
