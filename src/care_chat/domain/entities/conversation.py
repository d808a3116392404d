from __future__ import annotations

from dataclasses import dataclass

from care_chat.domain.entities.message import Message
from care_chat.domain.entities.user import User


@dataclass(frozen=True, slots=True)
class ConversationSummary:
    """Per-viewer view of one conversation. Derived, never stored."""

    partner_id: str
    partner: User | None
    last_message: Message
    unread_count: int
