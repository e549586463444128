"""Conversation state: messages, preamble and the send/receive controller."""

from cds_chat.chat.controller import ChatState, ConversationController
from cds_chat.chat.message import Message, Role

__all__ = [
    "ChatState",
    "ConversationController",
    "Message",
    "Role",
]
