"""CDS Chat entry point."""

import asyncio
import logging

from cds_chat.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Start an interactive console chat session."""
    from cds_chat.chat.controller import ConversationController
    from cds_chat.console import ConsoleChat
    from cds_chat.llm.transport import ChatTransport
    from cds_chat.preferences import PreferenceStore

    preferences = PreferenceStore.shared()
    controller = ConversationController(ChatTransport(), preferences)
    logger.info(
        "Starting CDS Chat against %s with model %s...",
        settings.chat_endpoint,
        preferences.get().model,
    )
    try:
        asyncio.run(ConsoleChat(controller, preferences).run())
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
