"""Chat transport adapters."""

from telepath.transport.telegram import TelegramTransport, configure_bot_profile

__all__ = ["TelegramTransport", "configure_bot_profile"]
