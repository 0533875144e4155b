"""Conversation controllers: pure async functions of (user, input) → responses."""

from telepath.handlers.context import BotContext
from telepath.handlers.dispatcher import COMMANDS, Dispatcher
from telepath.handlers.link_management import DeleteOutcome
from telepath.handlers.view import AnswerCallback, Button, EditMessage, Reply, Response

__all__ = [
    "BotContext",
    "Dispatcher",
    "COMMANDS",
    "DeleteOutcome",
    "AnswerCallback",
    "Button",
    "EditMessage",
    "Reply",
    "Response",
]
