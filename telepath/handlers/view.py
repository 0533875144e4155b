"""Transport-neutral display primitives.

Controllers return a list of responses; the transport adapter turns them
into Bot API calls. Text is Telegram legacy Markdown.
"""

from dataclasses import dataclass, field

from telegram.helpers import escape_markdown

from telepath.handlers.actions import _Action, encode


@dataclass(frozen=True)
class Button:
    """One inline button carrying a typed action."""

    text: str
    action: _Action

    @property
    def callback_data(self) -> str:
        return encode(self.action)


Keyboard = list[list[Button]]


@dataclass
class Reply:
    """Send a new message."""

    text: str
    keyboard: Keyboard | None = None


@dataclass
class EditMessage:
    """Replace the text of the message whose button was pressed.

    An empty keyboard clears the message's buttons.
    """

    text: str
    keyboard: Keyboard = field(default_factory=list)


@dataclass
class AnswerCallback:
    """Acknowledge a button press, optionally with a toast."""

    text: str | None = None
    show_alert: bool = False


Response = Reply | EditMessage | AnswerCallback


def md(value: object) -> str:
    """Escape user-controlled text for legacy Markdown."""
    return escape_markdown(str(value), version=1)


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def yes_no(value: bool) -> str:
    return "Yes" if value else "No"
