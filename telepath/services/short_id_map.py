"""Abbreviated link ids for button payloads.

Telegram limits callback data to 64 bytes, so link buttons carry a short
display id instead of the provider's full id. The map remembers how to
turn one back into the other.
"""

import logging
from collections import OrderedDict

logger = logging.getLogger(__name__)

SHORT_ID_LENGTH = 8


def make_short_id(full_id: str) -> str:
    """First 8 characters after the final underscore, else of the whole id."""
    tail = full_id.rsplit("_", 1)[-1]
    return (tail or full_id)[:SHORT_ID_LENGTH]


class ShortIdMap:
    """Short id → full id lookup, optionally bounded with LRU eviction.

    Attributes:
        max_entries: Maximum ids remembered; None means unbounded.
    """

    def __init__(self, max_entries: int | None = None) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, str] = OrderedDict()

    def register(self, full_id: str) -> str:
        """Remember full_id and return its short id."""
        short_id = make_short_id(full_id)
        existing = self._entries.get(short_id)
        if existing is not None and existing != full_id:
            logger.warning(
                "Short id %s collides: %s replaced by %s", short_id, existing, full_id
            )
        self._entries[short_id] = full_id
        self._entries.move_to_end(short_id)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return short_id

    def resolve(self, short_id: str) -> str:
        """Full id for short_id, or short_id itself when unmapped."""
        full_id = self._entries.get(short_id)
        if full_id is None:
            return short_id
        self._entries.move_to_end(short_id)
        return full_id

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, short_id: object) -> bool:
        return short_id in self._entries
