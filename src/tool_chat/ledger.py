# ledger.py
# Append-only record of a conversation's turns.

from collections.abc import Iterator

from tool_chat.models import Message


class MessageLedger:
    """
    Ordered, append-only message history.

    There is no way to remove, replace or reorder an entry.
    Messages are frozen pydantic models, so handing them out is safe.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def all(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def is_empty(self) -> bool:
        return not self._messages

    def since(self, index: int) -> list[Message]:
        """Messages appended at or after *index*."""
        return self._messages[index:]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]
