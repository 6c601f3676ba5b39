import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

USER = "user"
ASSISTANT = "assistant"
SENDERS = {USER, ASSISTANT}

EMPTY_REPLY_MESSAGE = "There has been an unexpected error in getting a response back!"


@dataclass(frozen=True)
class ChatMessage:
    content: str
    sender: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    is_error: bool = False

    def __post_init__(self):
        if self.sender not in SENDERS:
            raise ValueError(f"sender must be one of {sorted(SENDERS)}, got {self.sender!r}")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "sender": self.sender,
            "timestamp": self.timestamp.isoformat(),
            "is_error": self.is_error,
        }


def user_message(content: str) -> ChatMessage:
    return ChatMessage(content=content, sender=USER)


def assistant_reply(reply: str) -> ChatMessage:
    """An empty orchestrator reply is shown to the user as an error bubble."""
    if not reply:
        return ChatMessage(content=EMPTY_REPLY_MESSAGE, sender=ASSISTANT, is_error=True)
    return ChatMessage(content=reply, sender=ASSISTANT)


class Transcript:
    """Append-only, ordered chat history for one session."""

    def __init__(self):
        self._lock = threading.Lock()
        self._messages: list[ChatMessage] = []

    def append(self, message: ChatMessage) -> None:
        with self._lock:
            self._messages.append(message)

    def messages(self) -> list[ChatMessage]:
        with self._lock:
            return list(self._messages)

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
