"""Chat message and transcript types."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Message:
    id: str
    role: Role
    content: str
    chat_id: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def from_assistant(self) -> bool:
        return self.role == "assistant"


Transcript = tuple[Message, ...]
