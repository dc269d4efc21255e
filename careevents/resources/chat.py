"""
chat.py - Per-thread chat message client.

A thread belongs to exactly one elder or one event; the two path families
never mix:
    /api/elders/{id}/chat/messages/
    /api/events/{id}/chat/messages/

Messages are append-only. Sending returns the created message; the assistant
reply (sender="llm") is written by the backend and shows up on the next list.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple, Union

from careevents.errors import ApiResult
from careevents.resources.base import ResourceClient, parse_many, parse_one
from careevents.resources.schemas import ChatMessage, ChatMessageCreate, Sender


class ThreadKind(str, Enum):
    elder = "elder"
    event = "event"


@dataclass(frozen=True)
class ChatThread:
    kind: ThreadKind
    owner_id: int

    @classmethod
    def for_elder(cls, elder_id: int) -> "ChatThread":
        return cls(ThreadKind.elder, elder_id)

    @classmethod
    def for_event(cls, event_id: int) -> "ChatThread":
        return cls(ThreadKind.event, event_id)

    @property
    def segments(self) -> Tuple[Union[str, int], ...]:
        collection = "elders" if self.kind == ThreadKind.elder else "events"
        return (collection, self.owner_id, "chat", "messages")

    def __str__(self) -> str:
        return f"{self.kind.value} {self.owner_id} chat"


class ChatClient(ResourceClient):

    async def list(self, thread: ChatThread) -> ApiResult[List[ChatMessage]]:
        return await self._call(
            f"fetch {thread} messages", "GET", self.path(*thread.segments),
            parse=parse_many(ChatMessage),
        )

    async def send(
        self,
        thread: ChatThread,
        message: str,
        sender: Union[Sender, str, None] = Sender.user,
    ) -> ApiResult[ChatMessage]:
        return await self._call(
            f"send {thread} message", "POST", self.path(*thread.segments),
            body={"sender": sender or Sender.user, "message": message}, body_model=ChatMessageCreate,
            parse=parse_one(ChatMessage),
        )
