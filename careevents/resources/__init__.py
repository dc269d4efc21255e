"""First-party REST resources: elders, events and invitees, chat threads."""
from careevents.resources.chat import ChatClient, ChatThread, ThreadKind
from careevents.resources.elders import EldersClient
from careevents.resources.events import EventsClient, InviteeBatch
from careevents.resources.schemas import (
    ChatMessage,
    Elder,
    ElderAudio,
    ElderSummary,
    Event,
    EventInvitee,
    Sender,
    sort_events_by_date,
)

__all__ = [
    "ChatClient",
    "ChatThread",
    "ThreadKind",
    "EldersClient",
    "EventsClient",
    "InviteeBatch",
    "ChatMessage",
    "Elder",
    "ElderAudio",
    "ElderSummary",
    "Event",
    "EventInvitee",
    "Sender",
    "sort_events_by_date",
]
