"""
schemas.py - First-party REST resource Pydantic v2 data contracts.

Defines:
  - Sender                        enum (user / llm, the two chat participants)
  - ElderSummary, Elder, ElderAudio
  - EventInvitee, Event
  - ChatMessage
  - ElderCreate, ElderUpdate, EventCreate, EventUpdate, InviteeCreate, ChatMessageCreate
    (outgoing payloads, validated before any request is sent)
  - sort_events_by_date()

Response models use extra="ignore" so new server fields never break parsing.
Request models use extra="forbid" so a typo in a field name fails locally
instead of being silently dropped by the backend.

The backend owns every record; nothing here is cached or persisted.
"""
from datetime import datetime
from enum import Enum
from typing import Annotated, Iterable, List, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

DEFAULT_EVENT_DURATION_MINUTES = 60


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Sender(str, Enum):
    user = "user"   # staff member typing in the chat view
    llm = "llm"     # assistant reply, written server-side


# ---------------------------------------------------------------------------
# Elders
# ---------------------------------------------------------------------------

class ElderSummary(BaseModel):
    """
    AI-generated profile summary, produced server-side from uploaded audio.
    Never computed by the client.
    """
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    elder: Optional[int] = None
    short_summary: str = ""
    long_summary: str = ""
    updated_at: Optional[datetime] = None


class Elder(BaseModel):
    """A resident profile. id and created_at are absent until the server creates it."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    name: str
    extra_details: str = ""
    created_at: Optional[datetime] = None
    summary: Optional[ElderSummary] = None


class ElderAudio(BaseModel):
    """
    Uploaded audio attached to one elder.

    audio_file is the server-side file URL. transcript is filled in
    asynchronously by the backend; None right after upload is normal.
    """
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    elder: int
    audio_file: Optional[str] = None
    transcript: Optional[str] = None
    uploaded_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

class EventInvitee(BaseModel):
    """Join record between an event and an elder. elder_name is denormalized for display."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    elder: int
    elder_name: Optional[str] = None


class Event(BaseModel):
    """A scheduled group activity with its invitee set."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    title: str
    description: str = ""
    date: datetime
    duration_minutes: int = Field(default=DEFAULT_EVENT_DURATION_MINUTES, gt=0)
    created_by: Optional[Union[int, str]] = None
    created_at: Optional[datetime] = None
    invitees: List[EventInvitee] = Field(default_factory=list)

    @model_validator(mode="after")
    def invitees_are_unique(self) -> "Event":
        """An elder is invited to an event at most once."""
        seen = set()
        for invitee in self.invitees:
            if invitee.elder in seen:
                raise ValueError(f"elder {invitee.elder} is invited more than once")
            seen.add(invitee.elder)
        return self

    @property
    def invitee_ids(self) -> List[int]:
        return [invitee.elder for invitee in self.invitees]


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

class ChatMessage(BaseModel):
    """One append-only message in an elder or event chat thread."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    sender: Sender
    message: str
    timestamp: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Outgoing payloads
# ---------------------------------------------------------------------------

def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


NonBlankStr = Annotated[str, Field(min_length=1), AfterValidator(_not_blank)]


class ElderCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: NonBlankStr = Field(..., description="Resident's display name. Required.")
    extra_details: str = Field(default="", description="Free-text preferences and notes.")


class ElderUpdate(BaseModel):
    """Partial update: only fields explicitly set are sent (PATCH semantics)."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[NonBlankStr] = None
    extra_details: Optional[str] = None


class EventCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: NonBlankStr
    description: str = ""
    date: datetime
    duration_minutes: int = Field(default=DEFAULT_EVENT_DURATION_MINUTES, gt=0)


class EventUpdate(BaseModel):
    """Partial update: only fields explicitly set are sent (PATCH semantics)."""
    model_config = ConfigDict(extra="forbid")

    title: Optional[NonBlankStr] = None
    description: Optional[str] = None
    date: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)


class InviteeCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    elder: int = Field(..., gt=0, description="Id of the elder to invite.")


class ChatMessageCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    sender: Sender = Sender.user
    message: NonBlankStr


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

def sort_events_by_date(events: Iterable[Event]) -> List[Event]:
    """
    Order events by date ascending, ties broken by id.
    Deterministic for identical input, so two unchanged listings compare equal.
    """
    return sorted(events, key=lambda event: (event.date.timestamp(), event.id or 0))


__all__ = [
    "Sender",
    "ElderSummary",
    "Elder",
    "ElderAudio",
    "EventInvitee",
    "Event",
    "ChatMessage",
    "ElderCreate",
    "ElderUpdate",
    "EventCreate",
    "EventUpdate",
    "InviteeCreate",
    "ChatMessageCreate",
    "sort_events_by_date",
    "DEFAULT_EVENT_DURATION_MINUTES",
]
