"""
events.py - Event and invitee REST client.

POST   /api/events/                          create
GET    /api/events/                          list (sorted by date ascending)
GET    /api/events/{id}/                     get
PATCH  /api/events/{id}/                     update (only the fields given)
DELETE /api/events/{id}/                     delete
POST   /api/events/{id}/invitees/            add invitee   body {"elder": elder_id}
DELETE /api/events/{id}/invitees/{elder_id}/ remove invitee

Bulk invitation (add_invitees) issues one request per elder, in order, and
keeps going after a failure. There is no rollback: a partially invited event
is an accepted outcome and the per-elder results say exactly what happened.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from careevents.errors import ApiResult
from careevents.resources.base import ResourceClient, parse_many, parse_one
from careevents.resources.schemas import (
    Event,
    EventCreate,
    EventInvitee,
    EventUpdate,
    InviteeCreate,
    sort_events_by_date,
)

logger = logging.getLogger(__name__)


@dataclass
class InviteeBatch:
    """Per-elder outcome of add_invitees(), in request order."""
    event_id: Optional[int]  # None when the event itself was never created
    results: Dict[int, ApiResult[EventInvitee]] = field(default_factory=dict)

    @property
    def added_ids(self) -> List[int]:
        return [elder_id for elder_id, result in self.results.items() if result.ok]

    @property
    def failed_ids(self) -> List[int]:
        return [elder_id for elder_id, result in self.results.items() if not result.ok]

    @property
    def ok(self) -> bool:
        return not self.failed_ids


class EventsClient(ResourceClient):

    async def create(self, event: Union[EventCreate, Mapping[str, Any]]) -> ApiResult[Event]:
        result = await self._call(
            "create event", "POST", self.path("events"),
            body=event, body_model=EventCreate, parse=parse_one(Event),
        )
        if result.ok:
            logger.info("Created event event_id=%s", result.value.id)
        return result

    async def list(self, sort_by_date: bool = True) -> ApiResult[List[Event]]:
        result = await self._call("fetch events", "GET", self.path("events"), parse=parse_many(Event))
        if result.ok and sort_by_date:
            return ApiResult.success(result.operation, sort_events_by_date(result.value))
        return result

    async def get(self, event_id: int) -> ApiResult[Event]:
        return await self._call(
            f"fetch event {event_id}", "GET", self.path("events", event_id),
            parse=parse_one(Event),
        )

    async def update(
        self,
        event_id: int,
        changes: Union[EventUpdate, Mapping[str, Any]],
    ) -> ApiResult[Event]:
        return await self._call(
            f"update event {event_id}", "PATCH", self.path("events", event_id),
            body=changes, body_model=EventUpdate, exclude_unset=True,
            parse=parse_one(Event),
        )

    async def delete(self, event_id: int) -> ApiResult[None]:
        result = await self._call(f"delete event {event_id}", "DELETE", self.path("events", event_id))
        if result.ok:
            logger.info("Deleted event event_id=%s", event_id)
        return result

    # --- Invitees ---

    async def add_invitee(self, event_id: int, elder_id: int) -> ApiResult[EventInvitee]:
        return await self._call(
            f"invite elder {elder_id} to event {event_id}", "POST",
            self.path("events", event_id, "invitees"),
            body={"elder": elder_id}, body_model=InviteeCreate,
            parse=parse_one(EventInvitee),
        )

    async def remove_invitee(self, event_id: int, elder_id: int) -> ApiResult[None]:
        return await self._call(
            f"remove elder {elder_id} from event {event_id}", "DELETE",
            self.path("events", event_id, "invitees", elder_id),
        )

    async def add_invitees(self, event_id: int, elder_ids: Iterable[int]) -> InviteeBatch:
        """Invite each elder in turn; duplicate ids are sent once."""
        batch = InviteeBatch(event_id=event_id)
        for elder_id in dict.fromkeys(elder_ids):
            batch.results[elder_id] = await self.add_invitee(event_id, elder_id)
        if batch.failed_ids:
            logger.warning(
                "Invited %d of %d elder(s) to event_id=%s; failed elder_ids=%s",
                len(batch.added_ids), len(batch.results), event_id, batch.failed_ids,
            )
        return batch

    async def create_with_invitees(
        self,
        event: Union[EventCreate, Mapping[str, Any]],
        elder_ids: Iterable[int],
    ) -> Tuple[ApiResult[Event], InviteeBatch]:
        """
        Create an event, invite elder_ids, then re-fetch it so the returned
        Event reflects the server's invitee set rather than our guess.
        """
        created = await self.create(event)
        if not created.ok:
            return created, InviteeBatch(event_id=None)

        event_id = created.value.id
        batch = await self.add_invitees(event_id, elder_ids)
        if not batch.results:
            return created, batch
        refreshed = await self.get(event_id)
        return (refreshed if refreshed.ok else created), batch
