"""
polling.py - Live chat view refresh by fixed-interval re-fetch.

ChatPoller re-fetches the full message list of one thread every `interval`
seconds while it is running (the chat view is mounted):

  - first fetch happens immediately on start()
  - every tick spawns its own fetch task, so a hung request never delays the
    schedule; it only delays its own result
  - responses carry a monotonic sequence number; a response older than the
    newest one already applied is dropped, so the view never goes backwards
  - stop() cancels the loop AND every in-flight fetch, then waits for them:
    no orphaned tasks survive an unmount
  - stop() also bumps a generation counter; any fetch or send started before
    it that still completes (e.g. a send whose POST was in flight) is dropped,
    so on_update never fires after unmount
  - a failed poll is logged and the next tick simply tries again

Reads are full-list re-fetches, never diffs, so racing with a send is safe:
the view converges on the server state at the next applied response.
"""
import asyncio
import inspect
import logging
from typing import Any, Callable, List, Optional, Set, Union

from careevents.errors import ApiResult, ResourceError
from careevents.resources.chat import ChatClient, ChatThread
from careevents.resources.schemas import ChatMessage, Sender

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[List[ChatMessage]], Any]


class ChatPoller:

    def __init__(
        self,
        chat: ChatClient,
        thread: ChatThread,
        on_update: UpdateCallback,
        interval: float,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"poll interval must be positive, got {interval}")
        self.chat = chat
        self.thread = thread
        self.on_update = on_update
        self.interval = interval

        self.messages: List[ChatMessage] = []
        self.last_error: Optional[ResourceError] = None

        self._issued = 0     # sequence number of the newest fetch started
        self._applied = 0    # sequence number of the newest response rendered
        self._generation = 0  # bumped by stop(); older work must not render
        self._loop_task: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    # ------------------------------------------------------------------
    # Mount / unmount
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin polling. Must be called from a running event loop; idempotent."""
        if self.running:
            return
        self._loop_task = asyncio.create_task(self._run(), name=f"chat-poller:{self.thread}")
        logger.debug("Polling %s every %.1fs", self.thread, self.interval)

    async def stop(self) -> None:
        self._generation += 1
        tasks = list(self._inflight)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._loop_task = None
        self._inflight.clear()
        logger.debug("Stopped polling %s", self.thread)

    async def __aenter__(self) -> "ChatPoller":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """
        Fetch the thread once. Returns True if the response was applied,
        False if the fetch failed, a newer response had already been applied,
        or stop() was called while the fetch was in flight.
        """
        self._issued += 1
        sequence = self._issued
        generation = self._generation

        result = await self.chat.list(self.thread)
        if generation != self._generation:
            logger.debug("Dropping poll response seq=%d for %s: poller stopped", sequence, self.thread)
            return False

        if not result.ok:
            # Only surface the error if nothing newer has rendered since
            if sequence > self._applied:
                self.last_error = result.error
            logger.warning("Chat poll failed: %s", result.error)
            return False

        if sequence < self._applied:
            logger.debug(
                "Dropping stale poll response seq=%d (already applied seq=%d) for %s",
                sequence, self._applied, self.thread,
            )
            return False

        self._applied = sequence
        self.messages = result.value
        self.last_error = None
        outcome = self.on_update(result.value)
        if inspect.isawaitable(outcome):
            await outcome
        return True

    async def send(
        self,
        message: str,
        sender: Union[Sender, str, None] = Sender.user,
    ) -> ApiResult[ChatMessage]:
        """
        Send a message, then re-fetch so the view shows the server's latest state.

        The re-fetch is skipped if stop() ran while the POST was in flight, and
        otherwise runs as a tracked task so a later stop() cancels it.
        """
        generation = self._generation
        result = await self.chat.send(self.thread, message, sender)
        if result.ok and generation == self._generation:
            # return_exceptions: a stop() cancelling the re-fetch must not cancel the caller
            (outcome,) = await asyncio.gather(self._spawn(self.refresh()), return_exceptions=True)
            if isinstance(outcome, Exception):
                raise outcome
        return result

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _run(self) -> None:
        while True:
            self._spawn(self._tick())
            await asyncio.sleep(self.interval)

    async def _tick(self) -> None:
        try:
            await self.refresh()
        except asyncio.CancelledError:
            raise
        except Exception:
            # Background task: nothing awaits it, so report here and keep polling
            logger.exception("Chat poll tick failed for %s", self.thread)
