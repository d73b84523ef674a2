"""Realtime change listener for a user's bookmarks.

Opens one Supabase Realtime channel filtered to the user's rows and
forwards every notification, whatever its type, to a callback. Consumers
re-fetch the list on each notification instead of patching it.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from enum import Enum
from typing import Any
from uuid import UUID

import anyio
from supabase import AsyncClient

logger = logging.getLogger(__name__)

SCHEMA = "public"
TABLE = "bookmarks"

# Marks the end of the change stream
_CLOSED = object()


class ListenerState(Enum):
    UNINITIALIZED = "uninitialized"
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"


class BookmarkChangeListener:
    """One realtime subscription to a user's bookmark changes.

    Lifecycle: uninitialized -> subscribed -> unsubscribed. A listener is
    not reusable; create a new one per dashboard.

    Example:
        async with BookmarkChangeListener(client, user_id, token) as listener:
            async for payload in listener.changes():
                ...
    """

    def __init__(
        self,
        client: AsyncClient,
        user_id: UUID,
        access_token: str,
        on_change: Callable[[dict[str, Any]], Any] | None = None,
    ) -> None:
        self.client = client
        self.user_id = user_id
        self.access_token = access_token
        self.state = ListenerState.UNINITIALIZED
        self._channel: Any = None
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._on_change = on_change or self._queue.put_nowait

    @property
    def channel_name(self) -> str:
        return f"{TABLE}:{self.user_id}"

    async def subscribe(self) -> None:
        """Open the channel.

        Raises:
            RuntimeError: If this listener was already subscribed
        """
        if self.state is not ListenerState.UNINITIALIZED:
            raise RuntimeError(f"Cannot subscribe a listener in state {self.state.value}")

        # Realtime applies row-level security using this token
        await self.client.realtime.set_auth(self.access_token)

        channel = self.client.channel(self.channel_name)
        channel.on_postgres_changes(
            "*",
            schema=SCHEMA,
            table=TABLE,
            filter=f"user_id=eq.{self.user_id}",
            callback=self._handle_change,
        )
        self._channel = channel
        await channel.subscribe(self._handle_status)

        # A failure status may already have arrived while joining
        if self.state is ListenerState.UNINITIALIZED:
            self.state = ListenerState.SUBSCRIBED
            logger.info(f"Subscribed to bookmark changes for user {self.user_id}")

    async def unsubscribe(self) -> None:
        """Release the channel. Safe to call more than once."""
        self._close()
        channel, self._channel = self._channel, None
        if channel is None:
            return

        await self.client.remove_channel(channel)
        logger.info(f"Unsubscribed from bookmark changes for user {self.user_id}")

    def _close(self) -> None:
        if self.state is ListenerState.SUBSCRIBED:
            self._queue.put_nowait(_CLOSED)
        self.state = ListenerState.UNSUBSCRIBED

    def _handle_change(self, payload: dict[str, Any]) -> None:
        self._on_change(payload)

    def _handle_status(self, status: Any, error: Exception | None = None) -> None:
        """Track channel status; anything but SUBSCRIBED ends the stream.

        Realtime reports CHANNEL_ERROR, TIMED_OUT or CLOSED when the join
        fails or the server drops the channel (for example once the access
        token expires). The channel is not rejoined here: consumers open a
        new listener with a fresh token.
        """
        name = getattr(status, "value", status)
        if name == "SUBSCRIBED":
            logger.debug(f"Realtime channel {self.channel_name} joined")
            return

        if error is not None:
            logger.warning(f"Realtime channel {self.channel_name} {name}: {error}")
        else:
            logger.warning(f"Realtime channel {self.channel_name} {name}")
        self._close()

    async def changes(
        self, keepalive: float | None = None
    ) -> AsyncIterator[dict[str, Any] | None]:
        """Yield notifications as they arrive.

        Only available when no on_change callback was given.

        Args:
            keepalive: Seconds of silence after which None is yielded

        Yields:
            Change payloads, or None on each idle keepalive interval.
            Notifications queued before the channel closed are still
            delivered; iteration then ends.
        """
        while self.state is ListenerState.SUBSCRIBED or not self._queue.empty():
            try:
                payload = await asyncio.wait_for(self._queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                payload = None
            if payload is _CLOSED:
                return
            yield payload

    async def __aenter__(self) -> "BookmarkChangeListener":
        await self.subscribe()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        # Runs while a disconnected stream is being cancelled
        with anyio.CancelScope(shield=True):
            await self.unsubscribe()
