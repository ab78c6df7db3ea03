"""Periodic notification fetching for the signed-in identity."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from citizen_portal.config.settings import settings
from citizen_portal.schemas.notification import Notification
from citizen_portal.services.portal_api import PortalAPIClient, PortalError
from citizen_portal.utils.subscriptions import Subscription

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]
PollerListener = Callable[["NotificationPoller"], None]


class Mutation(str, Enum):
    READ = "read"
    DELETED = "deleted"


@dataclass
class LocalOverride:
    """A local change that outranks fetches started before it settled."""

    kind: Mutation
    issued_at: int
    settled_at: int | None = None

    def superseded_by(self, fetch_started_at: int) -> bool:
        return self.settled_at is not None and self.settled_at < fetch_started_at


class PollHandle:
    """Cancellation handle for one polling loop."""

    def __init__(self, task: asyncio.Task, identity: str) -> None:
        self._task = task
        self.identity = identity

    @property
    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> None:
        if not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the loop to finish after :meth:`cancel`."""
        await asyncio.wait({self._task})


class NotificationPoller:
    """Keeps the recent notifications and unread count for one identity.

    Every fetch and local mutation takes a tick from a logical clock. Local
    read/delete changes are applied on top of any fetch that started before
    the change settled on the server, so a slow response can never undo a
    newer local action. The unread count is always recomputed from the
    reconciled list.
    """

    def __init__(
        self,
        client: PortalAPIClient,
        limit: int | None = None,
        interval: float | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        self._client = client
        self.limit = limit or settings.NOTIFICATION_FETCH_LIMIT
        self.interval = interval if interval is not None else settings.NOTIFICATION_POLL_INTERVAL_SECONDS
        self._sleep = sleep if sleep is not None else asyncio.sleep
        self._listeners: list[PollerListener] = []
        self._handle: PollHandle | None = None
        self._clock = 0
        self.identity: str | None = None
        self.fetch_count = 0
        self._reset()

    def _tick(self) -> int:
        self._clock += 1
        return self._clock

    def _reset(self) -> None:
        self._notifications: list[Notification] = []
        self._overrides: dict[str, LocalOverride] = {}
        self._mark_all: LocalOverride | None = None
        # Responses to fetches issued before a reset are ignored.
        self._last_applied_fetch = self._tick()
        self.last_error: Exception | None = None

    # State

    @property
    def notifications(self) -> list[Notification]:
        return list(self._notifications)

    @property
    def unread_count(self) -> int:
        return sum(1 for notification in self._notifications if not notification.is_read)

    @property
    def is_running(self) -> bool:
        return self._handle is not None and not self._handle.done

    def subscribe(self, listener: PollerListener) -> Subscription:
        self._listeners.append(listener)

        def _release() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(_release)

    def _emit(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Notification listener failed")

    # Loop control

    def start(self, identity: str, interval: float | None = None) -> PollHandle:
        """Start polling for ``identity``; the first fetch runs right away.

        Must be called from inside a running event loop. Starting for a
        different identity cancels the current loop and clears cached state.
        """
        if self.is_running and self.identity == identity:
            return self._handle  # type: ignore[return-value]
        period = interval if interval is not None else self.interval
        if period <= 0:
            raise ValueError("Polling interval must be positive")

        self.stop()
        if self.identity != identity:
            self._reset()
            self._emit()
        self.identity = identity
        task = asyncio.get_running_loop().create_task(
            self._run(period),
            name=f"notification-poller:{identity}",
        )
        self._handle = PollHandle(task, identity)
        logger.debug("Started notification polling every %.1fs", period)
        return self._handle

    def stop(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()
            logger.debug("Stopped notification polling")

    async def _run(self, interval: float) -> None:
        while True:
            try:
                await self.refresh()
            except Exception:
                logger.exception("Unexpected error while polling notifications")
            await self._sleep(interval)

    # Fetching

    async def refresh(self) -> bool:
        """Run one fetch cycle; returns whether a response was applied."""
        if not self._client.has_token():
            logger.debug("No access token; skipping notification fetch")
            return False

        started_at = self._tick()
        self.fetch_count += 1
        try:
            page = await self._client.list_notifications(limit=self.limit, page=1)
        except PortalError as exc:
            self.last_error = exc
            logger.warning(
                "Notification fetch failed; keeping %d cached notifications: %s",
                len(self._notifications),
                exc,
            )
            self._emit()
            return False

        if started_at < self._last_applied_fetch:
            logger.debug("Discarding notification response older than the current state")
            return False
        self._last_applied_fetch = started_at
        self.last_error = None
        self._notifications = self._reconcile(page.notifications, started_at)
        self._emit()
        return True

    def _reconcile(self, fetched: list[Notification], started_at: int) -> list[Notification]:
        for notification_id, override in list(self._overrides.items()):
            if override.superseded_by(started_at):
                del self._overrides[notification_id]
        if self._mark_all is not None and self._mark_all.superseded_by(started_at):
            self._mark_all = None

        reconciled: list[Notification] = []
        for notification in fetched:
            override = self._overrides.get(notification.id)
            if override is not None and override.kind is Mutation.DELETED:
                continue
            forced_read = self._mark_all is not None or (
                override is not None and override.kind is Mutation.READ
            )
            if forced_read and not notification.is_read:
                notification = notification.model_copy(update={"is_read": True})
            reconciled.append(notification)
        return reconciled

    # Local mutations

    def _flip_read(self, notification_ids: set[str]) -> None:
        self._notifications = [
            notification.model_copy(update={"is_read": True})
            if notification.id in notification_ids and not notification.is_read
            else notification
            for notification in self._notifications
        ]

    async def mark_read(self, notification_id: str) -> bool:
        """Mark one notification read locally, then on the server."""
        override = LocalOverride(Mutation.READ, issued_at=self._tick())
        existing = self._overrides.get(notification_id)
        if existing is None or existing.kind is not Mutation.DELETED:
            self._overrides[notification_id] = override
        self._flip_read({notification_id})
        self._emit()
        try:
            await self._client.mark_notification_read(notification_id)
        except PortalError as exc:
            self.last_error = exc
            logger.warning("Failed to mark notification %s as read: %s", notification_id, exc)
            return False
        finally:
            override.settled_at = self._tick()
        return True

    async def mark_all_read(self) -> bool:
        """Mark every currently unread notification read; the count ends at zero."""
        unread_ids = [notification.id for notification in self._notifications if not notification.is_read]
        mark_all = LocalOverride(Mutation.READ, issued_at=self._tick())
        self._mark_all = mark_all
        self._flip_read(set(unread_ids))
        self._emit()
        try:
            results = await asyncio.gather(*(self.mark_read(notification_id) for notification_id in unread_ids))
        finally:
            mark_all.settled_at = self._tick()
        return all(results)

    async def delete(self, notification_id: str) -> bool:
        """Remove a notification locally and on the server."""
        override = LocalOverride(Mutation.DELETED, issued_at=self._tick())
        self._overrides[notification_id] = override
        remaining = [notification for notification in self._notifications if notification.id != notification_id]
        if len(remaining) != len(self._notifications):
            self._notifications = remaining
            self._emit()
        try:
            await self._client.delete_notification(notification_id)
        except PortalError as exc:
            self.last_error = exc
            logger.warning("Failed to delete notification %s: %s", notification_id, exc)
            return False
        finally:
            override.settled_at = self._tick()
        return True
