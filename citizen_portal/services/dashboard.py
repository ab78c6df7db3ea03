"""Cached read-only queries behind the dashboards."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Generic, Mapping, TypeVar

from citizen_portal.config.settings import settings
from citizen_portal.schemas.dashboard import ActivityPage, Application, DashboardStats, Document
from citizen_portal.schemas.notification import NotificationPage
from citizen_portal.services.notices import LoggingNotifier, Notifier
from citizen_portal.services.portal_api import PortalAPIClient, PortalError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


def default_stale_windows() -> dict[str, float]:
    return {
        "stats": settings.STATS_STALE_SECONDS,
        "applications": settings.APPLICATIONS_STALE_SECONDS,
        "notifications": settings.NOTIFICATIONS_STALE_SECONDS,
        "activity": settings.ACTIVITY_STALE_SECONDS,
        "documents": settings.DOCUMENTS_STALE_SECONDS,
    }


ERROR_MESSAGES = {
    "stats": "Failed to load dashboard statistics",
    "applications": "Failed to load applications",
    "notifications": "Failed to load notifications",
    "activity": "Failed to load recent activity",
    "documents": "Failed to load documents",
}


class CachedQuery(Generic[T]):
    """One cached remote read with a staleness window.

    Concurrent callers share a single in-flight request. A failed fetch keeps
    the previous value visible.
    """

    def __init__(
        self,
        name: str,
        fetcher: Callable[[], Awaitable[T]],
        stale_after: float,
        clock: Clock,
        notifier: Notifier,
    ) -> None:
        self.name = name
        self._fetcher = fetcher
        self.stale_after = stale_after
        self._clock = clock
        self._notifier = notifier
        self.value: T | None = None
        self.fetched_at: float | None = None
        self.error: Exception | None = None
        self._inflight: asyncio.Future | None = None

    @property
    def is_stale(self) -> bool:
        if self.fetched_at is None:
            return True
        return self._clock() - self.fetched_at >= self.stale_after

    def invalidate(self) -> None:
        self.fetched_at = None

    async def get(self, refresh: bool = False) -> T | None:
        if not refresh and not self.is_stale:
            return self.value
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._fetch())
        return await asyncio.shield(self._inflight)

    async def _fetch(self) -> T | None:
        try:
            value = await self._fetcher()
        except PortalError as exc:
            self.error = exc
            logger.warning("Dashboard query %s failed; keeping previous value: %s", self.name, exc)
            self._notifier.error(ERROR_MESSAGES.get(self.name.split(":", 1)[0], "Failed to load data"))
            return self.value
        self.value = value
        self.fetched_at = self._clock()
        self.error = None
        return value


class DashboardDataLayer:
    def __init__(
        self,
        client: PortalAPIClient,
        notifier: Notifier | None = None,
        clock: Clock = time.monotonic,
        stale_windows: Mapping[str, float] | None = None,
    ) -> None:
        self._client = client
        self._notifier = notifier if notifier is not None else LoggingNotifier()
        self._clock = clock
        self.stale_windows = {**default_stale_windows(), **(stale_windows or {})}
        self._queries: dict[str, CachedQuery[Any]] = {}

    def _query(self, kind: str, key: str, fetcher: Callable[[], Awaitable[T]]) -> CachedQuery[T]:
        query = self._queries.get(key)
        if query is None:
            query = CachedQuery(key, fetcher, self.stale_windows[kind], self._clock, self._notifier)
            self._queries[key] = query
        return query

    async def _get(self, query: CachedQuery[T], refresh: bool) -> T | None:
        if not self._client.has_token():
            logger.debug("No access token; serving cached %s", query.name)
            return query.value
        return await query.get(refresh=refresh)

    async def stats(self, refresh: bool = False) -> DashboardStats | None:
        query = self._query("stats", "stats", self._client.get_dashboard_stats)
        return await self._get(query, refresh)

    async def applications(self, limit: int = 10, refresh: bool = False) -> list[Application] | None:
        query = self._query(
            "applications",
            f"applications:{limit}",
            lambda: self._client.list_applications(limit=limit, page=1),
        )
        return await self._get(query, refresh)

    async def notifications(self, limit: int = 5, refresh: bool = False) -> NotificationPage | None:
        query = self._query(
            "notifications",
            f"notifications:{limit}",
            lambda: self._client.list_notifications(limit=limit, page=1),
        )
        return await self._get(query, refresh)

    async def activity(self, limit: int = 5, refresh: bool = False) -> ActivityPage | None:
        query = self._query(
            "activity",
            f"activity:{limit}",
            lambda: self._client.list_activity(limit=limit, page=1),
        )
        return await self._get(query, refresh)

    async def documents(self, refresh: bool = False) -> list[Document] | None:
        query = self._query("documents", "documents", self._client.list_documents)
        return await self._get(query, refresh)

    def invalidate(self, name: str | None = None) -> None:
        """Mark cached entries stale; all of them when ``name`` is None."""
        for key, query in self._queries.items():
            if name is None or key.split(":", 1)[0] == name:
                query.invalidate()

    async def refresh_all(self) -> None:
        """Refetch every query that has been requested so far."""
        if not self._client.has_token():
            return
        await asyncio.gather(*(query.get(refresh=True) for query in list(self._queries.values())))
