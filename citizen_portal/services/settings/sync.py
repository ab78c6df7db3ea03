"""Fetch and persist settings categories against the portal API."""

import logging
from dataclasses import dataclass

from citizen_portal.schemas.common import CamelModel
from citizen_portal.schemas.user_settings import SettingsCategory, default_settings
from citizen_portal.services.portal_api import PortalAPIClient, PortalError

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    category: SettingsCategory
    value: CamelModel
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SettingsSyncService:
    def __init__(self, client: PortalAPIClient) -> None:
        self.client = client

    def is_authenticated(self) -> bool:
        return self.client.has_token()

    async def load(self, category: SettingsCategory) -> SyncResult:
        """Fetch one category, falling back to its defaults when the API fails."""
        try:
            value = await self.client.get_settings(category)
        except PortalError as exc:
            logger.warning("Using default %s settings; fetch failed: %s", category.value, exc)
            return SyncResult(category, default_settings(category), error=exc)
        return SyncResult(category, value)

    async def persist(self, category: SettingsCategory, value: CamelModel) -> CamelModel:
        """Save a full category value; raises PortalError on failure."""
        saved = await self.client.update_settings(category, value)
        logger.debug("Saved %s settings", category.value)
        return saved
