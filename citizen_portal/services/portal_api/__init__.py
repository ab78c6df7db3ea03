from citizen_portal.services.portal_api.base import (
    PortalError,
    PortalAuthError,
    PortalAPIError,
)
from citizen_portal.services.portal_api.client import PortalAPIClient

__all__ = [
    "PortalError",
    "PortalAuthError",
    "PortalAPIError",
    "PortalAPIClient",
]
