"""Stub portal API used for local development and tests."""
from citizen_portal.api.app import create_app
from citizen_portal.api.state import PortalState

__all__ = ["PortalState", "create_app"]
