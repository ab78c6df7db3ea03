"""Request dependencies shared by the stub portal routes."""
import logging
from typing import Any

from fastapi import HTTPException, Request, status

from citizen_portal.api.state import PortalState
from citizen_portal.schemas.common import CamelModel

logger = logging.getLogger(__name__)


def get_state(request: Request) -> PortalState:
    return request.app.state.portal


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def require_token(request: Request) -> PortalState:
    """Reject requests without the account's bearer token."""
    state = get_state(request)
    token = _bearer_token(request)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized, no token")
    if not state.accepts(token):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized, token failed")
    return state


def guard(state: PortalState, key: str) -> None:
    """Count the call and answer with an injected failure when one is set."""
    state.record(key)
    status_code = state.failures.get(key)
    if status_code is not None:
        logger.info("Injected failure for %s (status=%s)", key, status_code)
        raise HTTPException(status_code=status_code, detail=f"Simulated failure for {key}")


def _to_wire(value: Any) -> Any:
    if isinstance(value, CamelModel):
        return value.to_wire()
    if isinstance(value, list):
        return [_to_wire(item) for item in value]
    return value


def envelope(data: Any = None, message: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": True, "data": _to_wire(data)}
    if message:
        payload["message"] = message
    return payload
