"""Settings and account security routes."""
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import ValidationError

from citizen_portal.api.dependencies import envelope, guard, require_token
from citizen_portal.api.state import CURRENT_SESSION_ID, PortalState
from citizen_portal.schemas.account import (
    DeleteAccountRequest,
    DeliveryTestRequest,
    ExportedSettings,
    LoginHistoryPage,
    UserDataExport,
    VerifyTwoFactorRequest,
)
from citizen_portal.schemas.user_settings import SECURITY_READ_ONLY_FIELDS, SETTINGS_MODELS, SettingsCategory
from citizen_portal.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings")

DELIVERY_LABELS = {"email": "email", "sms": "SMS", "push": "push"}


# Specific paths are declared before the catch-all category routes.


@router.post("/2fa/enable")
def enable_two_factor(state: PortalState = Depends(require_token)):
    guard(state, "settings.2fa")
    return envelope(state.start_two_factor(), message="Scan the QR code to finish enabling two-factor authentication")


@router.post("/2fa/verify")
def verify_two_factor(payload: VerifyTwoFactorRequest, state: PortalState = Depends(require_token)):
    guard(state, "settings.2fa")
    if not state.two_factor_pending:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Two-factor setup was not started")
    state.set_two_factor(True)
    logger.info("Two-factor authentication enabled with a %d-digit code", len(payload.token))
    return envelope(message="Two-factor authentication enabled")


@router.post("/2fa/disable")
def disable_two_factor(state: PortalState = Depends(require_token)):
    guard(state, "settings.2fa")
    state.set_two_factor(False)
    return envelope(message="Two-factor authentication disabled")


@router.get("/sessions")
def list_sessions(state: PortalState = Depends(require_token)):
    guard(state, "settings.sessions")
    return envelope(state.sessions)


@router.post("/sessions/logout-all")
def logout_all_sessions(state: PortalState = Depends(require_token)):
    guard(state, "settings.sessions")
    state.sessions = [session for session in state.sessions if session.id == CURRENT_SESSION_ID]
    return envelope(message="Logged out from all other devices")


@router.delete("/sessions/{session_id}")
def revoke_session(session_id: str, state: PortalState = Depends(require_token)):
    guard(state, "settings.sessions")
    remaining = [session for session in state.sessions if session.id != session_id]
    if len(remaining) == len(state.sessions):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    state.sessions = remaining
    return envelope(message="Session revoked")


@router.get("/login-history")
def get_login_history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    state: PortalState = Depends(require_token),
):
    guard(state, "settings.login-history")
    start = (page - 1) * limit
    history = state.login_history[start : start + limit]
    return envelope(LoginHistoryPage(history=history, total=len(state.login_history)))


@router.get("/export-data")
def export_data(state: PortalState = Depends(require_token)):
    guard(state, "settings.export-data")
    security = state.settings[SettingsCategory.SECURITY]
    exported = UserDataExport(
        profile=dict(state.profile),
        applications=[application.to_wire() for application in state.applications],
        notifications=[notification.to_wire() for notification in state.notifications],
        documents=[document.to_wire() for document in state.documents],
        activity_logs=[activity.to_wire() for activity in state.activities],
        settings=ExportedSettings(
            user=state.settings[SettingsCategory.USER],
            notifications=state.settings[SettingsCategory.NOTIFICATIONS],
            privacy=state.settings[SettingsCategory.PRIVACY],
            security=security.to_wire(exclude=set(SECURITY_READ_ONLY_FIELDS)),
        ),
        exported_at=utcnow(),
    )
    return envelope(exported)


@router.post("/delete-account")
def delete_account(payload: DeleteAccountRequest, state: PortalState = Depends(require_token)):
    guard(state, "settings.delete-account")
    if payload.password != state.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password is incorrect")
    state.deleted = True
    logger.info("Account deleted (reason provided: %s)", bool(payload.reason))
    return envelope(message="Account deleted successfully")


@router.get("/storage")
def get_storage(state: PortalState = Depends(require_token)):
    guard(state, "settings.storage")
    return envelope(state.storage_usage())


@router.post("/test-notification")
def send_test_notification(payload: DeliveryTestRequest, state: PortalState = Depends(require_token)):
    guard(state, "settings.test-notification")
    return envelope(message=f"Test {DELIVERY_LABELS[payload.type]} notification sent")


@router.get("/{category}")
def get_settings(category: SettingsCategory, state: PortalState = Depends(require_token)):
    guard(state, f"settings.{category.value}")
    return envelope(state.settings_view(category))


@router.put("/{category}")
def update_settings(
    category: SettingsCategory,
    payload: dict[str, Any] = Body(...),
    state: PortalState = Depends(require_token),
):
    guard(state, f"settings.{category.value}")
    model, update_model = SETTINGS_MODELS[category]
    try:
        changes = update_model.model_validate(payload).model_dump(exclude_unset=True)
        merged = model.model_validate({**state.settings[category].model_dump(), **changes})
    except ValidationError as exc:
        first_error = exc.errors()[0]
        location = ".".join(str(part) for part in first_error.get("loc", ()))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {category.value} settings: {location} {first_error.get('msg', '')}".strip(),
        ) from exc
    state.settings[category] = merged
    return envelope(state.settings_view(category), message="Settings updated successfully")
