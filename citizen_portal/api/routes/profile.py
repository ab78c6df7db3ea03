"""Profile dashboard and notification routes."""
import math

from fastapi import APIRouter, Depends, HTTPException, Query, status

from citizen_portal.api.dependencies import envelope, guard, require_token
from citizen_portal.api.state import PortalState
from citizen_portal.schemas.account import ChangePasswordRequest
from citizen_portal.schemas.common import Pagination
from citizen_portal.schemas.dashboard import ActivityPage, ApplicationPage
from citizen_portal.schemas.notification import NotificationPage

router = APIRouter(prefix="/profile")


def _paginate(items: list, page: int, limit: int) -> tuple[list, Pagination]:
    start = (page - 1) * limit
    pagination = Pagination(
        page=page,
        limit=limit,
        total=len(items),
        pages=math.ceil(len(items) / limit),
    )
    return items[start : start + limit], pagination


def _get_notification_or_404(state: PortalState, notification_id: str):
    notification = state.find_notification(notification_id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification


@router.get("/stats")
def get_stats(state: PortalState = Depends(require_token)):
    guard(state, "profile.stats")
    return envelope(state.stats())


@router.get("/applications")
def list_applications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    state: PortalState = Depends(require_token),
):
    guard(state, "profile.applications")
    ordered = sorted(state.applications, key=lambda item: item.created_at, reverse=True)
    applications, pagination = _paginate(ordered, page, limit)
    return envelope(ApplicationPage(applications=applications, pagination=pagination))


@router.get("/activity")
def list_activity(
    page: int = Query(1, ge=1),
    limit: int = Query(5, ge=1, le=100),
    state: PortalState = Depends(require_token),
):
    guard(state, "profile.activity")
    ordered = sorted(state.activities, key=lambda item: item.created_at, reverse=True)
    activities, pagination = _paginate(ordered, page, limit)
    return envelope(ActivityPage(activities=activities, pagination=pagination))


@router.get("/documents")
def list_documents(state: PortalState = Depends(require_token)):
    guard(state, "profile.documents")
    return envelope(sorted(state.documents, key=lambda item: item.uploaded_at, reverse=True))


@router.get("/notifications")
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    state: PortalState = Depends(require_token),
):
    guard(state, "profile.notifications")
    notifications, pagination = _paginate(state.sorted_notifications(), page, limit)
    return envelope(NotificationPage(notifications=notifications, pagination=pagination))


@router.put("/notifications/{notification_id}/read")
def mark_notification_read(notification_id: str, state: PortalState = Depends(require_token)):
    guard(state, "profile.notifications.read")
    notification = _get_notification_or_404(state, notification_id)
    notification.is_read = True
    return envelope(notification, message="Notification marked as read")


@router.delete("/notifications/{notification_id}")
def delete_notification(notification_id: str, state: PortalState = Depends(require_token)):
    guard(state, "profile.notifications.delete")
    notification = _get_notification_or_404(state, notification_id)
    state.notifications.remove(notification)
    return envelope(message="Notification deleted")


@router.put("/change-password")
def change_password(payload: ChangePasswordRequest, state: PortalState = Depends(require_token)):
    guard(state, "profile.change-password")
    if payload.current_password != state.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
    state.change_password(payload.new_password)
    return envelope(message="Password changed successfully")
