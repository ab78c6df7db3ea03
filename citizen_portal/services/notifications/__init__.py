from citizen_portal.services.notifications.poller import NotificationPoller, PollHandle

__all__ = ["NotificationPoller", "PollHandle"]
