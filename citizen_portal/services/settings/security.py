"""Account security scoring."""
from __future__ import annotations

from datetime import datetime

from citizen_portal.schemas.user_settings import SecuritySettings
from citizen_portal.utils.timestamps import months_before, to_utc, utcnow

MAX_SCORE = 100


def calculate_security_score(
    security: SecuritySettings,
    is_verified: bool,
    now: datetime | None = None,
) -> int:
    """Score an account's security posture from 0 to 100.

    Verified email 20, password changed within six months 20 (10 when the
    change date is unknown), two-factor 30, login notifications 10, session
    timeout of 30 minutes or less 10, any login history 10.
    """
    score = 0
    if is_verified:
        score += 20

    last_changed = to_utc(security.password_last_changed)
    if last_changed is not None:
        if last_changed > months_before(to_utc(now) or utcnow(), 6):
            score += 20
    else:
        score += 10

    if security.two_factor_enabled:
        score += 30
    if security.login_notifications:
        score += 10
    if security.session_timeout <= 30:
        score += 10
    if security.login_history:
        score += 10
    return min(score, MAX_SCORE)
