# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Dashboard counters derived from an owner's share records."""

from datetime import datetime, timedelta
from typing import Iterable

from pydantic import BaseModel

from sharing.domain import ShareRecord


class ShareStats(BaseModel):
    active_count: int
    created_today_count: int
    expiring_soon_count: int
    viewed_count: int


def start_of_local_day(now: datetime) -> datetime:
    """Midnight of *now*'s calendar day in the server's local timezone."""
    return now.astimezone().replace(hour=0, minute=0, second=0, microsecond=0)


def compute_stats(records: Iterable[ShareRecord], now: datetime, expiring_window: timedelta) -> ShareStats:
    """
    * active        – not deactivated and not past ``expires_at``
    * created today – ``created_at`` at or after local midnight
    * expiring soon – active and ``expires_at`` within *expiring_window*
    * viewed        – ever viewed, whatever the current state

    Expiry is read straight from ``expires_at``, so a link nobody has
    touched since its deadline is already counted as expired here.
    """
    day_start = start_of_local_day(now)
    horizon = now + expiring_window

    active = created_today = expiring_soon = viewed = 0
    for share in records:
        live = share.active and not share.is_expired(now)
        if live:
            active += 1
            if share.expires_at is not None and share.expires_at < horizon:
                expiring_soon += 1
        if share.created_at >= day_start:
            created_today += 1
        if share.viewed:
            viewed += 1

    return ShareStats(
        active_count=active,
        created_today_count=created_today,
        expiring_soon_count=expiring_soon,
        viewed_count=viewed,
    )
