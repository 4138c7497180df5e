"""
Dashboard counter tests.

``created_today`` depends on the server's local midnight, so every test
here pins the process timezone to UTC.
"""

import time
from datetime import timedelta

import pytest

from conftest import OTHER_OWNER_ID, OWNER_ID, make_entries
from sharing.stats import compute_stats, start_of_local_day


@pytest.fixture(autouse=True)
def utc_local_time(monkeypatch):
    monkeypatch.setenv("TZ", "UTC")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


class TestStats:
    def test_mixed_lifecycle(self, engine, entries, clock):
        shares = [engine.issue(OWNER_ID, [e.id]) for e in entries]
        engine.access(shares[0].token)
        clock.advance(hours=2)
        engine.revoke(shares[1].id, OWNER_ID)

        stats = engine.get_stats(OWNER_ID)

        assert stats.created_today_count == 3
        assert stats.viewed_count == 1
        # shares[0] is past its post-view hour, shares[1] is revoked.
        assert stats.active_count == 1
        assert stats.expiring_soon_count == 0

    def test_expiring_soon_after_view(self, engine, entries, clock):
        share = engine.issue(OWNER_ID, [entries[0].id])
        engine.access(share.token)

        clock.advance(minutes=29)
        assert engine.get_stats(OWNER_ID).expiring_soon_count == 0

        clock.advance(minutes=2)
        stats = engine.get_stats(OWNER_ID)
        assert stats.expiring_soon_count == 1
        assert stats.active_count == 1

    def test_expiring_soon_boundary_is_exclusive(self, engine, entries, clock):
        share = engine.issue(OWNER_ID, [entries[0].id])
        clock.now = share.expires_at - timedelta(minutes=30)
        assert engine.get_stats(OWNER_ID).expiring_soon_count == 0

        clock.advance(seconds=1)
        assert engine.get_stats(OWNER_ID).expiring_soon_count == 1

    def test_yesterdays_share_not_created_today(self, engine, entries, clock):
        engine.issue(OWNER_ID, [entries[0].id])
        clock.advance(days=1)
        engine.issue(OWNER_ID, [entries[1].id])

        stats = engine.get_stats(OWNER_ID)
        assert stats.created_today_count == 1
        assert stats.active_count == 2

    def test_confirmed_share_counts_as_viewed_not_active(self, engine, entries):
        share = engine.issue(OWNER_ID, [entries[0].id])
        engine.access(share.token)
        engine.confirm(share.token)

        stats = engine.get_stats(OWNER_ID)
        assert stats.viewed_count == 1
        assert stats.active_count == 0

    def test_scoped_to_owner(self, engine, entries):
        theirs = make_entries(engine, owner_id=OTHER_OWNER_ID, names=("Jenkins",))
        engine.issue(OTHER_OWNER_ID, [theirs[0].id])

        stats = engine.get_stats(OWNER_ID)
        assert stats.active_count == 0
        assert stats.created_today_count == 0


class TestComputeStats:
    def test_empty(self, clock):
        stats = compute_stats([], clock(), timedelta(minutes=30))
        assert stats.model_dump() == {
            "active_count": 0,
            "created_today_count": 0,
            "expiring_soon_count": 0,
            "viewed_count": 0,
        }

    def test_start_of_local_day(self, clock):
        midnight = start_of_local_day(clock())
        assert (midnight.hour, midnight.minute, midnight.second) == (0, 0, 0)
        assert midnight.date() == clock().date()
        assert midnight <= clock()
