"""Share state derivation and dashboard status labels."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from sharing.domain import Inactive, ShareRecord, Unopened, Viewed, share_state
from sharing.errors import ShareAlreadyInactive, ShareExpired, ShareValidationError, TokenCollision

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _record(**overrides):
    fields = dict(owner_id=1, token="tok", created_at=NOW, expires_at=NOW + timedelta(days=14))
    fields.update(overrides)
    return ShareRecord(**fields)


class TestShareState:
    def test_unopened(self):
        state = share_state(_record())
        assert state == Unopened(expires_at=NOW + timedelta(days=14))
        assert state.kind == "unopened"

    def test_viewed(self):
        record = _record(viewed=True, viewed_at=NOW, expires_at=NOW + timedelta(hours=1), opened_once=True)
        assert record.state == Viewed(viewed_at=NOW, expires_at=NOW + timedelta(hours=1))

    def test_inactive_takes_precedence(self):
        record = _record(viewed=True, viewed_at=NOW, active=False, deactivated_reason="confirmed")
        assert record.state == Inactive(reason="confirmed")

    def test_inactive_without_reason_reads_as_revoked(self):
        assert _record(active=False).state == Inactive(reason="revoked")

    def test_records_are_frozen(self):
        with pytest.raises(ValidationError):
            _record().active = False


class TestStatusAt:
    @pytest.mark.parametrize(
        "overrides, now, expected",
        [
            ({}, NOW, "active"),
            ({}, NOW + timedelta(days=15), "expired"),
            ({"expires_at": None}, NOW + timedelta(days=400), "active"),
            ({"viewed": True, "viewed_at": NOW, "expires_at": NOW + timedelta(hours=1)}, NOW, "viewed"),
            ({"viewed": True, "viewed_at": NOW, "expires_at": NOW + timedelta(hours=1)},
             NOW + timedelta(hours=2), "expired"),
            ({"active": False, "deactivated_reason": "revoked"}, NOW + timedelta(days=30), "revoked"),
            ({"active": False, "deactivated_reason": "confirmed"}, NOW, "confirmed"),
        ],
    )
    def test_labels(self, overrides, now, expected):
        assert _record(**overrides).status_at(now) == expected

    def test_expiry_is_strictly_after_deadline(self):
        record = _record()
        assert record.is_expired(record.expires_at) is False
        assert record.is_expired(record.expires_at + timedelta(microseconds=1)) is True


class TestErrors:
    def test_default_messages_and_codes(self):
        exc = ShareAlreadyInactive()
        assert exc.status_code == 400
        assert exc.code == "already_inactive"
        assert exc.message
        assert str(exc) == exc.message

    def test_custom_message(self):
        exc = ShareValidationError("Unknown entry id(s): 7")
        assert exc.message == "Unknown entry id(s): 7"
        assert exc.status_code == 400

    def test_expired_codes(self):
        assert ShareExpired(before_view=True).code == "expired_before_view"
        assert ShareExpired(before_view=False).code == "expired_after_view"
        assert ShareExpired(before_view=False).status_code == 410

    def test_collision_is_conflict(self):
        assert TokenCollision().status_code == 409
