# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Share-link lifecycle engine.

Responsibilities
----------------
* Issue a single-use link (token) fronting one or more password entries.
* Evaluate a public access against the link's state and hand out the
  secrets at most once.
* Deactivate links on admin revocation or recipient confirmation.
* Write one activity-log row per transition, in the same store
  transaction as the transition itself.

Expiry windows
--------------
A link lives through two windows stored in the same ``expires_at`` column:

    issued ──(pre-view window, default 14 days)──► first view
    first view ──(post-view window, always 1 hour)──► gone

Expiry is evaluated lazily when somebody calls :meth:`ShareEngine.access`;
there is no background sweeper.  The single-use flag (``opened_once``) is
an independent guard on top of the windows.

Access evaluation order (first match wins)
------------------------------------------
1. unknown token          → ShareNotFound
2. inactive               → ShareRevoked
3. past ``expires_at``    → ShareExpired(before_view=<not yet viewed>)
4. ``opened_once``        → ShareAlreadyConsumed
5. otherwise              → success; the store's compare-and-swap decides
                            the single winner of concurrent first accesses.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from core.config import settings
from core.logger import logger
from sharing.domain import (
    ACTION_CONFIRMED,
    ACTION_ENTRY_CREATED,
    ACTION_REVOKED,
    ACTION_SHARE_CREATED,
    ACTION_VIEWED,
    REASON_CONFIRMED,
    REASON_REVOKED,
    STATUS_ACTIVE,
    STATUS_CONFIRMED,
    STATUS_REVOKED,
    STATUS_SUCCESS,
    STATUS_VIEWED,
    ActivityLogEntry,
    EntryRecord,
    LinkedEntry,
    NewEntry,
    ShareAccess,
    SharedEntry,
    ShareRecord,
)
from sharing.errors import (
    ShareAlreadyConsumed,
    ShareAlreadyInactive,
    ShareExpired,
    ShareForbidden,
    ShareNotFound,
    ShareRevoked,
    ShareValidationError,
)
from sharing.stats import ShareStats, compute_stats
from sharing.store import ShareStore


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExpiryPolicy(BaseModel):
    """
    Lifecycle windows.  ``pre_view_window=None`` keeps a link open until its
    first view; the deployment chooses one policy for all shares.
    """

    pre_view_window: Optional[timedelta] = timedelta(days=14)
    post_view_window: timedelta = timedelta(hours=1)
    expiring_soon_window: timedelta = timedelta(minutes=30)
    token_bytes: int = 18

    @classmethod
    def from_settings(cls) -> "ExpiryPolicy":
        hours = settings.share_pre_view_window_hours
        return cls(
            pre_view_window=timedelta(hours=hours) if hours is not None else None,
            post_view_window=timedelta(minutes=settings.share_post_view_window_minutes),
            expiring_soon_window=timedelta(minutes=settings.share_expiring_soon_minutes),
            token_bytes=settings.share_token_bytes,
        )


def _token_hint(token: str) -> str:
    """Log-safe prefix of a share token."""
    return token[:4] + "…"


class ShareEngine:

    def __init__(
        self,
        store: ShareStore,
        policy: Optional[ExpiryPolicy] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.policy = policy or ExpiryPolicy.from_settings()
        self.clock = clock

    # -----------------------------------------------------------------------
    # Entries (thin intake for the credential-creation flow)
    # -----------------------------------------------------------------------

    @staticmethod
    def _entry_logs(owner_id: int, entries: Sequence[NewEntry], now: datetime) -> List[ActivityLogEntry]:
        return [
            ActivityLogEntry(
                owner_id=owner_id,
                action=ACTION_ENTRY_CREATED,
                status=STATUS_SUCCESS,
                service_name=entry.service_name,
                created_at=now,
            )
            for entry in entries
        ]

    def create_entries(self, owner_id: int, entries: Sequence[NewEntry]) -> List[EntryRecord]:
        if not entries:
            raise ShareValidationError("At least one entry is required")
        now = self.clock()
        created = self.store.create_entries(owner_id, entries, now, self._entry_logs(owner_id, entries, now))
        logger.info("Created %d password entries for owner=%s", len(created), owner_id)
        return created

    # -----------------------------------------------------------------------
    # Issue
    # -----------------------------------------------------------------------

    def _new_share(
        self,
        owner_id: int,
        service_name: str,
        now: datetime,
        comment: Optional[str],
        recipient_label: Optional[str],
    ) -> Tuple[ShareRecord, ActivityLogEntry]:
        """Unsaved share with its pre-view deadline, plus its creation log row."""
        pre_view = self.policy.pre_view_window
        share = ShareRecord(
            owner_id=owner_id,
            token=secrets.token_urlsafe(self.policy.token_bytes),
            recipient_label=recipient_label,
            comment=comment,
            created_at=now,
            expires_at=now + pre_view if pre_view is not None else None,
        )
        log = ActivityLogEntry(
            owner_id=owner_id,
            action=ACTION_SHARE_CREATED,
            status=STATUS_ACTIVE,
            service_name=service_name,
            recipient_label=recipient_label,
            expires_at=share.expires_at,
            created_at=now,
        )
        return share, log

    def _log_issued(self, share: ShareRecord, entry_count: int) -> None:
        logger.info(
            "Issued share id=%s owner=%s token=%s entries=%d expires_at=%s",
            share.id, share.owner_id, _token_hint(share.token), entry_count, share.expires_at,
        )

    def issue(
        self,
        owner_id: int,
        entry_ids: Sequence[int],
        comment: Optional[str] = None,
        recipient_label: Optional[str] = None,
    ) -> ShareRecord:
        """
        Create a link fronting *entry_ids*, all of which must belong to
        *owner_id*.  The entry set is fixed for the lifetime of the link.
        """
        # Keep the caller's order, drop repeats.
        unique_ids = list(dict.fromkeys(entry_ids))
        if not unique_ids:
            raise ShareValidationError("At least one entry is required")

        found = {entry.id: entry for entry in self.store.get_entries(unique_ids)}
        foreign = [i for i in unique_ids if i not in found or found[i].owner_id != owner_id]
        if foreign:
            raise ShareValidationError(
                "Unknown entry id(s): " + ", ".join(str(i) for i in foreign)
            )

        share, log = self._new_share(
            owner_id, found[unique_ids[0]].service_name, self.clock(), comment, recipient_label,
        )
        created = self.store.create_share(share, unique_ids, log)
        self._log_issued(created, len(unique_ids))
        return created

    def issue_batch(
        self,
        owner_id: int,
        entries: Sequence[NewEntry],
        comment: Optional[str] = None,
        recipient_label: Optional[str] = None,
    ) -> Tuple[List[EntryRecord], ShareRecord]:
        """
        Create *entries* and one link fronting all of them in a single store
        transaction: if the link cannot be issued, no entry is kept.
        """
        if not entries:
            raise ShareValidationError("At least one entry is required")
        now = self.clock()
        share, share_log = self._new_share(
            owner_id, entries[0].service_name, now, comment, recipient_label,
        )
        created, record = self.store.create_entries_and_share(
            owner_id, entries, now, self._entry_logs(owner_id, entries, now), share, share_log,
        )
        logger.info("Created %d password entries for owner=%s", len(created), owner_id)
        self._log_issued(record, len(created))
        return created, record

    # -----------------------------------------------------------------------
    # Access (public, token only)
    # -----------------------------------------------------------------------

    @staticmethod
    def _check_accessible(share: Optional[ShareRecord], now: datetime) -> ShareRecord:
        """Raise the first failing guard for *share* at *now*."""
        if share is None:
            raise ShareNotFound()
        if not share.active:
            if share.deactivated_reason == REASON_CONFIRMED:
                raise ShareRevoked("This link was deactivated after the recipient confirmed it")
            raise ShareRevoked()
        if share.is_expired(now):
            raise ShareExpired(before_view=not share.viewed)
        if share.opened_once:
            raise ShareAlreadyConsumed()
        return share

    def access(self, token: str) -> ShareAccess:
        now = self.clock()
        try:
            share = self._check_accessible(self.store.get_share_by_token(token), now)
            entries = self.store.get_share_entries(share.id)
            if not entries:
                raise ShareNotFound("Password entries not found")
        except (ShareNotFound, ShareRevoked, ShareExpired, ShareAlreadyConsumed) as exc:
            logger.warning("Refused access token=%s reason=%s", _token_hint(token), exc.code)
            raise

        # Past the guards the share is unopened: this is the first view.
        expires_at = now + self.policy.post_view_window
        updated = self.store.consume(
            share.id,
            viewed_at=now,
            expires_at=expires_at,
            log=ActivityLogEntry(
                owner_id=share.owner_id,
                action=ACTION_VIEWED,
                status=STATUS_VIEWED,
                service_name=entries[0].service_name,
                recipient_label=share.recipient_label,
                viewed_at=now,
                expires_at=expires_at,
                created_at=now,
            ),
        )

        if updated is None:
            # Lost the race: report what the winner left behind.
            fresh = self.store.get_share(share.id)
            logger.warning("Concurrent access lost on share id=%s", share.id)
            self._check_accessible(fresh, now)
            raise ShareAlreadyConsumed()

        logger.info("Share id=%s viewed; expires_at=%s", updated.id, updated.expires_at)
        return ShareAccess(
            entries=[
                SharedEntry(
                    id=entry.id,
                    service_name=entry.service_name,
                    service_url=entry.service_url,
                    username=entry.username,
                    secret=entry.secret,
                )
                for entry in entries
            ],
            expires_at=updated.expires_at,
            viewed_at=updated.viewed_at,
            comment=updated.comment,
        )

    # -----------------------------------------------------------------------
    # Deactivation
    # -----------------------------------------------------------------------

    def _deactivation_log(self, share: ShareRecord, action: str, status: str) -> ActivityLogEntry:
        entries = self.store.get_share_entries(share.id)
        return ActivityLogEntry(
            owner_id=share.owner_id,
            action=action,
            status=status,
            service_name=entries[0].service_name if entries else None,
            recipient_label=share.recipient_label,
            created_at=self.clock(),
        )

    def confirm(self, token: str) -> ShareRecord:
        """Recipient says the credentials are saved; the link goes dead."""
        share = self.store.get_share_by_token(token)
        if share is None:
            raise ShareNotFound()
        if not share.active:
            raise ShareAlreadyInactive()

        log = self._deactivation_log(share, ACTION_CONFIRMED, STATUS_CONFIRMED)
        if not self.store.deactivate(share.id, REASON_CONFIRMED, log):
            raise ShareAlreadyInactive()
        logger.info("Share id=%s confirmed by recipient", share.id)
        return self.store.get_share(share.id)

    def revoke(self, share_id: int, owner_id: int) -> ShareRecord:
        """
        Admin kill switch.  Revoking a link that is already inactive
        succeeds without writing a second log row.
        """
        share = self.store.get_share(share_id)
        if share is None:
            raise ShareNotFound()
        if share.owner_id != owner_id:
            raise ShareForbidden()
        if not share.active:
            return share

        log = self._deactivation_log(share, ACTION_REVOKED, STATUS_REVOKED)
        if self.store.deactivate(share.id, REASON_REVOKED, log):
            logger.info("Share id=%s revoked by owner=%s", share.id, owner_id)
        return self.store.get_share(share.id)

    # -----------------------------------------------------------------------
    # Read-side projections
    # -----------------------------------------------------------------------

    def list_entries(self, owner_id: int) -> List[EntryRecord]:
        return self.store.list_entries(owner_id)

    def list_shares(self, owner_id: int) -> List[ShareRecord]:
        return self.store.list_shares(owner_id)

    def list_share_entries(self, owner_id: int) -> Dict[int, List[LinkedEntry]]:
        return self.store.list_share_entries(owner_id)

    def list_logs(self, owner_id: int) -> List[ActivityLogEntry]:
        return self.store.list_logs(owner_id)

    def get_stats(self, owner_id: int) -> ShareStats:
        return compute_stats(
            self.store.list_shares(owner_id),
            self.clock(),
            self.policy.expiring_soon_window,
        )
