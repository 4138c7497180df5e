# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
SQLAlchemy implementation of ``ShareStore``.

Concurrency
-----------
The single-use guarantee rests on ``consume``: it is one conditional
``UPDATE … WHERE active AND NOT opened_once`` whose row count tells the
caller whether it won.  The database serialises competing updates on the
row, so two requests (threads or processes) racing on the same token can
never both see rowcount == 1.  ``deactivate`` uses the same pattern on
``active``.

Entry secrets are encrypted with AES-256-GCM on the way in and decrypted on
the way out; the tables never hold plaintext.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.security import decrypt_secret, encrypt_secret
from models.activity_log import ActivityLog
from models.password_entry import PasswordEntry
from models.share import PasswordShare, ShareEntry
from sharing.domain import ActivityLogEntry, EntryRecord, LinkedEntry, NewEntry, ShareRecord
from sharing.errors import TokenCollision
from sharing.store import ShareStore


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    """MySQL and SQLite hand back naive datetimes; everything stored is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _log_row(log: ActivityLogEntry) -> ActivityLog:
    return ActivityLog(
        owner_id=log.owner_id,
        action=log.action,
        status=log.status,
        service_name=log.service_name,
        recipient_label=log.recipient_label,
        viewed_at=log.viewed_at,
        expires_at=log.expires_at,
        created_at=log.created_at,
    )


class SqlShareStore(ShareStore):
    """Bound to one request-scoped ``Session`` (see ``database.get_db``)."""

    def __init__(self, db: Session):
        self.db = db

    # -- row → record ---------------------------------------------------------

    @staticmethod
    def _entry(row: PasswordEntry, secret: Optional[str] = None) -> EntryRecord:
        return EntryRecord(
            id=row.id,
            owner_id=row.owner_id,
            service_name=row.service_name,
            service_url=row.service_url,
            username=row.username,
            secret=secret if secret is not None else decrypt_secret(row.encrypted_secret, row.iv),
            created_at=_utc(row.created_at),
        )

    @staticmethod
    def _share(row: PasswordShare) -> ShareRecord:
        return ShareRecord(
            id=row.id,
            owner_id=row.owner_id,
            token=row.token,
            recipient_label=row.recipient_label,
            comment=row.comment,
            created_at=_utc(row.created_at),
            expires_at=_utc(row.expires_at),
            viewed=bool(row.viewed),
            viewed_at=_utc(row.viewed_at),
            opened_once=bool(row.opened_once),
            active=bool(row.active),
            deactivated_reason=row.deactivated_reason,
        )

    @staticmethod
    def _log(row: ActivityLog) -> ActivityLogEntry:
        return ActivityLogEntry(
            id=row.id,
            owner_id=row.owner_id,
            action=row.action,
            status=row.status,
            service_name=row.service_name,
            recipient_label=row.recipient_label,
            viewed_at=_utc(row.viewed_at),
            expires_at=_utc(row.expires_at),
            created_at=_utc(row.created_at),
        )

    # -- entries --------------------------------------------------------------

    def _add_entries(
        self, owner_id: int, entries: Sequence[NewEntry], created_at: datetime,
    ) -> List[PasswordEntry]:
        rows = []
        for entry in entries:
            encrypted_secret, iv = encrypt_secret(entry.secret)
            row = PasswordEntry(
                owner_id=owner_id,
                service_name=entry.service_name,
                service_url=entry.service_url,
                username=entry.username,
                encrypted_secret=encrypted_secret,
                iv=iv,
                created_at=created_at,
            )
            self.db.add(row)
            rows.append(row)
        return rows

    def create_entries(
        self, owner_id: int, entries: Sequence[NewEntry], created_at: datetime,
        logs: Sequence[ActivityLogEntry] = (),
    ) -> List[EntryRecord]:
        try:
            rows = self._add_entries(owner_id, entries, created_at)
            for log in logs:
                self.db.add(_log_row(log))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        # Secrets are returned exactly as supplied.
        return [self._entry(row, entry.secret) for row, entry in zip(rows, entries)]

    def get_entries(self, entry_ids: Sequence[int]) -> List[EntryRecord]:
        if not entry_ids:
            return []
        rows = self.db.query(PasswordEntry).filter(PasswordEntry.id.in_(list(entry_ids))).all()
        return [self._entry(row) for row in rows]

    def list_entries(self, owner_id: int) -> List[EntryRecord]:
        rows = (
            self.db.query(PasswordEntry)
            .filter(PasswordEntry.owner_id == owner_id)
            .order_by(PasswordEntry.created_at.desc(), PasswordEntry.id.desc())
            .all()
        )
        return [self._entry(row) for row in rows]

    # -- shares ---------------------------------------------------------------

    def _add_share(self, share: ShareRecord, entry_ids: Sequence[int], log: ActivityLogEntry) -> PasswordShare:
        row = PasswordShare(
            owner_id=share.owner_id,
            token=share.token,
            recipient_label=share.recipient_label,
            comment=share.comment,
            created_at=share.created_at,
            expires_at=share.expires_at,
            viewed=False,
            viewed_at=None,
            opened_once=False,
            active=True,
        )
        self.db.add(row)
        self.db.flush()  # get row.id before linking entries
        for entry_id in entry_ids:
            self.db.add(ShareEntry(share_id=row.id, entry_id=entry_id))
        self.db.add(_log_row(log))
        return row

    def create_share(
        self, share: ShareRecord, entry_ids: Sequence[int], log: ActivityLogEntry,
    ) -> ShareRecord:
        try:
            row = self._add_share(share, entry_ids, log)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if self.get_share_by_token(share.token) is not None:
                raise TokenCollision() from exc
            raise
        except Exception:
            self.db.rollback()
            raise
        return self._share(row)

    def create_entries_and_share(
        self,
        owner_id: int,
        entries: Sequence[NewEntry],
        created_at: datetime,
        logs: Sequence[ActivityLogEntry],
        share: ShareRecord,
        share_log: ActivityLogEntry,
    ) -> Tuple[List[EntryRecord], ShareRecord]:
        try:
            entry_rows = self._add_entries(owner_id, entries, created_at)
            self.db.flush()  # entry ids for the link rows
            for log in logs:
                self.db.add(_log_row(log))
            share_row = self._add_share(share, [row.id for row in entry_rows], share_log)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if self.get_share_by_token(share.token) is not None:
                raise TokenCollision() from exc
            raise
        except Exception:
            self.db.rollback()
            raise
        created = [self._entry(row, entry.secret) for row, entry in zip(entry_rows, entries)]
        return created, self._share(share_row)

    def get_share(self, share_id: int) -> Optional[ShareRecord]:
        row = self.db.query(PasswordShare).filter(PasswordShare.id == share_id).first()
        return self._share(row) if row else None

    def get_share_by_token(self, token: str) -> Optional[ShareRecord]:
        row = self.db.query(PasswordShare).filter(PasswordShare.token == token).first()
        return self._share(row) if row else None

    def get_share_entries(self, share_id: int) -> List[EntryRecord]:
        rows = (
            self.db.query(PasswordEntry)
            .join(ShareEntry, ShareEntry.entry_id == PasswordEntry.id)
            .filter(ShareEntry.share_id == share_id)
            .order_by(ShareEntry.id)
            .all()
        )
        return [self._entry(row) for row in rows]

    def list_share_entries(self, owner_id: int) -> Dict[int, List[LinkedEntry]]:
        # One join over every share of the owner; secrets stay encrypted.
        rows = (
            self.db.query(
                ShareEntry.share_id,
                PasswordEntry.id,
                PasswordEntry.service_name,
                PasswordEntry.username,
            )
            .join(PasswordEntry, PasswordEntry.id == ShareEntry.entry_id)
            .join(PasswordShare, PasswordShare.id == ShareEntry.share_id)
            .filter(PasswordShare.owner_id == owner_id)
            .order_by(ShareEntry.share_id, ShareEntry.id)
            .all()
        )
        linked: Dict[int, List[LinkedEntry]] = {}
        for share_id, entry_id, service_name, username in rows:
            linked.setdefault(share_id, []).append(
                LinkedEntry(id=entry_id, service_name=service_name, username=username)
            )
        return linked

    def consume(
        self,
        share_id: int,
        viewed_at: datetime,
        expires_at: datetime,
        log: ActivityLogEntry,
    ) -> Optional[ShareRecord]:
        try:
            result = self.db.execute(
                update(PasswordShare)
                .where(
                    PasswordShare.id == share_id,
                    PasswordShare.active.is_(True),
                    PasswordShare.opened_once.is_(False),
                )
                .values(opened_once=True, viewed=True, viewed_at=viewed_at, expires_at=expires_at)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                return None
            self.db.add(_log_row(log))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self.get_share(share_id)

    def deactivate(self, share_id: int, reason: str, log: ActivityLogEntry) -> bool:
        try:
            result = self.db.execute(
                update(PasswordShare)
                .where(PasswordShare.id == share_id, PasswordShare.active.is_(True))
                .values(active=False, deactivated_reason=reason)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                return False
            self.db.add(_log_row(log))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return True

    def list_shares(self, owner_id: int) -> List[ShareRecord]:
        rows = (
            self.db.query(PasswordShare)
            .filter(PasswordShare.owner_id == owner_id)
            .order_by(PasswordShare.created_at.desc(), PasswordShare.id.desc())
            .all()
        )
        return [self._share(row) for row in rows]

    # -- activity log ---------------------------------------------------------

    def list_logs(self, owner_id: int) -> List[ActivityLogEntry]:
        rows = (
            self.db.query(ActivityLog)
            .filter(ActivityLog.owner_id == owner_id)
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .all()
        )
        return [self._log(row) for row in rows]
