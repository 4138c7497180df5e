# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Process-local ``ShareStore`` backed by dictionaries.

One re-entrant lock guards every method, so the store is a single writer:
a compare-and-swap in ``consume`` / ``deactivate`` observes and mutates a
share without interleaving.  Records are frozen, so callers only ever hold
snapshots.  Nothing survives a restart – use it for tests and local tools.
"""

import threading
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from sharing.domain import ActivityLogEntry, EntryRecord, LinkedEntry, NewEntry, ShareRecord
from sharing.errors import TokenCollision
from sharing.store import ShareStore


class MemoryShareStore(ShareStore):

    def __init__(self):
        self._lock = threading.RLock()
        self._entries: Dict[int, EntryRecord] = {}
        self._shares: Dict[int, ShareRecord] = {}
        self._tokens: Dict[str, int] = {}
        self._links: Dict[int, List[int]] = {}
        self._logs: List[ActivityLogEntry] = []

    def _append_log(self, log: ActivityLogEntry) -> None:
        self._logs.append(log.model_copy(update={"id": len(self._logs) + 1}))

    def _insert_entry(self, owner_id: int, entry: NewEntry, created_at: datetime) -> EntryRecord:
        record = EntryRecord(
            id=len(self._entries) + 1,
            owner_id=owner_id,
            created_at=created_at,
            **entry.model_dump(),
        )
        self._entries[record.id] = record
        return record

    def _insert_share(self, share: ShareRecord, entry_ids: Sequence[int]) -> ShareRecord:
        record = share.model_copy(update={"id": len(self._shares) + 1})
        self._shares[record.id] = record
        self._tokens[record.token] = record.id
        self._links[record.id] = list(entry_ids)
        return record

    # -- entries --------------------------------------------------------------

    def create_entries(
        self, owner_id: int, entries: Sequence[NewEntry], created_at: datetime,
        logs: Sequence[ActivityLogEntry] = (),
    ) -> List[EntryRecord]:
        with self._lock:
            created = [self._insert_entry(owner_id, entry, created_at) for entry in entries]
            for log in logs:
                self._append_log(log)
            return created

    def get_entries(self, entry_ids: Sequence[int]) -> List[EntryRecord]:
        with self._lock:
            return [self._entries[i] for i in entry_ids if i in self._entries]

    def list_entries(self, owner_id: int) -> List[EntryRecord]:
        with self._lock:
            rows = [e for e in self._entries.values() if e.owner_id == owner_id]
        return sorted(rows, key=lambda e: (e.created_at, e.id), reverse=True)

    # -- shares ---------------------------------------------------------------

    def create_share(
        self, share: ShareRecord, entry_ids: Sequence[int], log: ActivityLogEntry,
    ) -> ShareRecord:
        with self._lock:
            if share.token in self._tokens:
                raise TokenCollision()
            record = self._insert_share(share, entry_ids)
            self._append_log(log)
            return record

    def create_entries_and_share(
        self,
        owner_id: int,
        entries: Sequence[NewEntry],
        created_at: datetime,
        logs: Sequence[ActivityLogEntry],
        share: ShareRecord,
        share_log: ActivityLogEntry,
    ) -> Tuple[List[EntryRecord], ShareRecord]:
        with self._lock:
            # Checked before any insert: a collision leaves nothing behind.
            if share.token in self._tokens:
                raise TokenCollision()
            created = [self._insert_entry(owner_id, entry, created_at) for entry in entries]
            record = self._insert_share(share, [entry.id for entry in created])
            for log in logs:
                self._append_log(log)
            self._append_log(share_log)
            return created, record

    def get_share(self, share_id: int) -> Optional[ShareRecord]:
        with self._lock:
            return self._shares.get(share_id)

    def get_share_by_token(self, token: str) -> Optional[ShareRecord]:
        with self._lock:
            share_id = self._tokens.get(token)
            return self._shares.get(share_id) if share_id is not None else None

    def get_share_entries(self, share_id: int) -> List[EntryRecord]:
        with self._lock:
            return [self._entries[i] for i in self._links.get(share_id, []) if i in self._entries]

    def list_share_entries(self, owner_id: int) -> Dict[int, List[LinkedEntry]]:
        with self._lock:
            return {
                share_id: [
                    LinkedEntry(
                        id=entry_id,
                        service_name=self._entries[entry_id].service_name,
                        username=self._entries[entry_id].username,
                    )
                    for entry_id in entry_ids
                    if entry_id in self._entries
                ]
                for share_id, entry_ids in self._links.items()
                if self._shares[share_id].owner_id == owner_id
            }

    def consume(
        self,
        share_id: int,
        viewed_at: datetime,
        expires_at: datetime,
        log: ActivityLogEntry,
    ) -> Optional[ShareRecord]:
        with self._lock:
            current = self._shares.get(share_id)
            if current is None or not current.active or current.opened_once:
                return None
            updated = current.model_copy(update={
                "opened_once": True,
                "viewed": True,
                "viewed_at": viewed_at,
                "expires_at": expires_at,
            })
            self._shares[share_id] = updated
            self._append_log(log)
            return updated

    def deactivate(self, share_id: int, reason: str, log: ActivityLogEntry) -> bool:
        with self._lock:
            current = self._shares.get(share_id)
            if current is None or not current.active:
                return False
            self._shares[share_id] = current.model_copy(
                update={"active": False, "deactivated_reason": reason}
            )
            self._append_log(log)
            return True

    def list_shares(self, owner_id: int) -> List[ShareRecord]:
        with self._lock:
            rows = [s for s in self._shares.values() if s.owner_id == owner_id]
        return sorted(rows, key=lambda s: (s.created_at, s.id), reverse=True)

    # -- activity log ---------------------------------------------------------

    def list_logs(self, owner_id: int) -> List[ActivityLogEntry]:
        with self._lock:
            rows = [log for log in self._logs if log.owner_id == owner_id]
        return sorted(rows, key=lambda log: (log.created_at, log.id), reverse=True)
