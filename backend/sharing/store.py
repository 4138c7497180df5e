# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Storage contract for the share lifecycle engine.

The engine never talks to SQLAlchemy (or anything else) directly; it only
calls the methods below.  Two implementations ship with the service:

* ``sharing.sql_store.SqlShareStore``       – the production store
* ``sharing.memory_store.MemoryShareStore`` – process-local dictionaries

Atomicity contract
------------------
* Each write method is one transaction: the state change and the activity
  log row it carries are committed together or not at all.
* ``consume`` and ``deactivate`` are compare-and-swap operations.  They
  apply only if the share is still in the expected state and report a lost
  race (``None`` / ``False``) otherwise, so two racing callers can never
  both win.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from sharing.domain import ActivityLogEntry, EntryRecord, LinkedEntry, NewEntry, ShareRecord


class ShareStore(ABC):

    # -- entries -------------------------------------------------------------

    @abstractmethod
    def create_entries(
        self, owner_id: int, entries: Sequence[NewEntry], created_at: datetime,
        logs: Sequence[ActivityLogEntry] = (),
    ) -> List[EntryRecord]:
        """Persist *entries* for *owner_id* together with *logs*."""

    @abstractmethod
    def get_entries(self, entry_ids: Sequence[int]) -> List[EntryRecord]:
        """Return the entries that exist among *entry_ids* (any owner)."""

    @abstractmethod
    def list_entries(self, owner_id: int) -> List[EntryRecord]:
        """Owner's entries, newest first."""

    # -- shares --------------------------------------------------------------

    @abstractmethod
    def create_share(
        self, share: ShareRecord, entry_ids: Sequence[int], log: ActivityLogEntry,
    ) -> ShareRecord:
        """
        Insert *share*, one link row per entry id and *log* atomically.
        Raises ``TokenCollision`` if the token is already taken.
        """

    @abstractmethod
    def create_entries_and_share(
        self,
        owner_id: int,
        entries: Sequence[NewEntry],
        created_at: datetime,
        logs: Sequence[ActivityLogEntry],
        share: ShareRecord,
        share_log: ActivityLogEntry,
    ) -> Tuple[List[EntryRecord], ShareRecord]:
        """
        Batch intake: insert *entries*, a share linking all of them and every
        log row in one transaction.  On ``TokenCollision`` nothing is kept.
        """

    @abstractmethod
    def get_share(self, share_id: int) -> Optional[ShareRecord]: ...

    @abstractmethod
    def get_share_by_token(self, token: str) -> Optional[ShareRecord]: ...

    @abstractmethod
    def get_share_entries(self, share_id: int) -> List[EntryRecord]:
        """Entries linked to the share, in link order."""

    @abstractmethod
    def list_share_entries(self, owner_id: int) -> Dict[int, List[LinkedEntry]]:
        """share id → linked entries (no secrets) for every share of *owner_id*."""

    @abstractmethod
    def consume(
        self,
        share_id: int,
        viewed_at: datetime,
        expires_at: datetime,
        log: ActivityLogEntry,
    ) -> Optional[ShareRecord]:
        """
        Record the first view: ``opened_once``, ``viewed``, ``viewed_at`` and
        the post-view ``expires_at`` are set and *log* is appended.

        Applies only while the share is active and not yet opened; returns
        the updated record, or None if another caller got there first.
        """

    @abstractmethod
    def deactivate(self, share_id: int, reason: str, log: ActivityLogEntry) -> bool:
        """Flip ``active`` to False if it is still True; False otherwise."""

    @abstractmethod
    def list_shares(self, owner_id: int) -> List[ShareRecord]:
        """Owner's shares, newest first."""

    # -- activity log --------------------------------------------------------

    @abstractmethod
    def list_logs(self, owner_id: int) -> List[ActivityLogEntry]:
        """Owner's activity log, newest first."""
