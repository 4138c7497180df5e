# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Storage-independent records exchanged between the lifecycle engine and a
``ShareStore``.

Records are frozen pydantic models: a store hands out snapshots, and the
only way to change a share is through the store's transition methods.

A share's phase is stored as flat columns (``viewed``, ``expires_at``,
``active`` …) but always read through :func:`share_state`, which turns
them into one of three explicit states:

    Unopened(expires_at?)            issued, never viewed
    Viewed(viewed_at, expires_at)    first view happened, post-view window
    Inactive(reason)                 revoked or confirmed; terminal
"""

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel

# -- Activity log vocabulary -------------------------------------------------

ACTION_ENTRY_CREATED = "entry-created"
ACTION_SHARE_CREATED = "share-created"
ACTION_VIEWED        = "viewed"
ACTION_REVOKED       = "revoked"
ACTION_CONFIRMED     = "confirmed"

STATUS_SUCCESS   = "success"
STATUS_ACTIVE    = "active"
STATUS_VIEWED    = "viewed"
STATUS_REVOKED   = "revoked"
STATUS_CONFIRMED = "confirmed"

REASON_REVOKED   = "revoked"
REASON_CONFIRMED = "confirmed"

_FROZEN = {"frozen": True}


# -- Entries -----------------------------------------------------------------


class NewEntry(BaseModel):
    service_name: str
    service_url: Optional[str] = None
    username: str
    secret: str


class EntryRecord(BaseModel):
    """A credential as the engine sees it, secret in plaintext."""

    id: int
    owner_id: int
    service_name: str
    service_url: Optional[str] = None
    username: str
    secret: str
    created_at: datetime

    model_config = _FROZEN


class LinkedEntry(BaseModel):
    """What the owner's share list shows about an entry behind a link."""

    id: int
    service_name: str
    username: str

    model_config = _FROZEN


# -- Shares ------------------------------------------------------------------


class Unopened(BaseModel):
    kind: Literal["unopened"] = "unopened"
    expires_at: Optional[datetime] = None

    model_config = _FROZEN


class Viewed(BaseModel):
    kind: Literal["viewed"] = "viewed"
    viewed_at: datetime
    expires_at: Optional[datetime] = None

    model_config = _FROZEN


class Inactive(BaseModel):
    kind: Literal["inactive"] = "inactive"
    reason: str

    model_config = _FROZEN


ShareState = Union[Unopened, Viewed, Inactive]


class ShareRecord(BaseModel):
    id: Optional[int] = None
    owner_id: int
    token: str
    recipient_label: Optional[str] = None
    comment: Optional[str] = None
    created_at: datetime
    expires_at: Optional[datetime] = None
    viewed: bool = False
    viewed_at: Optional[datetime] = None
    opened_once: bool = False
    active: bool = True
    deactivated_reason: Optional[str] = None

    model_config = _FROZEN

    @property
    def state(self) -> ShareState:
        return share_state(self)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at

    def status_at(self, now: datetime) -> str:
        """Dashboard label: revoked, confirmed, expired, viewed or active."""
        state = self.state
        if isinstance(state, Inactive):
            return state.reason
        if self.is_expired(now):
            return "expired"
        if isinstance(state, Viewed):
            return "viewed"
        return "active"


def share_state(record: ShareRecord) -> ShareState:
    if not record.active:
        return Inactive(reason=record.deactivated_reason or REASON_REVOKED)
    if record.viewed:
        return Viewed(viewed_at=record.viewed_at, expires_at=record.expires_at)
    return Unopened(expires_at=record.expires_at)


# -- Activity log ------------------------------------------------------------


class ActivityLogEntry(BaseModel):
    id: Optional[int] = None
    owner_id: Optional[int] = None
    action: str
    status: str
    service_name: Optional[str] = None
    recipient_label: Optional[str] = None
    viewed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: datetime

    model_config = _FROZEN


# -- Access result -----------------------------------------------------------


class SharedEntry(BaseModel):
    id: int
    service_name: str
    service_url: Optional[str] = None
    username: str
    secret: str


class ShareAccess(BaseModel):
    """What the one permitted view of a link returns to the recipient."""

    entries: List[SharedEntry]
    expires_at: Optional[datetime] = None
    viewed_at: Optional[datetime] = None
    comment: Optional[str] = None
