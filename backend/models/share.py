# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
PasswordShare / ShareEntry ORM models.

A share row is never deleted: revocation and confirmation flip ``active``
to False, expiry is evaluated lazily against ``expires_at``.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from database import Base


class PasswordShare(Base):
    __tablename__ = "password_shares"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    recipient_label = Column(String(255), nullable=True)   # informational only
    token = Column(String(64), nullable=False, unique=True)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    # Pre-view deadline (nullable) until the first view, then viewed_at + 1h
    expires_at = Column(DateTime(timezone=True), nullable=True)
    viewed = Column(Boolean, nullable=False, default=False)
    viewed_at = Column(DateTime(timezone=True), nullable=True)
    opened_once = Column(Boolean, nullable=False, default=False)
    active = Column(Boolean, nullable=False, default=True)
    deactivated_reason = Column(String(16), nullable=True)   # "revoked" | "confirmed"


class ShareEntry(Base):
    __tablename__ = "share_entries"
    __table_args__ = (UniqueConstraint("share_id", "entry_id", name="uq_share_entries_pair"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    share_id = Column(
        Integer,
        ForeignKey("password_shares.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    entry_id = Column(
        Integer,
        ForeignKey("password_entries.id", ondelete="CASCADE"),
        nullable=False,
    )
