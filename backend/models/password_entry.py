# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""PasswordEntry ORM model – one credential for an internal service."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from database import Base


class PasswordEntry(Base):
    __tablename__ = "password_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    service_name = Column(String(255), nullable=False)
    service_url = Column(String(2048), nullable=True)
    username = Column(String(255), nullable=False)
    # base64( ciphertext || 16-byte GCM tag ) – never plaintext
    encrypted_secret = Column(Text, nullable=False)
    # base64( 12-byte AES-GCM nonce )
    iv = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
