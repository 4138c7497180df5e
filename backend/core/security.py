# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Crypto and admin-auth helpers for the share service.

Sections
--------
1. Admin login hashes          passlib pbkdf2_sha256
2. Entry secrets at rest       cryptography AES-256-GCM
3. Admin session tokens        PyJWT HS256
4. FastAPI guards              get_current_user, require_admin

Share tokens are not minted here.  They are opaque bearer capabilities
owned by ``sharing.engine`` and never signed or decoded.
"""

import base64
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as _jwt        # PyJWT
from passlib.hash import pbkdf2_sha256 as _pbkdf2
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from core.config import settings
from database import get_db

_NONCE_BYTES = 12
_PBKDF2_ROUNDS = 600_000
_JWT_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# 1.  Admin login hashes
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """passlib hash string with the salt embedded."""
    return _pbkdf2.using(rounds=_PBKDF2_ROUNDS).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    return _pbkdf2.verify(plain, stored_hash)


# ---------------------------------------------------------------------------
# 2.  Entry secrets at rest
# ---------------------------------------------------------------------------


def _cipher() -> AESGCM:
    # Key is read per call; nothing is cached at module level.
    key = base64.b64decode(settings.master_encryption_key)
    if len(key) != 32:
        raise RuntimeError("MASTER_ENCRYPTION_KEY must decode to exactly 32 bytes")
    return AESGCM(key)


def encrypt_secret(plaintext: str) -> tuple[str, str]:
    """
    Seal an entry secret under the master key.

    A fresh 96-bit nonce is drawn per call; a nonce is never reused with the
    same key.  Returns ``(base64(ciphertext || tag), base64(nonce))``, which
    map onto the ``encrypted_secret`` and ``iv`` columns.
    """
    nonce = secrets.token_bytes(_NONCE_BYTES)
    sealed = _cipher().encrypt(nonce, plaintext.encode("utf-8"), None)
    return base64.b64encode(sealed).decode("ascii"), base64.b64encode(nonce).decode("ascii")


def decrypt_secret(sealed_b64: str, nonce_b64: str) -> str:
    """
    Open a value produced by :func:`encrypt_secret`.  A wrong key or a
    modified column fails the GCM tag check and raises ``ValueError``.
    """
    try:
        plaintext = _cipher().decrypt(
            base64.b64decode(nonce_b64), base64.b64decode(sealed_b64), None
        )
    except Exception as exc:
        raise ValueError("Entry secret failed authentication") from exc
    return plaintext.decode("utf-8")


# ---------------------------------------------------------------------------
# 3.  Admin session tokens
# ---------------------------------------------------------------------------


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign *data* (``sub``, ``user_id``, ``role``) as an HS256 JWT.  ``exp``
    defaults to ``settings.access_token_expire_minutes`` from now.
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = dict(data, exp=datetime.now(timezone.utc) + lifetime)
    return _jwt.encode(claims, settings.secret_key, algorithm=_JWT_ALGORITHM)


def issue_admin_token(user) -> str:
    return create_access_token({"sub": user.username, "user_id": user.id, "role": user.role})


def decode_access_token(token: str) -> dict:
    try:
        return _jwt.decode(token, settings.secret_key, algorithms=[_JWT_ALGORITHM])
    except _jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


# ---------------------------------------------------------------------------
# 4.  FastAPI guards
# ---------------------------------------------------------------------------

# tokenUrl only feeds the OpenAPI docs.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db=Depends(get_db),
):
    """
    Resolve the bearer JWT to an enabled ``User`` row, or answer 401.
    """
    payload = decode_access_token(token)

    # Deferred: models load after core.
    from models.user import User  # noqa: E402

    user = db.query(User).filter(User.id == payload.get("user_id")).first()
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user


def require_admin(current_user=Depends(get_current_user)):
    """
    Every entry and share belongs to the admin returned here; non-admin
    accounts get 403.
    """
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user
