# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – admin login and current-user info.

Login returns the *same* error message whether the username doesn't exist
or the password is wrong.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from core.logger import logger
from core.security import get_current_user, issue_admin_token, verify_password
from models.user import User
from auth.schemas import LoginRequest, LoginResponse, UserInfoResponse

router = APIRouter(prefix="/auth", tags=["auth"])

_LOGIN_FAIL = "Invalid username or password"


# ---------------------------------------------------------------------------
# POST /auth/login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate and return a signed JWT."""
    user = db.query(User).filter(User.username == body.username).first()

    if not user or not verify_password(body.password, user.password_hash):
        logger.warning("Failed login for username=%s", body.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=_LOGIN_FAIL)

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account disabled",
        )

    user.last_login = datetime.now(timezone.utc)
    db.commit()

    logger.info("Admin login username=%s", user.username)
    return LoginResponse(access_token=issue_admin_token(user), token_type="bearer")


# ---------------------------------------------------------------------------
# GET /auth/me
# ---------------------------------------------------------------------------


@router.get("/me", response_model=UserInfoResponse)
def me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's public profile (no secrets)."""
    return current_user
