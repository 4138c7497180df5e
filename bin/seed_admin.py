# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the first admin account.

Run once after the initial migration:
    python bin/seed_admin.py

Reads FIRST_ADMIN_USERNAME and FIRST_ADMIN_PASSWORD from etc/app.conf (or
the environment).  Running it again for an existing username is a no-op.
"""

import os
import sys

# bin/seed_admin.py  →  ../backend
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from core.config import settings          # noqa: E402
from core.logger import logger            # noqa: E402
from core.security import hash_password   # noqa: E402
from database import SessionLocal         # noqa: E402
from models.user import User              # noqa: E402


def seed() -> bool:
    """Create the configured admin.  Returns True if a row was inserted."""
    if not settings.first_admin_username or not settings.first_admin_password:
        logger.warning("FIRST_ADMIN_USERNAME or FIRST_ADMIN_PASSWORD not set – nothing to do")
        return False

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.username == settings.first_admin_username).first()
        if existing:
            logger.info("Admin '%s' already exists – skipping", settings.first_admin_username)
            return False

        db.add(User(
            username=settings.first_admin_username,
            password_hash=hash_password(settings.first_admin_password),
            role="admin",
            is_active=True,
        ))
        db.commit()
        logger.info("Admin '%s' created", settings.first_admin_username)
        return True
    finally:
        db.close()


if __name__ == "__main__":
    seed()
