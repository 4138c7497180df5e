# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""FastAPI dependency wiring the lifecycle engine to the request's DB session."""

from fastapi import Depends
from sqlalchemy.orm import Session

from database import get_db
from sharing.engine import ShareEngine
from sharing.sql_store import SqlShareStore


def get_engine(db: Session = Depends(get_db)) -> ShareEngine:
    """One engine per request, bound to that request's session."""
    return ShareEngine(SqlShareStore(db))
