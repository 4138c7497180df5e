# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Entry endpoints – intake of the credentials that share links expose.

* Admin JWT is required on every endpoint (via ``require_admin``).
* Secrets go in once and are only ever read back through a share link;
  none of the responses here contain them.
"""

from fastapi import APIRouter, Depends, status

from core.security import require_admin
from entries.schemas import (
    EntryBatchCreate,
    EntryBatchResponse,
    EntryCreate,
    EntryListResponse,
    EntryResponse,
)
from models.user import User
from sharing.dependencies import get_engine
from sharing.domain import NewEntry
from sharing.engine import ShareEngine
from sharing.schemas import ShareCreatedResponse

router = APIRouter(prefix="/entries", tags=["entries"])


def _new_entry(body: EntryCreate) -> NewEntry:
    return NewEntry(
        service_name=body.service_name,
        service_url=body.service_url or None,
        username=body.username,
        secret=body.password,
    )


# ---------------------------------------------------------------------------
# GET /entries  – list the admin's entries
# ---------------------------------------------------------------------------


@router.get("", response_model=EntryListResponse)
def list_entries(
    admin: User = Depends(require_admin),
    engine: ShareEngine = Depends(get_engine),
):
    entries = [EntryResponse.model_validate(e) for e in engine.list_entries(admin.id)]
    return EntryListResponse(entries=entries)


# ---------------------------------------------------------------------------
# POST /entries  – create one entry
# ---------------------------------------------------------------------------


@router.post("", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
def create_entry(
    body: EntryCreate,
    admin: User = Depends(require_admin),
    engine: ShareEngine = Depends(get_engine),
):
    (entry,) = engine.create_entries(admin.id, [_new_entry(body)])
    return EntryResponse.model_validate(entry)


# ---------------------------------------------------------------------------
# POST /entries/batch  – create several entries behind one link
# ---------------------------------------------------------------------------


@router.post("/batch", response_model=EntryBatchResponse, status_code=status.HTTP_201_CREATED)
def create_batch(
    body: EntryBatchCreate,
    admin: User = Depends(require_admin),
    engine: ShareEngine = Depends(get_engine),
):
    """
    Create every entry in ``services`` and, unless ``share`` is false,
    issue a single link that exposes all of them together.  Entries and
    link are written in one transaction.
    """
    new_entries = [_new_entry(s) for s in body.services]

    share = None
    if body.share:
        created, share = engine.issue_batch(
            admin.id,
            new_entries,
            comment=body.comment,
            recipient_label=body.recipient_label,
        )
    else:
        created = engine.create_entries(admin.id, new_entries)

    return EntryBatchResponse(
        entries=[EntryResponse.model_validate(e) for e in created],
        share=ShareCreatedResponse.model_validate(share) if share else None,
    )
