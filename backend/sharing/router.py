# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Share endpoints.

Two routers live here:

* ``router`` (prefix /shares) – admin-only.  Issue, list, revoke, history,
  history export and dashboard stats.  Every call is scoped to the
  authenticated admin: nobody sees or revokes another admin's links.
* ``public_router`` (prefix /shared) – no authentication.  The token in
  the URL is the only credential; it can be redeemed once and confirmed
  once.

Engine failures (``sharing.errors.ShareError``) are rendered by the
exception handler registered in ``main``.
"""

import io

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from core.security import require_admin
from models.user import User
from sharing.dependencies import get_engine
from sharing.engine import ShareEngine
from sharing.schemas import (
    ActivityLogListResponse,
    ActivityLogRow,
    ConfirmResponse,
    ShareCreatedResponse,
    ShareCreateRequest,
    ShareEntryRow,
    ShareListResponse,
    SharedLinkResponse,
    SharedServiceRow,
    ShareRow,
    StatsResponse,
)

router = APIRouter(prefix="/shares", tags=["shares"])
public_router = APIRouter(prefix="/shared", tags=["shared"])


# ---------------------------------------------------------------------------
# POST /shares  – issue a link for existing entries
# ---------------------------------------------------------------------------


@router.post("", response_model=ShareCreatedResponse, status_code=status.HTTP_201_CREATED)
def issue_share(
    body: ShareCreateRequest,
    admin: User = Depends(require_admin),
    engine: ShareEngine = Depends(get_engine),
):
    """
    Create a one-time link fronting ``entry_ids``.  The token is handed to
    the admin for manual distribution; nothing is sent by the server.
    """
    share = engine.issue(
        admin.id,
        body.entry_ids,
        comment=body.comment,
        recipient_label=body.recipient_label,
    )
    return ShareCreatedResponse.model_validate(share)


# ---------------------------------------------------------------------------
# GET /shares  – the admin's links, newest first, with the entries behind each
# ---------------------------------------------------------------------------


@router.get("", response_model=ShareListResponse)
def list_shares(
    admin: User = Depends(require_admin),
    engine: ShareEngine = Depends(get_engine),
):
    now = engine.clock()
    linked = engine.list_share_entries(admin.id)
    rows = [
        ShareRow(
            id=share.id,
            token=share.token,
            recipient_label=share.recipient_label,
            comment=share.comment,
            created_at=share.created_at,
            expires_at=share.expires_at,
            viewed=share.viewed,
            viewed_at=share.viewed_at,
            active=share.active,
            status=share.status_at(now),
            entries=[ShareEntryRow.model_validate(e) for e in linked.get(share.id, [])],
        )
        for share in engine.list_shares(admin.id)
    ]
    return ShareListResponse(shares=rows)


# ---------------------------------------------------------------------------
# GET /shares/stats  – dashboard counters
# ---------------------------------------------------------------------------


@router.get("/stats", response_model=StatsResponse)
def share_stats(
    admin: User = Depends(require_admin),
    engine: ShareEngine = Depends(get_engine),
):
    return StatsResponse.model_validate(engine.get_stats(admin.id))


# ---------------------------------------------------------------------------
# GET /shares/logs  – activity history, newest first
# ---------------------------------------------------------------------------


@router.get("/logs", response_model=ActivityLogListResponse)
def list_logs(
    admin: User = Depends(require_admin),
    engine: ShareEngine = Depends(get_engine),
):
    logs = [ActivityLogRow.model_validate(log) for log in engine.list_logs(admin.id)]
    return ActivityLogListResponse(logs=logs)


# ---------------------------------------------------------------------------
# GET /shares/logs/export  – activity history as Excel
# ---------------------------------------------------------------------------

_HEADER_FONT  = Font(name="Calibri", size=11, bold=True, color="FFFFFF")
_HEADER_FILL  = PatternFill(start_color="6C63FF", end_color="6C63FF", fill_type="solid")
_HEADER_ALIGN = Alignment(horizontal="center", vertical="center")
_THIN_BORDER  = Border(
    left=Side(style="thin", color="CCCCCC"),
    right=Side(style="thin", color="CCCCCC"),
    top=Side(style="thin", color="CCCCCC"),
    bottom=Side(style="thin", color="CCCCCC"),
)

_EXPORT_HEADERS = ["Time", "Action", "Service", "Recipient", "Status", "Viewed At", "Expires At"]
_EXPORT_WIDTHS  = [20, 16, 28, 28, 12, 20, 20]


def _fmt(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else ""


@router.get("/logs/export")
def export_logs(
    admin: User = Depends(require_admin),
    engine: ShareEngine = Depends(get_engine),
):
    """
    Stream the admin's activity log as an .xlsx workbook.  The log never
    holds secrets, so the file contains none either.
    """
    logs = engine.list_logs(admin.id)

    wb = Workbook()
    ws = wb.active
    ws.title = "Activity"

    ws.append(_EXPORT_HEADERS)
    for cell in ws[1]:
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = _HEADER_ALIGN
        cell.border = _THIN_BORDER

    for log in logs:
        ws.append([
            _fmt(log.created_at),
            log.action,
            log.service_name or "",
            log.recipient_label or "",
            log.status,
            _fmt(log.viewed_at),
            _fmt(log.expires_at),
        ])
        row_idx = ws.max_row
        for col_idx in range(1, len(_EXPORT_HEADERS) + 1):
            ws.cell(row=row_idx, column=col_idx).border = _THIN_BORDER

    for col_idx, width in enumerate(_EXPORT_WIDTHS, start=1):
        ws.column_dimensions[chr(64 + col_idx)].width = width

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    wb.close()

    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": 'attachment; filename="share-activity.xlsx"'},
    )


# ---------------------------------------------------------------------------
# DELETE /shares/{id}  – revoke
# ---------------------------------------------------------------------------


@router.delete("/{share_id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_share(
    share_id: int,
    admin: User = Depends(require_admin),
    engine: ShareEngine = Depends(get_engine),
):
    """Deactivate a link for good.  Revoking an inactive link is a no-op."""
    engine.revoke(share_id, admin.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# GET /shared/{token}  – the recipient's one permitted view
# ---------------------------------------------------------------------------


@public_router.get("/{token}", response_model=SharedLinkResponse)
def access_share(token: str, engine: ShareEngine = Depends(get_engine)):
    access = engine.access(token)
    return SharedLinkResponse(
        services=[
            SharedServiceRow(
                id=entry.id,
                service_name=entry.service_name,
                service_url=entry.service_url,
                username=entry.username,
                password=entry.secret,
            )
            for entry in access.entries
        ],
        expires_at=access.expires_at,
        viewed_at=access.viewed_at,
        comment=access.comment,
    )


# ---------------------------------------------------------------------------
# POST /shared/{token}/confirm  – recipient saved the credentials
# ---------------------------------------------------------------------------


@public_router.post("/{token}/confirm", response_model=ConfirmResponse)
def confirm_share(token: str, engine: ShareEngine = Depends(get_engine)):
    engine.confirm(token)
    return ConfirmResponse(detail="Link has been deactivated")
