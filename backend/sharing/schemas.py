# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the share endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# -- Requests --------------------------------------------------------------


class ShareCreateRequest(BaseModel):
    # An empty list is rejected by ShareEngine.issue (400 validation_error).
    entry_ids: List[int]
    recipient_label: Optional[str] = Field(None, max_length=255)
    comment: Optional[str] = None


# -- Responses -------------------------------------------------------------


class ShareCreatedResponse(BaseModel):
    id: int
    token: str
    expires_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ShareEntryRow(BaseModel):
    id: int
    service_name: str
    username: str

    model_config = {"from_attributes": True}


class ShareRow(BaseModel):
    id: int
    token: str
    recipient_label: Optional[str] = None
    comment: Optional[str] = None
    created_at: datetime
    expires_at: Optional[datetime] = None
    viewed: bool
    viewed_at: Optional[datetime] = None
    active: bool
    status: str   # active | viewed | expired | revoked | confirmed
    entries: List[ShareEntryRow] = []


class ShareListResponse(BaseModel):
    shares: List[ShareRow]


class ActivityLogRow(BaseModel):
    id: int
    action: str
    status: str
    service_name: Optional[str] = None
    recipient_label: Optional[str] = None
    viewed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ActivityLogListResponse(BaseModel):
    logs: List[ActivityLogRow]


class StatsResponse(BaseModel):
    active_count: int
    created_today_count: int
    expiring_soon_count: int
    viewed_count: int

    model_config = {"from_attributes": True}


# -- Public (recipient) responses -------------------------------------------


class SharedServiceRow(BaseModel):
    id: int
    service_name: str
    service_url: Optional[str] = None
    username: str
    password: str

    model_config = {"from_attributes": True}


class SharedLinkResponse(BaseModel):
    services: List[SharedServiceRow]
    expires_at: Optional[datetime] = None
    viewed_at: Optional[datetime] = None
    comment: Optional[str] = None
    one_time_link: bool = True


class ConfirmResponse(BaseModel):
    detail: str
