# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the entry endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from sharing.schemas import ShareCreatedResponse


# -- Requests --------------------------------------------------------------
# The client sends the plaintext secret; the server encrypts it before
# persisting and never echoes it back from these endpoints.


class EntryCreate(BaseModel):
    service_name: str = Field(..., min_length=1, max_length=255)
    service_url: Optional[str] = Field(None, max_length=2048)
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class EntryBatchCreate(BaseModel):
    services: List[EntryCreate]
    # When true, one share link fronting every created entry is issued.
    share: bool = True
    recipient_label: Optional[str] = Field(None, max_length=255)
    comment: Optional[str] = None


# -- Responses -------------------------------------------------------------


class EntryResponse(BaseModel):
    id: int
    service_name: str
    service_url: Optional[str] = None
    username: str
    created_at: datetime

    model_config = {"from_attributes": True}


class EntryListResponse(BaseModel):
    entries: List[EntryResponse]


class EntryBatchResponse(BaseModel):
    entries: List[EntryResponse]
    share: Optional[ShareCreatedResponse] = None
