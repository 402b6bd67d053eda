"""Stored response models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ResponseMetadata(BaseModel):
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class SavedResponse(BaseModel):
    id: int


class StoredResponse(BaseModel):
    """One persisted submission. Field names follow the table columns."""

    model_config = ConfigDict(frozen=True)

    id: int
    created_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    answers: Dict[str, Any] = Field(default_factory=dict)
    raw_data: Optional[str] = None


__all__ = ["ResponseMetadata", "SavedResponse", "StoredResponse"]
