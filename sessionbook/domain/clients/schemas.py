"""Client domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, field_validator, model_validator

ClientStatus = Literal["active", "paused", "archived"]


class ClientCreate(BaseModel):
    """Schema for creating a new client"""

    full_name: str
    phone: Optional[str] = None
    telegram: Optional[str] = None
    notes: Optional[str] = None
    start_date: Optional[dt.date] = None

    @field_validator("full_name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Client name is required")
        return v.strip()


class ClientUpdate(BaseModel):
    """Schema for updating an existing client"""

    full_name: Optional[str] = None
    phone: Optional[str] = None
    telegram: Optional[str] = None
    notes: Optional[str] = None
    start_date: Optional[dt.date] = None

    @field_validator("full_name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Client name cannot be empty")
        return v.strip() if v else v


class PauseRequest(BaseModel):
    pause_from: dt.date
    pause_to: dt.date

    @model_validator(mode="after")
    def check_window(self):
        if self.pause_to < self.pause_from:
            raise ValueError("pause_to cannot be earlier than pause_from")
        return self


class ArchiveRequest(BaseModel):
    archive_date: Optional[dt.date] = None


class ClientResponse(BaseModel):
    """Schema for client response"""

    id: int
    full_name: str
    phone: Optional[str] = None
    telegram: Optional[str] = None
    notes: Optional[str] = None
    status: ClientStatus
    start_date: dt.date
    pause_from: Optional[dt.date] = None
    pause_to: Optional[dt.date] = None
    archive_date: Optional[dt.date] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True
