"""Client domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_phone


class ClientCreate(BaseModel):
    """Schema for creating a new client at intake"""

    name: str = Field(min_length=1)
    phoneNumber: Optional[str] = None
    email: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    # Sessions already prepaid at intake
    remainingSessions: int = Field(default=0, ge=0)

    @field_validator("phoneNumber")
    @classmethod
    def validate_phone_number(cls, v):
        if v:
            return validate_phone(v)
        return v

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        if v:
            return validate_email(v)
        return v


class ClientUpdate(BaseModel):
    """
    Schema for updating an existing client.

    remainingSessions is deliberately absent: only ledger operations move it.
    """

    name: Optional[str] = Field(default=None, min_length=1)
    phoneNumber: Optional[str] = None
    email: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("phoneNumber")
    @classmethod
    def validate_phone_number(cls, v):
        if v:
            return validate_phone(v)
        return v

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        if v:
            return validate_email(v)
        return v


class ClientResponse(BaseModel):
    """Schema for client response"""

    id: int
    name: str
    phoneNumber: Optional[str]
    email: Optional[str]
    location: Optional[str]
    notes: Optional[str]
    remainingSessions: int
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, client) -> "ClientResponse":
        return cls(
            id=client.id,
            name=client.name,
            phoneNumber=client.phone_number,
            email=client.email,
            location=client.location,
            notes=client.notes,
            remainingSessions=client.remaining_sessions,
            createdAt=client.created_at,
            updatedAt=client.updated_at,
        )
