from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from sacdesk.models.ticket import TicketPriority


class LandingPageBase(BaseModel):
    slug: str = Field(min_length=1, max_length=100)
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    welcome_message: Optional[str] = Field(None, max_length=2000)
    success_message: Optional[str] = Field(None, max_length=2000)
    responsible_id: Optional[UUID] = None
    is_active: bool = True


class LandingPageCreate(LandingPageBase):
    pass


class LandingPageUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    welcome_message: Optional[str] = Field(None, max_length=2000)
    success_message: Optional[str] = Field(None, max_length=2000)
    responsible_id: Optional[UUID] = None
    is_active: Optional[bool] = None


class LandingPageRead(LandingPageBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LandingPagePublic(BaseModel):
    """What the unauthenticated form needs to render itself."""
    slug: str
    title: str
    description: Optional[str] = None
    welcome_message: Optional[str] = None
    success_message: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PublicCompany(BaseModel):
    name: str = Field(max_length=255)
    email: EmailStr
    cnpj: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=50)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    contact_name: Optional[str] = Field(None, max_length=255)
    # Set when the visitor picked an existing client from the lookup
    existing_client_id: Optional[UUID] = None


class PublicTicket(BaseModel):
    title: str = Field(max_length=255)
    description: str = Field(max_length=5000)
    priority: str = TicketPriority.MEDIUM
    nf_number: Optional[str] = Field(None, max_length=50)


class PublicSubmission(BaseModel):
    company: PublicCompany
    ticket: PublicTicket


class PublicSubmissionResult(BaseModel):
    success: bool = True
    protocol: int


class ClientMatch(BaseModel):
    id: UUID
    name: str
    document: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
