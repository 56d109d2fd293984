"""Public lead-capture endpoint."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.messages import CONTACT_PRIVACY_REQUIRED, CONTACT_RECEIVED
from app.models.contact import Contact
from app.models.enums import ContactStatus


logger = logging.getLogger("app.contacts")

router = APIRouter(tags=["contacts"])


class ContactCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: EmailStr
    company: Optional[str] = Field(None, max_length=200)
    project_type: Optional[str] = Field(None, max_length=100)
    message: str = Field(..., min_length=1)
    privacy: bool

    @field_validator("privacy")
    @classmethod
    def privacy_accepted(cls, v: bool) -> bool:
        if v is not True:
            raise ValueError(CONTACT_PRIVACY_REQUIRED)
        return v


class ContactResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: Optional[str] = None
    email: str
    company: Optional[str] = None
    project_type: Optional[str] = None
    message: str
    status: ContactStatus
    assigned_to: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime


@router.post("/contact", status_code=status.HTTP_201_CREATED)
def submit_contact(payload: ContactCreate, db: Session = Depends(get_db)):
    """Store a contact form submission as a new lead."""
    contact = Contact(
        **payload.model_dump(exclude={"privacy"}),
        status=ContactStatus.NEW,
    )
    db.add(contact)
    db.commit()
    db.refresh(contact)

    logger.info("Contact request stored: contact_id=%s", contact.id)
    return {"message": CONTACT_RECEIVED, "id": contact.id}
