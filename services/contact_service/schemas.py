from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class ContactCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    subject: str = Field(min_length=5, max_length=200)
    message: str = Field(min_length=10, max_length=500)


class ContactAdvancedCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=50, pattern=r"^\+?[0-9 ()\-.]{5,}$")
    company: Optional[str] = Field(default=None, max_length=200)
    category: str = Field(default="general", min_length=1, max_length=50)
    subject: str = Field(min_length=5, max_length=200)
    message: str = Field(min_length=10, max_length=1000)
    urgent: bool = False
    newsletter: bool = False


class ContactResponse(BaseModel):
    id: int
    created_at: datetime
    status: str
    message: str


class DispatchSummary(BaseModel):
    sent: int = 0
    retrying: int = 0
    failed: int = 0
