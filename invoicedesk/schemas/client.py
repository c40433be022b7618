from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


class ClientCreateRequest(BaseModel):
    full_name: str = Field(min_length=2)
    company_name: Optional[str] = None
    email: EmailStr
    phone: Optional[str] = None
    address: str = Field(min_length=1)
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class ClientUpdateRequest(BaseModel):
    # Omit to keep the current value; null is rejected for required fields.
    full_name: str = Field(default=None, min_length=2)
    company_name: Optional[str] = None
    email: EmailStr = None
    phone: Optional[str] = None
    address: str = Field(default=None, min_length=1)
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class ClientResponse(BaseModel):
    id: str
    full_name: str
    company_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    address: str
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    created_at: str


class ClientListResponse(BaseModel):
    total: int
    items: List[ClientResponse]
