from typing import Optional

from pydantic import BaseModel, Field


class CheckoutRequest(BaseModel):
    invoice_id: str = Field(min_length=1)
    origin: str = Field(min_length=1)
    description: Optional[str] = None


class CheckoutResponse(BaseModel):
    success: bool
    session_id: str
    url: str


class ConnectAccountRequest(BaseModel):
    user_id: str = Field(min_length=1)
    origin: str = Field(min_length=1)


class ConnectAccountResponse(BaseModel):
    success: bool
    url: str
    account_id: str
