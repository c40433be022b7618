from typing import List, Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field

DomainStatus = Literal["verified", "pending", "failed", "not_started"]


class DnsRecord(BaseModel):
    type: str
    name: str
    value: str
    priority: Optional[int] = None
    ttl: Optional[Union[int, str]] = None
    status: Optional[str] = None


class DomainRequest(BaseModel):
    domain: str = Field(min_length=1)


class DomainVerificationResponse(BaseModel):
    success: bool
    message: str
    status: Optional[DomainStatus] = None
    dns_records: List[DnsRecord] = Field(default_factory=list)
    error: Optional[str] = None


class DomainRemovalResponse(BaseModel):
    success: bool
    message: str


class DomainListResponse(BaseModel):
    success: bool
    domains: List[str] = Field(default_factory=list)
    message: Optional[str] = None


class SendInvoiceRequest(BaseModel):
    to: EmailStr
    subject: str = Field(min_length=1)
    message: str = ""
    copy_to_self: bool = Field(default=False, alias="copy")
    mark_as_sent: bool = True
    from_domain: Optional[str] = "test"
    from_name: Optional[str] = None
    requester_email: EmailStr

    model_config = {"populate_by_name": True}


class SendInvoiceResponse(BaseModel):
    success: bool
    message: str
    recipient: str
    original_recipient: str
    used_custom_domain: bool
    test_mode: bool
    from_email: str
    email_id: Optional[str] = None
