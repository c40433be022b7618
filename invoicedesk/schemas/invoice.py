from datetime import date
from typing import List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

InvoiceStatus = Literal["draft", "pending", "paid", "overdue"]


def _item_id() -> str:
    return f"item-{uuid4().hex[:12]}"


class LineItem(BaseModel):
    model_config = {"allow_inf_nan": False}

    id: str = Field(default_factory=_item_id)
    description: str = Field(min_length=1)
    quantity: float = Field(gt=0)
    rate: float = Field(ge=0)
    amount: float = 0.0   # recomputed from quantity * rate on every write


class InvoiceCreateRequest(BaseModel):
    model_config = {"allow_inf_nan": False}

    client_id: str = Field(min_length=1)
    invoice_number: Optional[str] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    items: List[LineItem] = Field(min_length=1)
    notes: Optional[str] = "Thank you for your business!"
    tax: float = 0.0
    discount: float = 0.0
    status: InvoiceStatus = "draft"


class InvoiceUpdateRequest(BaseModel):
    model_config = {"allow_inf_nan": False}

    client_id: Optional[str] = Field(default=None, min_length=1)
    invoice_number: Optional[str] = Field(default=None, min_length=1)
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    items: Optional[List[LineItem]] = Field(default=None, min_length=1)
    notes: Optional[str] = None
    tax: Optional[float] = None
    discount: Optional[float] = None
    status: Optional[InvoiceStatus] = None


class InvoiceResponse(BaseModel):
    id: str
    client_id: str
    invoice_number: str
    issue_date: date
    due_date: date
    items: List[LineItem]
    subtotal: float
    tax: float = 0.0
    discount: float = 0.0
    total: float
    notes: Optional[str] = None
    status: InvoiceStatus
    created_at: str
    paid_at: Optional[str] = None


class InvoiceListRequest(BaseModel):
    client_id: Optional[str] = None
    status: Optional[InvoiceStatus] = None
    search: Optional[str] = None


class InvoiceListResponse(BaseModel):
    total: int
    items: List[InvoiceResponse]


class InvoicePaymentRequest(BaseModel):
    paid_at: Optional[str] = None


class TotalsPreviewRequest(BaseModel):
    model_config = {"allow_inf_nan": False}

    items: List[LineItem] = Field(default_factory=list)
    tax: Optional[float] = None
    discount: Optional[float] = None


class TotalsPreviewResponse(BaseModel):
    items: List[LineItem]
    subtotal: float
    tax: float
    discount: float
    total: float
