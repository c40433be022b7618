from typing import List

from pydantic import BaseModel, Field


class RecentInvoicePoint(BaseModel):
    invoice_id: str
    invoice_number: str
    name: str
    amount: float


class DashboardStats(BaseModel):
    total_invoices: int
    paid_invoices: int
    pending_invoices: int
    overdue_invoices: int
    total_revenue: float
    pending_revenue: float
    average_invoice_value: float
    recent_invoices: List[RecentInvoicePoint] = Field(default_factory=list)
