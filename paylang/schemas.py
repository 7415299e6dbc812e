from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, PlainSerializer

# Amounts go out as JSON numbers rather than strings
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class VerifyPaymentRequest(BaseModel):
    reference: str
    name: Optional[str] = None
    email: Optional[str] = None


class PaymentOut(BaseModel):
    id: int
    reference: str
    name: Optional[str] = None
    email: Optional[str] = None
    amount: Money
    currency: str
    status: str
    paid_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VerifyPaymentResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    data: Optional[dict] = None


class PaymentListResponse(BaseModel):
    success: bool = True
    payments: list[PaymentOut]


class AdminVerifyRequest(BaseModel):
    password: str


class AdminVerifyResponse(BaseModel):
    success: bool
    token: Optional[str] = None


class RefundCreateRequest(BaseModel):
    payment_id: int
    reason: str


class RefundDecisionRequest(BaseModel):
    status: str
    admin_notes: Optional[str] = None
    processed_by: Optional[str] = None


class RefundOut(BaseModel):
    id: int
    payment_id: int
    payment_reference: str
    customer_name: Optional[str] = None
    customer_email: str
    amount: Money
    currency: str
    reason: str
    status: str
    admin_notes: Optional[str] = None
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RefundResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    refund_request: RefundOut


class RefundListResponse(BaseModel):
    success: bool = True
    refunds: list[RefundOut]


class Totals(BaseModel):
    total: Money = Decimal("0")
    count: int = 0


class StatusTotals(BaseModel):
    count: int = 0
    total_amount: Money = Decimal("0")


class RefundStatsResponse(BaseModel):
    success: bool = True
    stats: dict[str, StatusTotals]


class DailyTotals(BaseModel):
    year: int
    month: int
    day: int
    total_amount: Money
    count: int


class AnalyticsResponse(BaseModel):
    success: bool = True
    analytics: dict[str, Totals]


class RevenueSummary(BaseModel):
    total_revenue: Money
    total_transactions: int
    average_amount: Money


class AdminPaymentsResponse(BaseModel):
    success: bool = True
    payments: list[PaymentOut]
    analytics: RevenueSummary
    daily_payments: list[DailyTotals]
