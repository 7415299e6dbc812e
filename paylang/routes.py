from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from paylang import analytics, payments, refunds
from paylang.auth import check_admin_password, issue_admin_token, verify_token
from paylang.database import get_db
from paylang.gateways import get_gateway
from paylang.notifications import get_notifier
from paylang.observability import get_logger
from paylang.schemas import (
    AdminPaymentsResponse,
    AdminVerifyRequest,
    AdminVerifyResponse,
    AnalyticsResponse,
    PaymentListResponse,
    RefundCreateRequest,
    RefundDecisionRequest,
    RefundListResponse,
    RefundResponse,
    RefundStatsResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)

logger = get_logger(__name__)

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(verify_token)])


@router.get("/health", include_in_schema=False)
def health_check():
    return {"service": "paylang", "status": "running"}


@router.post("/payments/verify", response_model=VerifyPaymentResponse)
def verify_payment(
    request: VerifyPaymentRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    gateway=Depends(get_gateway),
    notifier=Depends(get_notifier),
):
    result = payments.verify_and_record(
        db,
        gateway,
        request.reference,
        name=request.name,
        email=request.email,
        background_tasks=background_tasks,
        notifier=notifier,
    )
    return VerifyPaymentResponse(success=result.success, message=result.message, data=result.details)


@router.get("/payments/{email}", response_model=PaymentListResponse)
def payments_by_email(email: str, db: Session = Depends(get_db)):
    return {"payments": payments.list_by_email(db, email)}


@router.post("/admin/verify", response_model=AdminVerifyResponse)
def admin_verify(request: AdminVerifyRequest):
    if not check_admin_password(request.password):
        logger.warning("admin_login_failed")
        return AdminVerifyResponse(success=False)
    return AdminVerifyResponse(success=True, token=issue_admin_token())


@admin_router.get("/admin/payments", response_model=AdminPaymentsResponse)
def admin_payments(db: Session = Depends(get_db)):
    return {
        "payments": payments.list_all(db),
        "analytics": analytics.revenue_summary(db),
        "daily_payments": analytics.daily_series(db, 30),
    }


@admin_router.get("/admin/analytics", response_model=AnalyticsResponse)
def admin_analytics(db: Session = Depends(get_db)):
    return {"analytics": analytics.window_stats(db, analytics.standard_windows())}


@router.post("/refunds", response_model=RefundResponse)
def create_refund(
    request: RefundCreateRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier=Depends(get_notifier),
):
    refund = refunds.create_refund_request(
        db, request.payment_id, request.reason, background_tasks=background_tasks, notifier=notifier
    )
    return {"message": "Refund request submitted successfully", "refund_request": refund}


@admin_router.get("/refunds", response_model=RefundListResponse)
def list_refunds(db: Session = Depends(get_db)):
    return {"refunds": refunds.list_refunds(db)}


@admin_router.get("/refunds/stats", response_model=RefundStatsResponse)
def refund_stats(db: Session = Depends(get_db)):
    return {"stats": refunds.stats(db)}


@router.get("/refunds/payment/{payment_id}", response_model=RefundResponse)
def refund_for_payment(payment_id: int, db: Session = Depends(get_db)):
    return {"refund_request": refunds.get_by_payment_id(db, payment_id)}


@router.put("/refunds/{refund_id}", response_model=RefundResponse)
def decide_refund(
    refund_id: int,
    request: RefundDecisionRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier=Depends(get_notifier),
    claims: dict = Depends(verify_token),
):
    refund = refunds.decide(
        db,
        refund_id,
        request.status,
        processed_by=request.processed_by or claims.get("sub", "admin"),
        admin_notes=request.admin_notes,
        background_tasks=background_tasks,
        notifier=notifier,
    )
    return {"message": f"Refund request {refund.status}", "refund_request": refund}
