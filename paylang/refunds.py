"""
Refund request workflow.

One request per payment, ever. A request starts ``pending`` and is decided
exactly once, to ``approved`` or ``rejected``. Decided requests are final.
"""
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from paylang import notifications
from paylang.errors import Conflict, NotFound, ValidationError
from paylang.models import REFUND_STATUSES, Payment, RefundRequest, utcnow
from paylang.observability import get_logger

logger = get_logger(__name__)

DECISIONS = ("approved", "rejected")


def create_refund_request(
    db: Session,
    payment_id: int,
    reason: str,
    background_tasks: Optional[BackgroundTasks] = None,
    notifier=None,
) -> RefundRequest:
    if not reason or not reason.strip():
        raise ValidationError("A reason is required for a refund request")

    payment = db.get(Payment, payment_id)
    if payment is None:
        raise NotFound("Payment not found")
    if not payment.email:
        raise ValidationError("Payment has no customer email to notify")

    if db.query(RefundRequest).filter_by(payment_id=payment_id).first():
        raise Conflict("Refund already requested for this payment")

    refund = RefundRequest(
        payment_id=payment.id,
        payment_reference=payment.reference,
        customer_name=payment.name,
        customer_email=payment.email,
        amount=payment.amount,
        currency=payment.currency,
        reason=reason.strip(),
        status="pending",
        admin_notes="",
    )
    db.add(refund)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if db.query(RefundRequest).filter_by(payment_id=payment_id).first() is None:
            raise
        raise Conflict("Refund already requested for this payment")
    db.refresh(refund)
    logger.info("refund_requested", refund_id=refund.id, payment_id=payment.id)

    if background_tasks is not None and notifier is not None:
        subject, body = notifications.refund_admin_alert(refund)
        background_tasks.add_task(notifier.send, notifier.admin_address, subject, body)
    return refund


def decide(
    db: Session,
    refund_id: int,
    decision: str,
    processed_by: str,
    admin_notes: Optional[str] = None,
    background_tasks: Optional[BackgroundTasks] = None,
    notifier=None,
) -> RefundRequest:
    if decision not in DECISIONS:
        raise ValidationError(f"Decision must be one of: {', '.join(DECISIONS)}")

    refund = db.get(RefundRequest, refund_id)
    if refund is None:
        raise NotFound("Refund request not found")

    # Conditional update: only a pending request can move
    updated = (
        db.query(RefundRequest)
        .filter_by(id=refund_id, status="pending")
        .update(
            {
                "status": decision,
                "admin_notes": admin_notes or "",
                "processed_by": processed_by,
                "processed_at": utcnow(),
            },
            synchronize_session=False,
        )
    )
    if not updated:
        db.rollback()
        raise Conflict(f"Refund request has already been {refund.status}")
    db.commit()
    db.refresh(refund)
    logger.info("refund_decided", refund_id=refund.id, status=refund.status, processed_by=processed_by)

    if background_tasks is not None and notifier is not None:
        subject, body = notifications.refund_decision(refund)
        background_tasks.add_task(notifier.send, refund.customer_email, subject, body)
    return refund


def get_by_payment_id(db: Session, payment_id: int) -> RefundRequest:
    refund = db.query(RefundRequest).filter_by(payment_id=payment_id).first()
    if refund is None:
        raise NotFound("No refund request for this payment")
    return refund


def list_refunds(db: Session) -> list[RefundRequest]:
    return db.query(RefundRequest).order_by(RefundRequest.created_at.desc(), RefundRequest.id.desc()).all()


def stats(db: Session) -> dict:
    result = {status: {"count": 0, "total_amount": 0} for status in REFUND_STATUSES}
    rows = (
        db.query(RefundRequest.status, func.count(RefundRequest.id), func.sum(RefundRequest.amount))
        .group_by(RefundRequest.status)
        .all()
    )
    for status, count, total in rows:
        result[status] = {"count": count, "total_amount": total or 0}
    return result
