"""
Payment verification: confirm a reference with the processor, then record it
exactly once.

The unique index on ``payments.reference`` is the only concurrency control.
When two requests race on an unseen reference, the loser's insert fails with
an IntegrityError and is handled as the "already recorded" case.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from paylang import notifications
from paylang.models import Payment
from paylang.observability import get_logger

logger = get_logger(__name__)

CENTS = Decimal("0.01")


@dataclass
class VerificationResult:
    success: bool
    message: Optional[str] = None
    details: Optional[dict] = None
    payment: Optional[Payment] = None
    created: bool = False


def to_major_units(minor: int) -> Decimal:
    return (Decimal(minor) / 100).quantize(CENTS)


def find_by_reference(db: Session, reference: str) -> Optional[Payment]:
    return db.query(Payment).filter_by(reference=reference).first()


def verify_and_record(
    db: Session,
    gateway,
    reference: str,
    name: Optional[str] = None,
    email: Optional[str] = None,
    background_tasks: Optional[BackgroundTasks] = None,
    notifier=None,
) -> VerificationResult:
    verification = gateway.verify(reference)
    if not verification.succeeded:
        logger.info("payment_declined", reference=reference, status=verification.status)
        return VerificationResult(success=False, message="Payment verification failed")

    details = verification.as_details()
    existing = find_by_reference(db, verification.reference)
    if existing:
        logger.info("payment_already_recorded", reference=verification.reference, payment_id=existing.id)
        return VerificationResult(success=True, details=details, payment=existing)

    payment = Payment(
        reference=verification.reference,
        name=name or verification.customer_name,
        email=email or verification.customer.get("email"),
        amount=to_major_units(verification.amount),
        currency=verification.currency or "USD",
        status="success",
        paid_at=verification.paid_at,
    )
    db.add(payment)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = find_by_reference(db, verification.reference)
        if existing is None:
            raise
        logger.info("payment_race_lost", reference=verification.reference, payment_id=existing.id)
        return VerificationResult(success=True, details=details, payment=existing)
    db.refresh(payment)
    logger.info("payment_recorded", reference=payment.reference, payment_id=payment.id,
                amount=str(payment.amount), currency=payment.currency)

    if background_tasks is not None and notifier is not None:
        subject, body = notifications.payment_receipt(payment)
        background_tasks.add_task(notifier.send, payment.email, subject, body)
        subject, body = notifications.payment_admin_alert(payment)
        background_tasks.add_task(notifier.send, notifier.admin_address, subject, body)

    return VerificationResult(success=True, details=details, payment=payment, created=True)


def list_by_email(db: Session, email: str) -> list[Payment]:
    return (
        db.query(Payment)
        .filter(func.lower(Payment.email) == email.strip().lower())
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )


def list_all(db: Session) -> list[Payment]:
    return db.query(Payment).order_by(Payment.created_at.desc(), Payment.id.desc()).all()


def get_payment(db: Session, payment_id: int) -> Optional[Payment]:
    return db.get(Payment, payment_id)
