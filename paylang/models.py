from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from paylang.database import Base

REFUND_STATUSES = ("pending", "approved", "rejected")


def utcnow():
    # Stored naive, always UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    reference = Column(String, unique=True, index=True, nullable=False)   # processor transaction reference
    name = Column(String)
    email = Column(String, index=True)
    amount = Column(Numeric(12, 2), nullable=False)                      # major currency units
    currency = Column(String, default="USD", nullable=False)
    status = Column(String, default="success", nullable=False)           # only successful payments are stored
    paid_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, index=True, nullable=False)


class RefundRequest(Base):
    __tablename__ = "refund_requests"

    id = Column(Integer, primary_key=True, index=True)
    payment_id = Column(Integer, ForeignKey("payments.id"), unique=True, index=True, nullable=False)

    # Snapshot of the payment at request time, never re-derived
    payment_reference = Column(String, nullable=False)
    customer_name = Column(String)
    customer_email = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String, default="USD", nullable=False)

    reason = Column(Text, nullable=False)
    status = Column(String, default="pending", index=True, nullable=False)  # pending | approved | rejected
    admin_notes = Column(Text, default="")
    processed_at = Column(DateTime)
    processed_by = Column(String)
    created_at = Column(DateTime, default=utcnow, index=True, nullable=False)
