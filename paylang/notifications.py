"""
Outbound email notifications.

Sending is best effort: ``Notifier.send`` never raises. Services schedule it
on FastAPI ``BackgroundTasks`` so it runs after the response has gone out.
"""
import smtplib
from email.message import EmailMessage
from typing import Optional

from paylang.config import SMTP_PORT, env, env_int
from paylang.observability import get_logger

logger = get_logger(__name__)

SIGNATURE = "\n\nBest regards,\nPaylang Team"


class Notifier:
    def __init__(self, host: Optional[str] = None, port: Optional[int] = None,
                 username: Optional[str] = None, password: Optional[str] = None):
        self.host = host or env("SMTP_HOST")
        self.port = port or env_int("SMTP_PORT", SMTP_PORT)
        self.username = username or env("EMAIL_USER")
        self.password = password or env("EMAIL_PASS")

    @property
    def admin_address(self) -> Optional[str]:
        return env("ADMIN_EMAIL") or self.username

    def send(self, to: Optional[str], subject: str, body: str) -> None:
        if not to:
            logger.warning("notification_skipped", subject=subject, reason="no recipient")
            return
        if not self.host:
            logger.info("notification_skipped", to=to, subject=subject, reason="SMTP_HOST not configured")
            return

        message = EmailMessage()
        message["From"] = self.username or "no-reply@paylang.local"
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as smtp:
                smtp.starttls()
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("notification_failed", to=to, subject=subject, error=str(exc))
            return
        logger.info("notification_sent", to=to, subject=subject)


def get_notifier():
    return Notifier()


def _money(currency, amount) -> str:
    return f"{currency} {amount:.2f}"


def payment_receipt(payment):
    subject = "Payment Receipt - Paylang"
    body = (
        "Payment Successful!\n\n"
        "Thank you for your payment. Here are your transaction details:\n\n"
        f"Reference: {payment.reference}\n"
        f"Amount: {_money(payment.currency, payment.amount)}\n"
        f"Date: {payment.paid_at or payment.created_at} UTC\n"
        "Status: Successful\n\n"
        "Keep this receipt for your records."
        + SIGNATURE
    )
    return subject, body


def payment_admin_alert(payment):
    subject = "New Payment Received - Paylang"
    body = (
        "A new payment has been processed. Details below:\n\n"
        f"Customer Name: {payment.name}\n"
        f"Email: {payment.email}\n"
        f"Reference: {payment.reference}\n"
        f"Amount: {_money(payment.currency, payment.amount)}\n"
        f"Date: {payment.paid_at or payment.created_at} UTC\n"
    )
    return subject, body


def refund_admin_alert(refund):
    subject = "New Refund Request - Paylang"
    body = (
        "A new refund request has been submitted. Details below:\n\n"
        f"Customer Name: {refund.customer_name}\n"
        f"Email: {refund.customer_email}\n"
        f"Reference: {refund.payment_reference}\n"
        f"Amount: {_money(refund.currency, refund.amount)}\n"
        f"Reason: {refund.reason}\n"
    )
    dashboard = env("DASHBOARD_URL")
    if dashboard:
        body += f"\nView in Admin Dashboard: {dashboard}\n"
    return subject, body


def refund_decision(refund):
    approved = refund.status == "approved"
    subject = "Refund Request Approved - Paylang" if approved else "Refund Request Update - Paylang"
    status_text = "Approved" if approved else "Rejected"
    lines = [
        f"Hello {refund.customer_name or 'there'},\n",
        f"Your refund request has been {status_text.lower()}.\n",
        f"Reference: {refund.payment_reference}",
        f"Amount: {_money(refund.currency, refund.amount)}",
        f"Status: {status_text}",
    ]
    if refund.admin_notes:
        lines.append(f"Notes: {refund.admin_notes}")
    if approved:
        lines.append("\nYour refund will be processed within 5-7 business days.")
    return subject, "\n".join(lines) + SIGNATURE
