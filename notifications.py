"""Reservation confirmation and cancellation emails."""

import smtplib
from email.message import EmailMessage
from typing import Optional

from config import EMAIL_FROM, EMAIL_HOST, EMAIL_PASS, EMAIL_PORT, EMAIL_USER
from errors import NotificationError
from logging_config import logger
from models import Customer


def _address_block(reservation: dict) -> str:
    lines = [reservation.get("address_line1") or ""]
    if reservation.get("address_line2"):
        lines.append(reservation["address_line2"])
    lines.append(
        f"{reservation.get('city') or ''}, {reservation.get('state') or ''} {reservation.get('zip_code') or ''}".strip()
    )
    return "\n".join(lines)


class EmailSender:
    """Sends mail over SMTP. Without a host it only logs what it would send."""

    def __init__(self, host=EMAIL_HOST, port=EMAIL_PORT, user=EMAIL_USER, password=EMAIL_PASS, sender=EMAIL_FROM):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender

    def send(self, to: str, subject: str, body: str) -> bool:
        if not self.host:
            logger.info(f"Mail delivery disabled, not sending '{subject}' to {to}")
            return False

        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as smtp:
                smtp.starttls()
                if self.user:
                    smtp.login(self.user, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Could not send '{subject}' to {to}: {e}") from e

        logger.info(f"Sent '{subject}' to {to}")
        return True

    def send_reservation_confirmation(self, reservation: dict, customer: Customer) -> bool:
        body = f"""Dear {customer.first_name} {customer.last_name},

Your reservation at {reservation['restaurant_name']} has been confirmed.

Details:
  Date: {reservation['reservation_date']}
  Time: {reservation['reservation_time']}
  Party Size: {reservation['party_size']}
  Reservation ID: {reservation['id']}

Restaurant Address:
{_address_block(reservation)}

If you need to cancel or modify your reservation, please visit our website or contact the restaurant directly.

Thank you for using our reservation service!
"""
        return self.send(customer.email, "Reservation Confirmation", body)

    def send_cancellation_notification(self, reservation: dict, customer: Customer) -> bool:
        body = f"""Dear {customer.first_name} {customer.last_name},

Your reservation at {reservation['restaurant_name']} has been cancelled.

Details:
  Date: {reservation['reservation_date']}
  Time: {reservation['reservation_time']}
  Party Size: {reservation['party_size']}

If you did not request this cancellation, please contact us immediately.

Thank you for using our reservation service!
"""
        return self.send(customer.email, "Reservation Cancellation", body)


email_sender = EmailSender()


def _deliver(kind: str, reservation: dict, customer: Optional[dict]):
    if customer is None:
        logger.warning(f"No customer on record for reservation {reservation['id']}, {kind} email skipped")
        return
    try:
        recipient = Customer.model_validate(customer)
        if kind == "confirmation":
            email_sender.send_reservation_confirmation(reservation, recipient)
        else:
            email_sender.send_cancellation_notification(reservation, recipient)
    except Exception as e:
        # reservation is already committed
        logger.opt(exception=e).error(f"Error sending {kind} email for reservation {reservation['id']}: {e}")


def notify_reservation_confirmed(reservation: dict, customer: Optional[dict]):
    _deliver("confirmation", reservation, customer)


def notify_reservation_cancelled(reservation: dict, customer: Optional[dict]):
    _deliver("cancellation", reservation, customer)
