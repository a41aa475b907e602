"""Checkout: delivery details and the simulated payment step.

No money moves. The card/UPI fields are checked for presence and tidied
for display, then the delivery details are stored on the order.
"""
import logging
import re

from sqlalchemy.orm import Session

from . import crud, models, schemas
from .errors import PaymentError

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


def format_card_number(value: str) -> str:
    """Group card digits in fours: ``4111111111111111`` -> ``4111 1111 1111 1111``.

    Input with fewer than four digits comes back unchanged.
    """
    digits = _NON_DIGITS.sub("", value or "")[:16]
    if len(digits) < 4:
        return value
    return " ".join(digits[i:i + 4] for i in range(0, len(digits), 4))


def format_expiry_date(value: str) -> str:
    digits = _NON_DIGITS.sub("", value or "")[:4]
    if len(digits) <= 2:
        return digits
    return f"{digits[:2]}/{digits[2:]}"


def validate_payment(form: schemas.PaymentForm) -> schemas.PaymentForm:
    if form.method == "card":
        if not (form.card_number and form.expiry_date and form.cvv and form.name_on_card):
            raise PaymentError("Please fill in all card details")
        return form.model_copy(update={
            "card_number": format_card_number(form.card_number),
            "expiry_date": format_expiry_date(form.expiry_date),
        })
    if not form.upi_id or "@" not in form.upi_id:
        raise PaymentError("Please enter a valid UPI ID")
    return form


def complete_payment(
    db: Session,
    order_id: int,
    user_id: int,
    details: schemas.DeliveryDetails,
    form: schemas.PaymentForm,
) -> models.Order:
    validate_payment(form)
    order = crud.update_delivery_details(db, order_id, user_id, details)
    logger.info("Payment recorded for order %s via %s", order.id, form.method)
    return order
