"""Server-side procedures.

These are the two multi-step writes that clients invoke by name rather than
by touching tables: creating an order and assigning a role by email.
"""
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from . import crud, models
from .errors import NotFoundError
from .schemas import OrderStatus
from .utils import round_amount

logger = logging.getLogger(__name__)


def create_new_order(db: Session, user_id: int, total_price: Decimal) -> models.Order:
    if not db.get(models.User, user_id):
        raise NotFoundError("foreign key violation: user does not exist")

    amount = round_amount(total_price)
    if amount < 0:
        raise ValueError("total price must be non-negative")

    order = models.Order(user_id=user_id, total_price=amount, status=OrderStatus.PLACED.value)
    db.add(order)
    crud.commit(db)
    db.refresh(order)
    logger.info("Created order %s for user %s (total %s)", order.id, user_id, amount)
    return order


def assign_role(db: Session, user_email: str, assigned_role: str) -> models.UserRole | None:
    """Give the user with ``user_email`` a role.

    ``customer`` removes any elevated role, including a delivery-partner
    registration, and returns None.
    """
    user = crud.get_user_by_email(db, user_email)
    if not user:
        raise NotFoundError(f"no user with email {user_email}")
    if assigned_role == "customer":
        crud.clear_user_roles(db, user)
        logger.info("Cleared role for %s", user.email)
        return None
    row = crud.set_user_role(db, user.id, assigned_role)
    logger.info("Assigned role %s to %s", assigned_role, user.email)
    return row
