"""Role resolution.

A signed-in user's role comes from three places, read in this order before
anything is returned:

1. the ``user_roles`` row (missing row means no elevated role);
2. the configured owner allow-list, which also repairs the row when it
   disagrees;
3. the ``delivery_partners_emails`` registration.

Precedence is owner > delivery partner > customer. The result is one
immutable :class:`RoleSnapshot`; guards only ever look at a snapshot, so
they never see a half-resolved mix of the three sources.
"""
import logging
from enum import Enum
from typing import Iterable, NamedTuple, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import config, crud, procedures

logger = logging.getLogger(__name__)


class Role(str, Enum):
    CUSTOMER = "customer"
    OWNER = "owner"
    DELIVERY_PARTNER = "delivery_partner"


DASHBOARDS = {
    Role.CUSTOMER: "/orders",
    Role.OWNER: "/owner",
    Role.DELIVERY_PARTNER: "/delivery",
}


class RoleSnapshot(NamedTuple):
    user_id: int
    email: str
    role: Role
    # what user_roles held after any allow-list repair, None when there is no row
    role_row: Optional[str]
    delivery_email_registered: bool

    @property
    def is_owner(self) -> bool:
        return self.role is Role.OWNER

    @property
    def is_delivery_partner(self) -> bool:
        return self.role is Role.DELIVERY_PARTNER

    @property
    def dashboard(self) -> str:
        return DASHBOARDS[self.role]


def _listed_owner(email: str, owner_emails: Optional[Iterable[str]]) -> bool:
    if owner_emails is None:
        return config.is_owner_email(email)
    return email.strip().lower() in {e.strip().lower() for e in owner_emails}


def resolve_role(db: Session, user_id: int, email: str, owner_emails: Optional[Iterable[str]] = None) -> RoleSnapshot:
    row = crud.get_user_role(db, user_id)
    role_row = row.role if row else None

    if _listed_owner(email, owner_emails) and role_row != Role.OWNER.value:
        try:
            procedures.assign_role(db, email, Role.OWNER.value)
            role_row = Role.OWNER.value
        except SQLAlchemyError:
            # the allow-list still makes them an owner for this snapshot
            logger.exception("Could not persist owner role for %s", email)

    registered = crud.get_delivery_partner_email(db, email) is not None

    if role_row == Role.OWNER.value or _listed_owner(email, owner_emails):
        role = Role.OWNER
    elif role_row == Role.DELIVERY_PARTNER.value or registered:
        role = Role.DELIVERY_PARTNER
    else:
        role = Role.CUSTOMER

    return RoleSnapshot(
        user_id=user_id,
        email=email,
        role=role,
        role_row=role_row,
        delivery_email_registered=registered,
    )
