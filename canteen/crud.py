import logging
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from . import models, schemas
from .auth import hash_password
from .catalog import get_food_item
from .errors import AuthError, InvalidTransitionError, NotFoundError, PermissionDeniedError
from .schemas import OrderStatus
from .utils import round_amount

logger = logging.getLogger(__name__)

ROLE_OWNER = "owner"
ROLE_DELIVERY_PARTNER = "delivery_partner"
ELEVATED_ROLES = (ROLE_OWNER, ROLE_DELIVERY_PARTNER)

# Allowed forward moves; there is no cancellation and no way back
NEXT_STATUS = {
    OrderStatus.PLACED: OrderStatus.IN_PROCESS,
    OrderStatus.IN_PROCESS: OrderStatus.DELIVERED,
}


def commit(db: Session):
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


# -------------------- users --------------------

def create_user(db: Session, user: schemas.UserCreate) -> models.User:
    if get_user_by_email(db, user.email):
        raise AuthError("email already registered")
    db_user = models.User(name=user.name, email=user.email, password_hash=hash_password(user.password))
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise AuthError("email already registered") from e
    db.refresh(db_user)
    return db_user


def get_user_by_email(db: Session, email: str) -> models.User | None:
    if not email:
        return None
    return db.query(models.User).filter(func.lower(models.User.email) == email.strip().lower()).first()


# -------------------- roles --------------------

def get_user_role(db: Session, user_id: int) -> models.UserRole | None:
    return db.query(models.UserRole).filter(models.UserRole.user_id == user_id).one_or_none()


def set_user_role(db: Session, user_id: int, role: str) -> models.UserRole:
    if role not in ELEVATED_ROLES:
        raise ValueError(f"unknown role: {role}")
    row = get_user_role(db, user_id)
    if row is None:
        row = models.UserRole(user_id=user_id, role=role)
        db.add(row)
    else:
        row.role = role
    commit(db)
    db.refresh(row)
    return row


def clear_user_roles(db: Session, user: models.User) -> bool:
    """Drop the role row and any delivery-partner registration for ``user``.

    Either one alone still grants an elevated role, so both go in one commit.
    """
    rows = [get_user_role(db, user.id), get_delivery_partner_email(db, user.email)]
    rows = [r for r in rows if r is not None]
    for r in rows:
        db.delete(r)
    commit(db)
    return bool(rows)


# -------------------- carts --------------------

def get_latest_cart(db: Session, user_id: int) -> models.Cart | None:
    return (
        db.query(models.Cart)
        .filter(models.Cart.user_id == user_id)
        .order_by(models.Cart.created_at.desc(), models.Cart.id.desc())
        .first()
    )


def create_cart(db: Session, user_id: int) -> models.Cart:
    cart = models.Cart(user_id=user_id)
    db.add(cart)
    commit(db)
    db.refresh(cart)
    return cart


def _line_from_row(row) -> schemas.CartLine:
    # category and description are not stored per line; take them from the menu when it still lists the item
    known = get_food_item(row.food_item_id)
    food = schemas.FoodItem(
        id=row.food_item_id,
        name=row.food_name,
        price=row.food_price,
        image_url=row.food_image_url or "",
        description=known.description if known else "",
        category=known.category if known else schemas.FoodCategory.VEG,
    )
    return schemas.CartLine(food_item=food, quantity=row.quantity)


def get_cart_lines(db: Session, cart_id: int) -> List[schemas.CartLine]:
    rows = (
        db.query(models.CartItem)
        .filter(models.CartItem.cart_id == cart_id)
        .order_by(models.CartItem.id)
        .all()
    )
    return [_line_from_row(r) for r in rows]


def upsert_cart_item(db: Session, cart_id: int, line: schemas.CartLine) -> models.CartItem:
    """Write one line keyed by (cart_id, food_item_id) in a single commit."""
    row = (
        db.query(models.CartItem)
        .filter(models.CartItem.cart_id == cart_id, models.CartItem.food_item_id == line.food_item.id)
        .one_or_none()
    )
    if row is None:
        row = models.CartItem(cart_id=cart_id, food_item_id=line.food_item.id)
        db.add(row)
    row.food_name = line.food_item.name
    row.food_price = round_amount(line.food_item.price)
    row.food_image_url = line.food_item.image_url
    row.quantity = line.quantity
    commit(db)
    return row


def delete_cart_item(db: Session, cart_id: int, food_item_id: int) -> bool:
    deleted = (
        db.query(models.CartItem)
        .filter(models.CartItem.cart_id == cart_id, models.CartItem.food_item_id == food_item_id)
        .delete(synchronize_session=False)
    )
    commit(db)
    return deleted > 0


def delete_cart_items(db: Session, cart_id: int) -> int:
    deleted = (
        db.query(models.CartItem)
        .filter(models.CartItem.cart_id == cart_id)
        .delete(synchronize_session=False)
    )
    commit(db)
    return deleted


# -------------------- orders --------------------

def insert_order_items(db: Session, order_id: int, lines: Iterable[schemas.CartLine]) -> List[models.OrderItem]:
    rows = [
        models.OrderItem(
            order_id=order_id,
            food_item_id=line.food_item.id,
            food_name=line.food_item.name,
            food_price=round_amount(line.food_item.price),
            food_image_url=line.food_item.image_url,
            quantity=line.quantity,
        )
        for line in lines
    ]
    db.add_all(rows)
    commit(db)
    return rows


def _orders_query(db: Session):
    return db.query(models.Order).options(selectinload(models.Order.items))


def get_order(db: Session, order_id: int) -> models.Order | None:
    return _orders_query(db).filter(models.Order.id == order_id).first()


def _require_order(db: Session, order_id: int) -> models.Order:
    order = get_order(db, order_id)
    if not order:
        raise NotFoundError("order not found")
    return order


def list_orders(db: Session, status: Optional[str] = None) -> List[models.Order]:
    query = _orders_query(db)
    if status:
        query = query.filter(models.Order.status == OrderStatus.parse(status).value)
    return query.order_by(models.Order.created_at.desc(), models.Order.id.desc()).all()


def list_orders_for_user(db: Session, user_id: int) -> List[models.Order]:
    return (
        _orders_query(db)
        .filter(models.Order.user_id == user_id)
        .order_by(models.Order.created_at.desc(), models.Order.id.desc())
        .all()
    )


def filter_orders_by_status(orders: Iterable[models.Order], status: str) -> List[models.Order]:
    wanted = OrderStatus.parse(status)
    return [o for o in orders if OrderStatus.parse(o.status) is wanted]


def _advance(order: models.Order, target: OrderStatus):
    current = OrderStatus.parse(order.status)
    if NEXT_STATUS.get(current) is not target:
        raise InvalidTransitionError(f"order {order.id} is {current.value}; cannot move to {target.value}")
    order.status = target.value


def update_delivery_details(db: Session, order_id: int, user_id: int, details: schemas.DeliveryDetails) -> models.Order:
    order = _require_order(db, order_id)
    if order.user_id != user_id:
        # other users' orders read as missing
        raise NotFoundError("order not found")
    if OrderStatus.parse(order.status) is not OrderStatus.PLACED:
        raise InvalidTransitionError("delivery details can only change before the order is dispatched")
    order.delivery_address = details.address
    order.delivery_city = details.city
    order.delivery_pincode = details.pincode
    order.delivery_instructions = details.instructions or ""
    order.delivery_landmark = details.landmark or ""
    commit(db)
    db.refresh(order)
    return order


def assign_delivery(db: Session, order_id: int, partner_id: int, estimated_time: str) -> models.Order:
    order = _require_order(db, order_id)
    partner = get_delivery_partner(db, partner_id)
    if not partner:
        raise NotFoundError("delivery partner not found")
    if partner_is_busy(db, partner.email):
        raise InvalidTransitionError(f"{partner.partner_name or partner.email} is already on a delivery")
    _advance(order, OrderStatus.IN_PROCESS)
    order.delivery_partner = partner.partner_name
    order.delivery_phone = partner.phone_number
    order.delivery_email = partner.email
    order.estimated_time = estimated_time
    commit(db)
    db.refresh(order)
    logger.info("Order %s assigned to %s", order.id, partner.email)
    return order


def complete_order(db: Session, order_id: int) -> models.Order:
    order = _require_order(db, order_id)
    _advance(order, OrderStatus.DELIVERED)
    commit(db)
    db.refresh(order)
    return order


def list_assigned_orders(db: Session, email: str) -> List[models.Order]:
    return (
        _orders_query(db)
        .filter(
            func.lower(models.Order.delivery_email) == email.lower(),
            models.Order.status == OrderStatus.IN_PROCESS.value,
        )
        .order_by(models.Order.created_at.desc(), models.Order.id.desc())
        .all()
    )


def list_delivery_history(db: Session, email: str) -> List[models.Order]:
    return (
        _orders_query(db)
        .filter(
            func.lower(models.Order.delivery_email) == email.lower(),
            models.Order.status == OrderStatus.DELIVERED.value,
        )
        .order_by(models.Order.created_at.desc(), models.Order.id.desc())
        .all()
    )


def mark_delivered(db: Session, order_id: int, email: str) -> models.Order:
    order = _require_order(db, order_id)
    if (order.delivery_email or "").lower() != email.lower():
        raise PermissionDeniedError("this order is not assigned to you")
    _advance(order, OrderStatus.DELIVERED)
    commit(db)
    db.refresh(order)
    return order


# -------------------- delivery partners --------------------

def get_delivery_partner_email(db: Session, email: str) -> models.DeliveryPartnerEmail | None:
    if not email:
        return None
    return (
        db.query(models.DeliveryPartnerEmail)
        .filter(func.lower(models.DeliveryPartnerEmail.email) == email.strip().lower())
        .first()
    )


def get_delivery_partner(db: Session, partner_id: int) -> models.DeliveryPartnerEmail | None:
    return db.get(models.DeliveryPartnerEmail, partner_id)


def partner_is_busy(db: Session, email: str) -> bool:
    return (
        db.query(models.Order.id)
        .filter(
            func.lower(models.Order.delivery_email) == email.lower(),
            models.Order.status == OrderStatus.IN_PROCESS.value,
        )
        .first()
        is not None
    )


def list_delivery_partners(db: Session) -> List[schemas.DeliveryPartnerRead]:
    rows = (
        db.query(models.DeliveryPartnerEmail)
        .order_by(models.DeliveryPartnerEmail.created_at.desc(), models.DeliveryPartnerEmail.id.desc())
        .all()
    )
    busy = {
        (email or "").lower()
        for (email,) in db.query(models.Order.delivery_email)
        .filter(models.Order.status == OrderStatus.IN_PROCESS.value)
        .all()
    }
    partners = []
    for row in rows:
        partner = schemas.DeliveryPartnerRead.model_validate(row)
        partners.append(partner.model_copy(update={"status": "Busy" if row.email.lower() in busy else "Available"}))
    return partners


def add_delivery_partner(db: Session, partner: schemas.DeliveryPartnerCreate) -> models.DeliveryPartnerEmail:
    if get_delivery_partner_email(db, partner.email):
        raise ValueError("delivery partner already registered")
    row = models.DeliveryPartnerEmail(
        email=partner.email,
        partner_name=partner.partner_name,
        phone_number=partner.phone_number,
    )
    # registering before sign-up is allowed; the email row alone grants access
    user = get_user_by_email(db, partner.email)
    if user:
        current = get_user_role(db, user.id)
        if current and current.role == ROLE_OWNER:
            raise ValueError("owners cannot be registered as delivery partners")
        if current is None:
            current = models.UserRole(user_id=user.id)
        current.role = ROLE_DELIVERY_PARTNER
        # role row and roster row land in the same commit
        row.role = current
    db.add(row)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ValueError("delivery partner already registered") from e
    db.refresh(row)
    return row
