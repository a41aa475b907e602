from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from .db import Base


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=True)
    # stored lower-cased; used for role lookups and delivery assignment
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    role = relationship("UserRole", back_populates="user", uselist=False, cascade="all, delete-orphan")
    carts = relationship("Cart", back_populates="user", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="user", cascade="all, delete-orphan")


class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    # 'owner' or 'delivery_partner'; no row means customer
    role = Column(String, nullable=False, index=True)

    user = relationship("User", back_populates="role")


class DeliveryPartnerEmail(Base):
    __tablename__ = "delivery_partners_emails"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    partner_name = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    role_id = Column(Integer, ForeignKey("user_roles.id", ondelete="SET NULL"), nullable=True)

    role = relationship("UserRole")


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", back_populates="carts")
    items = relationship("CartItem", back_populates="cart", cascade="all, delete-orphan", order_by="CartItem.id")


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("cart_id", "food_item_id", name="uq_cart_items_cart_food"),)

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    # denormalized copy of the catalog entry
    food_item_id = Column(Integer, nullable=False)
    food_name = Column(String, nullable=False)
    food_price = Column(Numeric(10, 2), nullable=False)
    food_image_url = Column(String, nullable=True)
    quantity = Column(Integer, nullable=False, default=1)

    cart = relationship("Cart", back_populates="items")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    total_price = Column(Numeric(10, 2), nullable=False)
    status = Column(String, nullable=False, default="Placed", index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    delivery_address = Column(String, nullable=True)
    delivery_city = Column(String, nullable=True)
    delivery_pincode = Column(String, nullable=True)
    delivery_instructions = Column(String, nullable=True)
    delivery_landmark = Column(String, nullable=True)

    # assigned partner, copied from delivery_partners_emails at assignment time
    delivery_partner = Column(String, nullable=True)
    delivery_phone = Column(String, nullable=True)
    delivery_email = Column(String, nullable=True, index=True)
    estimated_time = Column(String, nullable=True)

    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    food_item_id = Column(Integer, nullable=False)
    food_name = Column(String, nullable=False)
    food_price = Column(Numeric(10, 2), nullable=False)
    food_image_url = Column(String, nullable=True)
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")
