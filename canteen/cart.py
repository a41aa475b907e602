"""Cart operations.

``CartService`` keeps the current cart in memory, writes every change
through to the local cache, and mirrors it to the user's cart row when
someone is signed in. Each mutation is one keyed upsert or delete on
``cart_items``.

Database failures are raised as ``CartSyncError`` after the local change
has already been applied; callers decide whether to retry or just warn.
"""
import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import crud, procedures
from .errors import CartSyncError, EmptyCartError, NotAuthenticatedError, OrderPlacementError
from .local_cache import LocalCache
from .schemas import CartLine, FoodItem
from .session import AuthEvent, SessionStore
from .utils import round_amount

logger = logging.getLogger(__name__)


def calculate_total_items(lines: Iterable[CartLine]) -> int:
    return sum(line.quantity for line in lines)


def calculate_total_price(lines: Iterable[CartLine]) -> Decimal:
    return sum((line.food_item.price * line.quantity for line in lines), Decimal("0"))


class CartService:
    def __init__(self, db: Session, cache: LocalCache, user_id: Optional[int] = None):
        self.db = db
        self.cache = cache
        self.user_id = user_id
        self.cart_id: Optional[int] = None
        self.lines: List[CartLine] = []
        # last sync problem seen by a session-change refresh
        self.warning: Optional[str] = None

    # -------------------- session wiring --------------------

    def follow(self, store: SessionStore):
        """Track ``store``'s user and re-fetch whenever the session changes."""
        self.user_id = store.user_id
        self._refresh()
        return store.subscribe(self._on_auth_change)

    def _on_auth_change(self, event: AuthEvent, store: SessionStore):
        if event is AuthEvent.ROLE_REFRESHED:
            return
        self.user_id = store.user_id
        self.cart_id = None
        self._refresh()

    def _refresh(self):
        try:
            self.fetch_cart()
            self.warning = None
        except CartSyncError as exc:
            self.warning = str(exc)

    # -------------------- reads --------------------

    def fetch_cart(self) -> List[CartLine]:
        if self.user_id is None:
            self.cart_id = None
            self.lines = self.cache.load()
            return self.lines

        pending = self.cache.load()
        try:
            cart = crud.get_latest_cart(self.db, self.user_id)
            if cart is None:
                logger.info("Creating cart for user %s", self.user_id)
                cart = crud.create_cart(self.db, self.user_id)
                server_lines = []
            else:
                server_lines = crud.get_cart_lines(self.db, cart.id)

            # server wins; cached lines it has never seen are pushed up
            on_server = {line.food_item.id for line in server_lines}
            unsynced = [line for line in pending if line.food_item.id not in on_server]
            for line in unsynced:
                crud.upsert_cart_item(self.db, cart.id, line)
        except SQLAlchemyError as exc:
            logger.warning("Falling back to cached cart for user %s: %s", self.user_id, exc)
            self.lines = pending
            raise CartSyncError("Failed to load your cart") from exc

        self.cart_id = cart.id
        self.lines = server_lines + unsynced
        self.cache.save(self.lines)
        return self.lines

    def get_line(self, food_item_id: int) -> Optional[CartLine]:
        for line in self.lines:
            if line.food_item.id == food_item_id:
                return line
        return None

    def get_total_items(self) -> int:
        return calculate_total_items(self.lines)

    def get_total_price(self) -> Decimal:
        return calculate_total_price(self.lines)

    # -------------------- mutations --------------------

    def add_to_cart(self, item: FoodItem) -> CartLine:
        existing = self.get_line(item.id)
        if existing:
            line = existing.model_copy(update={"quantity": existing.quantity + 1})
            self.lines = [line if l.food_item.id == item.id else l for l in self.lines]
        else:
            line = CartLine(food_item=item, quantity=1)
            self.lines = self.lines + [line]
        self._push(line)
        return line

    def remove_from_cart(self, food_item_id: int) -> None:
        self.lines = [l for l in self.lines if l.food_item.id != food_item_id]
        self.cache.save(self.lines)
        if self._remote():
            self._write(crud.delete_cart_item, self.cart_id, food_item_id)

    def update_quantity(self, food_item_id: int, quantity: int) -> Optional[CartLine]:
        if quantity <= 0:
            self.remove_from_cart(food_item_id)
            return None
        existing = self.get_line(food_item_id)
        if existing is None:
            return None
        line = existing.model_copy(update={"quantity": quantity})
        self.lines = [line if l.food_item.id == food_item_id else l for l in self.lines]
        self._push(line)
        return line

    def clear_cart(self) -> None:
        self.lines = []
        self.cache.clear()
        if self._remote():
            self._write(crud.delete_cart_items, self.cart_id)

    def place_order(self) -> int:
        """Turn the cart into an order and return the new order id.

        The order row, its items and the cart cleanup are separate commits.
        If the items fail to insert, the order row stays behind without
        items and ``OrderPlacementError.order_id`` names it.
        """
        if self.user_id is None:
            raise NotAuthenticatedError("Please log in to place an order")
        if not self.lines:
            raise EmptyCartError("Your cart is empty")

        lines = list(self.lines)
        total = round_amount(calculate_total_price(lines))
        try:
            order = procedures.create_new_order(self.db, self.user_id, total)
        except SQLAlchemyError as exc:
            logger.error("Order creation failed for user %s: %s", self.user_id, exc)
            raise OrderPlacementError("Failed to place order") from exc

        try:
            crud.insert_order_items(self.db, order.id, lines)
        except SQLAlchemyError as exc:
            logger.error("Order %s has no items: %s", order.id, exc)
            raise OrderPlacementError("Failed to add items to order", order_id=order.id) from exc

        if self.cart_id is not None:
            try:
                crud.delete_cart_items(self.db, self.cart_id)
            except SQLAlchemyError as exc:
                # the order stands; stale server lines come back on the next fetch
                logger.error("Order %s placed but cart %s was not cleared: %s", order.id, self.cart_id, exc)
        self.cache.clear()
        self.lines = []
        logger.info("Order %s placed by user %s (%d lines, total %s)", order.id, self.user_id, len(lines), total)
        return order.id

    # -------------------- helpers --------------------

    def _remote(self) -> bool:
        return self.user_id is not None and self.cart_id is not None

    def _push(self, line: CartLine):
        self.cache.save(self.lines)
        if self._remote():
            self._write(crud.upsert_cart_item, self.cart_id, line)

    def _write(self, func, *args):
        try:
            func(self.db, *args)
        except SQLAlchemyError as exc:
            logger.error("Cart %s sync failed in %s: %s", self.cart_id, func.__name__, exc)
            raise CartSyncError("Failed to save your cart") from exc
