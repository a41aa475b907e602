from decimal import Decimal

from canteen import crud, models, procedures
from canteen.cart import CartService
from canteen.schemas import FoodItem


def test_amount_rounding_regression(db_session, make_user):
    # Guard against regressions: 2-decimal rounding half up
    user = make_user("dana@campus.edu")
    order = procedures.create_new_order(db_session, user.id, Decimal("2.675"))
    assert str(order.total_price) == "2.68"  # 2.675 rounds to 2.68 with HALF_UP


def test_repeated_adds_never_duplicate_cart_rows(db_session, cache, signed_in):
    # each change is one keyed upsert, not a delete-all and re-insert
    cart = CartService(db_session, cache)
    cart.follow(signed_in())
    item = FoodItem(id=4, name="Chole Bhature", price=Decimal("90"))
    for _ in range(5):
        cart.add_to_cart(item)
    rows = db_session.query(models.CartItem).all()
    assert [(r.food_item_id, r.quantity) for r in rows] == [(4, 5)]


def test_latest_cart_is_used_when_user_has_several(db_session, cache, signed_in):
    store = signed_in()
    older = crud.create_cart(db_session, store.user_id)
    newer = crud.create_cart(db_session, store.user_id)
    cart = CartService(db_session, cache)
    cart.follow(store)
    assert cart.cart_id == newer.id != older.id


def test_order_items_keep_price_at_time_of_order(db_session, cache, signed_in):
    cart = CartService(db_session, cache)
    cart.follow(signed_in())
    cart.add_to_cart(FoodItem(id=1, name="Veg Thali", price=Decimal("99.999")))
    order = crud.get_order(db_session, cart.place_order())
    assert order.items[0].food_price == Decimal("100.00")
    assert order.total_price == Decimal("100.00")
