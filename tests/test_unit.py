import json
from decimal import Decimal

from canteen import catalog
from canteen.cart import calculate_total_items, calculate_total_price
from canteen.local_cache import CART_STORAGE_KEY, LocalCache
from canteen.schemas import CartLine, FoodItem, OrderStatus
from canteen.utils import format_price, round_amount


def food(id, price, name=None):
    return FoodItem(id=id, name=name or f"Item {id}", price=Decimal(price))


def test_totals_of_empty_cart_are_zero():
    assert calculate_total_items([]) == 0
    assert calculate_total_price([]) == Decimal("0")


def test_totals_sum_price_times_quantity():
    lines = [CartLine(food_item=food(1, "100"), quantity=1), CartLine(food_item=food(2, "50"), quantity=2)]
    assert calculate_total_items(lines) == 3
    assert calculate_total_price(lines) == Decimal("200")


def test_local_cache_round_trip_keeps_ids_and_quantities():
    storage = {}
    cache = LocalCache(storage)
    lines = [CartLine(food_item=food(3, "12.50"), quantity=4), CartLine(food_item=food(7, "20"), quantity=1)]
    cache.save(lines)
    assert CART_STORAGE_KEY in storage

    loaded = LocalCache(storage).load()
    assert [(l.food_item.id, l.quantity) for l in loaded] == [(3, 4), (7, 1)]
    assert loaded[0].food_item.price == Decimal("12.50")


def test_local_cache_round_trip_of_empty_cart():
    cache = LocalCache({})
    cache.save([])
    assert cache.load() == []


def test_local_cache_ignores_missing_and_corrupt_snapshots():
    assert LocalCache({}).load() == []
    assert LocalCache({CART_STORAGE_KEY: "not json"}).load() == []
    assert LocalCache({CART_STORAGE_KEY: '[{"food_item": {"id": 1}, "quantity": 0}]'}).load() == []


def test_local_cache_clear():
    storage = {}
    cache = LocalCache(storage)
    cache.save([CartLine(food_item=food(1, "10"), quantity=1)])
    cache.clear()
    assert storage == {}
    assert cache.load() == []


def test_round_amount_half_up():
    assert round_amount(Decimal("10.125")) == Decimal("10.13")
    assert round_amount(Decimal("2.675")) == Decimal("2.68")


def test_format_price():
    assert format_price(Decimal("1234.5")) == "₹1,234.50"
    assert format_price(60) == "₹60.00"


def test_catalog_filters_by_category():
    assert len(catalog.get_food_items()) == len(catalog.MENU)
    beverages = catalog.get_food_items("Beverage")
    assert beverages and all(item.category.value == "Beverage" for item in beverages)
    assert catalog.get_food_item(1).name == "Veg Thali"
    assert catalog.get_food_item(999) is None


def test_processing_is_read_as_in_process():
    assert OrderStatus.parse("Processing") is OrderStatus.IN_PROCESS
    assert OrderStatus.parse("Delivered") is OrderStatus.DELIVERED


def test_local_cache_merges_repeated_food_ids():
    line = CartLine(food_item=food(1, "100"), quantity=1).model_dump(mode="json")
    other = CartLine(food_item=food(2, "50"), quantity=3).model_dump(mode="json")
    cache = LocalCache({CART_STORAGE_KEY: json.dumps([line, other, line])})

    loaded = cache.load()
    assert [(l.food_item.id, l.quantity) for l in loaded] == [(1, 2), (2, 3)]
    assert calculate_total_price(loaded) == Decimal("350")
