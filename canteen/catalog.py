"""Static canteen menu.

The menu is served from memory; carts and orders keep their own copy of
name, price and image, so editing an entry here never rewrites history.
"""
from decimal import Decimal
from typing import List, Optional

from .schemas import FoodCategory, FoodItem

CATEGORIES = ["All"] + [c.value for c in FoodCategory]

MENU: List[FoodItem] = [
    FoodItem(id=1, name="Veg Thali", price=Decimal("120"), category=FoodCategory.VEG,
             description="Rice, two sabzis, dal, roti and salad.",
             image_url="https://placehold.co/600x400?text=veg+thali"),
    FoodItem(id=2, name="Masala Dosa", price=Decimal("60"), category=FoodCategory.VEG,
             description="Crisp dosa with potato masala, sambar and chutney.",
             image_url="https://placehold.co/600x400?text=masala+dosa"),
    FoodItem(id=3, name="Paneer Butter Masala", price=Decimal("140"), category=FoodCategory.VEG,
             description="Cottage cheese in a tomato and butter gravy, served with two rotis.",
             image_url="https://placehold.co/600x400?text=paneer+butter+masala"),
    FoodItem(id=4, name="Chole Bhature", price=Decimal("90"), category=FoodCategory.VEG,
             description="Spiced chickpeas with two fried bhature.",
             image_url="https://placehold.co/600x400?text=chole+bhature"),
    FoodItem(id=5, name="Chicken Biryani", price=Decimal("180"), category=FoodCategory.NON_VEG,
             description="Dum biryani with raita and salan.",
             image_url="https://placehold.co/600x400?text=chicken+biryani"),
    FoodItem(id=6, name="Egg Fried Rice", price=Decimal("100"), category=FoodCategory.NON_VEG,
             description="Wok-tossed rice with egg and vegetables.",
             image_url="https://placehold.co/600x400?text=egg+fried+rice"),
    FoodItem(id=7, name="Chicken Kathi Roll", price=Decimal("110"), category=FoodCategory.NON_VEG,
             description="Grilled chicken, onions and mint chutney in a paratha.",
             image_url="https://placehold.co/600x400?text=chicken+roll"),
    FoodItem(id=8, name="Fish Curry Meal", price=Decimal("160"), category=FoodCategory.NON_VEG,
             description="Coastal fish curry with steamed rice.",
             image_url="https://placehold.co/600x400?text=fish+curry"),
    FoodItem(id=9, name="Cold Coffee", price=Decimal("70"), category=FoodCategory.BEVERAGE,
             description="Blended coffee with milk and ice cream.",
             image_url="https://placehold.co/600x400?text=cold+coffee"),
    FoodItem(id=10, name="Mango Lassi", price=Decimal("60"), category=FoodCategory.BEVERAGE,
             description="Sweet yoghurt drink with mango pulp.",
             image_url="https://placehold.co/600x400?text=mango+lassi"),
    FoodItem(id=11, name="Masala Chai", price=Decimal("20"), category=FoodCategory.BEVERAGE,
             description="Ginger and cardamom tea.",
             image_url="https://placehold.co/600x400?text=masala+chai"),
    FoodItem(id=12, name="Fresh Lime Soda", price=Decimal("40"), category=FoodCategory.BEVERAGE,
             description="Sweet or salted.",
             image_url="https://placehold.co/600x400?text=lime+soda"),
]


def get_food_items(category: str = "All") -> List[FoodItem]:
    if not category or category == "All":
        return list(MENU)
    return [item for item in MENU if item.category.value == category]


def get_food_item(food_item_id: int) -> Optional[FoodItem]:
    for item in MENU:
        if item.id == food_item_id:
            return item
    return None
