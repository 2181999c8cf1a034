"""
Restaurant Menu

Menu entries are an explicit tagged union on `kind`: dishes from the kitchen
and beverages from the bar. Consumers branch on the variant type instead of
probing for optional keys.

Author: Khalil Bannouri
Version: 1.0.0
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from heypaytm.schemas import CamelModel


class DishItem(CamelModel):
    kind: Literal["dish"] = "dish"
    id: int
    name: str
    price: float = Field(..., ge=0)
    category: str
    is_veg: bool = True
    preparation_time: Optional[str] = None
    is_popular: bool = False
    allergens: List[str] = Field(default_factory=list)


class BeverageItem(CamelModel):
    kind: Literal["beverage"] = "beverage"
    id: int
    name: str
    price: float = Field(..., ge=0)
    category: str = "Beverages"
    is_veg: bool = True
    served_cold: bool = True
    is_popular: bool = False


MenuItem = Annotated[Union[DishItem, BeverageItem], Field(discriminator="kind")]

menu_adapter = TypeAdapter(List[MenuItem])


DEFAULT_MENU: list[Union[DishItem, BeverageItem]] = [
    DishItem(id=1, name="Butter Naan", price=45, category="Breads", preparation_time="10 mins", is_popular=True, allergens=["gluten", "dairy"]),
    DishItem(id=2, name="Garlic Naan", price=60, category="Breads", preparation_time="10 mins", allergens=["gluten", "dairy"]),
    DishItem(id=3, name="Paneer Tikka", price=280, category="Starters", preparation_time="20 mins", is_popular=True, allergens=["dairy"]),
    DishItem(id=4, name="Chicken Biryani", price=350, category="Rice & Biryani", is_veg=False, preparation_time="30 mins", is_popular=True),
    DishItem(id=5, name="Dal Makhani", price=280, category="Dal & Curry", preparation_time="25 mins", allergens=["dairy"]),
    DishItem(id=6, name="Butter Chicken", price=380, category="Main Course", is_veg=False, preparation_time="25 mins", allergens=["dairy"]),
    DishItem(id=7, name="Gulab Jamun", price=80, category="Desserts", preparation_time="5 mins", allergens=["dairy", "gluten"]),
    BeverageItem(id=8, name="Mango Lassi", price=120, is_popular=True),
    BeverageItem(id=9, name="Masala Chai", price=40, served_cold=False),
]


def describe(item: Union[DishItem, BeverageItem]) -> str:
    """One-line label used by the voice interface and the counter screen."""
    if isinstance(item, DishItem):
        veg = "veg" if item.is_veg else "non-veg"
        prep = f", ready in {item.preparation_time}" if item.preparation_time else ""
        return f"{item.name} ({veg}{prep}) - ₹{item.price:g}"
    if isinstance(item, BeverageItem):
        temperature = "cold" if item.served_cold else "hot"
        return f"{item.name} ({temperature}) - ₹{item.price:g}"
    raise TypeError(f"Unknown menu item variant: {type(item).__name__}")


def find_item(menu: list[Union[DishItem, BeverageItem]], name: str) -> Optional[Union[DishItem, BeverageItem]]:
    wanted = name.strip().lower()
    return next((item for item in menu if item.name.lower() == wanted), None)
