"""The drinks sold by the coffee shop."""

from pydantic import BaseModel


class Drink(BaseModel):
    name: str
    price: int
    description: str


DRINKS: tuple[Drink, ...] = (
    Drink(
        name="Latte",
        price=5,
        description="A latte is a coffee drink made with espresso and steamed milk.",
    ),
    Drink(
        name="Mocha",
        price=6,
        description="A mocha is a coffee drink made with espresso and chocolate.",
    ),
    Drink(
        name="Flat White",
        price=7,
        description="A flat white is a coffee drink made with espresso and steamed milk.",
    ),
)


def find_drink(name: str) -> Drink | None:
    """Look a drink up by its exact name."""
    return next((drink for drink in DRINKS if drink.name == name), None)
