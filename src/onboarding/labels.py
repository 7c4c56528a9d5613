"""
Onboarding Display Labels.

Option tables and product-dependent copy for each step. Rendering is up to
the front end; this module only decides what the words are.
"""

from .state import (
    ChooseDailyUsage,
    ChooseDuration,
    ChooseProduct,
    ChooseUnitCost,
    CreateCredentials,
    EnterIdentity,
    Offer,
    ProductType,
    Step,
)

PRODUCT_OPTIONS = [
    {"id": "cigarettes", "label": "Cigarettes", "description": "Traditional cigarettes"},
    {"id": "vape_disposable", "label": "Vape", "description": "E-cigarettes and vaping devices"},
    {"id": "pouches", "label": "Pouches", "description": "Tobacco-free pouches"},
    {"id": "dip", "label": "Dip/Chew", "description": "Smokeless tobacco"},
]

DAILY_USAGE_OPTIONS = [1, 2, 3, 4, 5]

UNIT_COST_OPTIONS = [6, 7, 8, 9]

DURATION_OPTIONS = [
    {"id": "under_5y", "label": "Less than 5 years"},
    {"id": "5_to_10y", "label": "5 to 10 years"},
    {"id": "10_to_20y", "label": "10 to 20"},
    {"id": "over_20y", "label": "Over 20"},
]

INITIAL_PRICE = "$79"
FLASH_SALE_PRICE = "$19.99"

# Noun used in "How Many ___ Per Day?" / "Cost Per ___"
_UNIT_NOUNS = {
    ProductType.CIGARETTES: ("Packs", "Pack"),
    ProductType.VAPE_DISPOSABLE: ("Vapes", "Vape"),
    ProductType.POUCHES: ("Pouches", "Pouch"),
    ProductType.DIP: ("Cans", "Can"),
}

_HABIT_VERBS = {
    ProductType.CIGARETTES: "smoking",
    ProductType.VAPE_DISPOSABLE: "vaping",
    ProductType.POUCHES: "using pouches",
    ProductType.DIP: "dipping",
}

_COST_HEADLINES = {
    ProductType.CIGARETTES: "REAL COST OF SMOKING",
    ProductType.VAPE_DISPOSABLE: "REAL COST OF VAPING",
    ProductType.POUCHES: "REAL COST OF NICOTINE POUCHES",
    ProductType.DIP: "REAL COST OF DIPPING",
}


def step_title(step: Step, product_type: ProductType | None) -> str:
    """Heading for a step. Steps 2-4 depend on the product chosen in step 1."""
    if isinstance(step, ChooseProduct):
        return "What are you quitting?"

    if isinstance(step, ChooseDailyUsage):
        if product_type in _UNIT_NOUNS:
            return f"How Many {_UNIT_NOUNS[product_type][0]} Per Day?"
        return "How Many Per Day?"

    if isinstance(step, ChooseUnitCost):
        if product_type in _UNIT_NOUNS:
            return f"Cost Per {_UNIT_NOUNS[product_type][1]}"
        return "Cost Per Unit"

    if isinstance(step, ChooseDuration):
        if product_type in _HABIT_VERBS:
            return f"How long have you been {_HABIT_VERBS[product_type]}?"
        return "How long have you been using?"

    if isinstance(step, EnterIdentity):
        return "Create Account"
    if isinstance(step, Offer):
        return "Start your journey"
    if isinstance(step, CreateCredentials):
        return "Create your account"
    return ""


def step_description(step: Step) -> str:
    if isinstance(step, Offer):
        return "Ready to take control?"
    if isinstance(step, CreateCredentials):
        return "Secure your account"
    return ""


def cost_headline(product_type: ProductType | None) -> str:
    return _COST_HEADLINES.get(product_type, "REAL COST OF YOUR HABIT")


def offer_price(step: Offer) -> str:
    return FLASH_SALE_PRICE if step.flash_sale else INITIAL_PRICE


def seats_message(seats_left: int) -> str:
    if seats_left > 1:
        return f"Only {seats_left} spots left at this price!"
    return "Last spot available!"
