"""
Tests for product-dependent step copy.
"""

import pytest

from onboarding.labels import (
    cost_headline,
    offer_price,
    seats_message,
    step_description,
    step_title,
)
from onboarding.state import (
    ChooseDailyUsage,
    ChooseDuration,
    ChooseProduct,
    ChooseUnitCost,
    CreateCredentials,
    EnterIdentity,
    Offer,
    ProductType,
)


@pytest.mark.parametrize(
    "product,usage,cost,duration",
    [
        (ProductType.CIGARETTES, "How Many Packs Per Day?", "Cost Per Pack", "How long have you been smoking?"),
        (ProductType.VAPE_DISPOSABLE, "How Many Vapes Per Day?", "Cost Per Vape", "How long have you been vaping?"),
        (ProductType.POUCHES, "How Many Pouches Per Day?", "Cost Per Pouch", "How long have you been using pouches?"),
        (ProductType.DIP, "How Many Cans Per Day?", "Cost Per Can", "How long have you been dipping?"),
        (None, "How Many Per Day?", "Cost Per Unit", "How long have you been using?"),
    ],
)
def test_questionnaire_titles(product, usage, cost, duration):
    assert step_title(ChooseDailyUsage(), product) == usage
    assert step_title(ChooseUnitCost(), product) == cost
    assert step_title(ChooseDuration(), product) == duration


def test_fixed_titles():
    assert step_title(ChooseProduct(), None) == "What are you quitting?"
    assert step_title(EnterIdentity(), ProductType.DIP) == "Create Account"
    assert step_title(Offer(flash_sale=True), None) == "Start your journey"
    assert step_title(CreateCredentials(), None) == "Create your account"
    assert step_description(CreateCredentials()) == "Secure your account"
    assert step_description(ChooseProduct()) == ""


def test_cost_headline():
    assert cost_headline(ProductType.CIGARETTES) == "REAL COST OF SMOKING"
    assert cost_headline(None) == "REAL COST OF YOUR HABIT"


def test_offer_price():
    assert offer_price(Offer()) == "$79"
    assert offer_price(Offer(flash_sale=True)) == "$19.99"


def test_seats_message():
    assert seats_message(6) == "Only 6 spots left at this price!"
    assert seats_message(1) == "Last spot available!"
