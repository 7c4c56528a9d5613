"""
Habit Calculator.

Pure derivation of usage and cost statistics from draft answers. Shown on the
offer step as the "real cost of your habit" panel.

No caching and no failure modes: anything that is not a usable number counts
as zero before arithmetic, so a NaN never reaches a displayed total.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

DAYS_PER_YEAR = 365

# Upper bound of each duration bucket. over_20y uses 35 on purpose: the
# open-ended bucket is framed at its high end.
MAX_YEARS = {
    "under_5y": 5,
    "5_to_10y": 10,
    "10_to_20y": 20,
    "over_20y": 35,
}

# Bucket names written by older drafts
LEGACY_MAX_YEARS = {
    "less_than_5": 5,
    "5_to_10": 10,
    "10_to_20": 20,
    "over_20": 35,
    "less_than_10": 10,
}


@dataclass(frozen=True)
class UnitLabel:
    """How to name one unit of a product in copy."""
    singular: str
    plural: str
    unit: str


PRODUCT_LABELS = {
    "cigarettes": UnitLabel("cigarette", "cigarettes", "cigarettes"),
    "vape_disposable": UnitLabel("vape", "vapes", "vapes"),
    "vape_refillable": UnitLabel("vape", "vapes", "vapes"),
    "pouches": UnitLabel("pouch", "pouches", "pouches"),
    "dip": UnitLabel("can", "cans", "cans"),
    "multiple": UnitLabel("product", "products", "units"),
}

DEFAULT_PRODUCT = "cigarettes"

# Leading decimal number, optional exponent. Trailing text is ignored.
_NUMBER_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


@dataclass(frozen=True)
class HabitStats:
    """Derived statistics. Never persisted."""
    yearly_usage: int
    yearly_spending: int
    total_spent_lifetime: int
    label: UnitLabel


# =============================================================================
# Coercion Helpers
# =============================================================================


def coerce_number(value: Any) -> float:
    """
    Turn user input into a finite, non-negative float.

    Accepts numbers and numeric strings. Strings are read up to the first
    character that cannot continue a number ("12abc" -> 12, "1_000" -> 1).
    None, text without a leading number, NaN, infinities and negatives all
    become 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
    elif isinstance(value, str):
        match = _NUMBER_PREFIX.match(value)
        if match is None:
            return 0.0
        number = float(match.group(1))
    else:
        return 0.0

    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def round_half_up(value: float) -> int:
    """
    Round x.5 away from zero for non-negative values (912.5 -> 913).

    A total too large to represent comes back as 0, like any other
    unusable number.
    """
    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


def _key(value: Any) -> str | None:
    """Normalize an enum member or raw string to its string key."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, str):
        return value
    return None


def max_years_for(duration_bucket: Any) -> float:
    """
    Years used for lifetime cost.

    Current bucket names first, then legacy names, then a bare number of
    years. Anything else is 0.
    """
    key = _key(duration_bucket)
    if key is None:
        return 0.0
    if key in MAX_YEARS:
        return float(MAX_YEARS[key])
    if key in LEGACY_MAX_YEARS:
        return float(LEGACY_MAX_YEARS[key])
    return coerce_number(key)


def label_for(product_type: Any) -> UnitLabel:
    """Unit label set for a product, defaulting to cigarettes."""
    key = _key(product_type)
    return PRODUCT_LABELS.get(key, PRODUCT_LABELS[DEFAULT_PRODUCT])


# =============================================================================
# Stats
# =============================================================================


def compute_stats(
    daily_usage: Any,
    unit_cost: Any,
    duration_bucket: Any,
    product_type: Any = None,
) -> HabitStats:
    """
    Compute yearly usage, yearly spending and lifetime spending.

    Example: 2 packs/day at $8 for 5-10 years
        -> 730 packs/year, $5840/year, $58400 lifetime
    """
    daily = coerce_number(daily_usage)
    cost = coerce_number(unit_cost)

    daily_cost = daily * cost
    yearly_spending = round_half_up(daily_cost * DAYS_PER_YEAR)
    yearly_usage = round_half_up(daily * DAYS_PER_YEAR)
    total_spent = round_half_up(float(yearly_spending) * max_years_for(duration_bucket))

    return HabitStats(
        yearly_usage=yearly_usage,
        yearly_spending=yearly_spending,
        total_spent_lifetime=total_spent,
        label=label_for(product_type),
    )


def stats_for_draft(draft) -> HabitStats:
    """Convenience wrapper over compute_stats for an OnboardingDraft."""
    return compute_stats(
        draft.daily_usage,
        draft.unit_cost,
        draft.duration_bucket,
        draft.product_type,
    )
