"""
Tests for the habit calculator.

Pure functions: no fixtures, no event loop.
"""

import math

import pytest

from onboarding.habits import (
    MAX_YEARS,
    PRODUCT_LABELS,
    coerce_number,
    compute_stats,
    label_for,
    max_years_for,
    round_half_up,
    stats_for_draft,
)
from onboarding.state import DurationBucket, OnboardingDraft, ProductType


class TestMaxYears:
    """Duration bucket -> years used for lifetime cost."""

    @pytest.mark.parametrize(
        "bucket,years",
        [("under_5y", 5), ("5_to_10y", 10), ("10_to_20y", 20), ("over_20y", 35)],
    )
    def test_bucket_table(self, bucket, years):
        assert max_years_for(bucket) == years
        assert max_years_for(DurationBucket(bucket)) == years

    def test_table_covers_every_bucket(self):
        assert set(MAX_YEARS) == {b.value for b in DurationBucket}

    def test_legacy_names(self):
        assert max_years_for("less_than_5") == 5
        assert max_years_for("over_20") == 35
        assert max_years_for("less_than_10") == 10

    def test_numeric_fallback(self):
        assert max_years_for("12") == 12

    def test_unset_is_zero(self):
        assert max_years_for(None) == 0
        assert max_years_for("") == 0
        assert max_years_for("forever") == 0


class TestComputeStats:
    """compute_stats arithmetic."""

    def test_two_packs_at_eight_dollars(self):
        stats = compute_stats(2, 8, "5_to_10y", "cigarettes")
        assert stats.yearly_spending == 5840
        assert stats.yearly_usage == 730
        assert stats.total_spent_lifetime == 58400

    def test_accepts_enums(self):
        stats = compute_stats(1, 6, DurationBucket.OVER_20Y, ProductType.DIP)
        assert stats.yearly_spending == 2190
        assert stats.total_spent_lifetime == 2190 * 35
        assert stats.label.unit == "cans"

    def test_string_inputs(self):
        assert compute_stats("3", "9", "under_5y") == compute_stats(3, 9, "under_5y")

    def test_unparseable_daily_usage_is_zero(self):
        assert compute_stats("abc", 8, "5_to_10y", "cigarettes") == compute_stats(
            0, 8, "5_to_10y", "cigarettes"
        )

    def test_no_nan_reaches_totals(self):
        stats = compute_stats(float("nan"), "oops", None, None)
        assert stats.yearly_usage == 0
        assert stats.yearly_spending == 0
        assert stats.total_spent_lifetime == 0

    def test_huge_usage_does_not_raise(self):
        # 1e306 * 365 is past the largest float
        stats = compute_stats("1e306", 1, "over_20y", "cigarettes")
        assert stats.yearly_usage == 0
        assert stats.yearly_spending == 0
        assert stats.total_spent_lifetime == 0

    def test_huge_product_does_not_raise(self):
        stats = compute_stats(1e200, 1e200, "5_to_10y")
        assert stats.yearly_spending == 0
        assert stats.total_spent_lifetime == 0
        assert stats.yearly_usage == round_half_up(1e200 * 365)

    def test_lifetime_overflow_alone(self):
        # Yearly spending fits, lifetime (x35) does not
        stats = compute_stats(1e300, 1e5, "over_20y")
        assert stats.yearly_spending > 0
        assert stats.total_spent_lifetime == 0

    def test_unset_duration_gives_zero_lifetime(self):
        stats = compute_stats(2, 8, None, "cigarettes")
        assert stats.yearly_spending == 5840
        assert stats.total_spent_lifetime == 0

    def test_rounds_half_up(self):
        # 2.5 * 365 = 912.5
        assert compute_stats(2.5, 0, None).yearly_usage == 913

    def test_fractional_cost(self):
        # 1 * 6.5 * 365 = 2372.5 -> 2373
        stats = compute_stats(1, 6.5, "under_5y")
        assert stats.yearly_spending == 2373
        assert stats.total_spent_lifetime == 2373 * 5

    def test_stats_for_draft(self):
        draft = OnboardingDraft(
            product_type=ProductType.POUCHES,
            daily_usage=4,
            unit_cost=7,
            duration_bucket=DurationBucket.FROM_10_TO_20Y,
        )
        stats = stats_for_draft(draft)
        assert stats.yearly_usage == 1460
        assert stats.yearly_spending == 10220
        assert stats.total_spent_lifetime == 204400
        assert stats.label.singular == "pouch"


class TestLabels:
    def test_each_product_has_label(self):
        for product in ProductType:
            assert product.value in PRODUCT_LABELS

    def test_unknown_defaults_to_cigarettes(self):
        assert label_for(None) == PRODUCT_LABELS["cigarettes"]
        assert label_for("hookah") == PRODUCT_LABELS["cigarettes"]

    def test_extra_products(self):
        assert label_for("multiple").unit == "units"
        assert label_for("vape_refillable").plural == "vapes"


class TestCoercion:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (None, 0.0),
            ("", 0.0),
            ("  ", 0.0),
            ("abc", 0.0),
            ("2.5", 2.5),
            (" 3 ", 3.0),
            (4, 4.0),
            (-1, 0.0),
            ("-7", 0.0),
            (float("inf"), 0.0),
            ("nan", 0.0),
            ("12abc", 12.0),
            ("1_000", 1.0),
            (".5 packs", 0.5),
            ("1e400", 0.0),
            (10 ** 400, 0.0),
            (True, 0.0),
            ([1], 0.0),
        ],
    )
    def test_coerce_number(self, raw, expected):
        result = coerce_number(raw)
        assert result == expected
        assert math.isfinite(result)

    def test_round_half_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(1.5) == 2
        assert round_half_up(2.4999) == 2
        assert round_half_up(float("inf")) == 0
        assert round_half_up(float("nan")) == 0
