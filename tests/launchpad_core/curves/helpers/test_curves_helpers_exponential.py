import pytest

from decimal import Decimal

from launchpad_core.common.errors import ValidationFailedError
from launchpad_core.common.math import round_down, round_up
from launchpad_core.common.model import LaunchpadSale
from launchpad_core.curves.helpers.exponential import ExponentialCurveHelper

CURVE = (
    LaunchpadSale.BASE_PRICE,
    LaunchpadSale.EXPONENT_FACTOR,
    LaunchpadSale.EULER,
    LaunchpadSale.CURVE_SCALE,
)


@pytest.mark.parametrize(
    "base_price, exponent_factor",
    [
        (Decimal("1"), Decimal("1")),
        (LaunchpadSale.BASE_PRICE, LaunchpadSale.EXPONENT_FACTOR),
    ]
)
def test_validate_exponential_params_valid(base_price, exponent_factor):
    # Should not raise
    ExponentialCurveHelper.validate_exponential_params(base_price, exponent_factor)


@pytest.mark.parametrize(
    "base_price, exponent_factor, expected_error_msg",
    [
        (Decimal("0"), Decimal("1"), "requires base_price > 0"),
        (Decimal("-1"), Decimal("1"), "requires base_price > 0"),
        (Decimal("1"), Decimal("0"), "requires exponent_factor > 0"),
    ]
)
def test_validate_exponential_params_invalid(base_price, exponent_factor, expected_error_msg):
    with pytest.raises(ValueError, match=expected_error_msg):
        ExponentialCurveHelper.validate_exponential_params(base_price, exponent_factor)


def test_cost_for_500_tokens_from_zero():
    """
    The first 500 tokens cost 0.0082557422... native, i.e. 0.00825575 once rounded up.
    """
    cost = ExponentialCurveHelper.exponential_cost_for_purchase(Decimal("0"), Decimal("500"), *CURVE)
    assert Decimal("0.00825574") < cost < Decimal("0.00825575")
    assert round_up(cost, 8) == Decimal("0.00825575")


def test_cost_for_zero_amount():
    assert ExponentialCurveHelper.exponential_cost_for_purchase(Decimal("1000"), Decimal("0"), *CURVE) == 0
    assert ExponentialCurveHelper.exponential_return_for_sale(Decimal("1000"), Decimal("0"), *CURVE) == 0


def test_return_for_sale_mirrors_purchase():
    """
    Selling Δ at s pays exactly what buying Δ at s - Δ costs.
    """
    bought = ExponentialCurveHelper.exponential_cost_for_purchase(Decimal("1000"), Decimal("250"), *CURVE)
    sold = ExponentialCurveHelper.exponential_return_for_sale(Decimal("1250"), Decimal("250"), *CURVE)
    assert bought == sold


def test_return_for_sale_more_than_sold():
    with pytest.raises(ValidationFailedError):
        ExponentialCurveHelper.exponential_return_for_sale(Decimal("100"), Decimal("101"), *CURVE)


def test_full_curve_costs_the_market_cap():
    cost = ExponentialCurveHelper.exponential_cost_for_purchase(Decimal("0"), LaunchpadSale.BASE_MAX_SUPPLY, *CURVE)
    assert abs(cost - LaunchpadSale.MARKET_CAP) < Decimal("1")


@pytest.mark.parametrize("tokens_sold", [Decimal("0"), Decimal("12345"), Decimal("5000000")])
@pytest.mark.parametrize("native_amount", [Decimal("0.5"), Decimal("10"), Decimal("2500")])
def test_tokens_for_purchase_cost_inverts_cost(tokens_sold, native_amount):
    tokens = ExponentialCurveHelper.tokens_for_purchase_cost(tokens_sold, native_amount, *CURVE)
    cost = ExponentialCurveHelper.exponential_cost_for_purchase(tokens_sold, tokens, *CURVE)
    assert abs(cost - native_amount) < Decimal("1e-20")


@pytest.mark.parametrize("tokens_sold", [Decimal("100000"), Decimal("5000000")])
def test_tokens_for_sale_return_inverts_return(tokens_sold):
    payout = ExponentialCurveHelper.exponential_return_for_sale(tokens_sold, Decimal("777"), *CURVE)
    tokens = ExponentialCurveHelper.tokens_for_sale_return(tokens_sold, payout, *CURVE)
    assert abs(tokens - Decimal("777")) < Decimal("1e-20")


def test_tokens_for_sale_return_beyond_curve():
    """
    Asking for more native than the whole curve below s could ever pay out is rejected.
    """
    with pytest.raises(ValidationFailedError):
        ExponentialCurveHelper.tokens_for_sale_return(Decimal("100"), Decimal("1000"), *CURVE)


def test_spot_price_rises_with_tokens_sold():
    prices = [
        ExponentialCurveHelper.spot_price(Decimal(s), *CURVE)
        for s in ("0", "1000", "1000000", "10000000")
    ]
    assert prices == sorted(prices)
    assert len(set(prices)) == len(prices)
    assert prices[0] == LaunchpadSale.BASE_PRICE / LaunchpadSale.CURVE_SCALE


def test_rounding_direction_example():
    cost = ExponentialCurveHelper.exponential_cost_for_purchase(Decimal("0"), Decimal("500"), *CURVE)
    assert round_down(cost, 8) == Decimal("0.00825574")
