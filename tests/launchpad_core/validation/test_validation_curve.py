import pytest

from decimal import Decimal
from unittest.mock import patch

from launchpad_core.common.model import LaunchpadSale, ReverseBondingCurveConfiguration, TokenInstanceKey
from launchpad_core.curves.single.exponential import ExponentialBondingCurve
from launchpad_core.validation.curve_validator import LaunchpadCurveValidator


@pytest.fixture
def sale():
    """
    A fresh sale on the default curve.
    """
    return LaunchpadSale(
        vault_address="service|Rocket$Unit$RKT$none$launchpad",
        selling_token=TokenInstanceKey("Rocket", "Unit", "RKT", "none"),
        sale_owner="client|creator",
    )


def test_validate_params_all_valid(sale):
    result = LaunchpadCurveValidator.validate_params(sale)
    assert not result["errors"], f"Expected no errors, got: {result['errors']}"
    assert not result["warnings"]

    summary = result["info"]["param_summary"]
    assert summary["max_supply"] == "1E+7"
    assert summary["supply_multiplier"] == "1"


def test_validate_params_bad_constants(sale):
    sale.base_price = Decimal("0")
    sale.euler = Decimal("1")
    result = LaunchpadCurveValidator.validate_params(sale)
    assert "LaunchpadCurve: 'base_price' must be > 0." in result["errors"]
    assert "LaunchpadCurve: 'euler' must be > 1." in result["errors"]


def test_validate_params_warnings(sale):
    sale.native_token_quantity = LaunchpadSale.MARKET_CAP + 1
    sale.reverse_bonding_curve_configuration = ReverseBondingCurveConfiguration(Decimal("0"), Decimal("0"))
    result = LaunchpadCurveValidator.validate_params(sale)
    assert not result["errors"]
    assert len(result["warnings"]) == 2


def test_boundary_tests_happy_path(sale):
    """
    Buying the whole supply from an empty curve costs the market cap.
    """
    result = LaunchpadCurveValidator.boundary_tests(sale)
    assert not result["errors"], f"Expected no errors but got: {result['errors']}"
    assert not result["warnings"], f"Expected no warnings but got: {result['warnings']}"
    assert result["info"]["boundary_tests_run"] is True
    assert abs(Decimal(result["info"]["full_curve_cost"]) - LaunchpadSale.MARKET_CAP) < Decimal("1")


def test_boundary_tests_scaled_sale_same_market_cap(sale):
    sale = LaunchpadSale(
        vault_address=sale.vault_address,
        selling_token=sale.selling_token,
        sale_owner=sale.sale_owner,
        adjustable_supply_multiplier=Decimal("1000"),
    )
    result = LaunchpadCurveValidator.boundary_tests(sale)
    assert not result["warnings"]


def test_boundary_tests_negative_spot_price(sale):
    with patch.object(ExponentialBondingCurve, "get_spot_price", return_value=Decimal("-1")):
        result = LaunchpadCurveValidator.boundary_tests(sale)
    assert result["errors"] == ["Spot price is not positive at tokens_sold=0."]


def test_boundary_tests_nonzero_cost_for_zero_purchase(sale):
    with patch.object(ExponentialBondingCurve, "calculate_purchase_cost", return_value=Decimal("5")):
        result = LaunchpadCurveValidator.boundary_tests(sale)
    assert "Cost to buy 0 tokens is not zero: got 5" in result["warnings"]


def test_scenario_tests_leave_sale_untouched(sale):
    result = LaunchpadCurveValidator.scenario_tests(sale)
    assert not result["errors"], f"Expected no errors but got: {result['errors']}"
    assert result["info"]["tokens_sold_after_scenario"] == "250"
    assert sale.fetch_tokens_sold() == 0


def test_scenario_tests_report_exceptions(sale):
    with patch.object(ExponentialBondingCurve, "quote_buy_exact_tokens", side_effect=RuntimeError("boom")):
        result = LaunchpadCurveValidator.scenario_tests(sale)
    assert any("buy(100)" in e and "boom" in e for e in result["errors"])


def test_run_all_validations_stops_on_param_errors(sale):
    sale.exponent_factor = Decimal("-1")
    result = LaunchpadCurveValidator.run_all_validations(sale)
    assert result["errors"] == ["LaunchpadCurve: 'exponent_factor' must be > 0."]
    assert "boundary_tests_run" not in result["info"]


def test_run_all_validations_happy_path(sale):
    result = LaunchpadCurveValidator.run_all_validations(sale)
    assert not result["errors"]
    assert "param_summary" in result["info"]
    assert "tokens_sold_after_scenario" in result["info"]
