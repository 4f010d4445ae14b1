import copy
from decimal import Decimal
from typing import Any, Dict, List

from launchpad_core.common.math import decimal_approx_equal
from launchpad_core.common.model import LaunchpadSale
from launchpad_core.curves.single.exponential import ExponentialBondingCurve

MARKET_CAP_TOLERANCE = Decimal("0.000001")


class LaunchpadCurveValidator:
    """
    Validator for a sale's exponential curve. Performs:
      1) Parameter checks (base price > 0, exponent factor > 0, max supply > 0, etc.)
      2) Boundary tests (spot price at 0, zero-token cost, full-curve market cap)
      3) Scenario tests (a small buy/sell sequence on a copy of the sale).
    """

    @staticmethod
    def validate_params(sale: "LaunchpadSale") -> Dict[str, Any]:
        errors: List[str] = []
        warnings: List[str] = []
        info: Dict[str, Any] = {}

        if sale.base_price is None or sale.base_price <= 0:
            errors.append("LaunchpadCurve: 'base_price' must be > 0.")
        if sale.exponent_factor is None or sale.exponent_factor <= 0:
            errors.append("LaunchpadCurve: 'exponent_factor' must be > 0.")
        if sale.max_supply is None or sale.max_supply <= 0:
            errors.append("LaunchpadCurve: 'max_supply' must be > 0.")
        if sale.euler is None or sale.euler <= 1:
            errors.append("LaunchpadCurve: 'euler' must be > 1.")

        if sale.selling_token_quantity is not None and sale.selling_token_quantity < 0:
            errors.append("Sale: 'selling_token_quantity' cannot be negative.")
        if sale.native_token_quantity < 0:
            errors.append("Sale: 'native_token_quantity' cannot be negative.")
        if sale.native_token_quantity > sale.MARKET_CAP:
            warnings.append(f"Sale holds {sale.native_token_quantity} native, above the market cap {sale.MARKET_CAP}.")

        config = sale.reverse_bonding_curve_configuration
        if config is not None and config.max_fee_portion == 0:
            warnings.append("Reverse bonding curve configured with max_fee_portion 0; no exit fee will be charged.")

        info["param_summary"] = {
            "base_price": str(sale.base_price),
            "exponent_factor": str(sale.exponent_factor),
            "max_supply": str(sale.max_supply),
            "supply_multiplier": str(sale.supply_multiplier),
        }
        return {
            "errors": errors,
            "warnings": warnings,
            "info": info
        }

    @staticmethod
    def boundary_tests(sale: "LaunchpadSale") -> Dict[str, Any]:
        """
        Checks on an empty curve:
          - get_spot_price(0) => base_price / D
          - calculate_purchase_cost(0) => 0
          - buying the whole supply costs the market cap
        """
        errors: List[str] = []
        warnings: List[str] = []
        info: Dict[str, Any] = {}

        curve = ExponentialBondingCurve.from_sale(sale, pre_mint=True)

        try:
            price_at_zero = curve.get_spot_price(Decimal("0"))
            if price_at_zero <= 0:
                errors.append("Spot price is not positive at tokens_sold=0.")
            info["spot_price_at_zero"] = str(price_at_zero)
        except Exception as e:
            errors.append(f"Exception calling get_spot_price(0): {e}")

        try:
            cost_zero = curve.calculate_purchase_cost(Decimal("0"))
            if cost_zero != 0:
                warnings.append(f"Cost to buy 0 tokens is not zero: got {cost_zero}")
        except Exception as e:
            errors.append(f"Exception calling calculate_purchase_cost(0): {e}")

        try:
            full_cost = curve.calculate_purchase_cost(sale.max_supply)
            info["full_curve_cost"] = str(full_cost)
            if not decimal_approx_equal(full_cost, sale.MARKET_CAP, sale.MARKET_CAP * MARKET_CAP_TOLERANCE):
                warnings.append(f"Buying the whole supply costs {full_cost}, expected about {sale.MARKET_CAP}.")
        except Exception as e:
            errors.append(f"Exception pricing the whole supply: {e}")

        info["boundary_tests_run"] = True
        return {
            "errors": errors,
            "warnings": warnings,
            "info": info
        }

    @staticmethod
    def scenario_tests(sale: "LaunchpadSale") -> Dict[str, Any]:
        """
        A small sequence on a copy of the sale:
          - buy(100)
          - buy(200)
          - sell(50)
        checking costs are positive and that prices rise with tokens sold.
        """
        errors: List[str] = []
        warnings: List[str] = []
        info: Dict[str, Any] = {}

        scratch = copy.deepcopy(sale)
        last_price = None
        for label, side, amount in (("buy(100)", "buy", "100"), ("buy(200)", "buy", "200"), ("sell(50)", "sell", "50")):
            try:
                curve = ExponentialBondingCurve.from_sale(scratch)
                if side == "buy":
                    quote = curve.quote_buy_exact_tokens(Decimal(amount))
                    scratch.buy_token(quote.token_quantity, quote.native_quantity)
                else:
                    quote = curve.quote_sell_exact_tokens(Decimal(amount))
                    scratch.sell_token(quote.token_quantity, quote.native_quantity)
                if quote.native_quantity <= 0:
                    errors.append(f"{label} => non-positive native amount.")

                price = ExponentialBondingCurve.from_sale(scratch).get_spot_price(scratch.fetch_tokens_sold())
                if side == "buy" and last_price is not None and price <= last_price:
                    errors.append(f"Spot price did not increase after {label}.")
                last_price = price
            except Exception as e:
                errors.append(f"Exception in scenario step {label}: {e}")

        info["tokens_sold_after_scenario"] = str(scratch.fetch_tokens_sold())
        return {
            "errors": errors,
            "warnings": warnings,
            "info": info
        }

    @staticmethod
    def run_all_validations(sale: "LaunchpadSale") -> Dict[str, Any]:
        """
        Aggregates:
          - param check
          - boundary tests
          - scenario tests
        Returns a dict with keys: errors, warnings, info
        """
        results = {
            "errors": [],
            "warnings": [],
            "info": {}
        }

        for check in (
            LaunchpadCurveValidator.validate_params,
            LaunchpadCurveValidator.boundary_tests,
            LaunchpadCurveValidator.scenario_tests,
        ):
            outcome = check(sale)
            results["errors"].extend(outcome["errors"])
            results["warnings"].extend(outcome["warnings"])
            results["info"].update(outcome["info"])
            if outcome["errors"] and check is LaunchpadCurveValidator.validate_params:
                break

        return results
