from decimal import Decimal, localcontext

from launchpad_core.common.errors import ValidationFailedError
from launchpad_core.common.math import CURVE_PRECISION


class ExponentialCurveHelper:
    """
    A helper class for the launchpad's exponential bonding curve:
        price(s) = (b / D) * e^(k * s / D)

    where s is tokens sold, b the base price, k the exponent factor and D the fixed-point
    curve scale. Integrating price over [s, s + Δ] gives the native cost of Δ tokens:
        cost = (b / k) * (e^(k * (s + Δ) / D) - e^(k * s / D))

    Every method works at CURVE_PRECISION digits and returns unrounded Decimals; rounding
    to token precision is the caller's job.
    """

    @staticmethod
    def validate_exponential_params(base_price: Decimal, exponent_factor: Decimal):
        """
        Validates that:
          - base_price > 0
          - exponent_factor > 0 (a flat curve has no closed-form inverse here)
        Raises ValueError if invalid.
        """
        if base_price <= Decimal("0"):
            raise ValueError("Exponential curve requires base_price > 0.")
        if exponent_factor <= Decimal("0"):
            raise ValueError("Exponential curve requires exponent_factor > 0.")

    @staticmethod
    def _exp(euler: Decimal, exponent: Decimal) -> Decimal:
        with localcontext() as ctx:
            ctx.prec = CURVE_PRECISION
            return euler ** exponent

    @staticmethod
    def spot_price(
        tokens_sold: Decimal,
        base_price: Decimal,
        exponent_factor: Decimal,
        euler: Decimal,
        curve_scale: Decimal,
    ) -> Decimal:
        """Marginal native price of one token once 'tokens_sold' tokens are out."""
        with localcontext() as ctx:
            ctx.prec = CURVE_PRECISION
            growth = ExponentialCurveHelper._exp(euler, exponent_factor * tokens_sold / curve_scale)
            return growth * base_price / curve_scale

    @staticmethod
    def exponential_cost_for_purchase(
        tokens_sold: Decimal,
        amount: Decimal,
        base_price: Decimal,
        exponent_factor: Decimal,
        euler: Decimal,
        curve_scale: Decimal,
    ) -> Decimal:
        """
        Computes the integral from s...(s+Δ) of the price curve:
          cost = (b / k) * [ e^(k*(s+Δ)/D) - e^(k*s/D) ]

        :param tokens_sold: s, tokens already sold
        :param amount: Δ, tokens to buy
        :return: native cost as Decimal
        """
        if amount <= 0:
            return Decimal("0")

        with localcontext() as ctx:
            ctx.prec = CURVE_PRECISION
            upper = ExponentialCurveHelper._exp(euler, exponent_factor * (tokens_sold + amount) / curve_scale)
            lower = ExponentialCurveHelper._exp(euler, exponent_factor * tokens_sold / curve_scale)
            return (base_price / exponent_factor) * (upper - lower)

    @staticmethod
    def exponential_return_for_sale(
        tokens_sold: Decimal,
        amount: Decimal,
        base_price: Decimal,
        exponent_factor: Decimal,
        euler: Decimal,
        curve_scale: Decimal,
    ) -> Decimal:
        """
        Computes the integral from (s-Δ)...s, i.e. the cost of buying Δ from the
        lowered baseline s' = s - Δ.
        """
        if amount <= 0:
            return Decimal("0")
        if amount > tokens_sold:
            raise ValidationFailedError(
                f"Cannot sell {amount} tokens, only {tokens_sold} have been sold.", ["token_quantity"]
            )

        return ExponentialCurveHelper.exponential_cost_for_purchase(
            tokens_sold - amount, amount, base_price, exponent_factor, euler, curve_scale
        )

    @staticmethod
    def tokens_for_purchase_cost(
        tokens_sold: Decimal,
        native_amount: Decimal,
        base_price: Decimal,
        exponent_factor: Decimal,
        euler: Decimal,
        curve_scale: Decimal,
    ) -> Decimal:
        """
        Inverse of exponential_cost_for_purchase:
          Δ = (D / k) * ln( n*k/b + e^(k*s/D) ) - s
        """
        if native_amount <= 0:
            return Decimal("0")

        with localcontext() as ctx:
            ctx.prec = CURVE_PRECISION
            current = ExponentialCurveHelper._exp(euler, exponent_factor * tokens_sold / curve_scale)
            scaled = native_amount * exponent_factor / base_price + current
            return (curve_scale / exponent_factor) * scaled.ln() - tokens_sold

    @staticmethod
    def tokens_for_sale_return(
        tokens_sold: Decimal,
        native_amount: Decimal,
        base_price: Decimal,
        exponent_factor: Decimal,
        euler: Decimal,
        curve_scale: Decimal,
    ) -> Decimal:
        """
        Inverse of exponential_return_for_sale:
          Δ = s - (D / k) * ln( e^(k*s/D) - n*k/b )
        """
        if native_amount <= 0:
            return Decimal("0")

        with localcontext() as ctx:
            ctx.prec = CURVE_PRECISION
            current = ExponentialCurveHelper._exp(euler, exponent_factor * tokens_sold / curve_scale)
            remaining = current - native_amount * exponent_factor / base_price
            if remaining <= 0:
                raise ValidationFailedError(
                    f"The curve cannot pay out {native_amount} native tokens.", ["native_token_quantity"]
                )
            return tokens_sold - (curve_scale / exponent_factor) * remaining.ln()
