import logging
from decimal import Decimal, ROUND_DOWN, ROUND_UP
from typing import Optional

from launchpad_core.common.enums import OrderSide
from launchpad_core.common.errors import ValidationFailedError
from launchpad_core.common.math import round_computed, round_down, round_up
from launchpad_core.common.model import CurveParams, CurveState, LaunchpadSale, TradeQuote
from launchpad_core.curves.single.base import BondingCurve
from launchpad_core.curves.helpers.common import CommonCurveHelper as common_helper
from launchpad_core.curves.helpers.exponential import ExponentialCurveHelper as exponential_helper

logger = logging.getLogger(__name__)


class ExponentialBondingCurve(BondingCurve):
    """
    The launchpad's exponential bonding curve:
        price(s) = (b / D) * e^(k * s / D)

    This class:
      - Validates b > 0, k > 0
      - Calculates unrounded cost/return via ExponentialCurveHelper
      - Quotes trades: rounds to token precision, caps at the remaining supply and
        the market cap, and prices fees (via CommonCurveHelper)

    It never mutates a sale; quotes are applied by the trade orchestrators.
    """

    def __init__(
        self,
        params: CurveParams,
        state: Optional[CurveState] = None,
        **kwargs
    ):
        """
        :param params: CurveParams with the scaled curve constants
        :param state: existing CurveState, or None => nothing sold yet
        :param kwargs: options such as:
          - native_decimals, selling_decimals
          - txn_fee_rate (platform fee rate, 0 when unconfigured)
          - reverse_bonding_curve_configuration
          - market_cap
        """
        super().__init__(params, state)

        self.options = {
            "native_decimals": LaunchpadSale.NATIVE_TOKEN_DECIMALS,
            "selling_decimals": LaunchpadSale.SELLING_TOKEN_DECIMALS,
            "txn_fee_rate": Decimal("0"),
            "reverse_bonding_curve_configuration": None,
            "market_cap": LaunchpadSale.MARKET_CAP,
        }
        for k, v in kwargs.items():
            if k not in self.options:
                raise ValueError(f"Unknown curve option '{k}'.")
            if v is not None:
                self.options[k] = v

        exponential_helper.validate_exponential_params(params.base_price, params.exponent_factor)

    @classmethod
    def from_sale(cls, sale: LaunchpadSale, pre_mint: bool = False, **kwargs) -> "ExponentialBondingCurve":
        """
        Builds a curve positioned where 'sale' currently sits.

        :param pre_mint: price from an empty curve regardless of the sale's state; used for
                         the creator's buy while the sale is being created
        """
        params = CurveParams(
            base_price=sale.base_price,
            exponent_factor=sale.exponent_factor,
            euler=sale.euler,
            max_supply=sale.max_supply,
        )
        if pre_mint:
            state = CurveState()
        else:
            state = CurveState(
                tokens_sold=sale.fetch_tokens_sold(),
                native_in_vault=sale.fetch_native_tokens_in_vault(),
            )
        kwargs.setdefault("reverse_bonding_curve_configuration", sale.reverse_bonding_curve_configuration)
        return cls(params, state, **kwargs)

    def _curve_args(self):
        p = self._params
        return p.base_price, p.exponent_factor, p.euler, p.curve_scale

    @property
    def native_decimals(self) -> int:
        return self.options["native_decimals"]

    @property
    def selling_decimals(self) -> int:
        return self.options["selling_decimals"]

    @property
    def market_cap_room(self) -> Decimal:
        """Native the vault can still absorb before the sale graduates."""
        return self.options["market_cap"] - self._state.native_in_vault

    @property
    def circulating_proportion(self) -> Decimal:
        return self._state.tokens_sold / self._params.max_supply

    def get_spot_price(self, tokens_sold: Decimal) -> Decimal:
        return exponential_helper.spot_price(tokens_sold, *self._curve_args())

    def calculate_purchase_cost(self, amount: Decimal) -> Decimal:
        return exponential_helper.exponential_cost_for_purchase(self._state.tokens_sold, amount, *self._curve_args())

    def calculate_sale_return(self, amount: Decimal) -> Decimal:
        return exponential_helper.exponential_return_for_sale(self._state.tokens_sold, amount, *self._curve_args())

    def calculate_purchase_amount(self, native_amount: Decimal) -> Decimal:
        return exponential_helper.tokens_for_purchase_cost(self._state.tokens_sold, native_amount, *self._curve_args())

    def calculate_sale_amount(self, native_amount: Decimal) -> Decimal:
        return exponential_helper.tokens_for_sale_return(self._state.tokens_sold, native_amount, *self._curve_args())

    def _reaches_limits(self, token_quantity: Decimal, native_quantity: Decimal) -> bool:
        return (
            token_quantity >= self.remaining_supply
            or self._state.native_in_vault + native_quantity >= self.options["market_cap"]
        )

    def quote_buy_exact_tokens(self, token_quantity: Decimal) -> TradeQuote:
        """
        Native cost of buying exactly 'token_quantity' tokens, rounded up.

        A request beyond the remaining supply is trimmed to the remainder. A cost beyond the
        market cap is trimmed to the room left under it, and the token quantity is solved
        again from that native amount and rounded down, so the buyer never pays below the curve.
        """
        remaining = self.remaining_supply
        if remaining <= 0:
            raise ValidationFailedError("No tokens left to buy on this curve.", ["token_quantity"])

        capped_by_supply = False
        if token_quantity > remaining:
            logger.warning("Buy of %s tokens capped to remaining supply %s", token_quantity, remaining)
            token_quantity = remaining
            capped_by_supply = True

        cost = round_computed(self.calculate_purchase_cost(token_quantity), self.native_decimals, ROUND_UP)

        capped_by_market_cap = False
        room = self.market_cap_room
        if cost > room:
            logger.warning("Buy cost %s capped to market cap room %s", cost, room)
            cost = round_down(room, self.native_decimals)
            token_quantity = round_computed(self.calculate_purchase_amount(cost), self.selling_decimals, ROUND_DOWN)
            capped_by_market_cap = True

        return TradeQuote(
            side=OrderSide.BUY,
            token_quantity=token_quantity,
            native_quantity=cost,
            transaction_fee=common_helper.calculate_transaction_fee(
                cost, self.options["txn_fee_rate"], self.native_decimals
            ),
            capped_by_supply=capped_by_supply,
            capped_by_market_cap=capped_by_market_cap,
            finalizes_sale=self._reaches_limits(token_quantity, cost),
        )

    def quote_buy_with_native(self, native_quantity: Decimal) -> TradeQuote:
        """
        Tokens bought for 'native_quantity', rounded down.

        The native amount is rounded up to native precision and trimmed to the market cap
        before solving; if the solved quantity overruns the remaining supply the quantity is
        trimmed and its native cost recomputed.
        """
        remaining = self.remaining_supply
        if remaining <= 0:
            raise ValidationFailedError("No tokens left to buy on this curve.", ["native_token_quantity"])

        native = round_up(native_quantity, self.native_decimals)

        capped_by_market_cap = False
        room = self.market_cap_room
        if native > room:
            logger.warning("Native buy %s capped to market cap room %s", native, room)
            native = round_down(room, self.native_decimals)
            capped_by_market_cap = True

        tokens = round_computed(self.calculate_purchase_amount(native), self.selling_decimals, ROUND_DOWN)

        capped_by_supply = False
        if tokens > remaining:
            logger.warning("Native buy of %s tokens capped to remaining supply %s", tokens, remaining)
            tokens = remaining
            # cost(remaining) < cost(tokens) <= native, so this never exceeds the room
            native = round_up(self.calculate_purchase_cost(tokens), self.native_decimals)
            capped_by_supply = True

        return TradeQuote(
            side=OrderSide.BUY,
            token_quantity=tokens,
            native_quantity=native,
            transaction_fee=common_helper.calculate_transaction_fee(
                native, self.options["txn_fee_rate"], self.native_decimals
            ),
            capped_by_supply=capped_by_supply,
            capped_by_market_cap=capped_by_market_cap,
            finalizes_sale=self._reaches_limits(tokens, native),
        )

    def _sell_fees(self, native: Decimal):
        return (
            common_helper.calculate_transaction_fee(native, self.options["txn_fee_rate"], self.native_decimals),
            common_helper.calculate_reverse_bonding_curve_fee(
                native,
                self.circulating_proportion,
                self.options["reverse_bonding_curve_configuration"],
                self.native_decimals,
            ),
        )

    def quote_sell_exact_tokens(self, token_quantity: Decimal) -> TradeQuote:
        """Native paid out for selling exactly 'token_quantity' tokens, rounded down."""
        payout = round_computed(self.calculate_sale_return(token_quantity), self.native_decimals, ROUND_DOWN)
        if payout > self._state.native_in_vault:
            raise ValidationFailedError(
                f"Sale vault holds {self._state.native_in_vault} native tokens, cannot pay out {payout}.",
                ["token_quantity"],
            )

        txn_fee, rbc_fee = self._sell_fees(payout)
        return TradeQuote(
            side=OrderSide.SELL,
            token_quantity=token_quantity,
            native_quantity=payout,
            transaction_fee=txn_fee,
            reverse_bonding_curve_fee=rbc_fee,
        )

    def quote_sell_with_native(self, native_quantity: Decimal) -> TradeQuote:
        """Tokens that must be sold to receive 'native_quantity', rounded up."""
        if native_quantity > self._state.native_in_vault:
            raise ValidationFailedError(
                f"Sale vault holds {self._state.native_in_vault} native tokens, cannot pay out {native_quantity}.",
                ["native_token_quantity"],
            )

        tokens = round_computed(self.calculate_sale_amount(native_quantity), self.selling_decimals, ROUND_UP)
        if tokens > self._state.tokens_sold:
            raise ValidationFailedError(
                f"Paying out {native_quantity} native tokens takes {tokens} tokens, "
                f"only {self._state.tokens_sold} have been sold.",
                ["native_token_quantity"],
            )

        txn_fee, rbc_fee = self._sell_fees(native_quantity)
        return TradeQuote(
            side=OrderSide.SELL,
            token_quantity=tokens,
            native_quantity=native_quantity,
            transaction_fee=txn_fee,
            reverse_bonding_curve_fee=rbc_fee,
        )
