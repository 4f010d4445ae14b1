"""
Read-only trade quotes. Each returns the TradeCalculationResult a matching trade would
settle at right now, without moving any tokens.
"""
from launchpad_core.common.errors import NotFoundError
from launchpad_core.common.math import ensure_decimals
from launchpad_core.common.model import (
    CurveParams,
    ExactTokenQuantityRequest,
    LaunchpadSale,
    NativeTokenQuantityRequest,
    TradeCalculationResult,
)
from launchpad_core.curves.single.exponential import ExponentialBondingCurve
from launchpad_core.launchpad.context import LaunchpadContext
from launchpad_core.launchpad.sales import build_curve, fetch_and_validate_sale, find_fee_config


def call_native_token_in(ctx: LaunchpadContext, request: ExactTokenQuantityRequest) -> TradeCalculationResult:
    """Native cost of buying request.token_quantity tokens."""
    sale = fetch_and_validate_sale(ctx, request.vault_address)
    ensure_decimals(request.token_quantity, ctx.tokens.get_token_decimals(sale.selling_token))
    quote = build_curve(ctx, sale).quote_buy_exact_tokens(request.token_quantity)
    return quote.to_calculation_result("token")


def call_meme_token_out(ctx: LaunchpadContext, request: NativeTokenQuantityRequest) -> TradeCalculationResult:
    """
    Tokens bought for request.native_token_quantity.

    With is_pre_mint the curve is priced from zero sold; this also works before the sale
    exists, using the unscaled curve constants.
    """
    if request.is_pre_mint:
        try:
            sale = fetch_and_validate_sale(ctx, request.vault_address, allow_upcoming=True)
        except NotFoundError:
            fee_config = find_fee_config(ctx)
            curve = ExponentialBondingCurve(
                CurveParams(base_price=LaunchpadSale.BASE_PRICE, exponent_factor=LaunchpadSale.EXPONENT_FACTOR),
                txn_fee_rate=fee_config.fee_amount if fee_config else None,
            )
        else:
            curve = build_curve(ctx, sale, pre_mint=True)
    else:
        sale = fetch_and_validate_sale(ctx, request.vault_address)
        curve = build_curve(ctx, sale)

    return curve.quote_buy_with_native(request.native_token_quantity).to_calculation_result("native")


def call_native_token_out(ctx: LaunchpadContext, request: ExactTokenQuantityRequest) -> TradeCalculationResult:
    """Native paid out for selling request.token_quantity tokens, with the exit fee it carries."""
    sale = fetch_and_validate_sale(ctx, request.vault_address)
    ensure_decimals(request.token_quantity, ctx.tokens.get_token_decimals(sale.selling_token))
    quote = build_curve(ctx, sale).quote_sell_exact_tokens(request.token_quantity)
    return quote.to_calculation_result("token")


def call_meme_token_in(ctx: LaunchpadContext, request: NativeTokenQuantityRequest) -> TradeCalculationResult:
    """Tokens that must be sold to receive request.native_token_quantity."""
    sale = fetch_and_validate_sale(ctx, request.vault_address)
    ensure_decimals(request.native_token_quantity, ctx.tokens.get_token_decimals(sale.native_token))
    quote = build_curve(ctx, sale).quote_sell_with_native(request.native_token_quantity)
    return quote.to_calculation_result("native")
