"""
The four trade entry points. Each one runs as a single unit of work:

    load sale -> quote on the curve -> slippage guard -> fees -> transfers
    -> sale update -> trade data -> finalization (buys only) -> receipt

Every check that can fail runs before the first transfer, and ctx.atomic() rolls
collaborators back if anything later raises.
"""
import logging
from decimal import Decimal

from launchpad_core.common.enums import TradeFunction
from launchpad_core.common.errors import ValidationFailedError
from launchpad_core.common.math import ensure_decimals, to_plain_str
from launchpad_core.common.model import (
    ExactTokenQuantityRequest,
    LaunchpadSale,
    NativeTokenQuantityRequest,
    TradeQuote,
    TradeResult,
)
from launchpad_core.curves.helpers.common import CommonCurveHelper as common_helper
from launchpad_core.launchpad.context import LaunchpadContext
from launchpad_core.launchpad.fees import pay_reverse_bonding_curve_fee, transfer_transaction_fees
from launchpad_core.launchpad.finalize import finalize_sale
from launchpad_core.launchpad.sales import build_curve, fetch_and_validate_sale, put_sale
from launchpad_core.launchpad.trade_data import write_trade_data
from launchpad_core.validation.request_validator import (
    validate_exact_token_request,
    validate_native_token_request,
)

logger = logging.getLogger(__name__)


def _settle_buy(ctx: LaunchpadContext, sale: LaunchpadSale, quote: TradeQuote):
    """
    Charges the platform fee, swaps native for tokens, and finalizes when the quote says so.

    :return: (fees charged, tokens sold after the trade and before any finalization)
    """
    fees = transfer_transaction_fees(ctx, sale, quote.transaction_fee, native_tokens_required=quote.native_quantity)

    ctx.balances.transfer(ctx.calling_user, sale.vault_address, sale.native_token, quote.native_quantity)
    ctx.balances.transfer(sale.vault_address, ctx.calling_user, sale.selling_token, quote.token_quantity)

    sale.buy_token(quote.token_quantity, quote.native_quantity)
    total_sold = sale.fetch_tokens_sold()
    write_trade_data(ctx, sale.vault_address, quote.native_quantity)

    if quote.finalizes_sale:
        finalize_sale(ctx, sale)
    else:
        put_sale(ctx, sale)
    return fees, total_sold


def _settle_sell(ctx: LaunchpadContext, sale: LaunchpadSale, quote: TradeQuote, extra_fees) -> Decimal:
    """Charges the exit fee, then the platform fee, then swaps tokens for native."""
    max_fee = extra_fees.max_acceptable_reverse_bonding_curve_fee if extra_fees else None
    fees = pay_reverse_bonding_curve_fee(ctx, sale, quote.reverse_bonding_curve_fee, max_fee)
    fees += transfer_transaction_fees(ctx, sale, quote.transaction_fee)

    ctx.balances.transfer(ctx.calling_user, sale.vault_address, sale.selling_token, quote.token_quantity)
    ctx.balances.transfer(sale.vault_address, ctx.calling_user, sale.native_token, quote.native_quantity)

    sale.sell_token(quote.token_quantity, quote.native_quantity)
    write_trade_data(ctx, sale.vault_address, quote.native_quantity)
    put_sale(ctx, sale)
    return fees


def _trade_result(
    ctx: LaunchpadContext,
    sale: LaunchpadSale,
    function: TradeFunction,
    input_quantity: Decimal,
    output_quantity: Decimal,
    fees: Decimal,
    total_token_sold: Decimal,
    unique_key,
) -> TradeResult:
    return TradeResult(
        input_quantity=to_plain_str(input_quantity),
        total_fees=to_plain_str(fees),
        output_quantity=to_plain_str(output_quantity),
        token_name=ctx.tokens.get_token_class(sale.selling_token).name,
        trade_type=function.side,
        vault_address=sale.vault_address,
        user_address=ctx.calling_user,
        is_finalized=sale.is_finalized,
        function_name=function,
        total_token_sold=to_plain_str(total_token_sold),
        unique_key=unique_key,
    )


def buy_exact_token(ctx: LaunchpadContext, request: ExactTokenQuantityRequest) -> TradeResult:
    """
    Buys exactly request.token_quantity tokens (trimmed to what is left in the sale).

    :raises SlippageToleranceExceededError: the cost is above request.expected_native_token
    """
    validate_exact_token_request(request)

    with ctx.atomic():
        sale = fetch_and_validate_sale(ctx, request.vault_address)
        ensure_decimals(request.token_quantity, ctx.tokens.get_token_decimals(sale.selling_token))

        quote = build_curve(ctx, sale).quote_buy_exact_tokens(request.token_quantity)
        common_helper.check_max_cost(quote.native_quantity, request.expected_native_token)

        fees, total_sold = _settle_buy(ctx, sale, quote)

    logger.info(
        "%s bought %s tokens for %s native on %s",
        ctx.calling_user, quote.token_quantity, quote.native_quantity, sale.vault_address,
    )
    return _trade_result(
        ctx, sale, TradeFunction.BUY_EXACT_TOKEN, quote.native_quantity, quote.token_quantity,
        fees, total_sold, request.unique_key,
    )


def buy_with_native(ctx: LaunchpadContext, request: NativeTokenQuantityRequest) -> TradeResult:
    """
    Spends request.native_token_quantity (rounded up to native precision) on tokens.

    With is_pre_mint the sale owner buys from a fresh curve while the sale is being
    created, even if its start time is still ahead.

    :raises SlippageToleranceExceededError: fewer tokens than request.expected_token
    """
    validate_native_token_request(request)

    with ctx.atomic():
        sale = fetch_and_validate_sale(ctx, request.vault_address, allow_upcoming=request.is_pre_mint)
        if request.is_pre_mint and (sale.sale_owner != ctx.calling_user or sale.fetch_tokens_sold() > 0):
            raise ValidationFailedError(
                "Pre-mint buys are reserved for the sale owner before any token is sold.", ["is_pre_mint"]
            )

        quote = build_curve(ctx, sale, pre_mint=request.is_pre_mint).quote_buy_with_native(
            request.native_token_quantity
        )
        common_helper.check_min_return(quote.token_quantity, request.expected_token, "selling token")

        fees, total_sold = _settle_buy(ctx, sale, quote)

    logger.info(
        "%s bought %s tokens for %s native on %s",
        ctx.calling_user, quote.token_quantity, quote.native_quantity, sale.vault_address,
    )
    return _trade_result(
        ctx, sale, TradeFunction.BUY_WITH_NATIVE, quote.native_quantity, quote.token_quantity,
        fees, total_sold, request.unique_key,
    )


def sell_exact_token(ctx: LaunchpadContext, request: ExactTokenQuantityRequest) -> TradeResult:
    """
    Sells exactly request.token_quantity tokens back to the sale.

    :raises SlippageToleranceExceededError: payout below request.expected_native_token, or
                                            exit fee above the caller's cap
    """
    validate_exact_token_request(request)

    with ctx.atomic():
        sale = fetch_and_validate_sale(ctx, request.vault_address)
        ensure_decimals(request.token_quantity, ctx.tokens.get_token_decimals(sale.selling_token))

        quote = build_curve(ctx, sale).quote_sell_exact_tokens(request.token_quantity)
        common_helper.check_min_return(quote.native_quantity, request.expected_native_token)

        fees = _settle_sell(ctx, sale, quote, request.extra_fees)

    logger.info(
        "%s sold %s tokens for %s native on %s",
        ctx.calling_user, quote.token_quantity, quote.native_quantity, sale.vault_address,
    )
    return _trade_result(
        ctx, sale, TradeFunction.SELL_EXACT_TOKEN, quote.token_quantity, quote.native_quantity,
        fees, sale.fetch_tokens_sold(), request.unique_key,
    )


def sell_with_native(ctx: LaunchpadContext, request: NativeTokenQuantityRequest) -> TradeResult:
    """
    Sells however many tokens it takes to receive request.native_token_quantity.

    :raises SlippageToleranceExceededError: more tokens needed than request.expected_token, or
                                            exit fee above the caller's cap
    """
    validate_native_token_request(request)

    with ctx.atomic():
        sale = fetch_and_validate_sale(ctx, request.vault_address)
        ensure_decimals(request.native_token_quantity, ctx.tokens.get_token_decimals(sale.native_token))

        quote = build_curve(ctx, sale).quote_sell_with_native(request.native_token_quantity)
        common_helper.check_max_cost(quote.token_quantity, request.expected_token, "selling token")

        fees = _settle_sell(ctx, sale, quote, request.extra_fees)

    logger.info(
        "%s sold %s tokens for %s native on %s",
        ctx.calling_user, quote.token_quantity, quote.native_quantity, sale.vault_address,
    )
    return _trade_result(
        ctx, sale, TradeFunction.SELL_WITH_NATIVE, quote.token_quantity, quote.native_quantity,
        fees, sale.fetch_tokens_sold(), request.unique_key,
    )
