import logging
from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Tuple

from launchpad_core.common.errors import PreConditionFailedError
from launchpad_core.common.math import CURVE_PRECISION, round_down
from launchpad_core.common.model import LaunchpadFinalizeFeeAllocation, LaunchpadSale, TokenClassKey
from launchpad_core.curves.helpers.exponential import ExponentialCurveHelper as exponential_helper
from launchpad_core.launchpad.context import LaunchpadContext
from launchpad_core.launchpad.sales import find_fee_config, put_sale
from launchpad_core.services.pools import MAX_TICK, MIN_TICK

logger = logging.getLogger(__name__)

LIQUIDITY_SLIPPAGE = Decimal("0.9999999")


@dataclass
class SaleFinalization:
    """What a graduating sale handed to its owner, the platform and the pool."""
    vault_address: str
    final_price: Decimal
    sqrt_price: Decimal
    token0: TokenClassKey
    token1: TokenClassKey
    amount0: Decimal
    amount1: Decimal
    owner_allocation: Decimal
    platform_fee: Decimal


def allocation_key(ctx: LaunchpadContext) -> str:
    return ctx.store.create_composite_key(LaunchpadFinalizeFeeAllocation.INDEX_KEY, [])


def fetch_fee_allocation(ctx: LaunchpadContext) -> LaunchpadFinalizeFeeAllocation:
    """Stored allocation, or the one built from settings when none was stored."""
    allocation = ctx.store.get(allocation_key(ctx))
    if allocation is not None:
        return allocation
    return LaunchpadFinalizeFeeAllocation(
        platform_fee_percentage=ctx.settings.platform_fee_percentage,
        owner_allocation_percentage=ctx.settings.owner_allocation_percentage,
        liquidity_allocation_percentage=ctx.settings.liquidity_allocation_percentage,
    )


def calculate_final_launchpad_price(sale: LaunchpadSale, native_is_token0: bool) -> Tuple[Decimal, Decimal]:
    """
    Spot price at the end of the curve and the pool sqrt price derived from it.

    :param native_is_token0: the pool quotes token1 per token0, so the price is inverted
                             when the native token sorts first
    :return: (final native-per-token price, sqrt of the pool price)
    """
    final_price = exponential_helper.spot_price(
        sale.max_supply, sale.base_price, sale.exponent_factor, sale.euler, sale.CURVE_SCALE
    )
    with localcontext() as ctx:
        ctx.prec = CURVE_PRECISION
        pool_price = Decimal(1) / final_price if native_is_token0 else final_price
        return final_price, pool_price.sqrt()


def sort_pool_tokens(sale: LaunchpadSale) -> Tuple[TokenClassKey, TokenClassKey, bool]:
    """Orders the sale's two token classes by string key; returns (token0, token1, native_is_token0)."""
    selling = sale.selling_token.token_class_key
    native = sale.native_token.token_class_key
    if native.to_string_key() < selling.to_string_key():
        return native, selling, True
    return selling, native, False


def finalize_sale(ctx: LaunchpadContext, sale: LaunchpadSale) -> SaleFinalization:
    """
    Graduates a sale: pays the owner and platform shares of the vault's native balance,
    seeds a pool at the curve's final price with the liquidity share, burns whatever the
    vault still holds, and marks the sale finished.

    :raises PreConditionFailedError: no platform fee config exists
    """
    fee_config = find_fee_config(ctx)
    if fee_config is None:
        raise PreConditionFailedError("Platform fee configuration is yet to be defined.")

    allocation = fetch_fee_allocation(ctx)
    vault = sale.vault_address
    native_decimals = ctx.tokens.get_token_decimals(sale.native_token)
    vault_native = sale.fetch_native_tokens_in_vault()

    owner_allocation = round_down(vault_native * allocation.owner_allocation_percentage, native_decimals)
    if owner_allocation > 0:
        ctx.balances.transfer(vault, sale.sale_owner, sale.native_token, owner_allocation)

    platform_fee = round_down(vault_native * allocation.platform_fee_percentage, native_decimals)
    if platform_fee > 0:
        ctx.balances.transfer(vault, fee_config.fee_address, sale.native_token, platform_fee)

    token0, token1, native_is_token0 = sort_pool_tokens(sale)
    final_price, sqrt_price = calculate_final_launchpad_price(sale, native_is_token0)
    fee_tier = ctx.settings.liquidity_pool_fee

    pool = ctx.pools.get_pool_state(token0, token1, fee_tier)
    if pool is None:
        pool = ctx.pools.create_pool(token0, token1, fee_tier, sqrt_price)

    price_close_enough = abs(sqrt_price - pool.sqrt_price) <= sqrt_price * ctx.settings.pool_price_tolerance
    native_for_liquidity = vault_native * allocation.liquidity_allocation_percentage

    if not price_close_enough and pool.sqrt_price > sqrt_price:
        with localcontext() as dctx:
            dctx.prec = CURVE_PRECISION
            liquidity_amount = native_for_liquidity / final_price
        zero_for_one = not native_is_token0
    else:
        liquidity_amount = native_for_liquidity
        zero_for_one = native_is_token0

    amount0, amount1 = ctx.pools.estimate_add_liquidity(token0, token1, fee_tier, liquidity_amount, zero_for_one)
    # at token precision so the slippage minimums hold for what is actually deposited
    amount0 = round_down(amount0, ctx.tokens.get_token_decimals(token0))
    amount1 = round_down(amount1, ctx.tokens.get_token_decimals(token1))
    ctx.pools.add_liquidity(
        vault,
        token0,
        token1,
        fee_tier,
        MIN_TICK,
        MAX_TICK,
        amount0,
        amount1,
        amount0 * LIQUIDITY_SLIPPAGE,
        amount1 * LIQUIDITY_SLIPPAGE,
        unique_key=vault,
    )

    for token in (sale.selling_token, sale.native_token):
        leftover = ctx.balances.get_balance(vault, token)
        if leftover > 0:
            ctx.balances.burn(vault, token, leftover)

    sale.finalize()
    put_sale(ctx, sale)
    logger.info("Finalized sale %s at final price %s", vault, final_price)

    return SaleFinalization(
        vault_address=vault,
        final_price=final_price,
        sqrt_price=sqrt_price,
        token0=token0,
        token1=token1,
        amount0=amount0,
        amount1=amount1,
        owner_allocation=owner_allocation,
        platform_fee=platform_fee,
    )
