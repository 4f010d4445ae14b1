from typing import Optional

from launchpad_core.common.enums import SaleStatus
from launchpad_core.common.errors import NotFoundError, ValidationFailedError
from launchpad_core.common.model import FetchSaleRequest, LaunchpadFeeConfig, LaunchpadSale
from launchpad_core.curves.single.exponential import ExponentialBondingCurve
from launchpad_core.launchpad.context import LaunchpadContext


def sale_key(ctx: LaunchpadContext, vault_address: str) -> str:
    return ctx.store.create_composite_key(LaunchpadSale.INDEX_KEY, [vault_address])


def fetch_sale(ctx: LaunchpadContext, vault_address: str) -> LaunchpadSale:
    sale = ctx.store.get(sale_key(ctx, vault_address))
    if sale is None:
        raise NotFoundError(f"Sale record not found for vault {vault_address}.")
    return sale


def fetch_and_validate_sale(ctx: LaunchpadContext, vault_address: str, allow_upcoming: bool = False) -> LaunchpadSale:
    """
    Loads a sale that can be traded right now.

    :param allow_upcoming: accept a sale whose start time is still in the future
    :raises NotFoundError: no sale at vault_address
    :raises ValidationFailedError: the sale is finished, or has not started yet
    """
    sale = fetch_sale(ctx, vault_address)
    status = sale.current_status(ctx.tx_time)
    if status == SaleStatus.FINISHED:
        raise ValidationFailedError("This sale has already ended.", ["vault_address"])
    if status == SaleStatus.UPCOMING and not allow_upcoming:
        raise ValidationFailedError(f"This sale has not started yet, it starts at {sale.sale_start_time}.", ["vault_address"])
    return sale


def put_sale(ctx: LaunchpadContext, sale: LaunchpadSale):
    ctx.store.put(sale_key(ctx, sale.vault_address), sale)


def fetch_sale_details(ctx: LaunchpadContext, request: FetchSaleRequest) -> LaunchpadSale:
    """Returns the sale with its status as of the transaction time."""
    sale = fetch_sale(ctx, request.vault_address)
    sale.sale_status = sale.current_status(ctx.tx_time)
    return sale


def fee_config_key(ctx: LaunchpadContext) -> str:
    return ctx.store.create_composite_key(LaunchpadFeeConfig.INDEX_KEY, [])


def find_fee_config(ctx: LaunchpadContext) -> Optional[LaunchpadFeeConfig]:
    """The platform fee config, or None when none has been set up."""
    return ctx.store.get(fee_config_key(ctx))


def build_curve(ctx: LaunchpadContext, sale: LaunchpadSale, pre_mint: bool = False) -> ExponentialBondingCurve:
    """Curve positioned at the sale's state, priced with the live token decimals and fee rate."""
    fee_config = find_fee_config(ctx)
    return ExponentialBondingCurve.from_sale(
        sale,
        pre_mint=pre_mint,
        native_decimals=ctx.tokens.get_token_decimals(sale.native_token),
        selling_decimals=ctx.tokens.get_token_decimals(sale.selling_token),
        txn_fee_rate=fee_config.fee_amount if fee_config else None,
    )
