from decimal import Decimal

from launchpad_core.common.errors import NotFoundError
from launchpad_core.common.model import LaunchpadTradeData
from launchpad_core.launchpad.context import LaunchpadContext


def trade_data_key(ctx: LaunchpadContext, vault_address: str) -> str:
    return ctx.store.create_composite_key(LaunchpadTradeData.INDEX_KEY, [vault_address])


def write_trade_data(ctx: LaunchpadContext, vault_address: str, native_quantity: Decimal) -> LaunchpadTradeData:
    """Adds a trade's native leg to the sale's running volume, creating the record on first use."""
    key = trade_data_key(ctx, vault_address)
    data = ctx.store.get(key)
    if data is None:
        data = LaunchpadTradeData(vault_address=vault_address, created_at=ctx.tx_time)
    data.native_volume_traded += native_quantity
    data.last_updated = ctx.tx_time
    ctx.store.put(key, data)
    return data


def fetch_trade_data(ctx: LaunchpadContext, vault_address: str) -> LaunchpadTradeData:
    data = ctx.store.get(trade_data_key(ctx, vault_address))
    if data is None:
        raise NotFoundError(f"No trade data recorded for vault {vault_address}.")
    return data
