import logging
from decimal import Decimal
from typing import Optional

from launchpad_core.common.errors import InsufficientBalanceError
from launchpad_core.common.model import LaunchpadSale
from launchpad_core.curves.helpers.common import CommonCurveHelper as common_helper
from launchpad_core.launchpad.context import LaunchpadContext
from launchpad_core.launchpad.sales import find_fee_config
from launchpad_core.services.receipts import receipt_for

logger = logging.getLogger(__name__)

REVERSE_BONDING_CURVE_FEE_CODE = "LaunchpadReverseBondingCurveFee"


def pay_reverse_bonding_curve_fee(
    ctx: LaunchpadContext,
    sale: LaunchpadSale,
    fee: Decimal,
    max_acceptable_fee: Optional[Decimal] = None,
) -> Decimal:
    """
    Charges the seller's exit fee. Must run before the sale proceeds are paid out, so the
    fee can never be funded from them.

    :return: the fee actually charged (0 without a fee config or a fee)
    :raises SlippageToleranceExceededError: fee is above max_acceptable_fee
    """
    fee_config = find_fee_config(ctx)
    if fee <= 0 or fee_config is None:
        return Decimal("0")

    common_helper.check_max_cost(fee, max_acceptable_fee, "reverse bonding curve fee")

    receipt = receipt_for(REVERSE_BONDING_CURVE_FEE_CODE, ctx.calling_user, ctx.tx_id, fee, ctx.tx_time)
    ctx.receipts.write_channel_receipt(receipt)
    ctx.receipts.write_user_receipt(receipt)

    ctx.balances.transfer(ctx.calling_user, fee_config.fee_address, sale.native_token, fee)
    logger.info("Charged reverse bonding curve fee %s to %s on %s", fee, ctx.calling_user, sale.vault_address)
    return fee


def transfer_transaction_fees(
    ctx: LaunchpadContext,
    sale: LaunchpadSale,
    fee: Decimal,
    native_tokens_required: Optional[Decimal] = None,
) -> Decimal:
    """
    Sends the platform fee to the configured fee address. Skipped when no fee config exists.

    :param native_tokens_required: on buys, the principal the caller must also cover;
                                   checked together with the fee before anything moves
    :return: the fee actually charged
    """
    fee_config = find_fee_config(ctx)
    if fee_config is None or fee <= 0:
        return Decimal("0")

    if native_tokens_required is not None:
        total_required = native_tokens_required + fee
        balance = ctx.balances.get_balance(ctx.calling_user, sale.native_token)
        if balance < total_required:
            raise InsufficientBalanceError(
                f"Insufficient balance: total amount required including fee is {total_required}, "
                f"but {ctx.calling_user} holds {balance}.",
                ["native_token_quantity"],
            )

    ctx.balances.transfer(ctx.calling_user, fee_config.fee_address, sale.native_token, fee)
    logger.debug("Charged transaction fee %s to %s", fee, ctx.calling_user)
    return fee
