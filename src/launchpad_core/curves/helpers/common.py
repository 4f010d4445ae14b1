from decimal import Decimal
from typing import Optional

from launchpad_core.common.errors import SlippageToleranceExceededError
from launchpad_core.common.math import round_up
from launchpad_core.common.model import ReverseBondingCurveConfiguration


class CommonCurveHelper:
    """Fee and slippage arithmetic shared by every trade direction."""

    @staticmethod
    def calculate_transaction_fee(native_amount: Decimal, fee_rate: Decimal, native_decimals: int) -> Decimal:
        """
        Platform fee on the native side of a trade, rounded up.

        :param native_amount: Decimal - native quantity moved by the trade
        :param fee_rate: Decimal - fee config's fee_amount (0 when no config exists)
        :param native_decimals: int - native token precision
        :return: Decimal fee
        """
        if native_amount <= 0 or fee_rate <= 0:
            return Decimal("0")
        return round_up(native_amount * fee_rate, native_decimals)

    @staticmethod
    def calculate_reverse_bonding_curve_fee(
        native_proceeds: Decimal,
        circulating_proportion: Decimal,
        configuration: Optional[ReverseBondingCurveConfiguration],
        native_decimals: int,
    ) -> Decimal:
        """
        Exit fee charged on sells. The portion interpolates linearly from min to max as
        the circulating share of max supply grows:
            portion = min + circulating * (max - min)
        """
        if configuration is None or native_proceeds <= 0:
            return Decimal("0")

        min_portion = configuration.min_fee_portion
        max_portion = configuration.max_fee_portion
        if max_portion <= 0:
            return Decimal("0")

        portion = min_portion + circulating_proportion * (max_portion - min_portion)
        return round_up(native_proceeds * portion, native_decimals)

    @staticmethod
    def check_max_cost(cost: Decimal, expected: Optional[Decimal], label: str = "native token"):
        """Raises if the caller would pay more than 'expected'."""
        if expected is not None and cost > expected:
            raise SlippageToleranceExceededError(
                f"Slippage tolerance exceeded: {label} cost {cost} is above the expected {expected}."
            )

    @staticmethod
    def check_min_return(received: Decimal, expected: Optional[Decimal], label: str = "native token"):
        """Raises if the caller would receive less than 'expected'."""
        if expected is not None and received < expected:
            raise SlippageToleranceExceededError(
                f"Slippage tolerance exceeded: {label} return {received} is below the expected {expected}."
            )
