from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from launchpad_core.common.model import CurveParams, CurveState


class BondingCurve(ABC):
    """Abstract base class defining the interface for any bonding curve implementation."""
    def __init__(self, params: 'CurveParams', state: Optional['CurveState'] = None):
        """
        Initializes the bonding curve with parameters and an optional existing state.

        :param params: CurveParams - defines curve configuration
        :param state: CurveState - optional initial state, defaults to nothing sold
        """
        self._params = params
        self._state = state or CurveState()

    @property
    def params(self) -> 'CurveParams':
        """Returns the bonding curve parameters."""
        return self._params

    @property
    def tokens_sold(self) -> Decimal:
        return self._state.tokens_sold

    @property
    def native_in_vault(self) -> Decimal:
        return self._state.native_in_vault

    @property
    def remaining_supply(self) -> Decimal:
        return self._params.max_supply - self._state.tokens_sold

    @abstractmethod
    def get_spot_price(self, tokens_sold: Decimal) -> Decimal:
        """
        Returns the marginal price once 'tokens_sold' tokens are out.

        :param tokens_sold: Decimal
        :return: Decimal: The price at given point of the curve.
        """
        pass

    @abstractmethod
    def calculate_purchase_cost(self, amount: Decimal) -> Decimal:
        """
        Calculates how much it costs to buy a specified 'amount' of tokens from the current state of the bonding curve.

        :param amount: Decimal - Number of tokens the user wants to purchase.
        :return: Unrounded native cost to purchase 'amount' of tokens.
        """
        pass

    @abstractmethod
    def calculate_sale_return(self, amount: Decimal) -> Decimal:
        """
        Calculates how much native is returned if a user sells a specified 'amount' of tokens
        back into the bonding curve.

        :param amount: Decimal - Number of tokens the user wants to sell.
        :return: Unrounded native return for selling 'amount' of tokens.
        """
        pass

    @abstractmethod
    def calculate_purchase_amount(self, native_amount: Decimal) -> Decimal:
        """
        Inverse of calculate_purchase_cost: how many tokens 'native_amount' buys.
        """
        pass

    @abstractmethod
    def calculate_sale_amount(self, native_amount: Decimal) -> Decimal:
        """
        Inverse of calculate_sale_return: how many tokens must be sold to receive 'native_amount'.
        """
        pass
