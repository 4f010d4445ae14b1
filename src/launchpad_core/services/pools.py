import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Dict, Optional, Tuple

from launchpad_core.common.errors import SlippageToleranceExceededError, ValidationFailedError
from launchpad_core.common.math import CURVE_PRECISION, round_down
from launchpad_core.common.model import TokenClassKey, TokenInstanceKey
from launchpad_core.services.balances import BalanceService

logger = logging.getLogger(__name__)

MIN_TICK = -887220
MAX_TICK = 887220


@dataclass
class PoolState:
    """
    A two-token pool. sqrt_price is the square root of the token1-per-token0 price;
    token0 always has the lexicographically smaller class key.
    """
    token0: TokenClassKey
    token1: TokenClassKey
    fee: int
    sqrt_price: Decimal
    reserve0: Decimal = Decimal("0")
    reserve1: Decimal = Decimal("0")
    liquidity: Decimal = Decimal("0")

    @property
    def price(self) -> Decimal:
        with localcontext() as ctx:
            ctx.prec = CURVE_PRECISION
            return self.sqrt_price * self.sqrt_price

    @property
    def address(self) -> str:
        return f"service|pool${self.token0.to_string_key()}${self.token1.to_string_key()}${self.fee}"


def _pool_id(token0: TokenClassKey, token1: TokenClassKey, fee: int) -> Tuple[str, str, int]:
    return token0.to_string_key(), token1.to_string_key(), fee


class LiquidityPoolService(ABC):
    """External AMM consumed when a sale graduates."""

    @abstractmethod
    def get_pool_state(self, token0: TokenClassKey, token1: TokenClassKey, fee: int) -> Optional[PoolState]:
        pass

    @abstractmethod
    def create_pool(self, token0: TokenClassKey, token1: TokenClassKey, fee: int, initial_sqrt_price: Decimal) -> PoolState:
        pass

    @abstractmethod
    def estimate_add_liquidity(
        self, token0: TokenClassKey, token1: TokenClassKey, fee: int, amount: Decimal, zero_for_one: bool
    ) -> Tuple[Decimal, Decimal]:
        """
        Amounts of both tokens needed to add 'amount' of one side at the pool's current price.

        :param zero_for_one: True when 'amount' is denominated in token0
        :return: (amount0, amount1)
        """
        pass

    @abstractmethod
    def add_liquidity(
        self,
        owner: str,
        token0: TokenClassKey,
        token1: TokenClassKey,
        fee: int,
        tick_lower: int,
        tick_upper: int,
        amount0_desired: Decimal,
        amount1_desired: Decimal,
        amount0_min: Decimal,
        amount1_min: Decimal,
        unique_key: Optional[str] = None,
    ) -> PoolState:
        pass


class InMemoryLiquidityPoolService(LiquidityPoolService):
    """
    Full-range pools held in memory. Deposits are pulled from the owner through the
    balance service, so they obey the same precision and balance checks as trades.
    """

    def __init__(self, balances: BalanceService):
        self.balances = balances
        self._pools: Dict[Tuple[str, str, int], PoolState] = {}

    def get_pool_state(self, token0: TokenClassKey, token1: TokenClassKey, fee: int) -> Optional[PoolState]:
        pool = self._pools.get(_pool_id(token0, token1, fee))
        return copy.deepcopy(pool) if pool is not None else None

    def create_pool(self, token0: TokenClassKey, token1: TokenClassKey, fee: int, initial_sqrt_price: Decimal) -> PoolState:
        if token0.to_string_key() >= token1.to_string_key():
            raise ValidationFailedError("Pool tokens must be sorted with token0 < token1.", ["token0", "token1"])
        if initial_sqrt_price <= 0:
            raise ValidationFailedError("Initial sqrt price must be positive.", ["initial_sqrt_price"])
        pool_id = _pool_id(token0, token1, fee)
        if pool_id in self._pools:
            raise ValidationFailedError(f"Pool {pool_id} already exists.")

        pool = PoolState(token0=token0, token1=token1, fee=fee, sqrt_price=initial_sqrt_price)
        self._pools[pool_id] = pool
        logger.info("Created pool %s at sqrt price %s", pool.address, initial_sqrt_price)
        return copy.deepcopy(pool)

    def _require_pool(self, token0: TokenClassKey, token1: TokenClassKey, fee: int) -> PoolState:
        pool = self._pools.get(_pool_id(token0, token1, fee))
        if pool is None:
            raise ValidationFailedError(f"No pool for {token0.to_string_key()}/{token1.to_string_key()} at fee {fee}.")
        return pool

    def estimate_add_liquidity(
        self, token0: TokenClassKey, token1: TokenClassKey, fee: int, amount: Decimal, zero_for_one: bool
    ) -> Tuple[Decimal, Decimal]:
        pool = self._require_pool(token0, token1, fee)
        with localcontext() as ctx:
            ctx.prec = CURVE_PRECISION
            if zero_for_one:
                return amount, amount * pool.price
            return amount / pool.price, amount

    def add_liquidity(
        self,
        owner: str,
        token0: TokenClassKey,
        token1: TokenClassKey,
        fee: int,
        tick_lower: int,
        tick_upper: int,
        amount0_desired: Decimal,
        amount1_desired: Decimal,
        amount0_min: Decimal,
        amount1_min: Decimal,
        unique_key: Optional[str] = None,
    ) -> PoolState:
        pool = self._require_pool(token0, token1, fee)
        if not MIN_TICK <= tick_lower < tick_upper <= MAX_TICK:
            raise ValidationFailedError("Invalid tick range.", ["tick_lower", "tick_upper"])

        instance0 = TokenInstanceKey(token0.collection, token0.category, token0.type, token0.additional_key)
        instance1 = TokenInstanceKey(token1.collection, token1.category, token1.type, token1.additional_key)
        amount0 = round_down(amount0_desired, self.balances.tokens.get_token_decimals(instance0))
        amount1 = round_down(amount1_desired, self.balances.tokens.get_token_decimals(instance1))
        if amount0 < amount0_min or amount1 < amount1_min:
            raise SlippageToleranceExceededError(
                f"Liquidity amounts ({amount0}, {amount1}) below minimums ({amount0_min}, {amount1_min})."
            )

        if amount0 > 0:
            self.balances.transfer(owner, pool.address, instance0, amount0)
        if amount1 > 0:
            self.balances.transfer(owner, pool.address, instance1, amount1)

        with localcontext() as ctx:
            ctx.prec = CURVE_PRECISION
            pool.liquidity += (amount0 * amount1).sqrt()
        pool.reserve0 += amount0
        pool.reserve1 += amount1
        logger.info("Added liquidity (%s, %s) to %s for %s [%s]", amount0, amount1, pool.address, owner, unique_key)
        return copy.deepcopy(pool)

    def snapshot(self):
        return copy.deepcopy(self._pools)

    def restore(self, snapshot):
        self._pools = snapshot
