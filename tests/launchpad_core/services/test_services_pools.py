import pytest

from decimal import Decimal

from launchpad_core.common.errors import SlippageToleranceExceededError, ValidationFailedError
from launchpad_core.common.model import TokenClass, TokenInstanceKey, native_token_key
from launchpad_core.services.balances import InMemoryBalanceService
from launchpad_core.services.pools import MAX_TICK, MIN_TICK, InMemoryLiquidityPoolService
from launchpad_core.services.tokens import InMemoryTokenService

NATIVE = native_token_key()
MEME = TokenInstanceKey("Meme", "Unit", "MEME", "none")


@pytest.fixture
def pools():
    """
    Pool service over a ledger where client|lp holds 100 GALA and 1000 MEME.
    GALA sorts before Meme, so GALA is token0.
    """
    tokens = InMemoryTokenService()
    tokens.register_token(TokenClass(key=NATIVE.token_class_key, name="GALA", symbol="GALA", decimals=8))
    tokens.register_token(TokenClass(key=MEME.token_class_key, name="Meme", symbol="MEME", decimals=18))
    balances = InMemoryBalanceService(tokens)
    balances.mint("client|lp", NATIVE, Decimal("100"))
    balances.mint("client|lp", MEME, Decimal("1000"))
    return InMemoryLiquidityPoolService(balances)


def _keys():
    return NATIVE.token_class_key, MEME.token_class_key


def test_create_and_get_pool(pools):
    token0, token1 = _keys()
    assert pools.get_pool_state(token0, token1, 3000) is None
    pool = pools.create_pool(token0, token1, 3000, Decimal("2"))
    assert pool.price == Decimal("4")
    assert pools.get_pool_state(token0, token1, 3000).sqrt_price == Decimal("2")


def test_create_pool_requires_sorted_tokens(pools):
    token0, token1 = _keys()
    with pytest.raises(ValidationFailedError):
        pools.create_pool(token1, token0, 3000, Decimal("2"))


def test_create_pool_twice(pools):
    token0, token1 = _keys()
    pools.create_pool(token0, token1, 3000, Decimal("2"))
    with pytest.raises(ValidationFailedError):
        pools.create_pool(token0, token1, 3000, Decimal("2"))


def test_estimate_and_add_liquidity(pools):
    token0, token1 = _keys()
    pools.create_pool(token0, token1, 3000, Decimal("2"))

    amount0, amount1 = pools.estimate_add_liquidity(token0, token1, 3000, Decimal("10"), zero_for_one=True)
    assert (amount0, amount1) == (Decimal("10"), Decimal("40"))
    assert pools.estimate_add_liquidity(token0, token1, 3000, Decimal("40"), zero_for_one=False) == (
        Decimal("10"), Decimal("40")
    )

    pool = pools.add_liquidity("client|lp", token0, token1, 3000, MIN_TICK, MAX_TICK,
                               amount0, amount1, amount0, amount1)
    assert pool.reserve0 == Decimal("10")
    assert pool.reserve1 == Decimal("40")
    assert pool.liquidity == Decimal("20")
    assert pools.balances.get_balance("client|lp", NATIVE) == Decimal("90")
    assert pools.balances.get_balance(pool.address, TokenInstanceKey("Meme", "Unit", "MEME", "none")) == Decimal("40")


def test_add_liquidity_below_minimum(pools):
    token0, token1 = _keys()
    pools.create_pool(token0, token1, 3000, Decimal("1"))
    with pytest.raises(SlippageToleranceExceededError):
        pools.add_liquidity("client|lp", token0, token1, 3000, MIN_TICK, MAX_TICK,
                            Decimal("1.000000001"), Decimal("1"), Decimal("1.000000001"), Decimal("1"))


def test_add_liquidity_without_pool(pools):
    token0, token1 = _keys()
    with pytest.raises(ValidationFailedError):
        pools.add_liquidity("client|lp", token0, token1, 3000, MIN_TICK, MAX_TICK,
                            Decimal("1"), Decimal("1"), Decimal("1"), Decimal("1"))
