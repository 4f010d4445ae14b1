import pytest

from launchpad_core.common.enums import FeeReceiptStatus, OrderSide, SaleStatus, TradeFunction


@pytest.mark.parametrize(
    "function, side",
    [
        (TradeFunction.BUY_EXACT_TOKEN, OrderSide.BUY),
        (TradeFunction.BUY_WITH_NATIVE, OrderSide.BUY),
        (TradeFunction.SELL_EXACT_TOKEN, OrderSide.SELL),
        (TradeFunction.SELL_WITH_NATIVE, OrderSide.SELL),
    ]
)
def test_trade_function_side(function, side):
    assert function.side == side


def test_enum_str_is_value():
    assert str(SaleStatus.FINISHED) == "Finished"
    assert str(TradeFunction.SELL_WITH_NATIVE) == "SellWithNative"
    assert str(OrderSide.BUY) == "Buy"
    assert str(FeeReceiptStatus.SETTLED) == "Settled"
