from enum import Enum


class SaleStatus(Enum):
    UPCOMING = "Upcoming"
    ONGOING = "Ongoing"
    FINISHED = "Finished"

    def __str__(self):
        return self.value

    def __repr__(self):
        return self.__str__()


class OrderSide(Enum):
    BUY = "Buy"
    SELL = "Sell"

    def __str__(self):
        return self.value

    def __repr__(self):
        return self.__str__()


class TradeFunction(Enum):
    """Names of the trade entry points, echoed back on every receipt."""
    BUY_EXACT_TOKEN = "BuyExactToken"
    BUY_WITH_NATIVE = "BuyWithNative"
    SELL_EXACT_TOKEN = "SellExactToken"
    SELL_WITH_NATIVE = "SellWithNative"

    @property
    def side(self) -> OrderSide:
        if self in (TradeFunction.BUY_EXACT_TOKEN, TradeFunction.BUY_WITH_NATIVE):
            return OrderSide.BUY
        return OrderSide.SELL

    def __str__(self):
        return self.value

    def __repr__(self):
        return self.__str__()


class FeeReceiptStatus(Enum):
    SETTLED = "Settled"

    def __str__(self):
        return self.value
