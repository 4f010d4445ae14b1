import pytest

from decimal import Decimal

from launchpad_core.common.errors import SlippageToleranceExceededError
from launchpad_core.common.model import ReverseBondingCurveConfiguration
from launchpad_core.curves.helpers.common import CommonCurveHelper as common_helper


@pytest.mark.parametrize(
    "native_amount, fee_rate, expected",
    [
        (Decimal("0.00825575"), Decimal("0.01"), Decimal("0.00008256")),
        (Decimal("100"), Decimal("0.001"), Decimal("0.1")),
        (Decimal("100"), Decimal("0"), Decimal("0")),
        (Decimal("0"), Decimal("0.01"), Decimal("0")),
    ]
)
def test_calculate_transaction_fee(native_amount, fee_rate, expected):
    assert common_helper.calculate_transaction_fee(native_amount, fee_rate, 8) == expected


class TestReverseBondingCurveFee:
    def test_no_configuration(self):
        assert common_helper.calculate_reverse_bonding_curve_fee(Decimal("10"), Decimal("0.5"), None, 8) == 0

    def test_zero_max_portion(self):
        config = ReverseBondingCurveConfiguration(Decimal("0"), Decimal("0"))
        assert common_helper.calculate_reverse_bonding_curve_fee(Decimal("10"), Decimal("0.5"), config, 8) == 0

    @pytest.mark.parametrize(
        "circulating, expected",
        [
            (Decimal("0"), Decimal("1")),       # min portion 0.1
            (Decimal("0.5"), Decimal("3")),     # 0.1 + 0.5 * 0.4
            (Decimal("1"), Decimal("5")),       # max portion 0.5
        ]
    )
    def test_portion_interpolates(self, circulating, expected):
        config = ReverseBondingCurveConfiguration(Decimal("0.1"), Decimal("0.5"))
        fee = common_helper.calculate_reverse_bonding_curve_fee(Decimal("10"), circulating, config, 8)
        assert fee == expected

    def test_fee_rounds_up(self):
        config = ReverseBondingCurveConfiguration(Decimal("0.1"), Decimal("0.1"))
        fee = common_helper.calculate_reverse_bonding_curve_fee(Decimal("0.00000011"), Decimal("0"), config, 8)
        assert fee == Decimal("0.00000002")


def test_check_max_cost():
    common_helper.check_max_cost(Decimal("1"), None)
    common_helper.check_max_cost(Decimal("1"), Decimal("1"))
    with pytest.raises(SlippageToleranceExceededError):
        common_helper.check_max_cost(Decimal("1.00000001"), Decimal("1"))


def test_check_min_return():
    common_helper.check_min_return(Decimal("1"), None)
    common_helper.check_min_return(Decimal("1"), Decimal("1"))
    with pytest.raises(SlippageToleranceExceededError):
        common_helper.check_min_return(Decimal("0.99999999"), Decimal("1"))
