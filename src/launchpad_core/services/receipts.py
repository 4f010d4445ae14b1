import copy
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from launchpad_core.common.model import FeeReceipt

logger = logging.getLogger(__name__)


def receipt_for(fee_code: str, paid_by_user: str, tx_id: str, quantity: Decimal, tx_time: int) -> FeeReceipt:
    """
    Builds a receipt partitioned by the UTC date of the transaction.

    :param tx_time: int - transaction time in milliseconds since the epoch
    """
    day = datetime.fromtimestamp(tx_time / 1000, tz=timezone.utc)
    return FeeReceipt(
        fee_code=fee_code,
        paid_by_user=paid_by_user,
        tx_id=tx_id,
        quantity=quantity,
        year=f"{day.year:04d}",
        month=f"{day.month:02d}",
        day=f"{day.day:02d}",
    )


class FeeReceiptLedger(ABC):
    """Audit trail of fees paid, kept once per channel and once per user."""

    @abstractmethod
    def write_channel_receipt(self, receipt: FeeReceipt):
        pass

    @abstractmethod
    def write_user_receipt(self, receipt: FeeReceipt):
        pass

    @abstractmethod
    def channel_receipts(self, year: str = None, month: str = None, day: str = None) -> List[FeeReceipt]:
        pass

    @abstractmethod
    def user_receipts(self, user: str) -> List[FeeReceipt]:
        pass


class InMemoryFeeReceiptLedger(FeeReceiptLedger):

    def __init__(self):
        self._channel: List[FeeReceipt] = []
        self._user: List[FeeReceipt] = []

    def write_channel_receipt(self, receipt: FeeReceipt):
        self._channel.append(copy.deepcopy(receipt))

    def write_user_receipt(self, receipt: FeeReceipt):
        self._user.append(copy.deepcopy(receipt))
        logger.debug("Fee receipt %s: %s paid %s", receipt.fee_code, receipt.paid_by_user, receipt.quantity)

    def channel_receipts(self, year: str = None, month: str = None, day: str = None) -> List[FeeReceipt]:
        return [
            copy.deepcopy(r) for r in self._channel
            if (year is None or r.year == year)
            and (month is None or r.month == month)
            and (day is None or r.day == day)
        ]

    def user_receipts(self, user: str) -> List[FeeReceipt]:
        return [copy.deepcopy(r) for r in self._user if r.paid_by_user == user]

    def snapshot(self):
        return copy.deepcopy(self._channel), copy.deepcopy(self._user)

    def restore(self, snapshot):
        self._channel, self._user = snapshot
