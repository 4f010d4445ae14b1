import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Tuple

from launchpad_core.common.errors import InsufficientBalanceError, ValidationFailedError
from launchpad_core.common.math import ensure_decimals
from launchpad_core.common.model import TokenInstanceKey
from launchpad_core.services.tokens import TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferRecord:
    """One entry of the ordered transfer log."""
    from_address: str
    to_address: str
    token: TokenInstanceKey
    quantity: Decimal


class BalanceService(ABC):
    """Ledger of fungible balances; every movement is checked against the token's precision."""

    def __init__(self, tokens: TokenService):
        self.tokens = tokens

    def _check_quantity(self, token: TokenInstanceKey, quantity: Decimal):
        if quantity <= 0:
            raise ValidationFailedError(f"Quantity must be positive, got {quantity}.", ["quantity"])
        ensure_decimals(quantity, self.tokens.get_token_decimals(token))

    @abstractmethod
    def get_balance(self, owner: str, token: TokenInstanceKey) -> Decimal:
        pass

    @abstractmethod
    def transfer(self, from_address: str, to_address: str, token: TokenInstanceKey, quantity: Decimal):
        """
        Moves 'quantity' of 'token' between two addresses.

        :raises InvalidDecimalError: quantity is finer than the token's decimals
        :raises InsufficientBalanceError: the sender holds less than quantity
        """
        pass

    @abstractmethod
    def mint(self, to_address: str, token: TokenInstanceKey, quantity: Decimal):
        pass

    @abstractmethod
    def burn(self, owner: str, token: TokenInstanceKey, quantity: Decimal):
        pass


class InMemoryBalanceService(BalanceService):

    def __init__(self, tokens: TokenService):
        super().__init__(tokens)
        self._balances: Dict[Tuple[str, TokenInstanceKey], Decimal] = {}
        self.transfers: List[TransferRecord] = []

    def get_balance(self, owner: str, token: TokenInstanceKey) -> Decimal:
        return self._balances.get((owner, token), Decimal("0"))

    def _debit(self, owner: str, token: TokenInstanceKey, quantity: Decimal):
        balance = self.get_balance(owner, token)
        if balance < quantity:
            raise InsufficientBalanceError(
                f"{owner} holds {balance} of {token.to_string_key()}, {quantity} required.", ["quantity"]
            )
        self._balances[(owner, token)] = balance - quantity

    def _credit(self, owner: str, token: TokenInstanceKey, quantity: Decimal):
        self._balances[(owner, token)] = self.get_balance(owner, token) + quantity

    def transfer(self, from_address: str, to_address: str, token: TokenInstanceKey, quantity: Decimal):
        self._check_quantity(token, quantity)
        self._debit(from_address, token, quantity)
        self._credit(to_address, token, quantity)
        self.transfers.append(TransferRecord(from_address, to_address, token, quantity))
        logger.debug("transfer %s %s from %s to %s", quantity, token.to_string_key(), from_address, to_address)

    def mint(self, to_address: str, token: TokenInstanceKey, quantity: Decimal):
        self._check_quantity(token, quantity)
        self._credit(to_address, token, quantity)
        logger.debug("mint %s %s to %s", quantity, token.to_string_key(), to_address)

    def burn(self, owner: str, token: TokenInstanceKey, quantity: Decimal):
        self._check_quantity(token, quantity)
        self._debit(owner, token, quantity)
        logger.debug("burn %s %s from %s", quantity, token.to_string_key(), owner)

    def snapshot(self):
        return copy.deepcopy(self._balances), list(self.transfers)

    def restore(self, snapshot):
        self._balances, self.transfers = snapshot
