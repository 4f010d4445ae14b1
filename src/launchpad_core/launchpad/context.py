import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Optional

from launchpad_core.config import LaunchpadSettings
from launchpad_core.services.balances import BalanceService, InMemoryBalanceService
from launchpad_core.services.pools import InMemoryLiquidityPoolService, LiquidityPoolService
from launchpad_core.services.receipts import FeeReceiptLedger, InMemoryFeeReceiptLedger
from launchpad_core.services.store import InMemoryObjectStore, ObjectStore
from launchpad_core.services.tokens import InMemoryTokenService, TokenService

logger = logging.getLogger(__name__)


@dataclass
class LaunchpadContext:
    """
    Everything an operation needs: who is calling, when, and the collaborators it
    reads and writes.

    :param tx_time: transaction time in milliseconds since the epoch
    """
    calling_user: str
    store: ObjectStore
    tokens: TokenService
    balances: BalanceService
    pools: LiquidityPoolService
    receipts: FeeReceiptLedger
    settings: LaunchpadSettings = field(default_factory=LaunchpadSettings)
    calling_org: Optional[str] = None
    tx_time: int = 0
    tx_id: str = ""

    @classmethod
    def in_memory(cls, calling_user: str, settings: Optional[LaunchpadSettings] = None, **kwargs) -> "LaunchpadContext":
        """Context wired to fresh in-memory collaborators."""
        tokens = InMemoryTokenService()
        balances = InMemoryBalanceService(tokens)
        return cls(
            calling_user=calling_user,
            store=InMemoryObjectStore(),
            tokens=tokens,
            balances=balances,
            pools=InMemoryLiquidityPoolService(balances),
            receipts=InMemoryFeeReceiptLedger(),
            settings=settings or LaunchpadSettings(),
            **kwargs
        )

    def for_call(self, calling_user: str, calling_org: Optional[str] = None,
                 tx_time: Optional[int] = None, tx_id: Optional[str] = None) -> "LaunchpadContext":
        """
        Same collaborators, new caller and transaction identity. tx_time defaults to now and
        tx_id to a fresh uuid.
        """
        return LaunchpadContext(
            calling_user=calling_user,
            store=self.store,
            tokens=self.tokens,
            balances=self.balances,
            pools=self.pools,
            receipts=self.receipts,
            settings=self.settings,
            calling_org=calling_org,
            tx_time=tx_time if tx_time is not None else int(time.time() * 1000),
            tx_id=tx_id or uuid.uuid4().hex,
        )

    def _collaborators(self):
        return [self.store, self.tokens, self.balances, self.pools, self.receipts]

    @contextmanager
    def atomic(self):
        """
        Runs the wrapped block as one unit of work: if it raises, every collaborator that
        supports snapshot/restore is put back as it was and the error propagates.
        """
        snapshots = [
            (c, c.snapshot()) for c in self._collaborators() if hasattr(c, "snapshot") and hasattr(c, "restore")
        ]
        try:
            yield self
        except Exception:
            logger.debug("Rolling back transaction %s", self.tx_id)
            for collaborator, snapshot in snapshots:
                collaborator.restore(snapshot)
            raise
