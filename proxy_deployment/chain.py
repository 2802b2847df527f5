import queue
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, List, NamedTuple, Optional, Sequence

from eth_typing import ChecksumAddress

from proxy_deployment.exceptions import DeploymentCancelled

NetworkIdentifier = str

RECEIPT_POLL_INTERVAL = 0.5


class Receipt(NamedTuple):
    """A confirmed transaction."""

    txn_hash: str
    block_number: int
    contract_address: Optional[ChecksumAddress] = None


class PendingTransaction:
    """A submitted transaction whose receipt has not been obtained yet."""

    def __init__(self, txn_hash: str, waiter: Callable[[], Receipt]):
        self.txn_hash = txn_hash
        self._waiter = waiter

    def wait_for_receipt(self) -> Receipt:
        return self._waiter()

    def __repr__(self):
        return f"PendingTransaction({self.txn_hash})"


class ChainClient(ABC):
    """
    Capability required by the deployment core: a signer connected to a single network,
    able to deploy contracts and transact with deployed ones.
    """

    @property
    @abstractmethod
    def network(self) -> NetworkIdentifier:
        raise NotImplementedError

    @abstractmethod
    def signer_address(self) -> ChecksumAddress:
        raise NotImplementedError

    @abstractmethod
    def current_fee_baseline(self, network: NetworkIdentifier) -> int:
        """Returns the current priority fee (in wei) suggested by the network."""
        raise NotImplementedError

    @abstractmethod
    def constructor_abi_types(self, contract_type: str) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def deploy(
        self, contract_type: str, constructor_args: Sequence[Any], fee_bid: int
    ) -> PendingTransaction:
        raise NotImplementedError

    @abstractmethod
    def call(
        self, address: ChecksumAddress, abi_method: str, args: Sequence[Any], fee_bid: int
    ) -> PendingTransaction:
        """Transacts ``abi_method`` (e.g. ``initialize(address,address)``) against ``address``."""
        raise NotImplementedError


def wait_for_receipt(
    pending: PendingTransaction,
    cancellation: Optional[threading.Event] = None,
    poll_interval: float = RECEIPT_POLL_INTERVAL,
) -> Receipt:
    """
    Blocks until the receipt of a pending transaction is available.

    When a cancellation event is provided the wait happens on a daemon thread
    and is abandoned as soon as the event is set. The submitted transaction
    itself is left untouched; it may still be confirmed by the network.
    """
    if cancellation is None:
        return pending.wait_for_receipt()
    if cancellation.is_set():
        raise DeploymentCancelled(pending.txn_hash)

    outcome = queue.Queue(maxsize=1)

    def _wait():
        try:
            outcome.put((pending.wait_for_receipt(), None))
        except Exception as e:
            outcome.put((None, e))

    waiter = threading.Thread(target=_wait, name=f"receipt-{pending.txn_hash}", daemon=True)
    waiter.start()
    while True:
        try:
            receipt, error = outcome.get(timeout=poll_interval)
        except queue.Empty:
            if cancellation.is_set():
                raise DeploymentCancelled(pending.txn_hash)
            continue
        if error is not None:
            raise error
        return receipt
