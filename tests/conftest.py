import threading
from itertools import count

import pytest
from eth_utils import to_checksum_address

from proxy_deployment.chain import ChainClient, PendingTransaction, Receipt
from proxy_deployment.config import DeploymentConfig
from proxy_deployment.ledger import DeploymentLedger

NETWORK = "testnet"

DEPLOYER = to_checksum_address("0x" + "de" * 20)
IMPLEMENTATION_ADDRESS = to_checksum_address("0x" + "aa" * 20)
PROXY_ADMIN_ADDRESS = to_checksum_address("0x" + "bb" * 20)
PROXY_ADDRESS = to_checksum_address("0x" + "cc" * 20)

CONSTRUCTOR_TYPES = {
    "Fundraising": [],
    "ProxyAdmin": [],
    "FundraisingV2": [],
    "TransparentUpgradeableProxy": ["address", "address", "bytes"],
}


class FakeChainClient(ChainClient):
    """In-memory chain: records submissions and confirms them in increasing blocks."""

    def __init__(self, network=NETWORK, fee_baseline=10, addresses=None):
        self._network = network
        self.fee_baseline = fee_baseline
        self.addresses = dict(addresses or dict())
        self.deployments = list()
        self.calls = list()
        self.fee_queries = 0
        self.fail_deploy = dict()
        self.fail_receipt = set()
        self.fail_call = None
        self.block_waits = dict()
        self._blocks = count(100)
        self._hashes = count(1)
        self._address_nonce = count(1)

    @property
    def network(self):
        return self._network

    @property
    def submissions(self):
        return len(self.deployments) + len(self.calls)

    def signer_address(self):
        return DEPLOYER

    def current_fee_baseline(self, network):
        self.fee_queries += 1
        if isinstance(self.fee_baseline, Exception):
            raise self.fee_baseline
        return self.fee_baseline

    def constructor_abi_types(self, contract_type):
        return list(CONSTRUCTOR_TYPES[contract_type])

    def _next_hash(self):
        return "0x" + format(next(self._hashes), "064x")

    def _pending(self, txn_hash, receipt_factory, failing=False, block=None):
        def _wait():
            if block is not None:
                block.wait()
            if failing:
                raise RuntimeError(f"transaction {txn_hash} reverted")
            return receipt_factory()

        return PendingTransaction(txn_hash=txn_hash, waiter=_wait)

    def deploy(self, contract_type, constructor_args, fee_bid):
        if contract_type in self.fail_deploy:
            raise self.fail_deploy[contract_type]
        self.deployments.append((contract_type, list(constructor_args), fee_bid))
        txn_hash = self._next_hash()
        address = self.addresses.get(contract_type)
        if address is None:
            address = to_checksum_address("0x" + format(next(self._address_nonce), "040x"))

        def _receipt():
            return Receipt(
                txn_hash=txn_hash, block_number=next(self._blocks), contract_address=address
            )

        return self._pending(
            txn_hash,
            _receipt,
            failing=contract_type in self.fail_receipt,
            block=self.block_waits.get(contract_type),
        )

    def call(self, address, abi_method, args, fee_bid):
        if self.fail_call is not None:
            raise self.fail_call
        self.calls.append((address, abi_method, list(args), fee_bid))
        txn_hash = self._next_hash()

        def _receipt():
            return Receipt(txn_hash=txn_hash, block_number=next(self._blocks))

        return self._pending(txn_hash, _receipt, block=self.block_waits.get(abi_method))


@pytest.fixture
def client():
    return FakeChainClient(
        addresses={
            "Fundraising": IMPLEMENTATION_ADDRESS,
            "ProxyAdmin": PROXY_ADMIN_ADDRESS,
            "TransparentUpgradeableProxy": PROXY_ADDRESS,
        }
    )


@pytest.fixture
def ledger_filepath(tmp_path):
    return tmp_path / "deployments" / "ledger.json"


@pytest.fixture
def ledger(ledger_filepath):
    return DeploymentLedger(ledger_filepath)


@pytest.fixture
def config(ledger_filepath):
    return DeploymentConfig.default(network=NETWORK, ledger_filepath=ledger_filepath)


@pytest.fixture
def cancellation():
    return threading.Event()
