import threading
from collections import OrderedDict
from typing import Any, List, Optional, Sequence

from ape import Contract, networks, project
from ape.api import AccountAPI, TransactionAPI
from ape.contracts import ContractContainer
from ape.exceptions import SignatureError
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address, to_hex

from proxy_deployment.chain import ChainClient, NetworkIdentifier, PendingTransaction, Receipt
from proxy_deployment.confirm import _confirm_resolution, _continue
from proxy_deployment.exceptions import DeploymentCancelled
from proxy_deployment.params import method_abi, parse_method_signature


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise ValueError(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            contract_container = getattr(dependency_api, contract)
            return contract_container
        except AttributeError:
            continue
    raise ValueError(f"No contract found with name '{contract}'.")


def get_contract_container(contract: str) -> ContractContainer:
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        # not in root project; check dependencies
        contract_container = _get_dependency_contract_container(contract)

    return contract_container


def network_identifier() -> NetworkIdentifier:
    """Returns the identifier of the connected network, e.g. ``ethereum:sepolia``."""
    network = networks.provider.network
    return f"{network.ecosystem.name}:{network.name}"


class ApeChainClient(ChainClient):
    """
    Chain client backed by the connected ape provider and an ape account.

    Submission and confirmation are separated: transactions are signed and broadcast
    immediately, and the receipt is only awaited on ``wait_for_receipt``. A cancellation
    requested while a confirmation prompt is open stops the transaction before signing.
    """

    def __init__(
        self,
        account: AccountAPI,
        autosign: bool = False,
        timeout: Optional[int] = None,
        cancellation: Optional[threading.Event] = None,
    ):
        self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._autosign = autosign
        if hasattr(account, "set_autosign"):
            account.set_autosign(autosign)
        self.timeout = timeout
        self.cancellation = cancellation

    @property
    def network(self) -> NetworkIdentifier:
        return network_identifier()

    def signer_address(self) -> ChecksumAddress:
        return to_checksum_address(self._account.address)

    def current_fee_baseline(self, network: NetworkIdentifier) -> int:
        if network != self.network:
            raise ValueError(f"Connected to {self.network}, not {network}")
        return networks.provider.priority_fee

    def constructor_abi_types(self, contract_type: str) -> List[str]:
        container = get_contract_container(contract_type)
        return [abi_input.type for abi_input in container.constructor.abi.inputs]

    def _check_cancelled(self) -> None:
        if self.cancellation is not None and self.cancellation.is_set():
            raise DeploymentCancelled()

    def _send(self, txn: TransactionAPI) -> PendingTransaction:
        self._check_cancelled()
        txn = self._account.prepare_transaction(txn)
        signed_txn = self._account.sign_transaction(txn)
        if signed_txn is None:
            raise SignatureError("The transaction was not signed.")
        txn_hash = to_hex(
            networks.provider.web3.eth.send_raw_transaction(signed_txn.serialize_transaction())
        )

        def _wait() -> Receipt:
            receipt = networks.provider.get_receipt(txn_hash, timeout=self.timeout)
            receipt.raise_for_status()
            contract_address = receipt.contract_address
            if contract_address:
                contract_address = to_checksum_address(contract_address)
            return Receipt(
                txn_hash=txn_hash,
                block_number=receipt.block_number,
                contract_address=contract_address,
            )

        return PendingTransaction(txn_hash=txn_hash, waiter=_wait)

    def deploy(
        self, contract_type: str, constructor_args: Sequence[Any], fee_bid: int
    ) -> PendingTransaction:
        container = get_contract_container(contract_type)
        if not self._autosign:
            names = [abi_input.name for abi_input in container.constructor.abi.inputs]
            _confirm_resolution(OrderedDict(zip(names, constructor_args)), contract_type)

        txn = container.constructor.serialize_transaction(
            *constructor_args,
            sender=self._account,
            max_priority_fee=fee_bid,
        )
        return self._send(txn)

    def call(
        self, address: ChecksumAddress, abi_method: str, args: Sequence[Any], fee_bid: int
    ) -> PendingTransaction:
        method_name, _ = parse_method_signature(abi_method)
        contract = Contract(address, abi=[method_abi(abi_method)])
        pretty_args = "\n\t".join(str(arg) for arg in args)
        print(f"\nTransacting [{address[:10]}].{abi_method} with arguments:\n\t{pretty_args}")
        if not self._autosign:
            _continue()

        handler = getattr(contract, method_name)
        txn = handler.as_transaction(*args, sender=self._account, max_priority_fee=fee_bid)
        return self._send(txn)
