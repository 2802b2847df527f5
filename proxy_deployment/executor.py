import threading
from typing import Any, Optional, Sequence

from eth_utils import to_checksum_address

from proxy_deployment.chain import ChainClient, NetworkIdentifier, wait_for_receipt
from proxy_deployment.exceptions import DeploymentCancelled, DeploymentFailedError
from proxy_deployment.ledger import DeploymentLedger, DeploymentRecord
from proxy_deployment.params import args_hash, to_json_value, validate_constructor_args


class DeploymentStepExecutor:
    """
    Deploys a single contract unless the ledger already holds a confirmed deployment
    of it with identical constructor arguments.
    """

    def __init__(
        self,
        client: ChainClient,
        ledger: DeploymentLedger,
        network: NetworkIdentifier,
        cancellation: Optional[threading.Event] = None,
    ):
        self.client = client
        self.ledger = ledger
        self.network = network
        self.cancellation = cancellation

    def execute(
        self,
        contract_name: str,
        constructor_args: Sequence[Any],
        fee_bid: int,
        contract_type: Optional[str] = None,
    ) -> DeploymentRecord:
        contract_type = contract_type or contract_name
        constructor_args = list(constructor_args)

        try:
            abi_types = self.client.constructor_abi_types(contract_type)
            validate_constructor_args(contract_type, abi_types, constructor_args)
            current_hash = args_hash(abi_types, constructor_args)
        except Exception as e:
            raise DeploymentFailedError(contract_name=contract_name, cause=e) from e

        existing = self.ledger.get(self.network, contract_name)
        if existing is not None:
            same_type = not existing.contract_type or existing.contract_type == contract_type
            if same_type and existing.args_hash == current_hash:
                print(
                    f"(i) Reusing {contract_name} at {existing.address} "
                    f"(block {existing.block_number})"
                )
                return existing
            print(
                f"(i) Superseding {contract_name} ({existing.contract_type}) "
                f"at {existing.address}; "
                f"args hash {existing.args_hash[:10]} -> {current_hash[:10]}"
            )

        if self.cancellation is not None and self.cancellation.is_set():
            raise DeploymentCancelled()

        print(f"\nDeploying {contract_name} ({contract_type}) with fee bid {fee_bid}")
        try:
            deployer = self.client.signer_address()
            pending = self.client.deploy(contract_type, constructor_args, fee_bid)
        except DeploymentCancelled:
            raise
        except Exception as e:
            raise DeploymentFailedError(contract_name=contract_name, cause=e) from e
        print(f"(i) {contract_name} deployment submitted: {pending.txn_hash}")

        try:
            receipt = wait_for_receipt(pending, cancellation=self.cancellation)
        except DeploymentCancelled:
            raise
        except Exception as e:
            raise DeploymentFailedError(contract_name=contract_name, cause=e) from e

        if not receipt.contract_address:
            raise DeploymentFailedError(
                contract_name=contract_name,
                cause=f"receipt for {receipt.txn_hash} carries no contract address",
            )

        record = DeploymentRecord(
            network=self.network,
            name=contract_name,
            address=to_checksum_address(receipt.contract_address),
            args_hash=current_hash,
            tx_hash=receipt.txn_hash,
            block_number=receipt.block_number,
            contract_type=contract_type,
            constructor_args=tuple(to_json_value(constructor_args)),
            deployer=deployer,
        )
        self.ledger.put(record)
        print(f"(i) {contract_name} contract address: {record.address}")
        return record
