import threading
from enum import Enum
from typing import Dict, List, NamedTuple, Optional

from proxy_deployment.chain import ChainClient, Receipt, wait_for_receipt
from proxy_deployment.config import DeploymentConfig
from proxy_deployment.constants import (
    IMPLEMENTATION,
    INITIALIZATION,
    INITIALIZE_SIGNATURE,
    PROXY,
    PROXY_ADMIN,
)
from proxy_deployment.exceptions import (
    DeploymentCancelled,
    DeploymentHalted,
    InitializationFailedError,
)
from proxy_deployment.executor import DeploymentStepExecutor
from proxy_deployment.fees import FeeEstimator
from proxy_deployment.ledger import DeploymentLedger, DeploymentRecord
from proxy_deployment.params import args_hash, parse_method_signature, resolve_account


class DeploymentState(Enum):
    ESTIMATING_FEE = "EstimatingFee"
    DEPLOYING_IMPLEMENTATION = "DeployingImplementation"
    DEPLOYING_PROXY_ADMIN = "DeployingProxyAdmin"
    DEPLOYING_PROXY = "DeployingProxy"
    INITIALIZING = "Initializing"
    DONE = "Done"
    FAILED = "Failed"


STEP_STATES = {
    IMPLEMENTATION: DeploymentState.DEPLOYING_IMPLEMENTATION,
    PROXY_ADMIN: DeploymentState.DEPLOYING_PROXY_ADMIN,
    PROXY: DeploymentState.DEPLOYING_PROXY,
}


class DeploymentOutcome(NamedTuple):
    """Result of a completed run."""

    network: str
    fee_bid: int
    records: Dict[str, DeploymentRecord]
    initialization: Receipt
    owner: str
    admin: str

    @property
    def proxy(self) -> DeploymentRecord:
        return self.records[PROXY]


class Orchestrator:
    """
    Runs the deployment plan against a single network, then initializes the proxy.

    Steps are strictly sequential. Confirmed deployments are recorded in the ledger,
    as is the initialization call, so a failed or cancelled run can simply be repeated:
    steps whose constructor arguments did not change are skipped.
    """

    def __init__(
        self,
        client: ChainClient,
        ledger: DeploymentLedger,
        config: DeploymentConfig,
        cancellation: Optional[threading.Event] = None,
        fee_estimator: Optional[FeeEstimator] = None,
    ):
        self.client = client
        self.ledger = ledger
        self.config = config
        self.plan = config.plan()
        self.cancellation = cancellation or threading.Event()
        self.fee_estimator = fee_estimator or FeeEstimator(client)
        self.executor = DeploymentStepExecutor(
            client=client,
            ledger=ledger,
            network=config.network,
            cancellation=self.cancellation,
        )
        self.state: Optional[DeploymentState] = None
        self.failure: Optional[DeploymentHalted] = None
        self.history: List[DeploymentState] = list()

    def _enter(self, state: DeploymentState) -> None:
        self.state = state
        self.history.append(state)
        if self.cancellation.is_set() and state is not DeploymentState.DONE:
            raise DeploymentCancelled()

    def cancel(self) -> None:
        """Abandons the current confirmation wait; submitted transactions are not recalled."""
        self.cancellation.set()

    def run(self) -> DeploymentOutcome:
        self.state, self.failure, self.history = None, None, list()
        try:
            return self._run()
        except Exception as e:
            failed_state = self.state or DeploymentState.ESTIMATING_FEE
            self.failure = DeploymentHalted(state=failed_state, cause=e)
            self.state = DeploymentState.FAILED
            self.history.append(DeploymentState.FAILED)
            raise self.failure from e

    def _run(self) -> DeploymentOutcome:
        network = self.config.network

        self._enter(DeploymentState.ESTIMATING_FEE)
        fee_bid = self.fee_estimator.estimate_fee_bid(network)

        addresses, records = dict(), dict()
        for step in self.plan:
            self._enter(STEP_STATES[step.name])
            constructor_args = self.plan.resolve(step, addresses)
            record = self.executor.execute(
                contract_name=step.name,
                constructor_args=constructor_args,
                fee_bid=fee_bid,
                contract_type=step.contract_type,
            )
            addresses[step.name] = record.address
            records[step.name] = record

        self._enter(DeploymentState.INITIALIZING)
        signer = self.client.signer_address()
        owner = resolve_account(self.config.owner, signer)
        admin = resolve_account(self.config.admin, signer)
        receipt = self._initialize(records[PROXY].address, owner, admin, fee_bid, signer)

        self._enter(DeploymentState.DONE)
        return DeploymentOutcome(
            network=network,
            fee_bid=fee_bid,
            records=records,
            initialization=receipt,
            owner=owner,
            admin=admin,
        )

    def _initialize(
        self, proxy_address: str, owner: str, admin: str, fee_bid: int, signer: str
    ) -> Receipt:
        """
        Calls ``initialize(owner, admin)`` through the proxy, once per proxy and arguments.

        A confirmed initialization is recorded in the ledger; repeating it against a
        contract that guards re-initialization would revert. Whether a retry after an
        unconfirmed initialization is safe is up to the contract and the operator.
        """
        network = self.config.network
        _, input_types = parse_method_signature(INITIALIZE_SIGNATURE)
        call_hash = args_hash(["address", *input_types], [proxy_address, owner, admin])
        existing = self.ledger.get(network, INITIALIZATION)
        if existing is not None and existing.args_hash == call_hash:
            print(
                f"(i) Proxy at {proxy_address} already initialized "
                f"in block {existing.block_number}"
            )
            return Receipt(txn_hash=existing.tx_hash, block_number=existing.block_number)

        print(f"\nInitializing proxy at {proxy_address} with owner={owner}, admin={admin}")
        try:
            pending = self.client.call(proxy_address, INITIALIZE_SIGNATURE, [owner, admin], fee_bid)
            print(f"(i) Initialization submitted: {pending.txn_hash}")
            receipt = wait_for_receipt(pending, cancellation=self.cancellation)
        except DeploymentCancelled:
            raise
        except Exception as e:
            raise InitializationFailedError(address=proxy_address, cause=e) from e

        self.ledger.put(
            DeploymentRecord(
                network=network,
                name=INITIALIZATION,
                address=proxy_address,
                args_hash=call_hash,
                tx_hash=receipt.txn_hash,
                block_number=receipt.block_number,
                contract_type=INITIALIZE_SIGNATURE,
                constructor_args=(owner, admin),
                deployer=signer,
            )
        )
        print(f"(i) Proxy initialized successfully in block {receipt.block_number}.")
        return receipt
