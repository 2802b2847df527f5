import signal
import threading
from typing import Iterable

from proxy_deployment.config import DeploymentConfig
from proxy_deployment.constants import IMPLEMENTATION, PROXY, PROXY_ADMIN
from proxy_deployment.exceptions import DeploymentHalted
from proxy_deployment.orchestrator import DeploymentOutcome, Orchestrator

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

CANCELLATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def install_cancellation_handler(
    cancellation: threading.Event, signals: Iterable[signal.Signals] = CANCELLATION_SIGNALS
) -> None:
    """Sets the cancellation event when the process receives one of ``signals``."""

    def _handler(signum, frame):
        print(f"\n(!) Received {signal.Signals(signum).name}; cancelling after current wait.")
        cancellation.set()

    for signum in signals:
        signal.signal(signum, _handler)


def print_deployment_info(signer: str, config: DeploymentConfig) -> None:
    print(
        f"Deployment: {config.name}",
        f"Account: {signer}",
        f"Network: {config.network}",
        f"Ledger: {config.ledger_filepath}",
        f"Implementation: {config.contract_types[IMPLEMENTATION]}",
        f"Owner: {config.owner}",
        f"Admin: {config.admin}",
        sep="\n",
    )


def print_outcome(outcome: DeploymentOutcome) -> None:
    print(f"\nDeployment on {outcome.network} complete (fee bid {outcome.fee_bid})")
    for name in (IMPLEMENTATION, PROXY_ADMIN, PROXY):
        record = outcome.records[name]
        print(f"\t{name} ({record.contract_type}): {record.address}")
    initialization = outcome.initialization
    print(
        f"\tInitialization: {initialization.txn_hash} "
        f"confirmed in block {initialization.block_number}"
    )


def print_failure(failure: DeploymentHalted) -> None:
    print(f"\n(!) Deployment failed at {failure.state.value}: {failure.cause}")
    print("(i) Confirmed deployments are kept in the ledger; re-run to resume.")


def run_deployment(orchestrator: Orchestrator) -> int:
    """Runs the orchestrator and reports the outcome; returns the process exit code."""
    try:
        outcome = orchestrator.run()
    except DeploymentHalted as failure:
        print_failure(failure)
        return EXIT_FAILURE
    print_outcome(outcome)
    return EXIT_SUCCESS
