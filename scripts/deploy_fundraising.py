#!/usr/bin/python3
import sys
import threading

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from proxy_deployment.config import DeploymentConfig
from proxy_deployment.confirm import _continue
from proxy_deployment.exceptions import DeploymentAborted
from proxy_deployment.ledger import DeploymentLedger
from proxy_deployment.options import (
    admin_option,
    autosign_option,
    config_option,
    ledger_option,
    owner_option,
    timeout_option,
)
from proxy_deployment.orchestrator import Orchestrator
from proxy_deployment.provider import ApeChainClient, network_identifier
from proxy_deployment.runner import (
    EXIT_FAILURE,
    install_cancellation_handler,
    print_deployment_info,
    run_deployment,
)


@click.command(cls=ConnectedProviderCommand, name="deploy-fundraising")
@account_option()
@network_option(required=True)
@config_option
@ledger_option
@owner_option
@admin_option
@autosign_option
@timeout_option
def cli(network, account, config_filepath, ledger_filepath, owner, admin, autosign, timeout):
    """
    Deploys the implementation, ProxyAdmin and TransparentUpgradeableProxy contracts,
    then initializes the implementation through the proxy.

    ape run deploy_fundraising --network ethereum:sepolia:infura --account <ALIAS>

    Contracts already recorded in the ledger with identical constructor arguments
    are reused, so an interrupted deployment is resumed by running the command again.
    """
    connected_network = network_identifier()
    if config_filepath:
        config = DeploymentConfig.from_yaml(filepath=config_filepath, network=connected_network)
    else:
        config = DeploymentConfig.default(network=connected_network)
    config = config.with_ledger(ledger_filepath)
    if owner:
        config = config._replace(owner=owner)
    if admin:
        config = config._replace(admin=admin)

    cancellation = threading.Event()
    client = ApeChainClient(
        account=account, autosign=autosign, timeout=timeout, cancellation=cancellation
    )
    print_deployment_info(client.signer_address(), config)
    if not autosign:
        try:
            _continue()
        except DeploymentAborted:
            sys.exit(EXIT_FAILURE)

    install_cancellation_handler(cancellation)
    orchestrator = Orchestrator(
        client=client,
        ledger=DeploymentLedger(config.ledger_filepath),
        config=config,
        cancellation=cancellation,
    )
    sys.exit(run_deployment(orchestrator))


if __name__ == "__main__":
    cli()
