#!/usr/bin/python3
from itertools import groupby
from pathlib import Path
from typing import List, Optional

import click

from proxy_deployment.constants import DEFAULT_LEDGER_FILENAME, LEDGER_DIR
from proxy_deployment.ledger import DeploymentLedger, DeploymentRecord


def _display_records(records: List[DeploymentRecord]) -> None:
    """Display ledger records grouped by network."""
    if not records:
        click.secho("No deployments recorded.", fg="yellow")
        return
    for network, network_records in groupby(records, key=lambda r: r.network):
        click.secho(f"\n{network}", fg="green")
        for index, record in enumerate(network_records, start=1):
            click.secho(
                f"    {index}. {record.name} ({record.contract_type}) {record.address} "
                f"[block {record.block_number}]",
                fg="cyan",
            )


@click.command(name="list-deployments")
@click.option(
    "--network",
    "-n",
    help="Network identifier, e.g. ethereum:sepolia. Lists all networks when omitted.",
    type=str,
    required=False,
)
@click.option(
    "--ledger-filepath",
    "-l",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=False,
)
def cli(network: Optional[str], ledger_filepath: Optional[Path]):
    """List the contracts recorded in the deployment ledger."""
    ledger = DeploymentLedger(ledger_filepath or LEDGER_DIR / DEFAULT_LEDGER_FILENAME)
    _display_records(ledger.records(network=network))


if __name__ == "__main__":
    cli()
