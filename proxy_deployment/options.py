from pathlib import Path

import click

from proxy_deployment.types import AccountReference

config_option = click.option(
    "--config",
    "-c",
    "config_filepath",
    help="Deployment params YAML (contract types, initialize owner/admin, ledger location).",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=False,
)

ledger_option = click.option(
    "--ledger-filepath",
    "-l",
    help="Deployment ledger JSON; overrides the ledger location of the params file.",
    type=click.Path(dir_okay=False, path_type=Path),
    required=False,
)

autosign_option = click.option(
    "--autosign",
    help="Sign transactions without confirmation prompts.",
    is_flag=True,
    default=False,
)

timeout_option = click.option(
    "--timeout",
    "-t",
    help="Seconds to wait for each transaction receipt.",
    type=click.IntRange(min=1),
    default=300,
    show_default=True,
)

owner_option = click.option(
    "--owner",
    help="Owner passed to initialize (address or $deployer); defaults to the params file.",
    type=AccountReference(),
    required=False,
)

admin_option = click.option(
    "--admin",
    help="Admin passed to initialize (address or $deployer); defaults to the params file.",
    type=AccountReference(),
    required=False,
)
