import click

from proxy_deployment.config import DEPLOYER_VARIABLE, _validate_account
from proxy_deployment.exceptions import DeploymentConfigError


class AccountReference(click.ParamType):
    """
    An account passed to ``initialize``: a checksummed address, or ``$deployer``
    for the signing account, resolved once the signer is known.
    """

    name = "account"

    def convert(self, value, param, ctx):
        try:
            return _validate_account(param.name if param else self.name, value)
        except DeploymentConfigError as e:
            self.fail(f"{e} (expected an address or {DEPLOYER_VARIABLE})", param, ctx)
