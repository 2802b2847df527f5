from pathlib import Path
from typing import Any, Dict, NamedTuple, Optional

import yaml
from eth_utils import is_address, to_checksum_address

from proxy_deployment.chain import NetworkIdentifier
from proxy_deployment.constants import (
    DEFAULT_CONTRACT_TYPES,
    DEFAULT_LEDGER_FILENAME,
    DEPLOYER_INDICATOR,
    IMPLEMENTATION,
    LEDGER_DIR,
    PROXY,
    PROXY_ADMIN,
)
from proxy_deployment.exceptions import DeploymentConfigError
from proxy_deployment.params import VARIABLE_PREFIX, DeploymentPlan, is_variable

DEPLOYER_VARIABLE = f"{VARIABLE_PREFIX}{DEPLOYER_INDICATOR}"

_CONTRACT_KEYS = {
    "implementation": IMPLEMENTATION,
    "proxy_admin": PROXY_ADMIN,
    "proxy": PROXY,
}


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file) or dict()


def _section(config: Dict, name: str) -> Dict:
    section = config.get(name) or dict()
    if not isinstance(section, dict):
        raise DeploymentConfigError(f"'{name}' must be a mapping in the deployment config.")
    return section


def _validate_account(name: str, value: Any) -> str:
    if is_variable(value):
        if value != DEPLOYER_VARIABLE:
            raise DeploymentConfigError(f"Unknown variable {value} for '{name}'.")
        return value
    if not isinstance(value, str) or not is_address(value):
        raise DeploymentConfigError(f"'{name}' is not a valid address: {value!r}")
    return to_checksum_address(value)


class DeploymentConfig(NamedTuple):
    """Explicit inputs of a deployment run."""

    network: NetworkIdentifier
    contract_types: Dict[str, str]
    owner: str = DEPLOYER_VARIABLE
    admin: str = DEPLOYER_VARIABLE
    ledger_filepath: Path = LEDGER_DIR / DEFAULT_LEDGER_FILENAME
    name: str = "fundraising"

    @classmethod
    def default(cls, network: NetworkIdentifier, **overrides) -> "DeploymentConfig":
        config = cls(network=network, contract_types=dict(DEFAULT_CONTRACT_TYPES))
        return config._replace(**overrides)

    @classmethod
    def from_dict(cls, config: Dict, network: NetworkIdentifier) -> "DeploymentConfig":
        if not isinstance(config, dict):
            raise DeploymentConfigError("Malformed deployment config; expected a mapping.")

        deployment = _section(config, "deployment")
        config_network = deployment.get("network")
        if config_network and config_network != network:
            raise DeploymentConfigError(
                f"network in params file ({config_network}) does not match "
                f"the connected network ({network})."
            )

        contract_types = dict(DEFAULT_CONTRACT_TYPES)
        for key, value in _section(config, "contracts").items():
            if key not in _CONTRACT_KEYS:
                raise DeploymentConfigError(
                    f"Unknown contract '{key}'; expected one of {', '.join(_CONTRACT_KEYS)}."
                )
            contract_types[_CONTRACT_KEYS[key]] = str(value)

        initialize = _section(config, "initialize")
        owner = _validate_account("owner", initialize.get("owner", DEPLOYER_VARIABLE))
        admin = _validate_account("admin", initialize.get("admin", DEPLOYER_VARIABLE))

        ledger = _section(config, "ledger")
        ledger_dir = Path(ledger.get("dir", LEDGER_DIR))
        ledger_filepath = ledger_dir / ledger.get("filename", DEFAULT_LEDGER_FILENAME)

        return cls(
            network=network,
            contract_types=contract_types,
            owner=owner,
            admin=admin,
            ledger_filepath=ledger_filepath,
            name=deployment.get("name", "fundraising"),
        )

    @classmethod
    def from_yaml(cls, filepath: Path, network: NetworkIdentifier) -> "DeploymentConfig":
        return cls.from_dict(_load_yaml(filepath), network=network)

    def plan(self) -> DeploymentPlan:
        return DeploymentPlan.for_contract_types(self.contract_types)

    def with_ledger(self, ledger_filepath: Optional[Path]) -> "DeploymentConfig":
        if ledger_filepath is None:
            return self
        return self._replace(ledger_filepath=Path(ledger_filepath))
