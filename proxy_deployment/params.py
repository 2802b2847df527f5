import re
import typing
from typing import Any, Dict, List, NamedTuple, Sequence

from eth_abi import encode, is_encodable
from eth_utils import keccak, to_hex

from proxy_deployment.constants import (
    DEFAULT_CONTRACT_TYPES,
    DEPLOYER_INDICATOR,
    EMPTY_BYTES,
    IMPLEMENTATION,
    PROXY,
    PROXY_ADMIN,
)
from proxy_deployment.exceptions import ConstructorArgumentsInvalid, DeploymentConfigError

VARIABLE_PREFIX = "$"

_METHOD_SIGNATURE = re.compile(r"^(?P<name>[A-Za-z_][A-Za-z0-9_]*)\((?P<types>[^()]*)\)$")


def is_variable(param: Any) -> bool:
    """Returns True if the param is a variable."""
    return isinstance(param, str) and param.startswith(VARIABLE_PREFIX)


def _variable_name(param: str) -> str:
    return param[len(VARIABLE_PREFIX) :]


class DeploymentStep(NamedTuple):
    """
    A single deployment of the plan. ``constructor_args`` is a template;
    ``$Name`` entries refer to the address resolved by an earlier step.
    """

    name: str
    contract_type: str
    constructor_args: Sequence[Any] = ()


class DeploymentPlan:
    """Fixed, ordered sequence of deployments: implementation, proxy admin, proxy."""

    def __init__(self, steps: Sequence[DeploymentStep]):
        self.steps = list(steps)
        self._validate()

    def _validate(self) -> None:
        seen = list()
        for step in self.steps:
            if step.name in seen:
                raise DeploymentConfigError(f"Duplicate deployment step {step.name}")
            for param in step.constructor_args:
                if is_variable(param) and _variable_name(param) not in seen:
                    raise DeploymentConfigError(
                        f"Variable {param} of {step.name} is not resolvable; "
                        f"it must name an earlier step ({', '.join(seen) or 'none'})"
                    )
            seen.append(step.name)

    @classmethod
    def for_contract_types(cls, contract_types: Dict[str, str] = None) -> "DeploymentPlan":
        contract_types = {**DEFAULT_CONTRACT_TYPES, **(contract_types or dict())}
        return cls(
            steps=[
                DeploymentStep(IMPLEMENTATION, contract_types[IMPLEMENTATION]),
                DeploymentStep(PROXY_ADMIN, contract_types[PROXY_ADMIN]),
                DeploymentStep(
                    PROXY,
                    contract_types[PROXY],
                    (f"${IMPLEMENTATION}", f"${PROXY_ADMIN}", EMPTY_BYTES),
                ),
            ]
        )

    def resolve(self, step: DeploymentStep, addresses: Dict[str, str]) -> List[Any]:
        """Resolves a step's constructor arguments using addresses resolved earlier in the run."""
        resolved = list()
        for param in step.constructor_args:
            if is_variable(param):
                try:
                    param = addresses[_variable_name(param)]
                except KeyError:
                    raise DeploymentConfigError(
                        f"{step.name} requires {param}, which has not been deployed in this run"
                    )
            resolved.append(param)
        return resolved

    def __iter__(self):
        return iter(self.steps)

    def __len__(self):
        return len(self.steps)


def resolve_account(value: str, signer_address: str) -> str:
    """Resolves the special ``$deployer`` variable; other values are returned as-is."""
    if is_variable(value):
        if _variable_name(value) != DEPLOYER_INDICATOR:
            raise DeploymentConfigError(f"Unknown account variable {value}")
        return signer_address
    return value


def validate_constructor_args(
    contract_name: str, abi_types: Sequence[str], args: Sequence[Any]
) -> None:
    """Validates the constructor arguments against the constructor ABI types."""
    if len(args) != len(abi_types):
        raise ConstructorArgumentsInvalid(
            f"Constructor parameters length mismatch - "
            f"{contract_name} ABI requires {len(abi_types)}, Got {len(args)}."
        )
    for position, (abi_type, value) in enumerate(zip(abi_types, args)):
        if not is_encodable(abi_type, value):
            raise ConstructorArgumentsInvalid(
                f"{contract_name} constructor parameter at position {position} has a value "
                f"{value!r} whose type does not match expected ABI type '{abi_type}'"
            )


def args_hash(abi_types: Sequence[str], args: Sequence[Any]) -> str:
    """Returns the keccak256 hash of the ABI-encoded constructor arguments."""
    return to_hex(keccak(encode(list(abi_types), list(args))))


def to_json_value(value: Any) -> Any:
    """Converts an argument into a JSON-serializable value (bytes as 0x-prefixed hex)."""
    if isinstance(value, (bytes, bytearray)):
        return to_hex(bytes(value))
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    return value


def parse_method_signature(signature: str) -> typing.Tuple[str, List[str]]:
    """Splits ``initialize(address,address)`` into its name and input types."""
    match = _METHOD_SIGNATURE.match(signature.replace(" ", ""))
    if not match:
        raise ValueError(f"Invalid method signature '{signature}'")
    types = match.group("types")
    return match.group("name"), types.split(",") if types else []


def method_abi(signature: str) -> Dict[str, Any]:
    """Builds a minimal JSON ABI entry for a non-payable method without outputs."""
    name, types = parse_method_signature(signature)
    return {
        "type": "function",
        "name": name,
        "stateMutability": "nonpayable",
        "inputs": [{"name": f"arg{i}", "type": t} for i, t in enumerate(types)],
        "outputs": [],
    }
