from collections import OrderedDict

from eth_utils import is_same_address

from proxy_deployment.exceptions import DeploymentAborted

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def _declined(prompt: str) -> bool:
    answer = input(prompt)
    return answer.lower().strip() == "n"


def _confirm_deployment(contract_name: str) -> None:
    """Asks the user to confirm the deployment of a single contract."""
    if _declined(f"Deploy {contract_name} Y/N? "):
        print("Aborting deployment!")
        raise DeploymentAborted(f"deployment of {contract_name} declined")


def _continue() -> None:
    """Asks the user to continue."""
    if _declined("Continue Y/N? "):
        print("Aborting deployment!")
        raise DeploymentAborted("declined to continue")


def _confirm_zero_address() -> None:
    if _declined("Zero Address detected for deployment parameter; Continue? Y/N? "):
        print("Aborting deployment!")
        raise DeploymentAborted("zero address parameter declined")


def _is_zero_address(value) -> bool:
    return isinstance(value, str) and len(value) == 42 and is_same_address(value, ZERO_ADDRESS)


def _confirm_resolution(resolved_params: OrderedDict, contract_name: str) -> None:
    """Asks the user to confirm the resolved constructor parameters for a single contract."""
    if len(resolved_params) == 0:
        print(f"\n(i) No constructor parameters for {contract_name}")
        _confirm_deployment(contract_name)
        return

    print(f"\nConstructor parameters for {contract_name}")
    contains_zero_address = False
    for name, resolved_value in resolved_params.items():
        print(f"\t{name}={resolved_value}")
        if not contains_zero_address:
            contains_zero_address = _is_zero_address(resolved_value)
    _confirm_deployment(contract_name)
    if contains_zero_address:
        _confirm_zero_address()
