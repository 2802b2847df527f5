from decimal import ROUND_CEILING, Decimal

from eth_utils import is_hexstr, to_int

from proxy_deployment.chain import ChainClient, NetworkIdentifier
from proxy_deployment.constants import FEE_SAFETY_MULTIPLIER
from proxy_deployment.exceptions import FeeQueryError


def _to_baseline(value) -> int:
    """Coerces a raw priority fee reading (int, decimal or hex string) into an integer."""
    if isinstance(value, bool):
        raise ValueError(f"non-numeric priority fee {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip()
        if is_hexstr(value) and value.lower().startswith("0x"):
            return to_int(hexstr=value)
        if value.isdigit():
            return int(value)
    raise ValueError(f"non-numeric priority fee {value!r}")


def apply_safety_multiplier(baseline: int, multiplier: Decimal = FEE_SAFETY_MULTIPLIER) -> int:
    """Returns ceil(baseline * multiplier) computed without float rounding."""
    bid = (Decimal(baseline) * multiplier).to_integral_value(rounding=ROUND_CEILING)
    return int(bid)


class FeeEstimator:
    """Computes the priority fee bid used for every transaction of a run."""

    def __init__(self, client: ChainClient, multiplier: Decimal = FEE_SAFETY_MULTIPLIER):
        self.client = client
        self.multiplier = multiplier

    def estimate_fee_bid(self, network: NetworkIdentifier) -> int:
        try:
            raw_baseline = self.client.current_fee_baseline(network)
        except Exception as e:
            raise FeeQueryError(network=network, cause=e) from e

        try:
            baseline = _to_baseline(raw_baseline)
        except ValueError as e:
            raise FeeQueryError(network=network, cause=e) from e
        if baseline < 0:
            raise FeeQueryError(network=network, cause=f"negative priority fee {baseline}")

        fee_bid = apply_safety_multiplier(baseline, self.multiplier)
        print(f"(i) now {network} maxPriorityFeePerGas is: {fee_bid} (baseline {baseline})")
        return fee_bid
