import json
import os
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from proxy_deployment.chain import NetworkIdentifier
from proxy_deployment.exceptions import LedgerError

ContractName = str

STANDARD_LEDGER_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class DeploymentRecord(NamedTuple):
    """A confirmed deployment of a single plan step on a single network."""

    network: NetworkIdentifier
    name: ContractName
    address: ChecksumAddress
    args_hash: str
    tx_hash: str
    block_number: int
    contract_type: str = ""
    constructor_args: Tuple[Any, ...] = ()
    deployer: str = ""


def _record_from_json(network: str, name: str, artifacts: Dict[str, Any]) -> DeploymentRecord:
    return DeploymentRecord(
        network=network,
        name=name,
        address=to_checksum_address(artifacts["address"]),
        args_hash=artifacts["args_hash"],
        tx_hash=artifacts["tx_hash"],
        block_number=int(artifacts["block_number"]),
        contract_type=artifacts.get("contract_type", ""),
        constructor_args=tuple(artifacts.get("constructor_args", [])),
        deployer=artifacts.get("deployer", ""),
    )


def read_ledger(filepath: Path) -> List[DeploymentRecord]:
    """Reads all deployment records from a ledger file."""
    try:
        with open(filepath, "r") as file:
            data = json.load(file)
    except json.JSONDecodeError as e:
        raise LedgerError(f"Ledger at {filepath} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise LedgerError(f"Ledger at {filepath} must be a mapping of networks.")

    records = list()
    for network, entries in data.items():
        if not isinstance(entries, dict):
            raise LedgerError(f"Malformed ledger entries for network {network}.")
        for name, artifacts in entries.items():
            try:
                records.append(_record_from_json(network, name, artifacts))
            except (KeyError, TypeError, ValueError) as e:
                raise LedgerError(f"Malformed ledger entry {network}/{name}: {e!r}") from e
    return records


def write_ledger(records: List[DeploymentRecord], filepath: Path) -> Path:
    """Atomically writes deployment records to a ledger file."""
    records = sorted(records, key=lambda r: (r.network, r.name))

    data = defaultdict(dict)
    for record in records:
        data[record.network][record.name] = {
            "address": record.address,
            "args_hash": record.args_hash,
            "tx_hash": record.tx_hash,
            "block_number": int(record.block_number),
            "contract_type": record.contract_type,
            "constructor_args": list(record.constructor_args),
            "deployer": record.deployer,
        }

    filepath.parent.mkdir(parents=True, exist_ok=True)
    temp_filepath = filepath.with_suffix(".temp.json")
    with open(temp_filepath, "w") as file:
        json.dump(data, file, **STANDARD_LEDGER_JSON_FORMAT)
        file.flush()
        os.fsync(file.fileno())
    os.replace(temp_filepath, filepath)
    return filepath


class DeploymentLedger:
    """
    Persisted record of confirmed deployments keyed by (network, contract name).

    Writes go straight to disk, and reads are served from the same in-memory view,
    so a lookup after a ``put`` always observes it. A single writer per key is assumed.
    """

    def __init__(self, filepath: Path):
        self.filepath = Path(filepath)
        self._records: Dict[Tuple[NetworkIdentifier, ContractName], DeploymentRecord] = dict()
        if self.filepath.exists():
            for record in read_ledger(self.filepath):
                self._records[(record.network, record.name)] = record

    def get(self, network: NetworkIdentifier, name: ContractName) -> Optional[DeploymentRecord]:
        return self._records.get((network, name))

    def put(self, record: DeploymentRecord) -> None:
        """Upserts a record; an existing record for the same key is replaced, not merged."""
        records = dict(self._records)
        records[(record.network, record.name)] = record
        write_ledger(records=list(records.values()), filepath=self.filepath)
        self._records = records

    def records(self, network: Optional[NetworkIdentifier] = None) -> List[DeploymentRecord]:
        records = [r for r in self._records.values() if network is None or r.network == network]
        return sorted(records, key=lambda r: (r.network, r.block_number, r.name))

    def __len__(self):
        return len(self._records)
