import json
from pathlib import Path
from typing import Dict, List, NamedTuple

from ape.api import ReceiptAPI
from ape.contracts import ContractInstance
from eth_typing import ABI, ChecksumAddress
from eth_utils import to_checksum_address

from deployment.utils import _load_json, get_contract_container

JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class RegistryEntry(NamedTuple):
    """A contract written by a deployment run, keyed by chain id and name in the registry."""

    chain_id: int
    name: str
    address: ChecksumAddress
    abi: ABI
    tx_hash: str
    block_number: int
    deployer: str

    @classmethod
    def from_receipt(cls, instance: ContractInstance, receipt: ReceiptAPI) -> "RegistryEntry":
        """
        Builds an entry from the transaction that put `instance` in place:
        its creation for new contracts, the upgrade call for an upgraded proxy.
        """
        return cls(
            chain_id=receipt.chain_id,
            name=instance.contract_type.name,
            address=to_checksum_address(instance.address),
            abi=[item.model_dump(mode="json", by_alias=True) for item in instance.contract_type.abi],
            tx_hash=str(receipt.txn_hash),
            block_number=receipt.block_number,
            deployer=receipt.transaction.sender,
        )

    def to_json(self) -> Dict:
        return {
            "address": self.address,
            "abi": sorted(self.abi, key=lambda item: (item["type"], item.get("name", ""))),
            "tx_hash": self.tx_hash,
            "block_number": int(self.block_number),
            "deployer": self.deployer,
        }


def _free_filepath(filepath: Path) -> Path:
    """Returns `filepath`, or a numbered sibling of it when that name is taken."""
    candidate, counter = filepath, 1
    while candidate.exists():
        candidate = filepath.with_name(f"{filepath.stem}.{counter}{filepath.suffix}")
        counter += 1
    return candidate


def write_registry(entries: List[RegistryEntry], filepath: Path) -> Path:
    """Writes the entries of one run to a new registry file and returns its path."""
    if not entries:
        print("No entries provided.")
        return filepath

    data: Dict[str, Dict] = {}
    for entry in sorted(entries, key=lambda entry: (entry.chain_id, entry.name)):
        data.setdefault(str(entry.chain_id), {})[entry.name] = entry.to_json()

    filepath.parent.mkdir(parents=True, exist_ok=True)
    filepath = _free_filepath(filepath)
    with open(filepath, "w") as file:
        json.dump(data, file, **JSON_FORMAT)
    return filepath


def read_registry(filepath: Path) -> List[RegistryEntry]:
    entries = []
    for chain_id, contracts in _load_json(filepath).items():
        for name, artifact in contracts.items():
            entries.append(
                RegistryEntry(
                    chain_id=int(chain_id),
                    name=name,
                    address=artifact["address"],
                    abi=artifact["abi"],
                    tx_hash=artifact["tx_hash"],
                    block_number=artifact["block_number"],
                    deployer=artifact["deployer"],
                )
            )
    return entries


def contracts_from_registry(filepath: Path, chain_id: int) -> Dict[str, ContractInstance]:
    """Returns the registry's contracts on `chain_id` as instances, by name."""
    return {
        entry.name: get_contract_container(entry.name).at(entry.address)
        for entry in read_registry(filepath)
        if entry.chain_id == chain_id
    }
