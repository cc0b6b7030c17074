import json
from types import SimpleNamespace

import pytest

from deployment import registry
from deployment.registry import RegistryEntry, contracts_from_registry, read_registry, write_registry

from .conftest import CONTRACT_ADDRESS, DEPLOYER_ADDRESS, PROXY_ADDRESS, FakeContainer, make_receipt

STORE_ABI = {"type": "function", "name": "store", "inputs": [], "outputs": []}
RETRIEVE_ABI = {"type": "function", "name": "retrieve", "inputs": [], "outputs": []}
CONSTRUCTOR_ABI = {"type": "constructor", "inputs": []}


def make_entry(name, address, chain_id=17000, abi=None):
    return RegistryEntry(
        chain_id=chain_id,
        name=name,
        address=address,
        abi=abi or [STORE_ABI],
        tx_hash="0x" + "ab" * 32,
        block_number=123,
        deployer=DEPLOYER_ADDRESS,
    )


def test_write_and_read_registry(tmp_path):
    filepath = tmp_path / "artifacts" / "staking-dapp-17000.json"
    entries = [
        make_entry("TokenICO", CONTRACT_ADDRESS),
        make_entry("ERC20", PROXY_ADDRESS, abi=[STORE_ABI, RETRIEVE_ABI, CONSTRUCTOR_ABI]),
    ]
    assert write_registry(entries=entries, filepath=filepath) == filepath

    data = json.loads(filepath.read_text())
    assert list(data) == ["17000"]
    assert list(data["17000"]) == ["ERC20", "TokenICO"]
    erc20_abi = data["17000"]["ERC20"]["abi"]
    assert [item["type"] for item in erc20_abi] == ["constructor", "function", "function"]
    assert [item.get("name") for item in erc20_abi[1:]] == ["retrieve", "store"]

    entries = read_registry(filepath)
    assert {entry.name: entry.address for entry in entries} == {
        "ERC20": PROXY_ADDRESS,
        "TokenICO": CONTRACT_ADDRESS,
    }
    assert all(entry.chain_id == 17000 for entry in entries)


def test_no_entries_writes_nothing(tmp_path, capsys):
    filepath = tmp_path / "empty.json"
    assert write_registry(entries=[], filepath=filepath) == filepath
    assert not filepath.exists()
    assert "No entries provided." in capsys.readouterr().out


def test_existing_registry_is_never_overwritten(tmp_path):
    filepath = tmp_path / "nft-market-17000-20240101T000000Z.json"
    write_registry(entries=[make_entry("Lock", CONTRACT_ADDRESS)], filepath=filepath)
    second = write_registry(entries=[make_entry("Lock", PROXY_ADDRESS)], filepath=filepath)

    assert second == tmp_path / "nft-market-17000-20240101T000000Z.1.json"
    assert json.loads(filepath.read_text())["17000"]["Lock"]["address"] == CONTRACT_ADDRESS
    assert json.loads(second.read_text())["17000"]["Lock"]["address"] == PROXY_ADDRESS


class FakeAbi:
    def __init__(self, data):
        self.data = data

    def model_dump(self, mode="json", by_alias=True):
        return dict(self.data)


def test_entry_from_receipt():
    instance = SimpleNamespace(
        address=PROXY_ADDRESS.lower(),
        contract_type=SimpleNamespace(name="MeinkampfV2", abi=[FakeAbi(STORE_ABI)]),
    )
    receipt = make_receipt(txn_hash="0x" + "cd" * 32, block_number=42)

    entry = RegistryEntry.from_receipt(instance, receipt)

    assert entry.to_json() == {
        "address": PROXY_ADDRESS,
        "abi": [STORE_ABI],
        "tx_hash": "0x" + "cd" * 32,
        "block_number": 42,
        "deployer": DEPLOYER_ADDRESS,
    }
    assert (entry.chain_id, entry.name) == (17000, "MeinkampfV2")


@pytest.fixture
def lock_container(monkeypatch):
    container = FakeContainer("Lock")
    monkeypatch.setattr(registry, "get_contract_container", lambda name: container)
    return container


def test_contracts_from_registry_filters_by_chain(tmp_path, lock_container):
    filepath = tmp_path / "nft-market.json"
    filepath.write_text(
        json.dumps(
            {
                "17000": {"Lock": make_entry("Lock", CONTRACT_ADDRESS).to_json()},
                "1337": {"Lock": make_entry("Lock", PROXY_ADDRESS).to_json()},
            }
        )
    )

    contracts = contracts_from_registry(filepath, chain_id=17000)
    assert list(contracts) == ["Lock"]
    assert contracts["Lock"].address == CONTRACT_ADDRESS
    assert contracts_from_registry(filepath, chain_id=1) == {}
