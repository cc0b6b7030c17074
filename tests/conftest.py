from collections import namedtuple
from types import SimpleNamespace

import pytest
from eth_utils import to_checksum_address

from deployment.constants import (
    EXPLORER_API_KEY_ENVVAR,
    PASSPHRASE_ENVVAR,
    PRIVATE_KEY_ENVVAR,
    PROXY_ADDRESS_ENVVAR,
    RPC_URL_ENVVAR,
)

DEPLOYER_ADDRESS = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
CONTRACT_ADDRESS = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"
PROXY_ADDRESS = "0xdbF03B407c01E7cD3CBea99509d93f8DDDC8C6FB"

AbiInput = namedtuple("AbiInput", ["name", "type"])


def abi_inputs(*pairs):
    return [AbiInput(name=name, type=type_) for name, type_ in pairs]


def make_receipt(txn_hash, sender=DEPLOYER_ADDRESS, chain_id=17000, block_number=100):
    return SimpleNamespace(
        chain_id=chain_id,
        txn_hash=txn_hash,
        block_number=block_number,
        transaction=SimpleNamespace(sender=sender),
    )


class FakeInstance:
    def __init__(self, name, address, receipt=None):
        self.contract_type = SimpleNamespace(name=name, abi=[])
        self.address = address
        self.receipt = receipt


class FakeContainer:
    """Stands in for an ape ContractContainer."""

    def __init__(self, name, constructor_inputs=(), methods=()):
        self.contract_type = SimpleNamespace(name=name, methods=list(methods))
        self.constructor = SimpleNamespace(abi=SimpleNamespace(inputs=list(constructor_inputs)))

    def at(self, address):
        return FakeInstance(self.contract_type.name, address)


class FakeAccount:
    """Deploys fake contracts at sequential addresses and records every call."""

    def __init__(self, address=DEPLOYER_ADDRESS):
        self.address = address
        self.deployments = []

    def deploy(self, container, *args, publish=False):
        number = len(self.deployments) + 1
        address = to_checksum_address(f"0x{number:040x}")
        self.deployments.append((container.contract_type.name, args))
        receipt = make_receipt(txn_hash="0x" + f"{number:064x}", sender=self.address)
        return FakeInstance(container.contract_type.name, address, receipt=receipt)


class FakeDeployer:
    def __init__(self, addresses=None, error=None):
        self.addresses = addresses or {}
        self.error = error
        self.deployed = []
        self.finalized = None
        self.upgrades = []

    def deploy(self, container):
        if self.error:
            raise self.error
        name = container.contract_type.name
        self.deployed.append(name)
        return FakeInstance(name, self.addresses.get(name, CONTRACT_ADDRESS))

    def upgrade(self, container, proxy_address, data=b""):
        if self.error:
            raise self.error
        self.upgrades.append((container.contract_type.name, proxy_address))
        return FakeInstance(container.contract_type.name, proxy_address)

    def finalize(self, deployments):
        self.finalized = deployments


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for envvar in (
        RPC_URL_ENVVAR,
        PRIVATE_KEY_ENVVAR,
        EXPLORER_API_KEY_ENVVAR,
        PROXY_ADDRESS_ENVVAR,
        PASSPHRASE_ENVVAR,
    ):
        monkeypatch.delenv(envvar, raising=False)


@pytest.fixture
def deployer_account():
    return FakeAccount()


@pytest.fixture
def containers():
    return {
        "ERC20": FakeContainer(
            "ERC20", constructor_inputs=abi_inputs(("name_", "string"), ("symbol_", "string"))
        ),
        "TokenICO": FakeContainer(
            "TokenICO",
            constructor_inputs=abi_inputs(
                ("_tokenAddress", "address"), ("_tokenSalePrice", "uint256")
            ),
        ),
        "StackingDapp": FakeContainer("StackingDapp"),
        "Lock": FakeContainer("Lock"),
        "Meinkampf": FakeContainer(
            "Meinkampf",
            methods=[SimpleNamespace(name="store", inputs=abi_inputs(("value", "uint256")))],
        ),
        "MeinkampfV2": FakeContainer("MeinkampfV2"),
        "TransparentUpgradeableProxy": FakeContainer(
            "TransparentUpgradeableProxy",
            constructor_inputs=abi_inputs(
                ("_logic", "address"), ("initialOwner", "address"), ("_data", "bytes")
            ),
        ),
    }
