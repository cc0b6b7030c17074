import os
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from ape import chain
from ape.api import AccountAPI, ReceiptAPI
from ape.contracts.base import ContractContainer, ContractInstance, ContractTransactionHandler
from ape.utils import EMPTY_BYTES32, ZERO_ADDRESS
from ape_accounts import KeyfileAccount
from eth_abi import encode, is_encodable
from eth_utils import function_signature_to_4byte_selector, is_hex, to_bytes, to_checksum_address
from ethpm_types import MethodABI

from deployment.accounts import get_deployer_account
from deployment.config import NetworkConfig
from deployment.confirm import _confirm_resolution, _continue
from deployment.constants import EIP1967_ADMIN_SLOT, PASSPHRASE_ENVVAR, oz_dependency
from deployment.registry import RegistryEntry, write_registry
from deployment.utils import (
    _load_yaml,
    check_plugins,
    get_contract_container,
    validate_config,
    verify_contracts,
)

CONSTRUCTOR_KEY = "constructor"
PROXY_KEY = "proxy"

VARIABLE_PREFIX = "$"
DEPLOYER_VARIABLE = "deployer"
ENCODE_PREFIX = "encode:"

PROXY_LOGIC_PARAMETER = "_logic"


class InvalidParameters(ValueError):
    """A params file does not fit the contracts it deploys."""


class ContractPlan(NamedTuple):
    """One entry of the `contracts` list of a params file."""

    name: str
    constructor: OrderedDict
    proxy: Optional[OrderedDict]  # proxy constructor without _logic; None when unproxied


def _default_proxy_constructor() -> OrderedDict:
    return OrderedDict(initialOwner=f"{VARIABLE_PREFIX}{DEPLOYER_VARIABLE}", _data=b"")


def _plan_contract(entry: Any) -> ContractPlan:
    if isinstance(entry, str):
        return ContractPlan(name=entry, constructor=OrderedDict(), proxy=None)
    if not isinstance(entry, dict) or len(entry) != 1:
        raise InvalidParameters(f"Malformed contract entry in params file: {entry!r}")

    ((name, data),) = entry.items()
    data = data or {}
    constructor = OrderedDict(data.get(CONSTRUCTOR_KEY) or {})
    if PROXY_KEY not in data:
        return ContractPlan(name=name, constructor=constructor, proxy=None)

    overrides = (data[PROXY_KEY] or {}).get(CONSTRUCTOR_KEY) or {}
    if PROXY_LOGIC_PARAMETER in overrides:
        raise InvalidParameters(
            f"'{PROXY_LOGIC_PARAMETER}' cannot be set for the {name} proxy; "
            f"it is always the {name} implementation deployed with it."
        )
    proxy = _default_proxy_constructor()
    proxy.update(overrides)
    return ContractPlan(name=name, constructor=constructor, proxy=proxy)


def plan_contracts(config: Dict) -> "OrderedDict[str, ContractPlan]":
    """Returns the contracts of a params file, in deployment order."""
    plans = OrderedDict()
    for entry in config.get("contracts") or []:
        plan = _plan_contract(entry)
        if plan.name in plans:
            raise InvalidParameters(f"{plan.name} is listed more than once in params file.")
        plans[plan.name] = plan
    return plans


#
# ABI checks
#


def _to_abi_value(abi_type: str, value: Any) -> Any:
    # params files spell bytes values as hex strings
    if abi_type.startswith("bytes") and isinstance(value, str) and is_hex(value):
        return to_bytes(hexstr=value)
    return value


def _is_encodable(abi_type: str, value: Any) -> bool:
    return is_encodable(abi_type, _to_abi_value(abi_type, value))


def _match_method_abi(method_abis: List[MethodABI], args: Sequence[Any]) -> MethodABI:
    """Returns the overload of a method that accepts `args`."""
    if not method_abis:
        raise ValueError("No method abis provided for validation of args")
    for abi in method_abis:
        if len(abi.inputs) != len(args):
            continue
        if all(_is_encodable(item.type, arg) for item, arg in zip(abi.inputs, args)):
            return abi
    raise ValueError(
        f"Could not find ABI for '{method_abis[0].name}' with {len(args)} arg(s) and given type(s)"
    )


def encode_call(abi: MethodABI, args: Sequence[Any]) -> bytes:
    """Calldata for calling the method described by `abi` with `args`."""
    types = [item.type for item in abi.inputs]
    selector = function_signature_to_4byte_selector(f"{abi.name}({','.join(types)})")
    values = [_to_abi_value(abi_type, arg) for abi_type, arg in zip(types, args)]
    return selector + encode(types, values)


def check_constructor_arguments(
    contract_name: str, abi_inputs: List[Any], arguments: OrderedDict
) -> None:
    """Checks resolved constructor arguments against the constructor ABI, name by name."""
    if len(arguments) != len(abi_inputs):
        raise InvalidParameters(
            f"Constructor parameters length mismatch - "
            f"{contract_name} ABI requires {len(abi_inputs)}, Got {len(arguments)}."
        )
    for position, (abi_input, (name, value)) in enumerate(zip(abi_inputs, arguments.items())):
        if abi_input.name != name:
            raise InvalidParameters(
                f"{contract_name} constructor param '{name}' at position {position} "
                f"does not match the expected ABI name '{abi_input.name}'"
            )
        if not _is_encodable(abi_input.type, value):
            raise InvalidParameters(
                f"{contract_name} constructor param '{name}' has a value '{value}' "
                f"whose type does not match expected ABI type '{abi_input.type}'"
            )


#
# Variables
#


class ParameterResolver:
    """
    Turns params file values into call arguments.

        $deployer          address of the deploying account
        $CONSTANT          value from the `constants` section
        $ContractName      address of a contract deployed earlier in the same run
        $encode:fn,a,...   calldata for fn(a, ...) on the contract being configured

    Lists are resolved item by item; any other value is used as written.
    """

    def __init__(self, constants: Dict[str, Any], contract_names: List[str], deployer_address):
        self.constants = constants
        self.contract_names = contract_names
        self.deployer_address = deployer_address

    def resolve(
        self, value: Any, contract_name: str, deployed: Dict[str, ContractInstance]
    ) -> Any:
        if isinstance(value, list):
            return [self.resolve(item, contract_name, deployed) for item in value]
        if not (isinstance(value, str) and value.startswith(VARIABLE_PREFIX)):
            return value

        variable = value[len(VARIABLE_PREFIX) :]
        if variable == DEPLOYER_VARIABLE:
            return self.deployer_address
        if variable.startswith(ENCODE_PREFIX):
            return self._encode(variable[len(ENCODE_PREFIX) :], contract_name, deployed)
        if variable.isupper():
            if variable not in self.constants:
                raise InvalidParameters(f"Constant '{variable}' not found in params file.")
            return self.constants[variable]
        if variable in self.contract_names:
            instance = deployed.get(variable)
            return instance.address if instance else ZERO_ADDRESS
        raise InvalidParameters(
            f"Unknown variable '{value}' in {contract_name} parameters; "
            f"contracts in this params file are {', '.join(self.contract_names)}."
        )

    def resolve_all(
        self, parameters: OrderedDict, contract_name: str, deployed: Dict[str, ContractInstance]
    ) -> OrderedDict:
        return OrderedDict(
            (name, self.resolve(value, contract_name, deployed))
            for name, value in parameters.items()
        )

    def _encode(self, call: str, contract_name: str, deployed) -> bytes:
        method_name, *raw_args = call.split(",")
        args = [self.resolve(arg, contract_name, deployed) for arg in raw_args]
        contract_type = get_contract_container(contract_name).contract_type
        method_abis = [abi for abi in contract_type.methods if abi.name == method_name]
        if not method_abis:
            raise InvalidParameters(f"{contract_name} has no method '{method_name}' to encode.")
        return encode_call(_match_method_abi(method_abis, args), args)


#
# Deployment
#


def _enable_autosign(account: AccountAPI) -> None:
    # test accounts always sign without prompting
    if isinstance(account, KeyfileAccount):
        account.set_autosign(True, passphrase=os.environ.get(PASSPHRASE_ENVVAR))


class Deployer:
    """
    Deploys the contracts of one params file from the deployer account,
    keeping track of what this run deployed and the transactions that did it.
    """

    def __init__(
        self,
        config: Dict,
        path: Path,
        verify: bool,
        network_config: NetworkConfig,
        account: Optional[AccountAPI] = None,
        autosign: bool = False,
    ):
        live = not network_config.is_local
        self.path = path
        self.verify = verify
        self.autosign = autosign
        self.network_config = network_config

        self.account = account or get_deployer_account(network_config)
        if autosign:
            _enable_autosign(self.account)

        check_plugins(verify=verify, live=live)
        self.registry_filepath = validate_config(config=config, chain_id=chain.chain_id, live=live)

        self.plans = plan_contracts(config)
        self.resolver = ParameterResolver(
            constants=config.get("constants") or {},
            contract_names=list(self.plans),
            deployer_address=self.account.address,
        )
        self.deployed: "OrderedDict[str, ContractInstance]" = OrderedDict()
        self.implementations: Dict[str, ContractInstance] = {}
        self.receipts: Dict[str, ReceiptAPI] = {}

        self._check_parameters()
        self._print_deployment_info()
        if not autosign:
            _continue()

    @classmethod
    def from_yaml(cls, filepath: Path, *args, **kwargs) -> "Deployer":
        config = _load_yaml(filepath)
        return cls(config, filepath, *args, **kwargs)

    def _get_plan(self, contract_name: str) -> ContractPlan:
        try:
            return self.plans[contract_name]
        except KeyError:
            raise InvalidParameters(f"{contract_name} is not listed in {self.path}.")

    def _proxy_arguments(self, plan: ContractPlan, implementation_address) -> OrderedDict:
        arguments = OrderedDict(((PROXY_LOGIC_PARAMETER, implementation_address),))
        arguments.update(self.resolver.resolve_all(plan.proxy, plan.name, self.deployed))
        return arguments

    def _check_parameters(self) -> None:
        # contracts of this run resolve to the zero address until deployed
        for name, plan in self.plans.items():
            container = get_contract_container(name)
            arguments = self.resolver.resolve_all(plan.constructor, name, {})
            check_constructor_arguments(name, container.constructor.abi.inputs, arguments)
            if plan.proxy is not None:
                proxy_container = oz_dependency().TransparentUpgradeableProxy
                check_constructor_arguments(
                    f"{name} proxy",
                    proxy_container.constructor.abi.inputs,
                    self._proxy_arguments(plan, ZERO_ADDRESS),
                )

    def _deploy_contract(
        self, container: ContractContainer, label: str, arguments: OrderedDict
    ) -> ContractInstance:
        if not self.autosign:
            _confirm_resolution(arguments, label)
        return self.account.deploy(container, *arguments.values(), publish=self.verify)

    def deploy(self, container: ContractContainer) -> ContractInstance:
        """
        Deploys a contract listed in the params file. Contracts with a `proxy`
        section are put behind a TransparentUpgradeableProxy, and the returned
        instance is the contract's interface at the proxy address.
        """
        name = container.contract_type.name
        plan = self._get_plan(name)
        arguments = self.resolver.resolve_all(plan.constructor, name, self.deployed)
        instance = self._deploy_contract(container, name, arguments)
        self.implementations[name] = instance
        receipt = instance.receipt

        if plan.proxy is not None:
            proxy = self._deploy_contract(
                oz_dependency().TransparentUpgradeableProxy,
                f"{name} proxy",
                self._proxy_arguments(plan, instance.address),
            )
            print(f"(i) {name} at {instance.address} is served by the proxy at {proxy.address}")
            receipt = proxy.receipt
            instance = container.at(proxy.address)

        self.deployed[name] = instance
        self.receipts[name] = receipt
        return instance

    def get_proxy_admin(self, proxy_address) -> ContractInstance:
        """
        Returns the ProxyAdmin recorded in the proxy's EIP-1967 admin slot,
        which must be owned by the deployer account.
        """
        admin_slot = chain.provider.get_storage(address=proxy_address, slot=EIP1967_ADMIN_SLOT)
        if admin_slot == EMPTY_BYTES32:
            raise ValueError(
                f"Admin slot for {proxy_address} is empty; it is not a transparent proxy."
            )
        admin_address = to_checksum_address(bytes(admin_slot)[-20:])
        proxy_admin = oz_dependency().ProxyAdmin.at(admin_address)
        owner = to_checksum_address(proxy_admin.owner())
        if owner != self.account.address:
            raise ValueError(
                f"ProxyAdmin at {admin_address} is owned by {owner}, "
                f"not by the deployer {self.account.address}."
            )
        return proxy_admin

    def upgrade(self, container: ContractContainer, proxy_address, data=b"") -> ContractInstance:
        """
        Deploys a new implementation and points the proxy at it. The registry
        records the proxy address under the new contract name, with the upgrade
        transaction.
        """
        name = container.contract_type.name
        if self._get_plan(name).proxy is not None:
            raise InvalidParameters(f"{name} is upgraded in place and cannot have a proxy section.")

        proxy_admin = self.get_proxy_admin(proxy_address)
        implementation = self.deploy(container)
        receipt = self.transact(
            proxy_admin.upgradeAndCall, proxy_address, implementation.address, data
        )

        upgraded = container.at(proxy_address)
        self.deployed[name] = upgraded
        self.receipts[name] = receipt
        return upgraded

    def transact(self, method: ContractTransactionHandler, *args) -> ReceiptAPI:
        abi = _match_method_abi(method.abis, args)
        contract = method.contract
        print(
            f"\nTransacting {contract.contract_type.name}[{contract.address}]."
            f"{abi.name}({', '.join(str(arg) for arg in args)})"
        )
        if not self.autosign:
            _continue()
        return method(*args, sender=self.account)

    def finalize(self, deployments: List[ContractInstance]) -> Path:
        """Writes this run's registry and, with --verify, publishes the sources."""
        entries = [
            RegistryEntry.from_receipt(instance, self.receipts[instance.contract_type.name])
            for instance in deployments
        ]
        filepath = write_registry(entries=entries, filepath=self.registry_filepath)
        print(f"(i) Registry written to {filepath}!")

        if self.verify:
            names = [instance.contract_type.name for instance in deployments]
            verify_contracts([self.implementations[name] for name in names])
        return filepath

    def _print_deployment_info(self) -> None:
        print(f"\n{self.network_config.describe()}")
        print(f"Params file: {self.path}")
        print(f"Registry: {self.registry_filepath}")
        print(f"Account: {self.account.address}")
        print(f"Verify: {self.verify}")
