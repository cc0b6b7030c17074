import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from ape import networks, project
from ape.contracts import ContractContainer, ContractInstance

from deployment.config import DeploymentConfigError
from deployment.constants import ARTIFACTS_DIR, EXPLORER_API_KEY_ENVVAR

REGISTRY_TIMESTAMP_FORMAT = "%Y%m%dT%H%M%SZ"


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def get_artifact_filepath(config: Dict, chain_id: int, timestamp: Optional[str] = None) -> Path:
    """
    Returns the registry filepath for one run, e.g. nft-market-17000-20240101T120000Z.json.
    Every run gets its own registry, so earlier runs never block a new one.
    """
    artifact_config = config.get("artifacts", {})
    artifact_dir = Path(artifact_config.get("dir", ARTIFACTS_DIR))
    filename = artifact_config.get("filename")
    if not filename:
        raise DeploymentConfigError("artifact filename is not set in params file.")
    timestamp = timestamp or datetime.now(timezone.utc).strftime(REGISTRY_TIMESTAMP_FORMAT)
    filename = Path(filename)
    return artifact_dir / f"{filename.stem}-{chain_id}-{timestamp}{filename.suffix or '.json'}"


def validate_config(
    config: Dict, chain_id: int, live: bool, timestamp: Optional[str] = None
) -> Path:
    """Checks the shape of a parameters file and returns the registry path for this run."""
    print("Validating parameters YAML...")

    deployment = config.get("deployment")
    if not deployment:
        raise DeploymentConfigError("deployment is not set in params file.")

    config_chain_id = deployment.get("chain_id")
    if not config_chain_id:
        raise DeploymentConfigError("chain_id is not set in params file.")

    contracts = config.get("contracts")
    if not contracts:
        raise DeploymentConfigError("Constructor parameters file missing 'contracts' field.")

    config_chain_id = int(config_chain_id)
    if config_chain_id != chain_id and live:
        raise DeploymentConfigError(
            f"chain_id in params file ({config_chain_id}) does not match "
            f"chain_id of current network ({chain_id})."
        )

    return get_artifact_filepath(config=config, chain_id=chain_id, timestamp=timestamp)


def check_etherscan_plugin(live: bool) -> None:
    """
    Checks that the ape-etherscan plugin is installed and that
    the appropriate API key environment variable is set.
    """
    if not live:
        # unnecessary for local deployment
        return
    try:
        import ape_etherscan  # noqa: F401
    except ImportError:
        raise ImportError("Please install the ape-etherscan plugin to use this script.")
    api_key = os.environ.get(EXPLORER_API_KEY_ENVVAR)
    if not api_key:
        raise DeploymentConfigError(f"{EXPLORER_API_KEY_ENVVAR} is not set.")


def check_plugins(verify: bool, live: bool) -> None:
    print("Checking plugins...")
    if verify:
        check_etherscan_plugin(live=live)


def verify_contracts(contracts: List[ContractInstance]) -> None:
    explorer = networks.provider.network.explorer
    if explorer is None:
        raise DeploymentConfigError(
            f"No block explorer available for network {networks.provider.network.name}."
        )
    for instance in contracts:
        print(f"(i) Verifying {instance.contract_type.name}...")
        explorer.publish_contract(instance.address)


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise ValueError(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            contract_container = getattr(dependency_api, contract)
            return contract_container
        except AttributeError:
            continue
    raise ValueError(f"No contract found with name '{contract}'.")


def get_contract_container(contract: str) -> ContractContainer:
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        # not in root project; check dependencies
        contract_container = _get_dependency_contract_container(contract)

    return contract_container
