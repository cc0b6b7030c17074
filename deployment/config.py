import os
from pathlib import Path
from typing import NamedTuple, Optional

from dotenv import load_dotenv
from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address

from deployment.constants import (
    DEFAULT_NETWORK,
    EXPLORER_API_KEY_ENVVAR,
    HOLESKY,
    LOCAL,
    LOCAL_NETWORKS,
    PRIVATE_KEY_ENVVAR,
    PROXY_ADDRESS_ENVVAR,
    RPC_URL_ENVVAR,
)


class DeploymentConfigError(ValueError):
    pass


class ExplorerInfo(NamedTuple):
    api_url: str
    browser_url: str


class NetworkInfo(NamedTuple):
    chain_id: int
    explorer: Optional[ExplorerInfo]


SUPPORTED_NETWORKS = {
    HOLESKY: NetworkInfo(
        chain_id=17000,
        explorer=ExplorerInfo(
            api_url="https://api-holesky.etherscan.io/api",
            browser_url="https://holesky.etherscan.io",
        ),
    ),
    LOCAL: NetworkInfo(chain_id=1337, explorer=None),
}


class NetworkConfig(NamedTuple):
    """Network and signing settings for a deployment run."""

    name: str
    chain_id: int
    rpc_url: Optional[str]
    private_key: Optional[str]
    explorer_api_key: Optional[str]
    explorer: Optional[ExplorerInfo]

    @classmethod
    def from_env(
        cls, network_name: str = DEFAULT_NETWORK, dotenv_path: Optional[Path] = None
    ) -> "NetworkConfig":
        """
        Loads the network configuration from the environment.
        Values from a .env file never override variables that are already set.
        """
        load_dotenv(dotenv_path=dotenv_path)
        try:
            network_info = SUPPORTED_NETWORKS[network_name]
        except KeyError:
            raise DeploymentConfigError(
                f"Unsupported network '{network_name}'; "
                f"expected one of {', '.join(SUPPORTED_NETWORKS)}."
            )

        return cls(
            name=network_name,
            chain_id=network_info.chain_id,
            rpc_url=os.environ.get(RPC_URL_ENVVAR) or None,
            private_key=os.environ.get(PRIVATE_KEY_ENVVAR) or None,
            explorer_api_key=os.environ.get(EXPLORER_API_KEY_ENVVAR) or None,
            explorer=network_info.explorer,
        )

    @property
    def is_local(self) -> bool:
        return self.name in LOCAL_NETWORKS

    def validate(self) -> None:
        """
        Live networks need an RPC endpoint. The signing key is only needed
        by get_deployer_account, when no stored account exists.
        """
        if self.is_local:
            return
        if not self.rpc_url:
            raise DeploymentConfigError(f"{RPC_URL_ENVVAR} is not set.")

    def describe(self) -> str:
        lines = [f"Network: {self.name}", f"Chain ID: {self.chain_id}"]
        if self.explorer:
            lines.append(f"Explorer: {self.explorer.browser_url}")
        return "\n".join(lines)


def get_proxy_address(value: Optional[str] = None) -> ChecksumAddress:
    """
    Returns the address of an existing proxy, either given explicitly
    or taken from the PROXY environment variable.
    """
    value = value or os.environ.get(PROXY_ADDRESS_ENVVAR)
    if not value:
        raise DeploymentConfigError(
            f"{PROXY_ADDRESS_ENVVAR} is not set; the address of the proxy to upgrade is required."
        )
    if not is_address(value):
        raise DeploymentConfigError(f"Invalid proxy address '{value}'.")
    return to_checksum_address(value)
