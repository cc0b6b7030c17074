from ape import networks
from ape.api.networks import ProviderContextManager

from deployment.config import NetworkConfig

ECOSYSTEM = "ethereum"
LOCAL_PROVIDER = "test"
LIVE_PROVIDER = "node"


def get_network_choice(network_config: NetworkConfig) -> str:
    """Returns the ape network choice string, e.g. ethereum:holesky:node."""
    provider = LOCAL_PROVIDER if network_config.is_local else LIVE_PROVIDER
    return f"{ECOSYSTEM}:{network_config.name}:{provider}"


def connect(network_config: NetworkConfig) -> ProviderContextManager:
    """
    Connects to the configured network.

    The node provider is pointed at the RPC URL read by NetworkConfig, so a
    URL that only lives in .env reaches the provider.
    """
    network_config.validate()
    provider_settings = {} if network_config.is_local else {"uri": network_config.rpc_url}
    return networks.parse_network_choice(
        get_network_choice(network_config), provider_settings=provider_settings
    )
