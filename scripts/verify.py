import click
from ape import networks

from deployment.config import NetworkConfig
from deployment.networks import connect
from deployment.options import network_option, registry_filepath_option
from deployment.registry import contracts_from_registry
from deployment.runner import exit_on_failure
from deployment.utils import get_contract_container, verify_contracts


def resolve_implementations(contracts, contract_names):
    """Returns the instances to publish, swapping proxies for their implementation."""
    contract_instances = []
    for contract_name in contract_names:
        try:
            contract_instance = contracts[contract_name]
        except KeyError:
            raise ValueError(f"Contract '{contract_name}' not found in registry")

        proxy_info = networks.provider.network.ecosystem.get_proxy_info(contract_instance.address)
        if proxy_info:
            print(
                f"Proxy contract detected; verifying implementation contract at {proxy_info.target}"
            )
            contract_container = get_contract_container(contract_instance.contract_type.name)
            contract_instance = contract_container.at(proxy_info.target)

        contract_instances.append(contract_instance)
    return contract_instances


@click.command()
@network_option
@registry_filepath_option
@click.option(
    "--contract-name",
    "-c",
    "contract_names",
    help="Contract to verify; defaults to every contract in the registry",
    type=click.STRING,
    multiple=True,
)
@exit_on_failure
def cli(network_name, registry_filepath, contract_names):
    """Verify deployed contracts on the block explorer."""
    network_config = NetworkConfig.from_env(network_name=network_name)
    with connect(network_config):
        contracts = contracts_from_registry(registry_filepath, chain_id=network_config.chain_id)
        if not contracts:
            raise ValueError(
                f"No contracts for chain {network_config.chain_id} "
                f"in registry '{registry_filepath}'"
            )
        contract_instances = resolve_implementations(contracts, contract_names or list(contracts))
        verify_contracts(contract_instances)


if __name__ == "__main__":
    cli()
