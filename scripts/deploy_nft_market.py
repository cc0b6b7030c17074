#!/usr/bin/python3

import click

from deployment.config import NetworkConfig
from deployment.constants import CONSTRUCTOR_PARAMS_DIR
from deployment.networks import connect
from deployment.options import autosign_option, network_option, verify_option
from deployment.params import Deployer
from deployment.runner import exit_on_failure
from deployment.utils import get_contract_container

CONSTRUCTOR_PARAMS_FILEPATH = CONSTRUCTOR_PARAMS_DIR / "nft-market.yml"


@click.command()
@network_option
@verify_option
@autosign_option
@exit_on_failure
def cli(network_name, verify, autosign):
    """Deploys the NFT marketplace Lock contract."""
    network_config = NetworkConfig.from_env(network_name=network_name)
    with connect(network_config):
        deployer = Deployer.from_yaml(
            filepath=CONSTRUCTOR_PARAMS_FILEPATH,
            verify=verify,
            network_config=network_config,
            autosign=autosign,
        )
        lock = deployer.deploy(get_contract_container("Lock"))
        print(f"Lock deployed to: {lock.address}")
        deployer.finalize(deployments=[lock])


if __name__ == "__main__":
    cli()
