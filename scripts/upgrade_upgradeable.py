#!/usr/bin/python3

import click

from deployment.config import NetworkConfig, get_proxy_address
from deployment.constants import CONSTRUCTOR_PARAMS_DIR
from deployment.networks import connect
from deployment.options import (
    autosign_option,
    network_option,
    proxy_address_option,
    verify_option,
)
from deployment.params import Deployer
from deployment.runner import exit_on_failure
from deployment.utils import get_contract_container

CONSTRUCTOR_PARAMS_FILEPATH = CONSTRUCTOR_PARAMS_DIR / "upgradeable-v2.yml"


@click.command()
@network_option
@verify_option
@autosign_option
@proxy_address_option
@exit_on_failure
def cli(network_name, verify, autosign, proxy_address):
    """
    Upgrades an existing Meinkampf proxy to MeinkampfV2.

    PROXY=0x... ape run upgrade_upgradeable --network holesky
    """
    proxy_address = get_proxy_address(proxy_address)
    network_config = NetworkConfig.from_env(network_name=network_name)
    with connect(network_config):
        deployer = Deployer.from_yaml(
            filepath=CONSTRUCTOR_PARAMS_FILEPATH,
            verify=verify,
            network_config=network_config,
            autosign=autosign,
        )
        upgraded = deployer.upgrade(get_contract_container("MeinkampfV2"), proxy_address)
        print("Your upgraded proxy is done!", upgraded.address)
        deployer.finalize(deployments=[upgraded])


if __name__ == "__main__":
    cli()
