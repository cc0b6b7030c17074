#!/usr/bin/python3

import click

from deployment.config import NetworkConfig
from deployment.constants import CONSTRUCTOR_PARAMS_DIR
from deployment.networks import connect
from deployment.options import (
    autosign_option,
    initial_value_option,
    network_option,
    verify_option,
)
from deployment.params import Deployer
from deployment.runner import exit_on_failure
from deployment.utils import _load_yaml, get_contract_container

CONSTRUCTOR_PARAMS_FILEPATH = CONSTRUCTOR_PARAMS_DIR / "upgradeable.yml"


def load_config(initial_value=None) -> dict:
    config = _load_yaml(CONSTRUCTOR_PARAMS_FILEPATH)
    if initial_value is not None:
        constants = config.get("constants") or {}
        constants["INITIAL_VALUE"] = initial_value
        config["constants"] = constants
    return config


@click.command()
@network_option
@verify_option
@autosign_option
@initial_value_option
@exit_on_failure
def cli(network_name, verify, autosign, initial_value):
    """
    Deploys Meinkampf behind a TransparentUpgradeableProxy,
    initialized by calling store(INITIAL_VALUE) through the proxy.

    Keep the printed proxy address: upgrade_upgradeable reads it from PROXY.
    """
    network_config = NetworkConfig.from_env(network_name=network_name)
    with connect(network_config):
        deployer = Deployer(
            config=load_config(initial_value=initial_value),
            path=CONSTRUCTOR_PARAMS_FILEPATH,
            verify=verify,
            network_config=network_config,
            autosign=autosign,
        )
        proxy = deployer.deploy(get_contract_container("Meinkampf"))
        print(f"proxy deployed to: {proxy.address}")
        deployer.finalize(deployments=[proxy])


if __name__ == "__main__":
    cli()
