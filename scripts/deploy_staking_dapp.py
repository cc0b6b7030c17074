#!/usr/bin/python3

from typing import List

import click
from ape.contracts import ContractInstance

from deployment.config import NetworkConfig
from deployment.constants import CONSTRUCTOR_PARAMS_DIR
from deployment.networks import connect
from deployment.options import autosign_option, network_option, verify_option
from deployment.params import Deployer
from deployment.runner import exit_on_failure
from deployment.utils import get_contract_container

CONSTRUCTOR_PARAMS_FILEPATH = CONSTRUCTOR_PARAMS_DIR / "staking-dapp.yml"

# order matters: TokenICO is constructed with the ERC20 address
CONTRACTS = ["ERC20", "TokenICO", "StackingDapp"]


def deploy_staking_dapp(deployer: Deployer) -> List[ContractInstance]:
    deployments = []
    for contract_name in CONTRACTS:
        instance = deployer.deploy(get_contract_container(contract_name))
        print(f"{contract_name} deployed to: {instance.address}")
        deployments.append(instance)
    return deployments


@click.command()
@network_option
@verify_option
@autosign_option
@exit_on_failure
def cli(network_name, verify, autosign):
    """
    Deploys the MyToken ERC20, the TokenICO selling it and the StackingDapp.

    ape run deploy_staking_dapp --network holesky
    """
    network_config = NetworkConfig.from_env(network_name=network_name)
    with connect(network_config):
        deployer = Deployer.from_yaml(
            filepath=CONSTRUCTOR_PARAMS_FILEPATH,
            verify=verify,
            network_config=network_config,
            autosign=autosign,
        )
        deployments = deploy_staking_dapp(deployer)
        deployer.finalize(deployments=deployments)


if __name__ == "__main__":
    cli()
