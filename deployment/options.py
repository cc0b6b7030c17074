from pathlib import Path

import click

from deployment.config import SUPPORTED_NETWORKS
from deployment.constants import DEFAULT_NETWORK, PROXY_ADDRESS_ENVVAR

network_option = click.option(
    "--network",
    "network_name",
    help="Network to deploy to.",
    type=click.Choice(list(SUPPORTED_NETWORKS)),
    default=DEFAULT_NETWORK,
    show_default=True,
)

verify_option = click.option(
    "--verify/--no-verify",
    help="Publish deployed contracts to the block explorer.",
    default=False,
    show_default=True,
)

autosign_option = click.option(
    "--autosign",
    help="Sign transactions without asking for confirmation.",
    is_flag=True,
    default=False,
)

# validated by config.get_proxy_address so a bad value fails like any other run error
proxy_address_option = click.option(
    "--proxy-address",
    "-p",
    help="Address of the proxy to upgrade.",
    envvar=PROXY_ADDRESS_ENVVAR,
    type=click.STRING,
    required=False,
)

initial_value_option = click.option(
    "--initial-value",
    help="Value stored by the initializer when the proxy is created.",
    type=click.IntRange(min=0),
    required=False,
)

registry_filepath_option = click.option(
    "--registry-filepath",
    "-f",
    help="Registry file listing the deployed contracts.",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=True,
)
