import os

from ape import accounts
from ape.api import AccountAPI
from ape_accounts import import_account_from_private_key

from deployment.config import DeploymentConfigError, NetworkConfig
from deployment.constants import DEPLOYER_ACCOUNT_ALIAS, PASSPHRASE_ENVVAR, PRIVATE_KEY_ENVVAR


def get_deployer_account(
    network_config: NetworkConfig, alias: str = DEPLOYER_ACCOUNT_ALIAS
) -> AccountAPI:
    """
    Returns the account used to sign deployments.

    Development chains use the first test account. Live networks use the ape
    account stored under `alias`, importing it from PRIVATE_KEY on first use.
    """
    if network_config.is_local:
        return accounts.test_accounts[0]

    if alias in accounts.aliases:
        return accounts.load(alias)

    if not network_config.private_key:
        raise DeploymentConfigError(
            f"No '{alias}' account found and {PRIVATE_KEY_ENVVAR} is not set."
        )
    passphrase = os.environ.get(PASSPHRASE_ENVVAR)
    if not passphrase:
        raise DeploymentConfigError(
            f"{PASSPHRASE_ENVVAR} is required to import the deployer account."
        )

    account = import_account_from_private_key(alias, passphrase, network_config.private_key)
    print(f"Account imported: {account.address}")
    return account
