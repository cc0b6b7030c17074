from pathlib import Path

from ape import project

import deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(deployment.__file__).parent
CONSTRUCTOR_PARAMS_DIR = DEPLOYMENT_DIR / "constructor_params"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

#
# Networks
#

LOCAL = "local"
HOLESKY = "holesky"

LOCAL_NETWORKS = [LOCAL]
DEFAULT_NETWORK = HOLESKY

#
# Environment
#

RPC_URL_ENVVAR = "INFRA_API_KEY"
PRIVATE_KEY_ENVVAR = "PRIVATE_KEY"
EXPLORER_API_KEY_ENVVAR = "ETHERSCAN_API_KEY"
PROXY_ADDRESS_ENVVAR = "PROXY"
PASSPHRASE_ENVVAR = "DEPLOYER_PASSPHRASE"

DEPLOYER_ACCOUNT_ALIAS = "deployer"

#
# Contracts
#

OZ_DEPENDENCY_NAME = "openzeppelin"
OZ_DEPENDENCY_VERSION = "5.0.0"

# EIP1967 Admin slot - https://eips.ethereum.org/EIPS/eip-1967#admin-address
EIP1967_ADMIN_SLOT = 0xB53127684A568B3173AE13B9F8A6016E243E63B6E8EE1178D6A717850B5D6103


def oz_dependency():
    """OpenZeppelin contracts, fetched on first use."""
    return project.dependencies[OZ_DEPENDENCY_NAME][OZ_DEPENDENCY_VERSION]
