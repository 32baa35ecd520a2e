from pathlib import Path

import deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(deployment.__file__).parent
PROJECT_ROOT = DEPLOYMENT_DIR.parent
CONSTRUCTOR_PARAMS_DIR = DEPLOYMENT_DIR / "constructor_params"
DOTENV_FILEPATH = PROJECT_ROOT / ".env"

#
# Environment
#

MULTI_SIG_ACCOUNT = "MULTI_SIG_ACCOUNT"
ETHERSCAN_API_KEY_ENVVAR = "ETHERSCAN_API_KEY"

#
# Networks
#

LOCAL_NETWORKS = ["local"]

#
# Contracts
#

OZ_DEPENDENCY_NAME = "openzeppelin"
OZ_DEPENDENCY_VERSION = "5.0.0"
PROXY_CONTRACT_NAME = "TransparentUpgradeableProxy"

#
# Verification
#

# seconds to wait for the explorer to index a fresh deployment
VERIFICATION_DELAY = 30
