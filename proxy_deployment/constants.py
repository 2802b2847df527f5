from decimal import Decimal
from pathlib import Path

import proxy_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(proxy_deployment.__file__).parent
LEDGER_DIR = DEPLOYMENT_DIR.parent / "deployments"
DEFAULT_LEDGER_FILENAME = "ledger.json"

#
# Plan
#

IMPLEMENTATION = "Implementation"
PROXY_ADMIN = "ProxyAdmin"
PROXY = "Proxy"

DEFAULT_CONTRACT_TYPES = {
    IMPLEMENTATION: "Fundraising",
    PROXY_ADMIN: "ProxyAdmin",
    PROXY: "TransparentUpgradeableProxy",
}

EMPTY_BYTES = b""

# Special variable resolving to the signer of the run
DEPLOYER_INDICATOR = "deployer"

#
# Initialization
#

INITIALIZE_SIGNATURE = "initialize(address,address)"

# Ledger key of the confirmed initialization call
INITIALIZATION = "Initialization"

#
# Fees
#

FEE_SAFETY_MULTIPLIER = Decimal("1.25")
