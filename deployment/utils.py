import os
import time
from pathlib import Path
from typing import TYPE_CHECKING, List

import yaml
from ape import networks, project
from ape.api import ExplorerAPI
from ape.contracts import ContractContainer

from deployment.constants import (
    ETHERSCAN_API_KEY_ENVVAR,
    LOCAL_NETWORKS,
    OZ_DEPENDENCY_NAME,
    OZ_DEPENDENCY_VERSION,
    PROXY_CONTRACT_NAME,
    VERIFICATION_DELAY,
)

if TYPE_CHECKING:
    from deployment.params import Deployment


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def validate_config(config: dict) -> None:
    """Checks the overall shape of a constructor parameters file."""
    if not isinstance(config, dict):
        raise ValueError("Constructor parameters file is empty or malformed.")

    contracts = config.get("contracts")
    if not contracts:
        raise ValueError("Constructor parameters file missing 'contracts' field.")

    constants = config.get("constants") or dict()
    if not isinstance(constants, dict):
        raise ValueError("'constants' must be a mapping of names to values.")


def is_local_network() -> bool:
    return networks.provider.network.name in LOCAL_NETWORKS


def check_etherscan_plugin() -> None:
    """
    Checks that the ape-etherscan plugin is installed and that
    the explorer API key environment variable is set.
    """
    if is_local_network():
        # unnecessary for local deployment
        return
    try:
        import ape_etherscan  # noqa: F401
    except ImportError:
        raise ImportError("Please install the ape-etherscan plugin to verify contracts.")
    if not os.environ.get(ETHERSCAN_API_KEY_ENVVAR):
        raise ValueError(f"{ETHERSCAN_API_KEY_ENVVAR} is not set.")


def check_plugins(verify: bool) -> None:
    print("Checking plugins...")
    if verify:
        check_etherscan_plugin()
        # fail before deploying rather than after the verification delay
        get_explorer()


def get_contract_container(contract: str) -> ContractContainer:
    try:
        return getattr(project, contract)
    except AttributeError:
        raise ValueError(f"No contract found with name '{contract}'.")


def get_proxy_container() -> ContractContainer:
    """Returns the OpenZeppelin proxy used for upgradeable deployments."""
    oz_dependency = project.dependencies[OZ_DEPENDENCY_NAME][OZ_DEPENDENCY_VERSION]
    return getattr(oz_dependency, PROXY_CONTRACT_NAME)


def get_explorer() -> ExplorerAPI:
    explorer = networks.provider.network.explorer
    if explorer is None:
        raise ValueError(
            f"No block explorer available for network '{networks.provider.network.name}'."
        )
    return explorer


def verify_deployments(deployments: List["Deployment"], delay: int = VERIFICATION_DELAY) -> None:
    """
    Publishes deployed contracts to the block explorer.

    The explorer needs a little time to index fresh deployments, so
    verification starts only after a fixed delay.
    """
    if not deployments:
        return

    print(f"\nWaiting {delay}s before verifying {len(deployments)} contract(s)...")
    time.sleep(delay)

    explorer = get_explorer()
    for deployment in deployments:
        pretty_args = ", ".join(str(arg) for arg in deployment.constructor_args)
        print(
            f"(i) Verifying {deployment.name} at {deployment.address} "
            f"with constructor arguments [{pretty_args}]..."
        )
        explorer.publish_contract(deployment.address)
