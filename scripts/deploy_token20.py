#!/usr/bin/python3

import click
from ape import project
from ape.cli import ConnectedProviderCommand, account_option, network_option

from deployment.constants import CONSTRUCTOR_PARAMS_DIR
from deployment.options import verify_option
from deployment.params import Deployer

CONSTRUCTOR_PARAMS_FILEPATH = CONSTRUCTOR_PARAMS_DIR / "token20.yml"


@click.command(cls=ConnectedProviderCommand, name="deploy-token20")
@network_option(required=True)
@account_option()
@verify_option
def cli(network, account, verify):
    """Deploy the TOKEN20 test token (an ERC20 contract)."""
    deployer = Deployer.from_yaml(
        filepath=CONSTRUCTOR_PARAMS_FILEPATH, verify=verify, account=account
    )
    deployer.deploy(project.TOKEN20)
    deployer.finalize()


if __name__ == "__main__":
    cli()
