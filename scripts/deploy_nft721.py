#!/usr/bin/python3

import click
from ape import project
from ape.cli import ConnectedProviderCommand, account_option, network_option

from deployment.constants import CONSTRUCTOR_PARAMS_DIR
from deployment.options import verify_option
from deployment.params import Deployer

CONSTRUCTOR_PARAMS_FILEPATH = CONSTRUCTOR_PARAMS_DIR / "nft721.yml"


@click.command(cls=ConnectedProviderCommand, name="deploy-nft721")
@network_option(required=True)
@account_option()
@verify_option
def cli(network, account, verify):
    """Deploy the NFT721 test collection (an ERC721 contract)."""
    deployer = Deployer.from_yaml(
        filepath=CONSTRUCTOR_PARAMS_FILEPATH, verify=verify, account=account
    )
    deployer.deploy(project.NFT721)
    deployer.finalize()


if __name__ == "__main__":
    cli()
