#!/usr/bin/python3

import click
from ape import project
from ape.cli import ConnectedProviderCommand, account_option, network_option

from deployment.constants import CONSTRUCTOR_PARAMS_DIR, MULTI_SIG_ACCOUNT
from deployment.options import multisig_account_option, verify_option
from deployment.params import Deployer

CONSTRUCTOR_PARAMS_FILEPATH = CONSTRUCTOR_PARAMS_DIR / "exchange_proxy.yml"


@click.command(cls=ConnectedProviderCommand, name="deploy-exchange-proxy")
@multisig_account_option
@network_option(required=True)
@account_option()
@verify_option
def cli(network, account, verify, multisig_account):
    """
    Deploy ExchangeProxy behind a TransparentUpgradeableProxy,
    initialized with the multi-signature account.
    """
    deployer = Deployer.from_yaml(
        filepath=CONSTRUCTOR_PARAMS_FILEPATH,
        verify=verify,
        account=account,
        constants={MULTI_SIG_ACCOUNT: multisig_account},
    )
    deployer.deploy(project.ExchangeProxy)
    deployer.finalize()


if __name__ == "__main__":
    cli()
