import click
from eth_utils import to_checksum_address

from deployment.config import get_multisig_account
from deployment.constants import MULTI_SIG_ACCOUNT


def _multisig_account_callback(ctx, param, value):
    try:
        if value:
            return to_checksum_address(value)
        return get_multisig_account()
    except ValueError as e:
        raise click.UsageError(str(e), ctx=ctx)


verify_option = click.option(
    "--verify",
    help="Verify contracts at the block explorer",
    is_flag=True,
    default=False,
)

# eager, so a missing account aborts before the account prompt and provider connection
multisig_account_option = click.option(
    "--multi-sig-account",
    "multisig_account",
    help=f"Multi-signature account; defaults to {MULTI_SIG_ACCOUNT} from the environment or .env",
    hidden=True,
    is_eager=True,
    callback=_multisig_account_callback,
)
