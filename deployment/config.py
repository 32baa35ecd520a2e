import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from deployment.constants import DOTENV_FILEPATH, MULTI_SIG_ACCOUNT


class MissingConfiguration(ValueError):
    """Raised when a required environment variable is not set."""


class InvalidConfiguration(ValueError):
    """Raised when an environment variable holds an unusable value."""


def load_environment(filepath: Optional[Path] = None) -> None:
    """Loads the dotenv file; variables already set in the process take precedence."""
    load_dotenv(dotenv_path=filepath or DOTENV_FILEPATH, override=False)


def get_multisig_account(filepath: Optional[Path] = None) -> ChecksumAddress:
    load_environment(filepath)
    value = os.environ.get(MULTI_SIG_ACCOUNT)
    if not value:
        raise MissingConfiguration(f"Please set your {MULTI_SIG_ACCOUNT} in a .env file")
    try:
        return to_checksum_address(value)
    except ValueError:
        raise InvalidConfiguration(f"{MULTI_SIG_ACCOUNT} is not a valid address: {value}")
