import pytest
from click.testing import CliRunner

from deployment.constants import MULTI_SIG_ACCOUNT
from deployment.options import _multisig_account_callback
from scripts import (
    deploy_exchange_proxy,
    deploy_marketplace,
    deploy_nft721,
    deploy_nft1155,
    deploy_token20,
)

ALL_SCRIPTS = [
    (deploy_exchange_proxy, "deploy-exchange-proxy"),
    (deploy_marketplace, "deploy-marketplace"),
    (deploy_nft1155, "deploy-nft1155"),
    (deploy_nft721, "deploy-nft721"),
    (deploy_token20, "deploy-token20"),
]

MULTISIG_SCRIPTS = [deploy_exchange_proxy, deploy_marketplace]


def _visible_options(command):
    return {param.name for param in command.params if not getattr(param, "hidden", False)}


@pytest.mark.parametrize("script,name", ALL_SCRIPTS)
def test_command_surface(script, name):
    command = script.cli
    assert command.name == name

    verify = next(param for param in command.params if param.name == "verify")
    assert verify.is_flag
    assert verify.default is False

    assert {"network", "account", "verify"} <= _visible_options(command)
    assert "multisig_account" not in _visible_options(command)


@pytest.mark.parametrize("script", MULTISIG_SCRIPTS)
def test_missing_multisig_account_fails_before_connecting(script, clean_env, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("deployment must not start")

    monkeypatch.setattr(script.Deployer, "from_yaml", fail)
    monkeypatch.setattr(script.ConnectedProviderCommand, "invoke", fail)

    result = CliRunner().invoke(script.cli, ["--network", "ethereum:local:test"])

    assert result.exit_code == 2
    assert f"Please set your {MULTI_SIG_ACCOUNT} in a .env file" in result.output


@pytest.mark.parametrize("script", MULTISIG_SCRIPTS)
def test_invalid_multisig_account(script, clean_env, monkeypatch):
    monkeypatch.setenv(MULTI_SIG_ACCOUNT, "0x1234")
    monkeypatch.setattr(script.ConnectedProviderCommand, "invoke", lambda *args: None)

    result = CliRunner().invoke(script.cli, ["--network", "ethereum:local:test"])

    assert result.exit_code == 2
    assert "not a valid address" in result.output


@pytest.mark.parametrize("script", MULTISIG_SCRIPTS)
def test_multisig_account_is_read_first(script):
    option = next(param for param in script.cli.params if param.name == "multisig_account")
    assert option.is_eager
    assert option.hidden


def test_multisig_account_override(clean_env, multisig):
    assert _multisig_account_callback(None, None, multisig.lower()) == multisig


def test_multisig_account_from_environment(clean_env, monkeypatch, multisig):
    monkeypatch.setenv(MULTI_SIG_ACCOUNT, multisig.lower())
    assert _multisig_account_callback(None, None, None) == multisig
