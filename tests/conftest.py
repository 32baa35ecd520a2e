from types import SimpleNamespace

import pytest
from ape.contracts import ContractContainer
from ethpm_types import ContractType

import deployment.config
import deployment.params
import deployment.utils
from deployment.constants import MULTI_SIG_ACCOUNT

# Init code that ignores its constructor arguments and leaves a single STOP
# opcode as runtime code, so any ABI can be deployed without a compiler.
STUB_BYTECODE = "0x6001600c60003960016000f300"


# Utility functions
def _inputs(*pairs):
    return [{"name": name, "type": _type, "internalType": _type} for name, _type in pairs]


def constructor_abi(*pairs):
    return {"type": "constructor", "stateMutability": "nonpayable", "inputs": _inputs(*pairs)}


def method_abi(name, *pairs):
    return {
        "type": "function",
        "name": name,
        "stateMutability": "nonpayable",
        "inputs": _inputs(*pairs),
        "outputs": [],
    }


def stub_container(name, *abi):
    contract_type = ContractType.model_validate(
        {
            "contractName": name,
            "abi": list(abi),
            "deploymentBytecode": {"bytecode": STUB_BYTECODE},
        }
    )
    return ContractContainer(contract_type)


# Fixtures
@pytest.fixture(scope="session")
def containers():
    token_constructor = constructor_abi(("name_", "string"), ("symbol_", "string"))
    return {
        "Marketplace": stub_container(
            "Marketplace", constructor_abi(("multiSigAccount", "address"))
        ),
        "NFT1155": stub_container("NFT1155", token_constructor),
        "NFT721": stub_container("NFT721", token_constructor),
        "TOKEN20": stub_container("TOKEN20", token_constructor),
        "ExchangeProxy": stub_container(
            "ExchangeProxy", method_abi("initialize", ("multiSigAccount", "address"))
        ),
        "TransparentUpgradeableProxy": stub_container(
            "TransparentUpgradeableProxy",
            constructor_abi(("_logic", "address"), ("initialOwner", "address"), ("_data", "bytes")),
        ),
    }


@pytest.fixture(autouse=True)
def stub_project(monkeypatch, containers):
    def get_contract_container(contract):
        try:
            return containers[contract]
        except KeyError:
            raise ValueError(f"No contract found with name '{contract}'.")

    monkeypatch.setattr(deployment.params, "get_contract_container", get_contract_container)
    monkeypatch.setattr(
        deployment.params,
        "get_proxy_container",
        lambda: containers["TransparentUpgradeableProxy"],
    )


@pytest.fixture
def events():
    """Ordered record of sleeps and explorer calls."""
    return list()


class FakeExplorer:
    def __init__(self, events, chain):
        self.events = events
        self.chain = chain

    def publish_contract(self, address):
        deployed = bool(self.chain.provider.get_code(address))
        self.events.append(("publish", address, deployed))


@pytest.fixture
def explorer(monkeypatch, events, chain):
    fake_explorer = FakeExplorer(events, chain)
    monkeypatch.setattr(deployment.utils, "get_explorer", lambda: fake_explorer)
    fake_time = SimpleNamespace(sleep=lambda seconds: events.append(("sleep", seconds)))
    monkeypatch.setattr(deployment.utils, "time", fake_time)
    return fake_explorer


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No MULTI_SIG_ACCOUNT in the process and an empty .env."""
    # set first so teardown removes whatever load_dotenv puts back
    monkeypatch.setenv(MULTI_SIG_ACCOUNT, "")
    monkeypatch.delenv(MULTI_SIG_ACCOUNT)
    dotenv_filepath = tmp_path / ".env"
    dotenv_filepath.touch()
    monkeypatch.setattr(deployment.config, "DOTENV_FILEPATH", dotenv_filepath)
    return dotenv_filepath


@pytest.fixture
def creator(accounts):
    return accounts[0]


@pytest.fixture
def multisig(accounts):
    return accounts[5].address
