import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional

from ape import networks
from ape.api import AccountAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractInstance
from ape.utils import ZERO_ADDRESS
from ape_accounts import KeyfileAccount
from ethpm_types import MethodABI
from web3.auto import w3

from deployment.confirm import _confirm_resolution, _continue
from deployment.utils import (
    _load_yaml,
    check_plugins,
    get_contract_container,
    get_proxy_container,
    validate_config,
    verify_deployments,
)

CONTRACT_CONSTRUCTOR_PARAMETER_KEY = "constructor"
CONTRACT_PROXY_PARAMETER_KEY = "proxy"


class VariableContext:
    """
    State shared by all variables of a single deployment run.

    `instances` is filled in by the deployer as contracts get deployed,
    so variables can be created before anything is on chain.
    """

    def __init__(
        self,
        contract_names: List[str],
        constants: Optional[Dict[str, Any]] = None,
        deployer_address: Optional[str] = None,
    ):
        self.contract_names = contract_names or list()
        self.constants = constants or dict()
        self.deployer_address = deployer_address
        self.instances: Dict[str, ContractInstance] = dict()


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        return isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    def __init__(self, context: VariableContext):
        self.context = context

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self) -> Any:
        return self.context.deployer_address or ZERO_ADDRESS


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            self.constant_value = context.constants[constant_name]
        except KeyError:
            raise ValueError(f"Constant '{constant_name}' not found in deployment file.")

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Constants are upper case, e.g. $MULTI_SIG_ACCOUNT."""
        return value.isupper()

    def resolve(self) -> Any:
        return self.constant_value


class ContractName(Variable):
    def __init__(self, contract_name: str, context: VariableContext):
        if contract_name not in context.contract_names:
            raise ValueError(f"Contract name {contract_name} not found")
        self.contract_name = contract_name
        self.context = context

    def resolve(self) -> Any:
        instance = self.context.instances.get(self.contract_name)
        if instance is None:
            # not deployed yet; eager validation
            return ZERO_ADDRESS
        return instance.address


def _resolve_param(value: Any) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v) for v in value]

    if isinstance(value, Variable):
        return value.resolve()

    return value  # literally a value


def _resolve_params(parameters: OrderedDict) -> OrderedDict:
    return OrderedDict((name, _resolve_param(value)) for name, value in parameters.items())


def _variable_from_value(variable: str, context: VariableContext) -> Variable:
    variable = variable[len(Variable.VARIABLE_PREFIX) :]
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount(context)
    elif variable in context.contract_names:
        return ContractName(variable, context)
    elif Constant.is_constant(variable):
        return Constant(variable, context)
    else:
        return ContractName(variable, context)


def _process_raw_value(value: Any, context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, context) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, context)

    return value


def _process_raw_values(values: typing.Mapping, context: VariableContext) -> OrderedDict:
    return OrderedDict((name, _process_raw_value(value, context)) for name, value in values.items())


def _iter_contracts(config: typing.Dict) -> typing.Iterator[typing.Tuple[str, typing.Dict]]:
    """Yields (contract name, contract data) for every entry of the 'contracts' field."""
    for contract_info in config["contracts"]:
        if isinstance(contract_info, str):
            yield contract_info, dict()
        elif isinstance(contract_info, dict) and len(contract_info) == 1:
            contract_name, contract_data = list(contract_info.items())[0]
            yield contract_name, contract_data or dict()
        else:
            raise ValueError("Malformed constructor parameters YAML.")


def _get_contract_names(config: typing.Dict) -> List[str]:
    return [contract_name for contract_name, _ in _iter_contracts(config)]


def _is_encodable(abi_type: str, value: Any) -> bool:
    # some web3 versions raise on malformed values instead of returning False
    try:
        return w3.is_encodable(abi_type, value)
    except Exception:
        return False


def _validate_method_args(
    method_abis: List[MethodABI], args: typing.Sequence[Any]
) -> typing.Dict[str, Any]:
    """Validates the transaction arguments against the function ABI."""
    if len(method_abis) == 0:
        raise ValueError("No method abis provided for validation of args")

    abis_matching_args_length = [abi for abi in method_abis if len(abi.inputs) == len(args)]
    for abi in abis_matching_args_length:
        named_args = {}
        for arg, abi_input in zip(args, abi.inputs):
            if not _is_encodable(abi_input.type, arg):
                break
            named_args[abi_input.name] = arg
        else:
            return named_args
    raise ValueError(
        f"Could not find ABI for '{method_abis[0].name}' with {len(args)} arg(s) and given type(s)"
    )


def _validate_constructor_abi_inputs(
    contract_name: str,
    abi_inputs: List[Any],
    resolved_parameters: OrderedDict,
) -> None:
    """
    Validates constructor parameters against the constructor ABI.

    Parameters are positional; their names in the YAML file are labels only.
    """
    if len(resolved_parameters) != len(abi_inputs):
        raise ConstructorParameters.Invalid(
            f"Constructor parameters length mismatch - "
            f"{contract_name} ABI requires {len(abi_inputs)}, Got {len(resolved_parameters)}."
        )

    codex = enumerate(zip(abi_inputs, resolved_parameters.items()))
    for position, (abi_input, (name, value)) in codex:
        if not _is_encodable(abi_input.type, value):
            raise ConstructorParameters.Invalid(
                f"Constructor param name '{name}' at position {position} has a value '{value}' "
                f"whose type does not match expected ABI type '{abi_input.type}'"
            )


class ConstructorParameters:
    """Represents the constructor parameters for a set of contracts."""

    class Invalid(Exception):
        """Raised when the constructor parameters are invalid"""

    def __init__(self, parameters: OrderedDict):
        self.parameters = parameters
        for contract_name, contract_parameters in parameters.items():
            contract_container = get_contract_container(contract_name)
            _validate_constructor_abi_inputs(
                contract_name=contract_name,
                abi_inputs=contract_container.constructor.abi.inputs,
                resolved_parameters=_resolve_params(contract_parameters),
            )

    @classmethod
    def from_config(
        cls, config: typing.Dict, context: VariableContext
    ) -> "ConstructorParameters":
        print("Processing contract constructor parameters...")
        parameters = OrderedDict()
        for contract_name, contract_data in _iter_contracts(config):
            raw_values = contract_data.get(CONTRACT_CONSTRUCTOR_PARAMETER_KEY) or dict()
            if not isinstance(raw_values, dict):
                raise ValueError(f"Malformed constructor parameter config for {contract_name}.")
            parameters[contract_name] = _process_raw_values(raw_values, context)
        return cls(parameters=parameters)

    def resolve(self, contract_name: str) -> OrderedDict:
        """Resolves the constructor parameters for a single contract."""
        try:
            parameters = self.parameters[contract_name]
        except KeyError:
            raise ValueError(f"Contract '{contract_name}' is not part of this deployment.")
        return _resolve_params(parameters)


class ProxyParameters:
    """
    Represents the proxy parameters for contracts deployed behind
    an upgradeable proxy.

        ExchangeProxy:
          proxy:
            owner: $deployer
            initializer:
              method: initialize
              args: [$MULTI_SIG_ACCOUNT]
    """

    OWNER = "owner"
    INITIALIZER = "initializer"
    DEFAULT_OWNER = f"{Variable.VARIABLE_PREFIX}{DeployerAccount.DEPLOYER_INDICATOR}"
    DEFAULT_INITIALIZER_METHOD = "initialize"

    class Invalid(Exception):
        """Raised when the proxy parameters are invalid"""

    class ProxyInfo(NamedTuple):
        owner: Any
        initializer_method: Optional[str]
        initializer_args: List[Any]

    def __init__(self, contracts_proxy_info: OrderedDict):
        self.contracts_proxy_info = contracts_proxy_info
        for contract_name, proxy_info in contracts_proxy_info.items():
            if proxy_info.initializer_method:
                container = get_contract_container(contract_name)
                method_abis = [
                    abi
                    for abi in container.contract_type.methods
                    if abi.name == proxy_info.initializer_method
                ]
                try:
                    _validate_method_args(
                        method_abis=method_abis,
                        args=_resolve_param(proxy_info.initializer_args),
                    )
                except ValueError as e:
                    raise self.Invalid(f"Invalid initializer for {contract_name}: {e}")

            proxy_container = get_proxy_container()
            _validate_constructor_abi_inputs(
                contract_name=proxy_container.contract_type.name,
                abi_inputs=proxy_container.constructor.abi.inputs,
                resolved_parameters=self._proxy_constructor_params(
                    logic=ZERO_ADDRESS, owner=_resolve_param(proxy_info.owner), data=b""
                ),
            )

    @classmethod
    def from_config(cls, config: typing.Dict, context: VariableContext) -> "ProxyParameters":
        print("Processing proxy parameters...")
        contracts_proxy_info = OrderedDict()
        for contract_name, contract_data in _iter_contracts(config):
            if CONTRACT_PROXY_PARAMETER_KEY not in contract_data:
                continue
            proxy_data = contract_data[CONTRACT_PROXY_PARAMETER_KEY] or dict()
            contracts_proxy_info[contract_name] = cls._generate_proxy_info(proxy_data, context)
        return cls(contracts_proxy_info=contracts_proxy_info)

    @classmethod
    def _generate_proxy_info(cls, proxy_data: typing.Dict, context: VariableContext) -> ProxyInfo:
        owner = _process_raw_value(proxy_data.get(cls.OWNER, cls.DEFAULT_OWNER), context)

        initializer = proxy_data.get(cls.INITIALIZER)
        if initializer is None:
            return cls.ProxyInfo(owner=owner, initializer_method=None, initializer_args=[])
        if not isinstance(initializer, dict):
            raise cls.Invalid("'initializer' must be a mapping with 'method' and 'args'.")

        args = initializer.get("args") or list()
        if not isinstance(args, list):
            raise cls.Invalid("Initializer 'args' must be a list.")

        return cls.ProxyInfo(
            owner=owner,
            initializer_method=initializer.get("method", cls.DEFAULT_INITIALIZER_METHOD),
            initializer_args=_process_raw_value(args, context),
        )

    @staticmethod
    def _proxy_constructor_params(logic, owner, data) -> OrderedDict:
        return OrderedDict({"_logic": logic, "initialOwner": owner, "_data": data})

    def contract_needs_proxy(self, contract_name: str) -> bool:
        return contract_name in self.contracts_proxy_info

    def resolve_initializer(self, contract_name: str) -> typing.Tuple[Optional[str], List[Any]]:
        """Returns the initializer method name and its resolved arguments."""
        proxy_info = self._get_proxy_info(contract_name)
        return proxy_info.initializer_method, _resolve_param(proxy_info.initializer_args)

    def resolve(self, contract_name: str, implementation: ContractInstance) -> OrderedDict:
        """Resolves the proxy constructor parameters for an implementation contract."""
        proxy_info = self._get_proxy_info(contract_name)
        method, args = self.resolve_initializer(contract_name)
        data = b""
        if method:
            data = getattr(implementation, method).encode_input(*args)
        return self._proxy_constructor_params(
            logic=implementation.address,
            owner=_resolve_param(proxy_info.owner),
            data=data,
        )

    def _get_proxy_info(self, contract_name: str) -> ProxyInfo:
        proxy_info = self.contracts_proxy_info.get(contract_name)
        if not proxy_info:
            raise ValueError(f"Unexpected contract to proxy: {contract_name}")
        return proxy_info


class Deployment(NamedTuple):
    """A confirmed deployment and the constructor arguments it was deployed with."""

    name: str
    instance: ContractInstance
    constructor_args: List[Any]

    @property
    def address(self) -> str:
        return self.instance.address


class Deployer:
    """
    Represents an ape account plus deployment parameters
    for a set of contracts, plus validated/annotated execution.
    """

    def __init__(
        self,
        config: typing.Dict,
        path: Path,
        verify: bool,
        account: Optional[AccountAPI] = None,
        constants: Optional[typing.Dict[str, Any]] = None,
        autosign: bool = False,
    ):
        validate_config(config)
        self._account = account if account is not None else select_account()
        self._autosign = autosign
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        if isinstance(self._account, KeyfileAccount):
            self._account.set_autosign(autosign)

        self.path = path
        self.config = config
        self.verify = verify
        check_plugins(verify=verify)

        # runtime constants (e.g. values from the environment) win over the file
        self.constants = dict(config.get("constants") or dict())
        self.constants.update(constants or dict())

        self.context = VariableContext(
            contract_names=_get_contract_names(config),
            constants=self.constants,
            deployer_address=self._account.address,
        )
        self.constructor_parameters = ConstructorParameters.from_config(config, self.context)
        self.proxy_parameters = ProxyParameters.from_config(config, self.context)
        self.deployments: List[Deployment] = list()

        self._print_deployment_info()
        if not self._autosign:
            # Confirms the start of the deployment.
            _continue()

    @classmethod
    def from_yaml(cls, filepath: Path, *args, **kwargs) -> "Deployer":
        config = _load_yaml(filepath)
        return cls(config, filepath, *args, **kwargs)

    def deploy(self, container: ContractContainer) -> ContractInstance:
        """
        Deploys a contract and, when configured, the proxy in front of it.
        Returns the instance users should interact with.
        """
        contract_name = container.contract_type.name

        resolved_params = self.constructor_parameters.resolve(contract_name)
        instance = self._deploy_contract(container, resolved_params)
        self.context.instances[contract_name] = instance
        print(f"Contract deployed to: {instance.address}")

        if self.proxy_parameters.contract_needs_proxy(contract_name):
            instance = self._deploy_proxy(container, implementation=instance)
            self.context.instances[contract_name] = instance

        return instance

    def _deploy_contract(
        self, container: ContractContainer, resolved_params: OrderedDict
    ) -> ContractInstance:
        contract_name = container.contract_type.name
        if not self._autosign:
            _confirm_resolution(resolved_params, contract_name)

        constructor_args = list(resolved_params.values())
        instance = self._account.deploy(container, *constructor_args)
        self.deployments.append(
            Deployment(name=contract_name, instance=instance, constructor_args=constructor_args)
        )
        return instance

    def _deploy_proxy(
        self, container: ContractContainer, implementation: ContractInstance
    ) -> ContractInstance:
        contract_name = container.contract_type.name
        proxy_container = get_proxy_container()
        print(
            f"\nDeploying {proxy_container.contract_type.name} "
            f"contract to proxy {contract_name}."
        )
        resolved_proxy_params = self.proxy_parameters.resolve(contract_name, implementation)
        proxy_contract = self._deploy_contract(proxy_container, resolved_proxy_params)
        print(f"Contract proxy deployed to: {proxy_contract.address}")
        return container.at(proxy_contract.address)

    def finalize(self) -> List[Deployment]:
        """Optionally publishes all deployments of this run to the block explorer."""
        if self.verify:
            verify_deployments(deployments=self.deployments)
        for deployment in self.deployments:
            print(f"(i) {deployment.name} at {deployment.address}")
        return self.deployments

    def _print_deployment_info(self):
        print(
            f"Account: {self._account.address}",
            f"Config: {self.path}",
            f"Verify: {self.verify}",
            f"Ecosystem: {networks.provider.network.ecosystem.name}",
            f"Network: {networks.provider.network.name}",
            f"Chain ID: {networks.provider.network.chain_id}",
            sep="\n",
        )
