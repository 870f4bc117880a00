# src/scensim_core/contracts/base.py
"""
Defines the contract capability and the base class for all in-process contracts.

A contract is a plain Python class whose endpoints are methods marked with the
`@endpoint` decorator. The endpoint table (name → method) is built once, by
walking the class MRO, the first time a class is validated or instantiated; a
name bound to two different methods is rejected with `EndpointRegistrationError`.

The VM never calls endpoint methods directly. It only relies on the
`ContractCapability` protocol:
- `invoke(endpoint, api)` runs the named endpoint against the host API and
  returns `False` if the contract has no such endpoint;
- `duplicate()` returns a fresh instance, so every execution frame gets its own
  contract object while all persistent state lives in the world's storage.
"""
from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Callable, ClassVar, Dict, Protocol, runtime_checkable

from .exceptions import EndpointRegistrationError

if TYPE_CHECKING:
    from ..vm.context import ContractApi

logger = logging.getLogger(__name__)

EndpointMethod = Callable[["ContractBase", "ContractApi"], None]


@runtime_checkable
class ContractCapability(Protocol):
    """The contract as seen from the VM."""

    def invoke(self, endpoint: str, api: "ContractApi") -> bool:
        ...

    def duplicate(self) -> "ContractCapability":
        ...


def endpoint(name: str):
    """
    Marks a method as a contract endpoint exported under `name`.

    The decorator can be stacked to export one method under several names.
    """
    def decorator(method: EndpointMethod) -> EndpointMethod:
        names = list(getattr(method, '_endpoint_names', []))
        if name in names:
            raise EndpointRegistrationError(
                contract_name=method.__qualname__, endpoint=name,
                details="the same name is declared twice on one method",
            )
        names.append(name)
        method._endpoint_names = names
        return method
    return decorator


class ContractBase:
    """
    The base class for all contracts run by the in-process VM.

    Subclasses only declare endpoints; they never hold state between calls.
    """
    contract_name: ClassVar[str] = "BaseContract"
    _endpoint_table_cache: ClassVar[Dict[type, Dict[str, str]]] = {}

    def __init__(self):
        self._endpoints: Dict[str, EndpointMethod] = {
            name: getattr(self, attr) for name, attr in type(self).declare_endpoints().items()
        }

    @classmethod
    def declare_endpoints(cls) -> Dict[str, str]:
        """
        Discovers the endpoint table of the class: endpoint name → method attribute name.

        Attributes are resolved through the MRO, so an override in a subclass must
        repeat the decorator. Two distinct methods claiming one name is an error.
        """
        if cls in ContractBase._endpoint_table_cache:
            return ContractBase._endpoint_table_cache[cls]

        table: Dict[str, str] = {}
        for attr_name, member in inspect.getmembers(cls, inspect.isfunction):
            for endpoint_name in getattr(member, '_endpoint_names', ()):
                bound = table.get(endpoint_name)
                if bound is not None and bound != attr_name:
                    raise EndpointRegistrationError(
                        contract_name=cls.__name__, endpoint=endpoint_name,
                        details=f"declared by both '{bound}' and '{attr_name}'",
                    )
                table[endpoint_name] = attr_name

        ContractBase._endpoint_table_cache[cls] = table
        return table

    @property
    def endpoint_names(self):
        return sorted(self._endpoints)

    def has_endpoint(self, name: str) -> bool:
        return name in self._endpoints

    def invoke(self, endpoint_name: str, api: "ContractApi") -> bool:
        method = self._endpoints.get(endpoint_name)
        if method is None:
            return False
        method(api)
        return True

    def duplicate(self) -> ContractBase:
        return type(self)()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(endpoints={len(self._endpoints)})"


# --- Global Contract Registry and Decorator ---

CONTRACT_REGISTRY: Dict[str, type[ContractBase]] = {}


def register_contract(name: str):
    """
    A class decorator registering a contract class under `name`, so scenario worlds
    can bind contract code to it by name. The endpoint table is validated here.
    """
    def decorator(cls: type[ContractBase]):
        if not issubclass(cls, ContractBase):
            raise TypeError(f"Class {cls.__name__} must inherit from ContractBase.")

        table = cls.declare_endpoints()
        if not table:
            raise EndpointRegistrationError(
                contract_name=cls.__name__, endpoint="",
                details="the contract declares no endpoints",
            )

        if name in CONTRACT_REGISTRY:
            logger.warning(f"Contract '{name}' is being redefined/overwritten.")
        cls.contract_name = name
        CONTRACT_REGISTRY[name] = cls
        logger.debug(f"Registered contract '{name}' -> {cls.__name__} ({len(table)} endpoints)")
        return cls
    return decorator
