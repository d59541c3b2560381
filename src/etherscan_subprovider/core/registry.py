"""RPC method registry with auto-registration pattern."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from etherscan_subprovider.core.models import EtherscanCall

CallBuilder = Callable[[list[Any]], EtherscanCall]
# (fetch, first_result, params) -> final result; fetch issues further Etherscan calls
Aggregator = Callable[[Callable[[EtherscanCall], Awaitable[Any]], Any, list[Any]], Awaitable[Any]]


@dataclass(frozen=True)
class MethodSpec:
    """
    Translation entry for one RPC method.

    Attributes
    ----------
    name : str
        RPC method name
    builder : CallBuilder
        Maps ordered params to the first Etherscan call
    aggregator : Aggregator | None
        Follow-up step for methods that need more than one call

    """

    name: str
    builder: CallBuilder
    aggregator: Aggregator | None = None


class MethodRegistry:
    """
    Registry of RPC method translations.

    Builders register themselves using the @MethodRegistry.register decorator.
    The dispatcher looks methods up here; anything missing falls through.

    """

    _methods: dict[str, MethodSpec] = {}

    @classmethod
    def register(cls, name: str, aggregator: Aggregator | None = None) -> Callable[[CallBuilder], CallBuilder]:
        """
        Decorator to register a call builder for an RPC method.

        Parameters
        ----------
        name : str
            RPC method name
        aggregator : Aggregator | None
            Optional follow-up step run on the first call's result

        Returns
        -------
        Callable[[CallBuilder], CallBuilder]
            Decorator returning the builder unchanged

        Examples
        --------
        >>> @MethodRegistry.register("eth_getCode")
        ... def get_code(params):
        ...     return EtherscanCall(action="eth_getCode", params={"address": params[0]})

        """

        def decorator(builder: CallBuilder) -> CallBuilder:
            if not name:
                msg = f"Builder {builder.__name__} must be registered under a method name"
                raise ValueError(msg)
            cls._methods[name] = MethodSpec(name=name, builder=builder, aggregator=aggregator)
            return builder

        return decorator

    @classmethod
    def get(cls, method: str) -> MethodSpec | None:
        """Get the translation entry for a method, or None if unsupported."""
        return cls._methods.get(method)

    @classmethod
    def is_supported(cls, method: str) -> bool:
        return method in cls._methods

    @classmethod
    def translate(cls, method: str, params: list[Any]) -> EtherscanCall | None:
        """
        Translate an RPC method and its params into an Etherscan call.

        Parameters
        ----------
        method : str
            RPC method name
        params : list[Any]
            Ordered method parameters

        Returns
        -------
        EtherscanCall | None
            Translated call, or None when the method is not recognized

        """
        spec = cls._methods.get(method)
        if spec is None:
            return None
        return spec.builder(params)

    @classmethod
    def list_methods(cls) -> list[str]:
        """
        Get list of all registered method names.

        Returns
        -------
        list[str]
            RPC method names in registration order

        """
        return list(cls._methods.keys())
