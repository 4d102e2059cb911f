"""Default filler values for parameters that are not under test."""

from __future__ import annotations

import collections.abc
import io
from typing import Generic, Protocol, TypeVar, runtime_checkable

from nullcheck.exceptions import ConfigurationError
from nullcheck.invariants import check_not_none

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)
T_contra = TypeVar("T_contra", contravariant=True)
R_co = TypeVar("R_co", covariant=True)


@runtime_checkable
class Function(Protocol[T_contra, R_co]):
    """Single-argument transform."""

    def __call__(self, value: T_contra, /) -> R_co: ...


@runtime_checkable
class Supplier(Protocol[T_co]):
    """Zero-argument value supplier."""

    def __call__(self) -> T_co: ...


def identity(value: T, /) -> T:
    return value


class _ConstantSupplier(Generic[T]):
    __slots__ = ("_value",)

    def __init__(self, value: T):
        self._value = value

    def __call__(self) -> T:
        return self._value

    def __repr__(self) -> str:
        return f"supplier_of({self._value!r})"


def supplier_of(value: T) -> Supplier[T]:
    return _ConstantSupplier(check_not_none(value, "value"))


# Primitive slots are exempt from the null check but still need a valid
# value when another slot is the target.
PRIMITIVE_DEFAULTS: dict[type, object] = {
    bool: False,
    int: 0,
    float: 0.0,
    complex: 0j,
}


def is_primitive(parameter_type: object) -> bool:
    return isinstance(parameter_type, type) and parameter_type in PRIMITIVE_DEFAULTS


def primitive_default(parameter_type: object) -> object | None:
    if not isinstance(parameter_type, type):
        return None
    return PRIMITIVE_DEFAULTS.get(parameter_type)


def _builtin_defaults() -> dict[object, object]:
    buffer = io.StringIO()
    error = Exception()
    return {
        # mutable types
        io.StringIO: buffer,
        io.TextIOBase: buffer,
        BaseException: error,
        Exception: error,
        # The following aren't safe generically: a Supplier[str] still gets
        # a supplier of 1, and a Function[A, B] gets the identity. Only
        # presence of a non-None filler matters here.
        type: type,
        Function: identity,
        collections.abc.Callable: identity,
        Supplier: supplier_of(1),
    }


class DefaultValueRegistry:
    """Maps a parameter type to a representative non-None instance.

    Lookups use the exact key only: a value registered for ``Exception`` is
    not offered for a ``ValueError`` parameter. Explicit entries win over the
    built-in table seeded at construction.
    """

    def __init__(self) -> None:
        self._overrides: dict[object, object] = {}
        self._builtin = _builtin_defaults()

    def set_default(self, parameter_type: object, value: object) -> DefaultValueRegistry:
        check_not_none(parameter_type, "parameter_type")
        check_not_none(value, "value")
        if isinstance(parameter_type, type) and not _is_instance(value, parameter_type):
            raise ConfigurationError(
                f"default for {parameter_type.__qualname__} must be an instance of it, "
                f"got {type(value).__qualname__}"
            )
        self._overrides[parameter_type] = value
        return self

    def get(self, parameter_type: object) -> object | None:
        check_not_none(parameter_type, "parameter_type")
        try:
            if parameter_type in self._overrides:
                return self._overrides[parameter_type]
            return self._builtin.get(parameter_type)
        except TypeError:
            # unhashable annotation objects have no entry
            return None

    def __contains__(self, parameter_type: object) -> bool:
        return self.get(parameter_type) is not None

    def overrides(self) -> dict[object, object]:
        return dict(self._overrides)


def _is_instance(value: object, parameter_type: type) -> bool:
    try:
        return isinstance(value, parameter_type)
    except TypeError:
        # non runtime-checkable protocols cannot be verified
        return True
