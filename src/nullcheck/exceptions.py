"""Exception protocol for nullcheck.

Only :class:`NullCheckFailure` is a reported test outcome. Everything else
signals that a check could not run meaningfully and halts the enclosing test.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nullcheck.reporting import Outcome


class NullCheckError(RuntimeError):
    """Base class for errors raised by the checker itself."""


class ConfigurationError(NullCheckError):
    """The checker was set up in a way that prevents a check from running."""


class MissingDefaultError(ConfigurationError):
    """No filler value is registered for a required, non-exempt parameter."""

    def __init__(self, parameter_type: object, *, member: str = ""):
        self.parameter_type = parameter_type
        self.member = member
        message = f"No default value found for {_type_name(parameter_type)}"
        if member:
            message = f"{message} (needed by {member})"
        super().__init__(message)


class InvocationMarshalError(NullCheckError):
    """The call could not be dispatched at all.

    Raised for abstract classes, instance methods without a receiver, or
    argument lists that do not bind to the member's signature. This is a
    defect of the test setup, never of the code under test.
    """

    def __init__(self, message: str, *, member: str = ""):
        super().__init__(message)
        self.member = member


class InvocationTargetError(Exception):
    """Wraps an exception raised from inside an invoked member."""

    def __init__(self, cause: BaseException):
        super().__init__(f"{type(cause).__name__}: {cause}")
        self.cause = cause


class NullCheckFailure(AssertionError):
    """A member accepted ``None`` or rejected it the wrong way."""

    def __init__(self, message: str, *, outcome: Outcome):
        super().__init__(message)
        self.outcome = outcome


class NullArgumentError(TypeError):
    """Null-rejection signal raised by :func:`nullcheck.check_not_none`."""


def _type_name(value: object) -> str:
    if isinstance(value, type):
        module = value.__module__
        if module == "builtins":
            return value.__qualname__
        return f"{module}.{value.__qualname__}"
    return str(value)
