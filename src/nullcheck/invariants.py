"""Guards and markers for code that is checked by nullcheck."""

from __future__ import annotations

from typing import Callable, TypeVar

from nullcheck.exceptions import NullArgumentError

T = TypeVar("T")
FuncT = TypeVar("FuncT", bound=Callable[..., object])

NULLABLE_ATTRIBUTE = "__nullcheck_nullable__"


class Nullable:
    """Exemption marker: ``None`` is a legitimate value for this parameter.

    Use it as ``Annotated[str, Nullable]``. Both the class and its instances
    are recognised.
    """

    def __repr__(self) -> str:
        return "Nullable"


def is_nullable_marker(value: object) -> bool:
    return value is Nullable or isinstance(value, Nullable)


def nullable(*names: str) -> Callable[[FuncT], FuncT]:
    """Mark parameters of the decorated function as accepting ``None``.

    Side-table form of :class:`Nullable` for functions without annotations.
    The function itself is returned unchanged apart from the marker attribute.
    """
    for name in names:
        check_not_none(name, "names")

    def _mark(func: FuncT) -> FuncT:
        existing = frozenset(getattr(func, NULLABLE_ATTRIBUTE, frozenset()))
        setattr(func, NULLABLE_ATTRIBUTE, existing | frozenset(names))
        return func

    return _mark


def nullable_names(func: object) -> frozenset[str]:
    return frozenset(getattr(func, NULLABLE_ATTRIBUTE, frozenset()))


def check_not_none(value: T | None, name: str = "", **env: object) -> T:
    """Return ``value`` or raise :class:`NullArgumentError` if it is ``None``.

    ``env`` is rendered into the message for diagnostics only.
    """
    if value is None:
        reason = f"{name} must not be None" if name else "required value is None"
        if env:
            details = ", ".join(f"{key}={env[key]!r}" for key in sorted(env))
            reason = f"{reason} ({details})"
        raise NullArgumentError(reason)
    return value
