"""Introspection of the constructors and methods a scan runs over."""

from __future__ import annotations

import builtins
import collections.abc
import enum
import importlib
import inspect
import sys
import types
import typing
from dataclasses import dataclass
from typing import Callable, Iterator, TypeVar

from nullcheck.defaults import Function, Supplier, is_primitive
from nullcheck.exceptions import ConfigurationError
from nullcheck.invariants import Nullable, check_not_none, is_nullable_marker, nullable_names
from nullcheck.logging import get_logger
from nullcheck.visibility import Modifier, modifiers_for_name

log = get_logger(__name__)

_NONE_TYPE = type(None)

_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)

# The data model passes None to these on purpose.
_DATA_MODEL_NULLABLE = frozenset({"__eq__", "__ne__", "__exit__", "__aexit__", "__get__"})

_CONSTRUCTOR_NAMES = ("__init__", "__new__")


class MemberKind(enum.Enum):
    CONSTRUCTOR = "constructor"
    METHOD = "method"


class MethodBinding(enum.Enum):
    CONSTRUCTOR = "constructor"
    INSTANCE = "instance"
    CLASS = "class"
    STATIC = "static"


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    kind: inspect._ParameterKind
    annotation: object
    type: object
    annotations: tuple[object, ...] = ()
    has_default: bool = False

    @property
    def keyword_only(self) -> bool:
        return self.kind is inspect.Parameter.KEYWORD_ONLY

    @property
    def is_primitive(self) -> bool:
        return is_primitive(self.type)

    @property
    def is_nullable(self) -> bool:
        return any(is_nullable_marker(marker) for marker in self.annotations)


@dataclass(frozen=True, eq=False)
class MemberDescriptor:
    owner: object
    name: str
    kind: MemberKind
    binding: MethodBinding
    function: Callable[..., object] | None
    modifiers: Modifier
    parameters: tuple[ParameterSpec, ...]

    @property
    def identity(self) -> object:
        if self.function is None:
            return self.owner
        return self.function

    @property
    def is_static(self) -> bool:
        return bool(self.modifiers & Modifier.STATIC)

    @property
    def is_synthetic(self) -> bool:
        return bool(self.modifiers & Modifier.SYNTHETIC)

    @property
    def qualified_name(self) -> str:
        owner_name = getattr(self.owner, "__qualname__", None) or getattr(
            self.owner, "__name__", repr(self.owner)
        )
        if self.kind is MemberKind.CONSTRUCTOR:
            return str(owner_name)
        return f"{owner_name}.{self.name}"

    def __repr__(self) -> str:
        return f"<{self.binding.value} {self.kind.value} {self.qualified_name}>"


def normalize_annotation(annotation: object) -> tuple[object, tuple[object, ...]]:
    """Reduce an annotation to a registry lookup key plus its markers.

    ``Optional[T]`` contributes the :class:`Nullable` marker and the key of
    ``T``; ``Annotated`` extras are carried over as markers unchanged.
    """
    if annotation is inspect.Parameter.empty or annotation is typing.Any:
        return object, ()
    if isinstance(annotation, str):
        return _normalize_string(annotation)
    if annotation is None or annotation is _NONE_TYPE:
        return _NONE_TYPE, (Nullable,)
    origin = typing.get_origin(annotation)
    if origin is typing.Annotated:
        base, *metadata = typing.get_args(annotation)
        key, markers = normalize_annotation(base)
        return key, markers + tuple(metadata)
    if origin is typing.Union or origin is types.UnionType:
        args = typing.get_args(annotation)
        members = [arg for arg in args if arg is not _NONE_TYPE]
        if len(members) == len(args):
            return annotation, ()
        if len(members) == 1:
            key, markers = normalize_annotation(members[0])
        else:
            key, markers = typing.Union[tuple(members)], ()
        return key, _with_nullable(markers)
    if origin is collections.abc.Callable:
        args = typing.get_args(annotation)
        if args and isinstance(args[0], list):
            if len(args[0]) == 0:
                return Supplier, ()
            if len(args[0]) == 1:
                return Function, ()
        return collections.abc.Callable, ()
    if isinstance(annotation, TypeVar):
        bound = annotation.__bound__
        return normalize_annotation(bound if bound is not None else object)
    if isinstance(origin, type):
        return origin, ()
    return annotation, ()


def _normalize_string(text: str) -> tuple[object, tuple[object, ...]]:
    text = text.strip()
    markers: tuple[object, ...] = ()
    if text.startswith("Optional[") and text.endswith("]"):
        text = text[len("Optional[") : -1].strip()
        markers = (Nullable,)
    parts = [part.strip() for part in text.split("|")]
    if "None" in parts:
        markers = (Nullable,)
        parts = [part for part in parts if part != "None"] or ["None"]
    remaining = " | ".join(parts)
    resolved = getattr(builtins, remaining, None)
    if isinstance(resolved, type):
        return resolved, markers
    return remaining, markers


def _with_nullable(markers: tuple[object, ...]) -> tuple[object, ...]:
    if any(is_nullable_marker(marker) for marker in markers):
        return markers
    return markers + (Nullable,)


def _type_hints(function: Callable[..., object]) -> dict[str, object]:
    try:
        return typing.get_type_hints(function, include_extras=True)
    except Exception as exc:
        log.warning(
            "could not resolve annotations of {}: {}; using raw annotations",
            getattr(function, "__qualname__", function),
            exc,
        )
        return {}


def parameters_of(
    function: Callable[..., object],
    *,
    skip_receiver: bool,
    all_nullable: bool = False,
) -> tuple[ParameterSpec, ...]:
    """Describe the null-checkable parameters of ``function``.

    ``*args``/``**kwargs`` are not parameters here. With ``skip_receiver`` the
    leading ``self``/``cls`` slot is dropped.
    """
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"cannot introspect {function!r}: {exc}") from exc
    hints = _type_hints(function)
    marked_nullable = nullable_names(function)
    raw_parameters = list(signature.parameters.values())
    if skip_receiver and raw_parameters and raw_parameters[0].kind in _POSITIONAL:
        raw_parameters = raw_parameters[1:]
    specs: list[ParameterSpec] = []
    for parameter in raw_parameters:
        if parameter.kind in _VARIADIC:
            continue
        annotation = hints.get(parameter.name, parameter.annotation)
        key, markers = normalize_annotation(annotation)
        if all_nullable or parameter.default is None or parameter.name in marked_nullable:
            markers = _with_nullable(markers)
        specs.append(
            ParameterSpec(
                name=parameter.name,
                kind=parameter.kind,
                annotation=annotation,
                type=key,
                annotations=markers,
                has_default=parameter.default is not inspect.Parameter.empty,
            )
        )
    return tuple(specs)


def is_synthetic(function: object) -> bool:
    """True for functions generated at runtime, e.g. by ``dataclasses``."""
    code = getattr(function, "__code__", None)
    return code is not None and code.co_filename == "<string>"


def _in_class_scope(cls: type) -> bool:
    parts = cls.__qualname__.split(".")
    return len(parts) > 1 and parts[-2] != "<locals>"


def _declared_constructor_function(cls: type) -> Callable[..., object] | None:
    namespace = vars(cls)
    for name in _CONSTRUCTOR_NAMES:
        raw = namespace.get(name)
        if raw is None:
            continue
        function = raw.__func__ if isinstance(raw, staticmethod) else raw
        if inspect.isfunction(function):
            return function
    return None


def _inherited_constructor_function(cls: type) -> Callable[..., object] | None:
    for base in cls.__mro__:
        if base is object:
            break
        function = _declared_constructor_function(base)
        if function is not None:
            return function
    return None


def _constructor_descriptor(cls: type, function: Callable[..., object] | None) -> MemberDescriptor:
    modifiers = modifiers_for_name(cls.__name__, in_class=_in_class_scope(cls))
    parameters: tuple[ParameterSpec, ...] = ()
    if function is not None:
        if is_synthetic(function):
            modifiers |= Modifier.SYNTHETIC
        parameters = parameters_of(function, skip_receiver=True)
    return MemberDescriptor(
        owner=cls,
        name=cls.__name__,
        kind=MemberKind.CONSTRUCTOR,
        binding=MethodBinding.CONSTRUCTOR,
        function=function,
        modifiers=modifiers,
        parameters=parameters,
    )


def describe_constructor(cls: type) -> MemberDescriptor:
    """Describe how ``cls(...)`` is called, using the nearest declared
    ``__init__``/``__new__`` (or none, for a parameterless constructor)."""
    if not isinstance(cls, type):
        raise ConfigurationError(f"expected a class, got {cls!r}")
    return _constructor_descriptor(cls, _inherited_constructor_function(cls))


def declared_constructors(cls: type) -> list[MemberDescriptor]:
    if not isinstance(cls, type):
        raise ConfigurationError(f"expected a class, got {cls!r}")
    function = _declared_constructor_function(cls)
    if function is None:
        return []
    return [_constructor_descriptor(cls, function)]


def _method_descriptor(
    owner: object,
    name: str,
    function: Callable[..., object],
    binding: MethodBinding,
) -> MemberDescriptor:
    in_class = isinstance(owner, type)
    modifiers = modifiers_for_name(_demangle(name, owner), in_class=in_class)
    if binding is not MethodBinding.INSTANCE:
        modifiers |= Modifier.STATIC
    if is_synthetic(function):
        modifiers |= Modifier.SYNTHETIC
    parameters = parameters_of(
        function,
        skip_receiver=binding in (MethodBinding.INSTANCE, MethodBinding.CLASS),
        all_nullable=in_class and name in _DATA_MODEL_NULLABLE,
    )
    return MemberDescriptor(
        owner=owner,
        name=name,
        kind=MemberKind.METHOD,
        binding=binding,
        function=function,
        modifiers=modifiers,
        parameters=parameters,
    )


def _classify_raw(raw: object, *, owner: object) -> tuple[Callable[..., object], MethodBinding] | None:
    if isinstance(raw, staticmethod):
        function, binding = raw.__func__, MethodBinding.STATIC
    elif isinstance(raw, classmethod):
        function, binding = raw.__func__, MethodBinding.CLASS
    elif inspect.isfunction(raw):
        function = raw
        binding = MethodBinding.INSTANCE if isinstance(owner, type) else MethodBinding.STATIC
    else:
        return None
    if not inspect.isfunction(function):
        return None
    return function, binding


def declared_methods(target: object) -> list[MemberDescriptor]:
    """List the methods declared directly on a class, or the functions
    defined in a module, in declaration order."""
    return list(_iter_declared_methods(target))


def _iter_declared_methods(target: object) -> Iterator[MemberDescriptor]:
    if isinstance(target, types.ModuleType):
        for name, value in vars(target).items():
            if inspect.isfunction(value) and value.__module__ == target.__name__:
                yield _method_descriptor(target, name, value, MethodBinding.STATIC)
        return
    if not isinstance(target, type):
        raise ConfigurationError(f"expected a class or module, got {target!r}")
    for name, raw in vars(target).items():
        if name in _CONSTRUCTOR_NAMES:
            continue
        classified = _classify_raw(raw, owner=target)
        if classified is None:
            continue
        function, binding = classified
        yield _method_descriptor(target, name, function, binding)


def _demangle(name: str, owner: object) -> str:
    if not isinstance(owner, type):
        return name
    prefix = f"_{owner.__name__.lstrip('_')}__"
    if name.startswith(prefix) and not name.endswith("__"):
        return name[len(prefix) - 2 :]
    return name


def _is_free_function(function: Callable[..., object]) -> bool:
    parts = function.__qualname__.split(".")
    return len(parts) == 1 or parts[-2] == "<locals>"


def _walk_qualname(function: Callable[..., object]) -> object | None:
    module = sys.modules.get(getattr(function, "__module__", "") or "")
    if module is None:
        return None
    owner: object = module
    for part in function.__qualname__.split(".")[:-1]:
        if part == "<locals>":
            return None
        owner = getattr(owner, part, None)
        if owner is None:
            return None
    return owner


def _classify_on(
    owner: type, function: Callable[..., object]
) -> tuple[Callable[..., object], MethodBinding] | None:
    raw = inspect.getattr_static(owner, function.__name__, None)
    classified = _classify_raw(raw, owner=owner) if raw is not None else None
    if classified is None or classified[0] is not function:
        return None
    return classified


def describe_method(owner: object | None, member: object) -> MemberDescriptor:
    """Describe one method.

    ``member`` may be a name, a function, a bound method, a ``staticmethod``
    or ``classmethod`` object, or an existing descriptor. ``owner`` may be a
    class, a module, an instance (its class is used), or None when the owner
    can be derived from ``member``.
    """
    check_not_none(member, "member")
    if isinstance(member, MemberDescriptor):
        return member
    if owner is not None and not isinstance(owner, (type, types.ModuleType)):
        owner = type(owner)
    if isinstance(member, str):
        if owner is None:
            raise ConfigurationError(f"cannot look up method {member!r} without an owner")
        raw = inspect.getattr_static(owner, member, None)
        classified = _classify_raw(raw, owner=owner) if raw is not None else None
        if classified is None:
            raise ConfigurationError(f"{member!r} is not a method of {owner!r}")
        return _method_descriptor(owner, member, *classified)
    if inspect.ismethod(member):
        bound_to = member.__self__
        function = member.__func__
        if isinstance(bound_to, type):
            return _method_descriptor(bound_to, function.__name__, function, MethodBinding.CLASS)
        return _method_descriptor(
            owner if owner is not None else type(bound_to),
            function.__name__,
            function,
            MethodBinding.INSTANCE,
        )
    if isinstance(member, (staticmethod, classmethod)):
        function = member.__func__
        if owner is None:
            owner = _walk_qualname(function)
        if owner is None:
            raise ConfigurationError(f"cannot determine the owner of {function!r}")
        classified = _classify_raw(member, owner=owner)
        if classified is None:
            raise ConfigurationError(f"{member!r} does not wrap a Python function")
        return _method_descriptor(owner, function.__name__, *classified)
    if inspect.isfunction(member):
        if owner is None and _is_free_function(member):
            owner = sys.modules.get(member.__module__)
        declaring = _walk_qualname(member)
        if owner is None:
            owner = declaring
        if owner is None:
            raise ConfigurationError(
                f"cannot determine the owner of {member.__qualname__}; "
                "pass the owner explicitly to describe_method()"
            )
        if isinstance(owner, types.ModuleType):
            return _method_descriptor(owner, member.__name__, member, MethodBinding.STATIC)
        classified = _classify_on(owner, member)
        if classified is None and isinstance(declaring, type) and declaring is not owner:
            owner = declaring
            classified = _classify_on(owner, member)
        if classified is None:
            classified = (member, MethodBinding.INSTANCE)
        return _method_descriptor(owner, member.__name__, *classified)
    raise ConfigurationError(f"cannot describe {member!r} as a method")


def member_identity(member: object) -> object:
    """Stable identity of a member for the ignore set."""
    if isinstance(member, MemberDescriptor):
        return member.identity
    if isinstance(member, type):
        function = _declared_constructor_function(member)
        return function if function is not None else member
    if isinstance(member, (staticmethod, classmethod)):
        return member.__func__
    if inspect.ismethod(member):
        return member.__func__
    if inspect.isfunction(member):
        return member
    raise ConfigurationError(
        f"cannot ignore {member!r}: pass a class, function, method or descriptor"
    )


def resolve_target(spec: str) -> object:
    """Import ``"package.module"`` or ``"package.module:Qualified.name"``."""
    module_name, _, attribute_path = spec.strip().partition(":")
    if not module_name:
        raise ConfigurationError(f"invalid target {spec!r}")
    try:
        target: object = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"cannot import {module_name!r}: {exc}") from exc
    if not attribute_path:
        return target
    for part in attribute_path.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ConfigurationError(f"{spec!r} does not resolve: {exc}") from exc
    return target
