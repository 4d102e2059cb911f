"""Verification that members reject ``None`` for their non-nullable parameters.

A :class:`NullTester` calls each constructor or method once per parameter,
with that parameter set to ``None`` and every other parameter filled from a
:class:`~nullcheck.defaults.DefaultValueRegistry`. The call must raise a
null-rejection error (``TypeError``/``ValueError``) or
``NotImplementedError``. An ``AttributeError`` from an attribute lookup on
``None`` counts as a rejection too. Anything else is reported through the configured
:class:`~nullcheck.reporting.Reporter`.

Parameters whose type is a primitive (``bool``, ``int``, ``float``,
``complex``) or that are marked nullable (``Optional[T]``, a ``None``
default, ``Annotated[T, Nullable]`` or ``@nullable``) are never passed
``None``.
"""

from __future__ import annotations

import types
from typing import TYPE_CHECKING, Iterable

from nullcheck.defaults import DefaultValueRegistry, is_primitive, primitive_default
from nullcheck.exceptions import (
    ConfigurationError,
    InvocationTargetError,
    MissingDefaultError,
)
from nullcheck.functor import ConstructorFunctor, Functor, MethodFunctor
from nullcheck.invariants import check_not_none, is_nullable_marker
from nullcheck.logging import get_logger
from nullcheck.members import (
    MemberDescriptor,
    MemberKind,
    declared_constructors,
    declared_methods,
    describe_constructor,
    describe_method,
    member_identity,
)
from nullcheck.reporting import Outcome, RaisingReporter, Reporter, render_arguments
from nullcheck.visibility import Visibility

if TYPE_CHECKING:
    from nullcheck.config import ScanSettings

log = get_logger(__name__)

NULL_REJECTION_ERRORS: tuple[type[BaseException], ...] = (TypeError, ValueError)
UNSUPPORTED_OPERATION_ERRORS: tuple[type[BaseException], ...] = (NotImplementedError,)


def is_null_dereference(error: BaseException) -> bool:
    """True for an ``AttributeError`` from looking up an attribute on ``None``.

    An explicitly raised ``AttributeError`` carries no ``name`` and is not one.
    """
    return isinstance(error, AttributeError) and error.name is not None and error.obj is None


def _owner_label(owner: object) -> str:
    if isinstance(owner, types.ModuleType):
        return f"module {owner.__name__}"
    if isinstance(owner, type):
        return f"class {owner.__module__}.{owner.__qualname__}"
    return repr(owner)


class NullTester:
    """Checks that members throw on ``None`` arguments.

    Register defaults and ignored members first, then run the scans::

        tester = NullTester().set_default(Path, Path("."))
        tester.test_all_public_constructors(Archive)
        tester.test_all_public_instance_methods(Archive(Path(".")))
    """

    def __init__(
        self,
        *,
        registry: DefaultValueRegistry | None = None,
        reporter: Reporter | None = None,
        accept: Iterable[type[BaseException]] = (),
    ):
        self._registry = registry if registry is not None else DefaultValueRegistry()
        self._reporter = reporter if reporter is not None else RaisingReporter()
        self._accepted = NULL_REJECTION_ERRORS + UNSUPPORTED_OPERATION_ERRORS + tuple(accept)
        self._ignored: list[object] = []

    @classmethod
    def from_settings(
        cls,
        settings: ScanSettings,
        *,
        registry: DefaultValueRegistry | None = None,
        reporter: Reporter | None = None,
    ) -> NullTester:
        tester = cls(registry=registry, reporter=reporter, accept=settings.accept)
        for parameter_type, value in settings.defaults:
            tester.set_default(parameter_type, value)
        for member in settings.ignore:
            tester.ignore(member)
        return tester

    @property
    def registry(self) -> DefaultValueRegistry:
        return self._registry

    @property
    def reporter(self) -> Reporter:
        return self._reporter

    @property
    def accepted_errors(self) -> tuple[type[BaseException], ...]:
        return self._accepted

    def set_default(self, parameter_type: object, value: object) -> NullTester:
        """Use ``value`` for any parameter of exactly ``parameter_type``."""
        self._registry.set_default(parameter_type, value)
        return self

    def ignore(self, member: object) -> NullTester:
        """Leave ``member`` out of the bulk scans."""
        check_not_none(member, "member")
        self._ignored.append(member_identity(member))
        return self

    def is_ignored(self, member: MemberDescriptor) -> bool:
        check_not_none(member, "member")
        if member.is_synthetic:
            return True
        identity = member.identity
        return any(ignored is identity for ignored in self._ignored)

    # member selection

    def constructors_to_scan(self, cls: type, visibility: Visibility) -> list[MemberDescriptor]:
        check_not_none(cls, "cls")
        check_not_none(visibility, "visibility")
        return [
            member
            for member in declared_constructors(cls)
            if visibility.is_member_visible(member) and not self.is_ignored(member)
        ]

    def static_methods_to_scan(self, target: object, visibility: Visibility) -> list[MemberDescriptor]:
        check_not_none(target, "target")
        check_not_none(visibility, "visibility")
        return [
            member
            for member in declared_methods(target)
            if visibility.is_member_visible(member)
            and member.is_static
            and not self.is_ignored(member)
        ]

    def instance_methods_to_scan(self, cls: type, visibility: Visibility) -> list[MemberDescriptor]:
        check_not_none(cls, "cls")
        check_not_none(visibility, "visibility")
        return [
            member
            for member in declared_methods(cls)
            if visibility.is_member_visible(member)
            and not member.is_static
            and not self.is_ignored(member)
        ]

    # bulk scans

    def test_constructors(self, cls: type, visibility: Visibility = Visibility.PUBLIC) -> None:
        """Run :meth:`test_constructor` on the constructor declared by ``cls``
        if it has at least ``visibility``."""
        members = self.constructors_to_scan(cls, visibility)
        self._scan(members, receiver=None, target=cls, scan="constructors")

    def test_all_public_constructors(self, cls: type) -> None:
        self.test_constructors(cls, Visibility.PUBLIC)

    def test_static_methods(self, target: object, visibility: Visibility = Visibility.PUBLIC) -> None:
        """Run :meth:`test_method` on every static method, class method or
        module function declared by ``target`` with at least ``visibility``."""
        members = self.static_methods_to_scan(target, visibility)
        self._scan(members, receiver=None, target=target, scan="static methods")

    def test_all_public_static_methods(self, target: object) -> None:
        self.test_static_methods(target, Visibility.PUBLIC)

    def test_instance_methods(self, instance: object, visibility: Visibility = Visibility.PUBLIC) -> None:
        """Run :meth:`test_method` on every instance method declared by the
        class of ``instance`` with at least ``visibility``."""
        check_not_none(instance, "instance")
        cls = type(instance)
        members = self.instance_methods_to_scan(cls, visibility)
        self._scan(members, receiver=instance, target=cls, scan="instance methods")

    def test_all_public_instance_methods(self, instance: object) -> None:
        self.test_instance_methods(instance, Visibility.PUBLIC)

    def _scan(
        self,
        members: list[MemberDescriptor],
        *,
        receiver: object,
        target: object,
        scan: str,
    ) -> None:
        checked = 0
        for member in members:
            if member.kind is MemberKind.CONSTRUCTOR:
                self.test_constructor(member)
            else:
                self.test_method(receiver, member)
            checked += len(member.parameters)
        log.info(
            "scanned {} {} of {} ({} parameter positions)",
            len(members),
            scan,
            _owner_label(target),
            checked,
        )

    # single members

    def test_constructor(self, ctor: type | MemberDescriptor) -> None:
        """Check every parameter of ``ctor`` (a class or constructor descriptor)."""
        descriptor = self._constructor_descriptor(ctor)
        for index in range(len(descriptor.parameters)):
            self.test_constructor_parameter(descriptor, index)

    def test_method(self, receiver: object | None, method: object) -> None:
        """Check every parameter of ``method``.

        ``receiver`` is the instance to call an instance method on, or None
        for static methods, class methods and module functions.
        """
        descriptor = describe_method(receiver, method)
        for index in range(len(descriptor.parameters)):
            self.test_method_parameter(receiver, descriptor, index)

    def test_constructor_parameter(self, ctor: type | MemberDescriptor, index: int) -> None:
        """Check that ``ctor`` rejects ``None`` at position ``index``.
        Does nothing if that parameter is primitive or nullable."""
        descriptor = self._constructor_descriptor(ctor)
        self.check_parameter(ConstructorFunctor(descriptor), index)

    def test_method_parameter(self, receiver: object | None, method: object, index: int) -> None:
        """Check that ``method`` rejects ``None`` at position ``index``.
        Does nothing if that parameter is primitive or nullable."""
        descriptor = describe_method(receiver, method)
        self.check_parameter(MethodFunctor(descriptor), index, receiver=receiver)

    def _constructor_descriptor(self, ctor: type | MemberDescriptor) -> MemberDescriptor:
        if isinstance(ctor, MemberDescriptor):
            if ctor.kind is not MemberKind.CONSTRUCTOR:
                raise ConfigurationError(f"{ctor!r} is not a constructor")
            return ctor
        check_not_none(ctor, "ctor")
        return describe_constructor(ctor)

    # the check itself

    def check_parameter(self, functor: Functor, index: int, receiver: object = None) -> Outcome | None:
        """Invoke ``functor`` with ``None`` at ``index`` and classify the result.

        Returns None when the parameter is exempt. Failing outcomes are handed
        to the reporter before being returned. A missing default raises
        :class:`MissingDefaultError`; a call that cannot be dispatched raises
        :class:`InvocationMarshalError`.
        """
        check_not_none(functor, "functor")
        parameter_count = len(functor.parameter_types)
        if not 0 <= index < parameter_count:
            raise IndexError(f"parameter index {index} out of range for {functor}")
        if self._is_primitive_or_nullable(functor, index):
            log.debug("skipping exempt parameter {} of {}", index, functor)
            return None
        args = self._build_arguments(functor, index)
        try:
            functor.invoke(receiver, args)
        except InvocationTargetError as exc:
            cause = exc.cause
            if isinstance(cause, self._accepted) or is_null_dereference(cause):
                log.debug("{} rejected None at {} with {}", functor, index, type(cause).__name__)
                return Outcome.CORRECT_REJECTION
            self._reporter.fail(
                f"wrong exception thrown from {functor}: {cause!r}",
                outcome=Outcome.WRONG_EXCEPTION_KIND,
                cause=cause,
                member=str(functor),
            )
            return Outcome.WRONG_EXCEPTION_KIND
        self._reporter.fail(
            f"No exception thrown from {functor}{render_arguments(args)} for {_owner_label(functor.owner)}",
            outcome=Outcome.NO_EXCEPTION_THROWN,
            member=str(functor),
        )
        return Outcome.NO_EXCEPTION_THROWN

    @staticmethod
    def _is_primitive_or_nullable(functor: Functor, index: int) -> bool:
        if is_primitive(functor.parameter_types[index]):
            return True
        return any(is_nullable_marker(marker) for marker in functor.parameter_annotations[index])

    def _build_arguments(self, functor: Functor, null_index: int) -> list[object]:
        parameter_types = functor.parameter_types
        args: list[object] = [None] * len(parameter_types)
        for index, parameter_type in enumerate(parameter_types):
            if index == null_index:
                continue
            value = self._default_value(parameter_type)
            if value is None and not self._is_primitive_or_nullable(functor, index):
                raise MissingDefaultError(parameter_type, member=str(functor))
            args[index] = value
        return args

    def _default_value(self, parameter_type: object) -> object | None:
        value = self._registry.get(parameter_type)
        if value is not None:
            return value
        return primitive_default(parameter_type)
