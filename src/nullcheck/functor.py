"""Uniform invocation of constructors and methods."""

from __future__ import annotations

import abc
import asyncio
import inspect
from typing import Sequence

from nullcheck.exceptions import InvocationMarshalError, InvocationTargetError
from nullcheck.members import MemberDescriptor, MemberKind, MethodBinding, ParameterSpec


def type_label(parameter_type: object) -> str:
    if isinstance(parameter_type, type):
        return parameter_type.__qualname__
    return str(parameter_type)


def _needs_event_loop(function: object) -> bool:
    return inspect.iscoroutinefunction(function) or inspect.isasyncgenfunction(function)


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


async def _first_item(stream) -> object:
    try:
        return await stream.__anext__()
    except StopAsyncIteration:
        return None
    finally:
        await stream.aclose()


def _settle(function: object, result: object) -> object:
    """Run the body of a coroutine or generator member that a plain call
    only created."""
    if inspect.iscoroutinefunction(function) and inspect.iscoroutine(result):
        return asyncio.run(result)
    if inspect.isasyncgenfunction(function) and inspect.isasyncgen(result):
        return asyncio.run(_first_item(result))
    if inspect.isgeneratorfunction(function) and inspect.isgenerator(result):
        try:
            return next(result, None)
        finally:
            result.close()
    return result


class Functor(abc.ABC):
    """A callable member with typed parameters and a way to invoke it.

    Any exception raised by the member itself surfaces from :meth:`invoke` as
    :class:`InvocationTargetError`; failing to dispatch the call at all raises
    :class:`InvocationMarshalError`.

    That covers every ``BaseException`` except ``KeyboardInterrupt`` and
    ``GeneratorExit``, which propagate. Coroutine functions are run to
    completion on a fresh event loop; generator functions, sync or async, are
    advanced to their first item and closed.
    """

    def __init__(self, descriptor: MemberDescriptor):
        self.descriptor = descriptor

    @property
    def owner(self) -> object:
        return self.descriptor.owner

    @property
    def parameters(self) -> tuple[ParameterSpec, ...]:
        return self.descriptor.parameters

    @property
    def parameter_types(self) -> tuple[object, ...]:
        return tuple(parameter.type for parameter in self.parameters)

    @property
    def parameter_annotations(self) -> tuple[tuple[object, ...], ...]:
        return tuple(parameter.annotations for parameter in self.parameters)

    def invoke(self, receiver: object, args: Sequence[object]) -> object:
        positional, keyword = self._split_arguments(args)
        call_args = self._leading_arguments(receiver) + positional
        self._bind(call_args, keyword)
        function = self.descriptor.function
        if _needs_event_loop(function) and _loop_running():
            raise InvocationMarshalError(
                f"cannot run {self} inside a running event loop", member=str(self)
            )
        try:
            return _settle(function, self._call(call_args, keyword))
        except (KeyboardInterrupt, GeneratorExit):
            raise
        except BaseException as exc:
            raise InvocationTargetError(exc) from exc

    def _split_arguments(self, args: Sequence[object]) -> tuple[list[object], dict[str, object]]:
        if len(args) != len(self.parameters):
            raise InvocationMarshalError(
                f"{self} takes {len(self.parameters)} arguments, got {len(args)}",
                member=str(self),
            )
        positional: list[object] = []
        keyword: dict[str, object] = {}
        for parameter, value in zip(self.parameters, args):
            if parameter.keyword_only:
                keyword[parameter.name] = value
            else:
                positional.append(value)
        return positional, keyword

    def _bind(self, call_args: list[object], keyword: dict[str, object]) -> None:
        function = self.descriptor.function
        if function is None:
            if call_args or keyword:
                raise InvocationMarshalError(f"{self} takes no arguments", member=str(self))
            return
        try:
            inspect.signature(function).bind(*call_args, **keyword)
        except TypeError as exc:
            raise InvocationMarshalError(f"cannot call {self}: {exc}", member=str(self)) from exc

    @abc.abstractmethod
    def _leading_arguments(self, receiver: object) -> list[object]: ...

    @abc.abstractmethod
    def _call(self, call_args: list[object], keyword: dict[str, object]) -> object: ...

    def _signature_label(self) -> str:
        return ", ".join(type_label(parameter_type) for parameter_type in self.parameter_types)

    def __str__(self) -> str:
        return f"{self.descriptor.name}({self._signature_label()})"


class ConstructorFunctor(Functor):
    def __init__(self, descriptor: MemberDescriptor):
        if descriptor.kind is not MemberKind.CONSTRUCTOR:
            raise InvocationMarshalError(f"{descriptor!r} is not a constructor")
        super().__init__(descriptor)

    def _leading_arguments(self, receiver: object) -> list[object]:
        cls = self.descriptor.owner
        if inspect.isabstract(cls):
            raise InvocationMarshalError(f"cannot instantiate abstract class {self}", member=str(self))
        # __init__ and __new__ both take the class/instance slot first.
        return [cls]

    def _bind(self, call_args: list[object], keyword: dict[str, object]) -> None:
        if self.descriptor.function is None:
            super()._bind(call_args[1:], keyword)
            return
        super()._bind(call_args, keyword)

    def _call(self, call_args: list[object], keyword: dict[str, object]) -> object:
        cls = call_args[0]
        return cls(*call_args[1:], **keyword)


class MethodFunctor(Functor):
    def __init__(self, descriptor: MemberDescriptor):
        if descriptor.kind is not MemberKind.METHOD:
            raise InvocationMarshalError(f"{descriptor!r} is not a method")
        if descriptor.function is None:
            raise InvocationMarshalError(f"{descriptor!r} has no function to call")
        super().__init__(descriptor)
        self._function = descriptor.function

    def _leading_arguments(self, receiver: object) -> list[object]:
        binding = self.descriptor.binding
        if binding is MethodBinding.INSTANCE:
            owner = self.descriptor.owner
            if receiver is None:
                raise InvocationMarshalError(
                    f"instance method {self} needs a receiver", member=str(self)
                )
            if isinstance(owner, type) and not isinstance(receiver, owner):
                raise InvocationMarshalError(
                    f"{receiver!r} is not an instance of {owner.__qualname__}",
                    member=str(self),
                )
            return [receiver]
        if binding is MethodBinding.CLASS:
            return [self.descriptor.owner]
        # static calls ignore the receiver
        return []

    def _call(self, call_args: list[object], keyword: dict[str, object]) -> object:
        return self._function(*call_args, **keyword)


def functor_for(descriptor: MemberDescriptor) -> Functor:
    if descriptor.kind is MemberKind.CONSTRUCTOR:
        return ConstructorFunctor(descriptor)
    return MethodFunctor(descriptor)
