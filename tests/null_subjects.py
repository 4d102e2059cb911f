"""Classes with known null behaviour, used as scan targets."""

from __future__ import annotations

import abc
import io
from dataclasses import dataclass
from typing import Annotated, AsyncIterator, Iterator, Optional

from nullcheck import Nullable, check_not_none


class Guarded:
    """Rejects None everywhere it should."""

    def __init__(self, name: str, buffer: io.StringIO):
        self.name = check_not_none(name, "name")
        self.buffer = check_not_none(buffer, "buffer")

    def append(self, text: str) -> None:
        self.buffer.write(check_not_none(text, "text"))

    def repeat(self, times: int, text: str) -> str:
        raise NotImplementedError("repeat")

    def label(self, prefix: Annotated[str, Nullable], text: str) -> str:
        check_not_none(text, "text")
        return f"{prefix or ''}{text}"

    def suffix(self, text: Optional[str] = None) -> str:
        return text or ""

    @staticmethod
    def parse(text: str) -> Guarded:
        if text is None:
            raise ValueError("text is required")
        return Guarded(text, io.StringIO())

    @classmethod
    def named(cls, name: str) -> Guarded:
        return cls(name, io.StringIO())

    def _protected_write(self, text: str) -> None:
        self.buffer.write(check_not_none(text, "text"))

    def __private_write(self, text: str) -> None:
        self.buffer.write(check_not_none(text, "text"))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Guarded) and other.name == self.name

    __hash__ = object.__hash__


class Sloppy:
    """Accepts None in all the wrong places."""

    def __init__(self, name: str):
        self.name = name
        self.items: list[str] = []

    def store(self, item: str) -> None:
        self.items.append(item)

    def shout(self, text: str) -> str:
        return getattr(self, f"{text}_loud")()

    def lookup(self, key: str) -> str:
        raise KeyError(key)

    def pad(self, width: int, text: str) -> str:
        return str(text).rjust(width)

    @staticmethod
    def join(left: str, right: str) -> str:
        return f"{left}{right}"

    def _remember(self, item: str) -> None:
        self.items.append(item)


class Quirky:
    """None handling that depends on how the interpreter runs the member."""

    def shout(self, text: str) -> str:
        return text.upper()

    def exclaim(self, text: str) -> str:
        return text + "!"

    def refuse(self, text: str) -> str:
        raise AttributeError(f"refused {text}")

    def leave(self, text: str) -> str:
        raise SystemExit(text)

    async def fetch(self, key: str) -> str:
        return check_not_none(key, "key")

    async def fetch_loose(self, key: str) -> str:
        return f"{key}"

    def lines(self, text: str) -> Iterator[str]:
        yield check_not_none(text, "text")

    async def stream(self, text: str) -> AsyncIterator[str]:
        yield check_not_none(text, "text")


class Token:
    def __repr__(self) -> str:
        return "Token()"


class NeedsToken:
    def __init__(self, token: Token, name: str):
        self.token = check_not_none(token, "token")
        self.name = check_not_none(name, "name")


class TokenSink:
    """Records every call it receives."""

    def __init__(self) -> None:
        self.calls: list[tuple[object, object]] = []

    def accept(self, token: Token, name: str) -> None:
        self.calls.append((token, name))


class Shape(abc.ABC):
    def __init__(self, name: str):
        self.name = check_not_none(name, "name")

    @abc.abstractmethod
    def area(self) -> float: ...


@dataclass
class Point:
    label: str


def make_sloppy() -> Sloppy:
    return Sloppy("factory")
