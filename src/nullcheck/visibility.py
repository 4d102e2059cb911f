"""Visibility classification for members under scan."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nullcheck.members import MemberDescriptor


class Modifier(enum.Flag):
    NONE = 0
    PUBLIC = enum.auto()
    PROTECTED = enum.auto()
    PRIVATE = enum.auto()
    STATIC = enum.auto()
    SYNTHETIC = enum.auto()


_ACCESS = Modifier.PUBLIC | Modifier.PROTECTED | Modifier.PRIVATE


def modifiers_for_name(name: str, *, in_class: bool) -> Modifier:
    """Derive access flags from Python naming conventions.

    Inside a class body ``__x`` is private (name mangled), ``_x`` protected,
    anything else (dunders included) public. At module scope any leading
    underscore makes a name module-private, which carries no access flag and
    so plays the part of package-private.
    """
    if name.startswith("__") and name.endswith("__") and len(name) > 4:
        return Modifier.PUBLIC
    if not name.startswith("_"):
        return Modifier.PUBLIC
    if not in_class:
        return Modifier.NONE
    if name.startswith("__"):
        return Modifier.PRIVATE
    return Modifier.PROTECTED


def is_package_private(modifiers: Modifier) -> bool:
    return not (modifiers & _ACCESS)


class Visibility(enum.Enum):
    """Minimal visibility a member needs to be included in a bulk scan.

    PACKAGE is the broadest level and PUBLIC the narrowest.
    """

    PACKAGE = "package"
    PROTECTED = "protected"
    PUBLIC = "public"

    def is_visible(self, modifiers: Modifier) -> bool:
        if self is Visibility.PACKAGE:
            return not (modifiers & Modifier.PRIVATE)
        if self is Visibility.PROTECTED:
            return bool(modifiers & (Modifier.PUBLIC | Modifier.PROTECTED))
        return bool(modifiers & Modifier.PUBLIC)

    def is_member_visible(self, member: MemberDescriptor) -> bool:
        return self.is_visible(member.modifiers)

    @classmethod
    def parse(cls, value: str | Visibility) -> Visibility:
        if isinstance(value, Visibility):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(item.value for item in cls)
            raise ValueError(
                f"invalid visibility {value!r}; expected one of: {allowed}"
            ) from None
