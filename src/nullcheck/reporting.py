"""Check outcomes and the reporting seam used to surface failures."""

from __future__ import annotations

import enum
import reprlib
from dataclasses import dataclass
from typing import Protocol, Sequence, runtime_checkable

from nullcheck.exceptions import NullCheckFailure
from nullcheck.invariants import check_not_none


class Outcome(enum.Enum):
    CORRECT_REJECTION = "correct_rejection"
    MISSING_DEFAULT = "missing_default"
    WRONG_EXCEPTION_KIND = "wrong_exception_kind"
    NO_EXCEPTION_THROWN = "no_exception_thrown"
    UNEXPECTED_INVOCATION_ERROR = "unexpected_invocation_error"

    @property
    def is_failure(self) -> bool:
        return self is not Outcome.CORRECT_REJECTION


@runtime_checkable
class Reporter(Protocol):
    def fail(
        self,
        message: str,
        *,
        outcome: Outcome,
        cause: BaseException | None = None,
        member: str = "",
    ) -> None: ...


class RaisingReporter:
    """Fail the current test by raising :class:`NullCheckFailure`."""

    def fail(
        self,
        message: str,
        *,
        outcome: Outcome,
        cause: BaseException | None = None,
        member: str = "",
    ) -> None:
        raise NullCheckFailure(message, outcome=outcome) from cause


@dataclass(frozen=True)
class Failure:
    message: str
    outcome: Outcome
    cause: BaseException | None = None
    member: str = ""


class CollectingReporter:
    """Record failures instead of raising, so a whole scan can be reported."""

    def __init__(self) -> None:
        self._failures: list[Failure] = []

    def fail(
        self,
        message: str,
        *,
        outcome: Outcome,
        cause: BaseException | None = None,
        member: str = "",
    ) -> None:
        check_not_none(message, "message")
        check_not_none(outcome, "outcome")
        check_not_none(member, "member")
        self._failures.append(Failure(message=message, outcome=outcome, cause=cause, member=member))

    @property
    def failures(self) -> list[Failure]:
        return list(self._failures)

    def __len__(self) -> int:
        return len(self._failures)

    def __bool__(self) -> bool:
        return bool(self._failures)


_repr = reprlib.Repr()
_repr.maxstring = 60
_repr.maxother = 60


def render_arguments(args: Sequence[object]) -> str:
    return "[" + ", ".join(_repr.repr(arg) for arg in args) + "]"
