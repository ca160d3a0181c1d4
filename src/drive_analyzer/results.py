"""Tagged success/failure results for calls that degrade instead of raising."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying ``value``."""

    value: T
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Err:
    """Failed outcome.

    Attributes:
        message: Human-readable failure description.
        source: Identifier of the input that failed (URL, query, file name).
        details: Raw error payload, when one is available.
    """

    message: str
    source: str | None = None
    details: Any = None
    ok: ClassVar[bool] = False


Result = Union[Ok[T], Err]
