"""Tagged values distinguishing single-key aggregates from mixed ones."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

__all__ = ["MIXED", "Mixed", "Scope", "Single", "merge_scopes", "scope_from_optional"]

T = TypeVar("T")


@dataclass(frozen=True)
class Single(Generic[T]):
    """An aggregate drawn from exactly one facility or date."""

    value: T

    @property
    def is_mixed(self) -> bool:
        return False

    def or_none(self) -> Optional[T]:
        return self.value


@dataclass(frozen=True)
class Mixed:
    """An aggregate spanning several facilities or dates."""

    @property
    def is_mixed(self) -> bool:
        return True

    def or_none(self) -> None:
        return None


MIXED = Mixed()

Scope = Union[Single[T], Mixed]


def merge_scopes(left: Scope[T], right: Scope[T]) -> Scope[T]:
    if isinstance(left, Single) and isinstance(right, Single) and left.value == right.value:
        return left
    return MIXED


def scope_from_optional(value: Optional[T]) -> Scope[T]:
    """Map a serialized value, where ``None`` stands for mixed, to a scope."""

    return MIXED if value is None else Single(value)
