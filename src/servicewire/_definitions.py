from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Union


if TYPE_CHECKING:
    from ._container import Container


class Lifetime(Enum):
    SHARED = "shared"  # cached after the first successful resolution
    FRESH = "fresh"  # rebuilt on every request


@dataclass(frozen=True)
class Literal:
    """A plain value (typically a configuration mapping) stored as-is."""

    value: Any


@dataclass(frozen=True)
class Instance:
    """A pre-built object stored as-is."""

    obj: Any


@dataclass(frozen=True, eq=False)
class Factory:
    """A deferred recipe, called with the container that requests the value."""

    fn: Callable[[Container], Any]
    label: str = ""

    def __call__(self, container: Container) -> Any:
        return self.fn(container)

    def __repr__(self) -> str:
        return f"Factory({self.label or getattr(self.fn, '__qualname__', repr(self.fn))})"


@dataclass(frozen=True)
class ClassRef:
    """Reference to a class by name, looked up through the container's locator."""

    name: str


Definition = Union[Literal, Instance, Factory, ClassRef]


def as_definition(resolver: object) -> Definition | None:
    """Normalise a raw resolver into a `Definition`.

    - definitions are returned unchanged
    - classes and strings become `ClassRef` (classes by `__name__`)
    - mappings become `Literal`
    - other callables become `Factory`

    Anything else returns None; callers decide which error to raise.
    """
    if isinstance(resolver, (Literal, Instance, Factory, ClassRef)):
        return resolver
    if isinstance(resolver, type):
        return ClassRef(resolver.__name__)
    if isinstance(resolver, str):
        return ClassRef(resolver)
    if isinstance(resolver, Mapping):
        return Literal(resolver)
    if callable(resolver):
        return Factory(resolver)
    return None
