from __future__ import annotations

import importlib
import inspect
import logging
import typing
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Iterable
    from types import ModuleType


logger = logging.getLogger(__name__)


class ClassLocator:
    """Turns class names into classes.

    Lookup order for `find(name)`:
    1. classes already seen by the container (remembered by `__name__`)
    2. dotted import paths: ``"pkg.module.Class"`` or ``"pkg.module:Class"``
    3. ``name`` as an attribute of each configured package, in order
    """

    def __init__(self, packages: Iterable[str] = ()) -> None:
        self._classes: dict[str, type] = {}
        self._packages = tuple(packages)

    def remember(self, cls: type) -> str:
        name = cls.__name__
        previous = self._classes.get(name)
        if previous is not None and previous is not cls:
            logger.warning(
                "class name %s now refers to %s.%s (was %s.%s)",
                name,
                cls.__module__,
                cls.__qualname__,
                previous.__module__,
                previous.__qualname__,
            )
        self._classes[name] = cls
        return name

    def find(self, name: str) -> type | None:
        cls = self._classes.get(name)
        if cls is not None:
            return cls

        for module_path, attr in self._candidates(name):
            module = _import_optional(module_path)
            if module is None:
                continue
            found = getattr(module, attr, None)
            if inspect.isclass(found):
                self._classes[name] = found
                return found

        return None

    def is_constructible(self, name: str) -> bool:
        cls = self.find(name)
        return cls is not None and is_constructible(cls)

    def _candidates(self, name: str) -> list[tuple[str, str]]:
        if ":" in name:
            module_path, _, attr = name.partition(":")
        elif "." in name:
            module_path, _, attr = name.rpartition(".")
        else:
            return [(package, name) for package in self._packages]
        # relative or empty module paths are plain keys, not import paths
        if not attr or not module_path or "" in module_path.split("."):
            return []
        return [(module_path, attr)]


def _import_optional(module_path: str) -> ModuleType | None:
    try:
        return importlib.import_module(module_path)
    except ModuleNotFoundError as exc:
        # Only a missing target module means "no such class"; a missing
        # dependency inside an existing module is a real error.
        if exc.name is not None and (module_path == exc.name or module_path.startswith(f"{exc.name}.")):
            logger.debug("module %s not found while looking up a class", module_path)
            return None
        raise


def is_constructible(cls: type) -> bool:
    """A concrete class: not abstract and not a `typing.Protocol`."""
    return inspect.isclass(cls) and not inspect.isabstract(cls) and not _is_protocol(cls)


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and bool(getattr(tp, "_is_protocol", False))
