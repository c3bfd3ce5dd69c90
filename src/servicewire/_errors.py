from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


class ContainerError(Exception):
    """Base class for every error raised by servicewire."""


class ResolutionError(ContainerError, RuntimeError):
    pass


class ServiceNotFound(ResolutionError, LookupError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"No definition, binding or constructible class found for {key!r}")


class UnresolvableParameter(ResolutionError):
    def __init__(self, parameter: str, owner: type) -> None:
        self.parameter = parameter
        self.owner = owner
        super().__init__(
            f"Cannot satisfy constructor parameter '{parameter}' for {owner.__name__}. "
            "No type/default/ambient/literal parameter found."
        )


class CircularDependency(ResolutionError):
    def __init__(self, chain: Sequence[str]) -> None:
        self.chain = tuple(chain)
        super().__init__(f"Circular dependency detected: {' -> '.join(self.chain)}")


class InvalidBindingDefinition(ContainerError, ValueError):
    def __init__(self, key: str, resolver: object, operation: str = "binding") -> None:
        self.key = key
        self.resolver = resolver
        super().__init__(f"Invalid resolver for {operation} {key!r}: {resolver!r}")


class ConfigurationError(ContainerError):
    pass


class ConfigFileMissing(ConfigurationError, FileNotFoundError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"The services config file does not exist: {path}")


class ConfigFileInvalidShape(ConfigurationError, ValueError):
    pass
