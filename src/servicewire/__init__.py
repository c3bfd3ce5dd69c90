"""Service container with constructor auto-wiring.

This package resolves named services into fully-wired objects: constructor
parameters are filled by type, default, the ambient external instance or a
literal parameter table, recursively, and results are cached per key
according to their lifetime.

Exports:
- `Container`: definition store, lifecycle cache and resolution engine.
- `Lifetime`: shared (cached) or fresh (rebuilt on every request).
- `Literal`, `Instance`, `Factory`, `ClassRef`: the explicit definition kinds.
- `ServiceLoader`: bulk loader for YAML or Python services documents.
- `ClassLocator`: turns class names and dotted paths into classes.
- the error hierarchy rooted at `ContainerError`.
"""

from ._container import AMBIENT_PARAMETER, EXTERNAL_INSTANCE_KEY, Container
from ._definitions import ClassRef, Factory, Instance, Lifetime, Literal
from ._errors import (
    CircularDependency,
    ConfigFileInvalidShape,
    ConfigFileMissing,
    ConfigurationError,
    ContainerError,
    InvalidBindingDefinition,
    ResolutionError,
    ServiceNotFound,
    UnresolvableParameter,
)
from ._loader import SERVICES_ENV_VAR, ServiceLoader, default_services_path
from ._locator import ClassLocator


__all__ = [
    "AMBIENT_PARAMETER",
    "EXTERNAL_INSTANCE_KEY",
    "SERVICES_ENV_VAR",
    "CircularDependency",
    "ClassLocator",
    "ClassRef",
    "ConfigFileInvalidShape",
    "ConfigFileMissing",
    "ConfigurationError",
    "Container",
    "ContainerError",
    "Factory",
    "Instance",
    "InvalidBindingDefinition",
    "Lifetime",
    "Literal",
    "ResolutionError",
    "ServiceLoader",
    "ServiceNotFound",
    "UnresolvableParameter",
    "default_services_path",
]
