"""Bulk loading of services documents.

A services document is a mapping with up to four partitions::

    shared:      {key: class name | factory | mapping | Literal | Instance}
    fresh:       {key: class name | factory}
    interfaces:  {abstract key: class name | factory}
    parameters:  {parameter name: value}

YAML files can only name classes (strings) and literal values. Python files
(``*.py``) expose a module-level ``SERVICES`` mapping and may also hold
factories and pre-built instances.

A missing file or a document of the wrong shape aborts the whole load.
Failures of individual entries are logged and skipped.
"""

from __future__ import annotations

import logging
import os
import runpy
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from ._definitions import ClassRef, Factory, Instance, Lifetime, Literal, as_definition
from ._errors import ConfigFileInvalidShape, ConfigFileMissing, InvalidBindingDefinition


if TYPE_CHECKING:
    from collections.abc import Callable
    from os import PathLike

    from ._container import Container


logger = logging.getLogger(__name__)

SERVICES_ENV_VAR = "SERVICEWIRE_SERVICES"
DEFAULT_SERVICES_FILE = Path("config") / "services.yaml"

PARTITIONS = ("shared", "fresh", "interfaces", "parameters")


def default_services_path() -> Path:
    """``$SERVICEWIRE_SERVICES`` if set, else ``config/services.yaml``."""
    return Path(os.environ.get(SERVICES_ENV_VAR) or DEFAULT_SERVICES_FILE)


def read_document(path: Path) -> Any:
    if not path.is_file():
        raise ConfigFileMissing(path)

    if path.suffix == ".py":
        namespace = runpy.run_path(str(path))
        if "SERVICES" not in namespace:
            msg = f"The services config file {path} must define a SERVICES mapping."
            raise ConfigFileInvalidShape(msg)
        return namespace["SERVICES"]

    try:
        with path.open(encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        msg = f"The services config file {path} is not valid YAML: {e}"
        raise ConfigFileInvalidShape(msg) from e


class ServiceLoader:
    def __init__(self, container: Container) -> None:
        self._container = container

    def load_file(self, path: str | PathLike[str] | None = None) -> None:
        source = Path(path) if path is not None else default_services_path()
        document = read_document(source)
        logger.debug("loading services from %s", source)
        self.load(document)

    def load(self, document: object) -> None:
        partitions = _partitions(document)

        counts = {
            "shared": self._load_entries("shared service", partitions["shared"], self._load_shared),
            "fresh": self._load_entries("fresh service", partitions["fresh"], self._load_fresh),
            "interfaces": self._load_entries("interface", partitions["interfaces"], self._container.bind_interface),
            "parameters": self._load_entries("parameter", partitions["parameters"], self._container.set_parameter),
        }
        logger.debug("loaded services document: %s", counts)

    def _load_entries(
        self,
        kind: str,
        entries: Mapping[Any, Any],
        load: Callable[[Any, Any], object],
    ) -> int:
        loaded = 0
        for key, resolver in entries.items():
            try:
                load(key, resolver)
            except Exception as e:  # noqa: BLE001
                logger.warning("Failed to register %s '%s': %s", kind, key, e)
                continue
            loaded += 1
        return loaded

    def _load_shared(self, key: str, resolver: object) -> None:
        definition = as_definition(resolver)

        if isinstance(definition, Factory):
            self._container.bind(key, definition, lifetime=Lifetime.SHARED)
        elif isinstance(definition, ClassRef):
            # the raw resolver, so class objects get remembered by the locator
            self._container.register(key, resolver)
        elif isinstance(definition, Literal):
            self._container.set(key, definition.value)
        elif isinstance(definition, Instance):
            self._container.set(key, definition.obj)
        else:
            raise InvalidBindingDefinition(key, resolver, "shared service")

        self._container.share(key)

    def _load_fresh(self, key: str, resolver: object) -> None:
        self._container.bind(key, resolver, lifetime=Lifetime.FRESH)


def _partitions(document: object) -> dict[str, Mapping[Any, Any]]:
    if not isinstance(document, Mapping):
        msg = f"The services document must be a mapping, got {type(document).__name__}."
        raise ConfigFileInvalidShape(msg)

    unknown = [str(name) for name in document if name not in PARTITIONS]
    if unknown:
        msg = f"Unknown partitions in services document: {', '.join(unknown)} (expected {', '.join(PARTITIONS)})."
        raise ConfigFileInvalidShape(msg)

    partitions: dict[str, Mapping[Any, Any]] = {}
    for name in PARTITIONS:
        entries = document.get(name) or {}
        if not isinstance(entries, Mapping):
            msg = f"Partition '{name}' must be a mapping, got {type(entries).__name__}."
            raise ConfigFileInvalidShape(msg)
        partitions[name] = entries

    return partitions
