from __future__ import annotations

import inspect
import logging
from contextlib import contextmanager
from typing import (
    TYPE_CHECKING,
    Any,
    TypeVar,
    get_type_hints,
)

from ._definitions import ClassRef, Factory, Instance, Lifetime, Literal, as_definition
from ._errors import (
    CircularDependency,
    InvalidBindingDefinition,
    ServiceNotFound,
    UnresolvableParameter,
)
from ._loader import ServiceLoader
from ._locator import ClassLocator, is_constructible


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping
    from os import PathLike

    from ._definitions import Definition

    T = TypeVar("T")

    Token = type | str


# Reserved key under which the host environment's ambient object is stored.
EXTERNAL_INSTANCE_KEY = "external_instance"

# Constructor parameters with this exact name receive the ambient object.
AMBIENT_PARAMETER = "ambient"


class Container:
    """Service container with constructor auto-wiring.

    - `set` / `bind` / `register` / `singleton` to define services
    - `get` (cached for shared keys), `make` (never cached), `resolve`
    - interface bindings for abstract identifiers
    - a literal parameter table for untyped constructor parameters

    Not thread-safe: use one container per isolated execution context.
    """

    def __init__(
        self,
        external_instance: Callable[[], object] | None = None,
        *,
        packages: Iterable[str] = (),
    ) -> None:
        self._services: dict[str, Any] = {}
        self._bindings: dict[str, Factory] = {}
        self._interfaces: dict[str, Any] = {}
        self._parameters: dict[str, Any] = {}
        self._lifetimes: dict[str, Lifetime] = {}
        self._locator = ClassLocator(packages)
        self._in_progress: list[tuple[object, str]] = []

        if external_instance is not None:
            self.bind(
                EXTERNAL_INSTANCE_KEY,
                Factory(lambda _: external_instance(), label=EXTERNAL_INSTANCE_KEY),
                lifetime=Lifetime.SHARED,
            )

    @classmethod
    def from_file(
        cls,
        path: str | PathLike[str] | None = None,
        external_instance: Callable[[], object] | None = None,
        *,
        packages: Iterable[str] = (),
    ) -> Container:
        """Create a container and bulk-load it from a services document.

        Without `path`, the default services file is used (see `default_services_path`).
        """
        container = cls(external_instance, packages=packages)
        ServiceLoader(container).load_file(path)
        return container

    @property
    def locator(self) -> ClassLocator:
        return self._locator

    # -- registration ---------------------------------------------------------

    def set(self, key: Token, value: object) -> None:
        """Store `value` in the cache as-is, replacing anything there.

        A `Factory` is stored unevaluated and called on the first `get`.
        """
        self._services[self._key(key)] = value

    def bind(self, key: Token, resolver: object, lifetime: Lifetime | None = None) -> None:
        """Bind a deferred factory (or a constructible class) to `key`.

        Example:
          container.bind("mailer", Mailer)
          container.bind("clock", lambda c: SystemClock(), lifetime=Lifetime.FRESH)

        Without an explicit `lifetime`, a new key becomes shared and an existing
        key keeps the lifetime it already has.
        """
        name = self._key(key)
        definition = self._definition(resolver)

        if isinstance(definition, Factory):
            factory = definition
        elif isinstance(definition, ClassRef) and self._locator.is_constructible(definition.name):
            factory = self._class_factory(name, definition.name)
        else:
            raise InvalidBindingDefinition(name, resolver)

        self._bindings[name] = factory
        if lifetime is not None:
            self._lifetimes[name] = lifetime
        else:
            self._lifetimes.setdefault(name, Lifetime.SHARED)

    def register(self, key: Token, resolver: object = None) -> Any:
        """Resolve and cache `key` unless it is already cached; return the cached value.

        A mapping resolver is stored as-is. Without a resolver, `key` itself is resolved.
        """
        name = self._key(key)
        if name in self._services:
            return self.get(name)

        definition = self._definition(name if resolver is None else resolver)
        if isinstance(definition, Literal):
            self.set(name, definition.value)
        elif isinstance(definition, Instance):
            self.set(name, definition.obj)
        elif isinstance(definition, Factory):
            self.set(name, self._invoke(definition, name))
        elif isinstance(definition, ClassRef):
            self.set(name, self.resolve(definition.name))
        else:
            raise InvalidBindingDefinition(name, resolver, "registration")

        return self.get(name)

    def singleton(self, key: Token, resolver: object) -> None:
        """Eagerly build `resolver` (a class or a factory) and cache it under `key`."""
        name = self._key(key)
        definition = self._definition(resolver)

        if isinstance(definition, ClassRef) and self._locator.is_constructible(definition.name):
            self._services[name] = self.resolve(definition.name)
        elif isinstance(definition, Factory):
            self._services[name] = self._invoke(definition, name)
        else:
            raise InvalidBindingDefinition(name, resolver, "singleton")

    def bind_interface(self, abstract: Token, implementation: object) -> None:
        """Map an abstract identifier to an implementation.

        Factories are kept and called on demand; classes are built right away.
        """
        name = self._key(abstract)
        definition = self._definition(implementation)

        if isinstance(definition, Factory):
            self._interfaces[name] = definition
        elif isinstance(definition, ClassRef):
            self._interfaces[name] = self.make(definition.name)
        elif isinstance(definition, Instance):
            self._interfaces[name] = definition.obj
        else:
            raise InvalidBindingDefinition(name, implementation, "interface")

    def set_parameter(self, name: str, value: object) -> None:
        self._parameters[name] = value

    def set_parameters(self, parameters: Mapping[str, object]) -> None:
        for name, value in parameters.items():
            self.set_parameter(name, value)

    def share(self, key: Token) -> None:
        """Mark `key` as shared: its resolved value is cached by `get`."""
        self._lifetimes[self._key(key)] = Lifetime.SHARED

    def lifetime_of(self, key: Token) -> Lifetime:
        return self._lifetimes.get(self._key(key), Lifetime.FRESH)

    # -- resolution -----------------------------------------------------------

    def get(self, key: Token) -> Any:
        """Return the value for `key`.

        1. cached value (a pending `Factory` placed via `set` is evaluated once)
        2. bound factory, cached when `key` is shared
        3. auto-wiring of the class named by `key`, cached when `key` is shared
        """
        name = self._key(key)

        if name in self._services:
            value = self._services[name]
            if isinstance(value, Factory):
                value = self._services[name] = self._invoke(value, name)
            return value

        if name in self._bindings:
            value = self._invoke(self._bindings[name], name)
        else:
            value = self._instantiate(name)

        if self._is_shared(name):
            if name in self._services:
                # Filled while building; the first cached value wins.
                return self._services[name]
            logger.debug("caching shared service %r", name)
            self._services[name] = value

        return value

    def make(self, key: Token) -> Any:
        """Build a new value for `key`, bypassing the cache."""
        name = self._key(key)
        if name in self._bindings:
            return self._invoke(self._bindings[name], name)
        return self._instantiate(name)

    def resolve(self, key: Token) -> Any:
        """Shared keys go through `get`; anything else is built fresh."""
        name = self._key(key)
        if self._is_shared(name):
            return self.get(name)
        return self._instantiate(name)

    def get_external_instance(self) -> Any:
        """Return the host environment's ambient object."""
        return self.get(EXTERNAL_INSTANCE_KEY)

    def has(self, key: Token) -> bool:
        name = self._key(key)
        return name in self._services or name in self._bindings or name in self._interfaces

    # -- introspection --------------------------------------------------------

    def services(self) -> dict[str, Any]:
        return dict(self._services)

    def list_services(self) -> list[str]:
        return list(self._services)

    def services_status(self) -> dict[str, str]:
        """Per cached key: ``"resolved"``, or ``"pending"`` for a factory placed via `set`."""
        return {
            key: "pending" if isinstance(value, Factory) else "resolved" for key, value in self._services.items()
        }

    def bindings(self) -> dict[str, Factory]:
        return dict(self._bindings)

    def list_bindings(self) -> list[str]:
        return list(self._bindings)

    def list_shared(self) -> list[str]:
        return [key for key, lifetime in self._lifetimes.items() if lifetime is Lifetime.SHARED]

    def interfaces(self) -> dict[str, Any]:
        return dict(self._interfaces)

    def parameters(self) -> dict[str, Any]:
        return dict(self._parameters)

    # -- internals ------------------------------------------------------------

    def _key(self, token: Token) -> str:
        if isinstance(token, type):
            return self._locator.remember(token)
        if isinstance(token, str):
            return token
        msg = f"Service keys must be strings or classes, got {token!r}"
        raise TypeError(msg)

    def _definition(self, resolver: object) -> Definition | None:
        if isinstance(resolver, type):
            self._locator.remember(resolver)
        return as_definition(resolver)

    def _is_shared(self, name: str) -> bool:
        return self._lifetimes.get(name) is Lifetime.SHARED

    def _class_factory(self, name: str, class_name: str) -> Factory:
        if class_name == name:
            # resolve() would come straight back to this binding
            return Factory(lambda container: container._instantiate(class_name), label=class_name)  # noqa: SLF001
        return Factory(lambda container: container.resolve(class_name), label=class_name)

    def _invoke(self, factory: Factory, name: str) -> Any:
        with self._guard(factory, name):
            return factory(self)

    def _instantiate(self, identifier: str) -> Any:
        """One auto-wiring pass for `identifier`."""
        cls = self._locator.find(identifier)
        if cls is None or not is_constructible(cls):
            return self._from_interface(identifier)

        with self._guard(cls, cls.__name__):
            return Constructor(self).construct(cls)

    def _from_interface(self, identifier: str) -> Any:
        if identifier not in self._interfaces:
            raise ServiceNotFound(identifier)

        implementation = self._interfaces[identifier]
        if isinstance(implementation, Factory):
            return self._invoke(implementation, identifier)
        return implementation

    @contextmanager
    def _guard(self, frame: object, label: str) -> Iterator[None]:
        for start, (active, _) in enumerate(self._in_progress):
            if active is frame:
                labels = [active_label for _, active_label in self._in_progress[start:]]
                raise CircularDependency([*_collapse(labels), label])

        self._in_progress.append((frame, label))
        try:
            yield
        finally:
            self._in_progress.pop()

    def resolve_param(self, cls: type, p: inspect.Parameter, hints: dict[str, Any]) -> Any:
        """Resolving param.

        Resolution precedence:
        1. type-based (non-builtin class annotation)
        2. default
        3. ambient parameter name
        4. literal parameter table
        5. error.
        """
        name = p.name

        # 1) type-based
        ann = hints.get(name, inspect.Parameter.empty)
        if inspect.isclass(ann) and getattr(ann, "__module__", "") not in ("builtins", "typing"):
            return self.resolve(self._locator.remember(ann))

        # 2) default
        if p.default is not inspect.Parameter.empty:
            return p.default

        # 3) ambient object
        if name == AMBIENT_PARAMETER:
            return self.get(EXTERNAL_INSTANCE_KEY)

        # 4) literal parameter table
        if name in self._parameters:
            return self._parameters[name]

        # 5) error
        raise UnresolvableParameter(name, cls)


class Constructor:
    def __init__(self, resolver: Container) -> None:
        self._resolver = resolver

    def construct(self, cls: type[T]) -> T:
        try:
            sig = inspect.signature(cls)
        except ValueError:
            # builtin types without an introspectable signature
            return cls()

        if not sig.parameters:
            return cls()

        hints = _get_init_type_hints(cls)
        values: dict[str, Any] = {}
        for name, p in sig.parameters.items():
            if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
                continue
            values[name] = self._resolver.resolve_param(cls, p, hints)

        args, kwargs = self._materialize_call(sig, values)
        return cls(*args, **kwargs)

    def _materialize_call(self, sig: inspect.Signature, values: dict[str, Any]) -> tuple[list[Any], dict[str, Any]]:
        args, kwargs = [], {}

        for name, p in sig.parameters.items():
            if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD):
                args.append(values[name])
            elif p.kind is p.KEYWORD_ONLY:
                kwargs[name] = values[name]

        return args, kwargs


def _get_init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints


def _collapse(labels: list[str]) -> list[str]:
    # A shared key shows up twice in a row (its factory, then its class).
    collapsed: list[str] = []
    for label in labels:
        if not collapsed or collapsed[-1] != label:
            collapsed.append(label)
    return collapsed
