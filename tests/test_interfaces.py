from abc import ABC, abstractmethod
from typing import Protocol

import pytest

from servicewire import Container, Factory, Instance, InvalidBindingDefinition, ServiceNotFound


class Repository(ABC):
    @abstractmethod
    def find(self, id_): ...


class MemoryRepository(Repository):
    def find(self, id_):
        return {"id": id_, "data": "mock data"}


class PaymentClient(Protocol):
    def charge(self, order_id: str, amount_cents: int) -> bool: ...


class StripeSdk:
    def pay(self, amount_usd: float, reference: str) -> bool:
        return True


class StripeAdapter:
    def __init__(self, sdk: StripeSdk):
        self.sdk = sdk
        self.charged = []

    def charge(self, order_id: str, amount_cents: int) -> bool:
        self.charged.append(order_id)
        return self.sdk.pay(amount_cents / 100, order_id)


class UserService:
    def __init__(self, repository: Repository):
        self.repository = repository


class CheckoutService:
    def __init__(self, payments: PaymentClient):
        self.payments = payments


def test_abstract_annotation_uses_interface_binding():
    c = Container()
    c.bind_interface(Repository, MemoryRepository)

    service = c.make(UserService)

    assert isinstance(service.repository, MemoryRepository)
    assert service.repository.find(123)["id"] == 123


def test_class_implementation_is_built_eagerly_and_reused():
    c = Container()
    c.bind_interface("Repository", MemoryRepository)

    assert isinstance(c.interfaces()["Repository"], MemoryRepository)
    assert c.make(UserService).repository is c.make(UserService).repository


def test_protocol_annotation_uses_factory_binding():
    c = Container()
    c.bind_interface(PaymentClient, lambda container: container.make(StripeAdapter))

    first = c.make(CheckoutService)
    second = c.make(CheckoutService)

    assert isinstance(first.payments, StripeAdapter)
    assert first.payments.charge("order-1", 1250) is True
    assert first.payments is not second.payments


def test_interface_factory_result_is_cached_for_shared_key():
    c = Container()
    c.bind_interface("PaymentClient", Factory(lambda container: container.make(StripeAdapter)))
    c.share("PaymentClient")

    assert c.get("PaymentClient") is c.get("PaymentClient")


def test_interface_instance_is_stored_as_is():
    c = Container()
    repo = MemoryRepository()
    c.bind_interface(Repository, Instance(repo))

    assert c.make(UserService).repository is repo


def test_get_abstract_key_resolves_through_interface_table():
    c = Container()
    c.bind_interface(Repository, MemoryRepository)

    assert isinstance(c.get("Repository"), MemoryRepository)


def test_missing_interface_binding_raises_service_not_found():
    c = Container()

    with pytest.raises(ServiceNotFound) as ctx:
        c.make(UserService)
    assert ctx.value.key == "Repository"


def test_bind_interface_rejects_literal():
    c = Container()
    with pytest.raises(InvalidBindingDefinition, match="interface"):
        c.bind_interface("Repository", 42)
