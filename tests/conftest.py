import sys
import textwrap

import pytest


SAMPLE_MODULE = "sw_sample_services"


@pytest.fixture
def sample_module(tmp_path, monkeypatch):
    """An importable module with a few services, for dotted-path lookups."""
    source = textwrap.dedent(
        """
        from abc import ABC, abstractmethod


        class Clock:
            def now(self) -> int:
                return 1700000000


        class Notifier(ABC):
            @abstractmethod
            def notify(self, message: str) -> None: ...


        class EmailNotifier(Notifier):
            def __init__(self):
                self.sent = []

            def notify(self, message: str) -> None:
                self.sent.append(message)


        class Greeter:
            def __init__(self, clock: Clock, notifier: Notifier, greeting):
                self.clock = clock
                self.notifier = notifier
                self.greeting = greeting


        def build_clock(container):
            return Clock()
        """
    )
    (tmp_path / f"{SAMPLE_MODULE}.py").write_text(source)
    monkeypatch.syspath_prepend(str(tmp_path))
    yield SAMPLE_MODULE
    sys.modules.pop(SAMPLE_MODULE, None)
