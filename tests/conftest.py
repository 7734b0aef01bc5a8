"""Shared fixtures for the credential vault tests."""
import os

import pytest

from navigator_credentials.vault import (
    CredentialVault,
    InMemoryCredentialStore,
    InMemoryKeyProvider,
    Scheduler,
    generate_key,
)


class ManualTimer:
    """Timer handle of the manual scheduler."""

    def __init__(self, when: float, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False


class ManualScheduler(Scheduler):
    """Fake clock: timers only fire when the test advances time."""

    def __init__(self):
        self._now = 0.0
        self._timers: list[ManualTimer] = []
        self.fired = 0

    def now(self) -> float:
        return self._now

    def schedule(self, delay, callback) -> ManualTimer:
        timer = ManualTimer(self._now + delay, callback)
        self._timers.append(timer)
        return timer

    def cancel(self, handle: ManualTimer) -> None:
        handle.cancelled = True
        if handle in self._timers:
            self._timers.remove(handle)

    @property
    def pending(self) -> int:
        return len(self._timers)

    def advance(self, seconds: float) -> None:
        target = self._now + seconds
        while True:
            due = [t for t in self._timers if t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self._timers.remove(timer)
            self._now = timer.when
            self.fired += 1
            timer.callback()
        self._now = target


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def key():
    return generate_key()


@pytest.fixture
def key_provider(key):
    return InMemoryKeyProvider({"default": key})


@pytest.fixture
def store():
    return InMemoryCredentialStore()


@pytest.fixture
def vault(key_provider, store, scheduler):
    return CredentialVault(key_provider, store, scheduler=scheduler)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove vault variables that leak from the host environment."""
    for name in list(os.environ):
        if name.startswith("CREDENTIAL_VAULT_"):
            monkeypatch.delenv(name, raising=False)
    return monkeypatch
