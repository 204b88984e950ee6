"""Shared fixtures: settings and in-memory test doubles for both dependencies."""

import logging

import pytest

from vaultpay.common.config import Settings
from vaultpay.services.transform_engine.errors import PersistenceError, TokenizationError


class FakeTokenizer:
    """Records every value it is asked to tokenize."""

    def __init__(self, token: str = "tok_abcd1234", healthy: bool = True) -> None:
        self.token = token
        self.healthy = healthy
        self.fail_with: str | None = None
        self.calls: list[str] = []
        self.closed = False

    def probe(self) -> bool:
        return self.healthy

    def tokenize(self, raw: str) -> str:
        self.calls.append(raw)
        if self.fail_with is not None:
            raise TokenizationError(self.fail_with)
        return self.token

    def close(self) -> None:
        self.closed = True


class FakeStore:
    """Hands out sequential ids and keeps saved token references."""

    def __init__(self, next_id: int = 42, healthy: bool = True) -> None:
        self.next_id = next_id
        self.healthy = healthy
        self.fail_with: str | None = None
        self.saved: list[str] = []
        self.closed = False

    def probe(self) -> bool:
        return self.healthy

    def save_order(self, token_ref: str) -> int:
        if self.fail_with is not None:
            raise PersistenceError(self.fail_with)
        self.saved.append(token_ref)
        order_id = self.next_id
        self.next_id += 1
        return order_id

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def tokenizer() -> FakeTokenizer:
    return FakeTokenizer()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        postgres_dsn="sqlite://",
        vault_token="test-root-token",
        otel_enabled=False,
        startup_initial_backoff_seconds=0,
    )


@pytest.fixture(autouse=True)
def restore_root_logger():
    """`configure_logging` replaces root handlers; undo it after each test."""

    root = logging.getLogger()
    handlers, level, filters = root.handlers[:], root.level, root.filters[:]
    yield
    root.handlers, root.filters = handlers, filters
    root.setLevel(level)
