"""Startup guardrails: bounded DB backoff and redacted config logging."""

import pytest

from vaultpay.common.startup import redacted_config
from vaultpay.services.transform_engine.errors import StartupError, StoreConnectionError
from vaultpay.services.transform_engine.main import build_store, create_app
from vaultpay.services.transform_engine.store import BackoffPolicy, OrderStore, connect_with_backoff


def _policy(**overrides) -> BackoffPolicy:
    values = {"max_attempts": 5, "initial_delay": 1.0, "max_delay": 4.0, "max_total_wait": 60.0}
    values.update(overrides)
    return BackoffPolicy(**values)


def _flaky(failures: int):
    calls = {"count": 0}
    sentinel = object()

    def connect():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise StoreConnectionError("connection refused")
        return sentinel

    return connect, calls, sentinel


def test_backoff_delays_grow_and_cap():
    """Delays double from the initial value up to max_delay."""

    policy = _policy()

    assert [policy.delay_for(n) for n in range(1, 6)] == [1.0, 2.0, 4.0, 4.0, 4.0]


def test_connect_succeeds_after_retries():
    """Transient failures are retried with exponential sleeps."""

    connect, calls, sentinel = _flaky(failures=2)
    sleeps = []

    result = connect_with_backoff(connect, _policy(), sleep=sleeps.append)

    assert result is sentinel
    assert calls["count"] == 3
    assert sleeps == [1.0, 2.0]


def test_gives_up_after_max_attempts():
    """Exhausting attempts raises StartupError instead of looping forever."""

    connect, calls, _ = _flaky(failures=100)
    sleeps = []

    with pytest.raises(StartupError):
        connect_with_backoff(connect, _policy(max_attempts=3), sleep=sleeps.append)

    assert calls["count"] == 3
    assert sleeps == [1.0, 2.0]


def test_gives_up_when_total_wait_exceeded():
    """The next sleep is skipped once it would overrun max_total_wait."""

    connect, calls, _ = _flaky(failures=100)
    sleeps = []

    with pytest.raises(StartupError):
        connect_with_backoff(connect, _policy(max_total_wait=3.5), sleep=sleeps.append)

    assert sleeps == [1.0, 2.0]
    assert calls["count"] == 3


def test_build_store_connects_to_configured_dsn(settings):
    """Settings flow into a live OrderStore."""

    order_store = build_store(settings)
    try:
        assert isinstance(order_store, OrderStore)
        assert order_store.probe() is True
    finally:
        order_store.close()


def test_create_app_fails_fast_when_db_never_comes_up(settings, tokenizer, tmp_path):
    """App construction surfaces StartupError after the bounded retry."""

    unreachable = settings.model_copy(
        update={
            "postgres_dsn": f"sqlite:///{tmp_path}/missing-dir/orders.db",
            "startup_max_attempts": 2,
        }
    )

    with pytest.raises(StartupError):
        create_app(unreachable, tokenizer=tokenizer)


def test_redacted_config_hides_secrets(settings):
    """Vault token and DSN passwords never reach the startup log."""

    config = redacted_config(
        settings.model_copy(update={"postgres_dsn": "postgresql://root:password@db:5432/payments"})
    )

    assert config["vault_token"] == "<redacted>"
    assert "password" not in config["postgres_dsn"]
    assert config["vault_addr"] == "http://localhost:8200"
