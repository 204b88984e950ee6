"""Order persistence on top of a pooled SQLAlchemy engine."""

import time
from dataclasses import dataclass
from typing import Callable, Protocol

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from vaultpay.common.db import create_db_engine, make_session_factory
from vaultpay.common.logging import logger
from vaultpay.common.metrics import retries_total
from vaultpay.services.transform_engine.errors import (
    PersistenceError,
    StartupError,
    StoreConnectionError,
)
from vaultpay.services.transform_engine.models import Order


class PersistenceStore(Protocol):
    """Capability the pipeline needs from the order store."""

    def probe(self) -> bool: ...

    def save_order(self, token_ref: str) -> int: ...


class OrderStore:
    """Writes tokenized orders; safe for concurrent use through the engine pool."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.session_factory = make_session_factory(engine)

    @classmethod
    def connect(
        cls,
        dsn: str,
        *,
        connect_timeout: float,
        statement_timeout: float,
        pool_size: int = 5,
    ) -> "OrderStore":
        """Open a pool and verify it with one round trip.

        Raises `StoreConnectionError` when the database is unreachable or
        rejects the credentials.
        """

        try:
            engine = create_db_engine(
                dsn,
                pool_size=pool_size,
                connect_timeout=connect_timeout,
                statement_timeout=statement_timeout,
            )
        except (SQLAlchemyError, ValueError) as exc:
            raise StoreConnectionError(f"invalid database configuration: {exc.__class__.__name__}") from exc

        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            engine.dispose()
            raise StoreConnectionError(f"unable to connect to database: {exc.__class__.__name__}") from exc
        return cls(engine)

    def probe(self) -> bool:
        """Ping the database; any failure reports False."""

        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as exc:
            logger.warning("database probe failed: %s", exc.__class__.__name__)
            return False
        return True

    def save_order(self, token_ref: str) -> int:
        """Insert one order row and return its generated id."""

        try:
            with self.session_factory() as db:
                order = Order(token_ref=token_ref)
                db.add(order)
                db.commit()
                return order.id
        except SQLAlchemyError as exc:
            raise PersistenceError(f"unable to save order: {exc.__class__.__name__}") from exc

    def close(self) -> None:
        self.engine.dispose()


@dataclass(frozen=True)
class BackoffPolicy:
    """Bounds for the startup connection retry."""

    max_attempts: int
    initial_delay: float
    max_delay: float
    max_total_wait: float

    def delay_for(self, attempt: int) -> float:
        # Exponential backoff: initial, 2x, 4x, ... capped at max_delay.
        return min(self.max_delay, self.initial_delay * 2 ** (attempt - 1))


def connect_with_backoff(
    connect: Callable[[], OrderStore],
    policy: BackoffPolicy,
    *,
    service_name: str = "transform-engine",
    sleep: Callable[[float], None] = time.sleep,
) -> OrderStore:
    """Call `connect` until it succeeds or the backoff budget runs out.

    Raises `StartupError` once `max_attempts` is reached or the next delay would
    exceed `max_total_wait`.
    """

    waited = 0.0
    attempt = 0
    last_error: StoreConnectionError | None = None
    while attempt < policy.max_attempts:
        attempt += 1
        try:
            store = connect()
        except StoreConnectionError as exc:
            last_error = exc
            logger.error("unable to connect to database attempt=%s error=%s", attempt, exc)
        else:
            if attempt > 1:
                logger.info("database connection established attempt=%s", attempt)
            return store

        if attempt >= policy.max_attempts:
            break
        delay = policy.delay_for(attempt)
        if waited + delay > policy.max_total_wait:
            break
        retries_total.labels(service=service_name, dependency="database").inc()
        logger.warning("retrying database connection attempt=%s backoff_s=%s", attempt, delay)
        sleep(delay)
        waited += delay

    raise StartupError(
        f"database unavailable after {attempt} attempt(s) and {waited:.1f}s: {last_error}"
    ) from last_error
