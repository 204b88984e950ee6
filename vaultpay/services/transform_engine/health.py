"""Dependency health aggregation for `GET /health`."""

from dataclasses import dataclass
from typing import Callable

from vaultpay.common.logging import logger
from vaultpay.common.metrics import health_check_failures_total
from vaultpay.services.transform_engine.schemas import HealthResponse
from vaultpay.services.transform_engine.store import PersistenceStore
from vaultpay.services.transform_engine.vault import TokenizationClient


@dataclass(frozen=True)
class HealthStatus:
    store: bool
    tokenizer: bool

    @property
    def ok(self) -> bool:
        return self.store and self.tokenizer

    def to_response(self) -> HealthResponse:
        return HealthResponse(
            vault="OK" if self.tokenizer else "Fail",
            db="OK" if self.store else "Fail",
        )


class HealthAggregator:
    """Fail-closed AND over the store and tokenizer probes."""

    def __init__(
        self,
        tokenizer: TokenizationClient,
        store: PersistenceStore,
        service_name: str = "transform-engine",
    ) -> None:
        self.tokenizer = tokenizer
        self.store = store
        self.service_name = service_name

    def _run_probe(self, dependency: str, probe: Callable[[], bool]) -> bool:
        try:
            healthy = probe() is True
        except Exception as exc:
            logger.warning("%s probe raised: %s", dependency, exc.__class__.__name__)
            healthy = False
        if not healthy:
            health_check_failures_total.labels(service=self.service_name, dependency=dependency).inc()
        return healthy

    def check(self) -> HealthStatus:
        """Probe both dependencies independently; never raises."""

        status = HealthStatus(
            store=self._run_probe("db", self.store.probe),
            tokenizer=self._run_probe("vault", self.tokenizer.probe),
        )
        if not status.ok:
            logger.warning("health check failed vault=%s db=%s", status.tokenizer, status.store)
        return status
