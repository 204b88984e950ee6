"""HTTP surface for card tokenization and order intake.

`create_app` is the process entrypoint: it builds settings, waits for the
database under a bounded backoff, and wires the pipeline into FastAPI.
"""

from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from vaultpay.common.config import Settings
from vaultpay.common.logging import configure_logging, trace_id_ctx
from vaultpay.common.metrics import (
    http_request_duration_seconds,
    http_requests_total,
    metrics_response,
)
from vaultpay.common.startup import log_startup_config
from vaultpay.common.tracing import instrument_app, setup_tracing
from vaultpay.services.transform_engine.errors import PaymentGatewayError
from vaultpay.services.transform_engine.health import HealthAggregator
from vaultpay.services.transform_engine.schemas import ErrorResponse, HealthResponse, PaymentResponse
from vaultpay.services.transform_engine.service import PaymentOrchestrator
from vaultpay.services.transform_engine.store import (
    BackoffPolicy,
    OrderStore,
    PersistenceStore,
    connect_with_backoff,
)
from vaultpay.services.transform_engine.vault import TokenizationClient, VaultTransformClient


CORRELATION_HEADER = "x-correlation-id"


def build_store(settings: Settings) -> OrderStore:
    """Block until the database answers or the startup budget is spent."""

    policy = BackoffPolicy(
        max_attempts=settings.startup_max_attempts,
        initial_delay=settings.startup_initial_backoff_seconds,
        max_delay=settings.startup_max_backoff_seconds,
        max_total_wait=settings.startup_max_wait_seconds,
    )
    return connect_with_backoff(
        lambda: OrderStore.connect(
            settings.postgres_dsn,
            connect_timeout=settings.db_connect_timeout_seconds,
            statement_timeout=settings.db_statement_timeout_seconds,
            pool_size=settings.db_pool_size,
        ),
        policy,
        service_name=settings.service_name,
    )


def build_tokenizer(settings: Settings) -> VaultTransformClient:
    return VaultTransformClient(
        settings.vault_addr,
        settings.vault_token.get_secret_value(),
        role=settings.vault_transform_role,
        timeout=settings.vault_timeout_seconds,
    )


def create_app(
    settings: Settings | None = None,
    *,
    tokenizer: TokenizationClient | None = None,
    store: PersistenceStore | None = None,
) -> FastAPI:
    """Build the FastAPI app; dependencies may be injected for tests."""

    settings = settings or Settings()
    configure_logging(settings.service_name, settings.log_level)
    tracer_provider = None
    if settings.otel_enabled:
        tracer_provider = setup_tracing(settings.service_name, settings.otel_exporter_otlp_endpoint)
    log_startup_config(settings)

    if store is None:
        store = build_store(settings)
    if tokenizer is None:
        tokenizer = build_tokenizer(settings)

    orchestrator = PaymentOrchestrator(tokenizer, store, service_name=settings.service_name)
    health_aggregator = HealthAggregator(tokenizer, store, service_name=settings.service_name)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        """Release the Vault transport and the DB pool, then flush pending spans."""

        yield
        for dependency in (tokenizer, store):
            close = getattr(dependency, "close", None)
            if close is not None:
                close()
        if tracer_provider is not None:
            tracer_provider.shutdown()

    app = FastAPI(title="Vault Transform Engine", lifespan=lifespan)
    if settings.otel_enabled:
        instrument_app(app)
    app.state.settings = settings
    app.state.orchestrator = orchestrator
    app.state.health = health_aggregator

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        """Bind a correlation id and record request count and latency."""

        trace_id = request.headers.get(CORRELATION_HEADER) or str(uuid4())
        trace_id_ctx.set(trace_id)
        start = perf_counter()
        route = request.url.path
        method = request.method
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            route_obj = request.scope.get("route")
            if route_obj is not None and getattr(route_obj, "path", None):
                route = route_obj.path
            response.headers[CORRELATION_HEADER] = trace_id
            return response
        finally:
            elapsed = max(0.0, perf_counter() - start)
            http_request_duration_seconds.labels(
                service=settings.service_name,
                route=route,
                method=method,
            ).observe(elapsed)
            http_requests_total.labels(
                service=settings.service_name,
                route=route,
                method=method,
                status_code=str(status_code),
            ).inc()

    @app.exception_handler(PaymentGatewayError)
    async def payment_error_handler(_: Request, exc: PaymentGatewayError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(message=exc.message).model_dump(),
        )

    @app.post("/", response_model=PaymentResponse, responses={400: {"model": ErrorResponse}})
    async def create_payment(request: Request):
        """Tokenize the card number and store an order holding only the token."""

        body = await request.body()
        return await run_in_threadpool(orchestrator.process, body)

    @app.get("/health", response_model=HealthResponse, responses={500: {"model": HealthResponse}})
    def health():
        """Report Vault and database reachability; 500 if either is down."""

        status = health_aggregator.check()
        return JSONResponse(
            status_code=200 if status.ok else 500,
            content=status.to_response().model_dump(),
        )

    @app.get("/metrics")
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    return app


def run() -> None:
    """Console entrypoint: build the app and serve it with uvicorn."""

    settings = Settings()
    app = create_app(settings)
    uvicorn.run(app, host=settings.bind_host, port=settings.bind_port, log_config=None)
