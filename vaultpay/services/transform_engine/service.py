"""Payment intake pipeline.

Runs parse -> tokenize -> persist for one request. Every dependency is called at
most once; a failure stops the pipeline at the stage that detected it, so an
order can only be built from a value that came back from the tokenizer.
"""

from pydantic import ValidationError

from vaultpay.common.logging import logger, stage_ctx
from vaultpay.common.metrics import (
    payment_failure_total,
    payment_latency_seconds,
    payment_requests_total,
    payment_success_total,
)
from vaultpay.services.transform_engine.errors import PaymentGatewayError, RequestParseError, Stage
from vaultpay.services.transform_engine.schemas import PaymentRequest, PaymentResponse
from vaultpay.services.transform_engine.store import PersistenceStore
from vaultpay.services.transform_engine.vault import TokenizationClient


def _describe_validation_error(exc: ValidationError) -> str:
    # Built from locations and messages only; input values may hold card data.
    parts = []
    for err in exc.errors(include_input=False, include_url=False):
        location = ".".join(str(item) for item in err["loc"]) or "body"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


class PaymentOrchestrator:
    """Owns one payment request from raw body to stored order id."""

    def __init__(
        self,
        tokenizer: TokenizationClient,
        store: PersistenceStore,
        service_name: str = "transform-engine",
    ) -> None:
        self.tokenizer = tokenizer
        self.store = store
        self.service_name = service_name

    def parse(self, body: bytes) -> PaymentRequest:
        stage_ctx.set(Stage.PARSED.value)
        if not body or not body.strip():
            raise RequestParseError("Unable to parse request: empty body")
        try:
            return PaymentRequest.model_validate_json(body)
        except ValidationError as exc:
            raise RequestParseError(f"Unable to parse request: {_describe_validation_error(exc)}") from None

    def process(self, body: bytes) -> PaymentResponse:
        """Run the full pipeline and return the new transaction id.

        Raises a `PaymentGatewayError` subclass naming the failed stage.
        """

        payment_requests_total.labels(service=self.service_name).inc()
        stage_ctx.set(Stage.RECEIVED.value)
        with payment_latency_seconds.labels(service=self.service_name).time():
            try:
                request = self.parse(body)

                stage_ctx.set(Stage.TOKENIZED.value)
                token = self.tokenizer.tokenize(request.card_number.get_secret_value())

                stage_ctx.set(Stage.PERSISTED.value)
                order_id = self.store.save_order(token)
            except PaymentGatewayError as exc:
                payment_failure_total.labels(service=self.service_name, stage=exc.stage.value).inc()
                logger.error("payment failed stage=%s reason=%s", exc.stage.value, exc.message)
                raise

        stage_ctx.set(Stage.RESPONDED.value)
        payment_success_total.labels(service=self.service_name).inc()
        logger.info("payment accepted transaction_id=%s", order_id)
        return PaymentResponse(transaction_id=order_id)
