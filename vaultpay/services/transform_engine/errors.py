"""Error taxonomy for the payment intake pipeline.

Request-time errors carry the pipeline stage that detected them and the HTTP
status the API layer should answer with. Messages never include card data.
"""

from enum import Enum


class Stage(str, Enum):
    """Pipeline stages a single payment request moves through, in order."""

    RECEIVED = "received"
    PARSED = "parsed"
    TOKENIZED = "tokenized"
    PERSISTED = "persisted"
    RESPONDED = "responded"


class PaymentGatewayError(Exception):
    """Base class for failures surfaced to a payment request."""

    stage: Stage = Stage.RECEIVED
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RequestParseError(PaymentGatewayError):
    stage = Stage.PARSED
    status_code = 400


class TokenizationError(PaymentGatewayError):
    stage = Stage.TOKENIZED
    status_code = 502


class PersistenceError(PaymentGatewayError):
    stage = Stage.PERSISTED
    status_code = 500


class StoreConnectionError(Exception):
    """The database could not be reached or rejected authentication."""


class StartupError(Exception):
    """Startup dependencies never became available within the backoff budget."""
