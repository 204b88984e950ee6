"""Client for the Vault Transform secrets engine.

Exchanges raw card numbers for format-preserving tokens and reports Vault
liveness. One `httpx.Client` is shared by all requests; it is thread-safe and
keeps a connection pool to Vault.
"""

from typing import Protocol

import httpx
from pydantic import ValidationError

from vaultpay.common.logging import logger
from vaultpay.services.transform_engine.errors import TokenizationError
from vaultpay.services.transform_engine.schemas import TokenRequest, TokenResponse, VaultHealth


VAULT_TOKEN_HEADER = "X-Vault-Token"


class TokenizationClient(Protocol):
    """Capability the pipeline needs from a tokenization service."""

    def probe(self) -> bool: ...

    def tokenize(self, raw: str) -> str: ...


class VaultTransformClient:
    """Tokenizes card numbers through `/v1/transform/encode/{role}`."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        role: str,
        timeout: float,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.role = role
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={VAULT_TOKEN_HEADER: token, "Accept": "application/json"},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def probe(self) -> bool:
        """Return True only when Vault answers 200 and reports itself unsealed."""

        try:
            resp = self._client.get("/v1/sys/health")
        except httpx.HTTPError as exc:
            logger.warning("vault health probe failed: %s", exc.__class__.__name__)
            return False
        if resp.status_code != httpx.codes.OK:
            logger.warning("vault health probe returned status %s", resp.status_code)
            return False
        try:
            health = VaultHealth.model_validate_json(resp.content)
        except ValidationError:
            logger.warning("vault health probe returned an unexpected body")
            return False
        return health.initialized and not health.sealed

    def tokenize(self, raw: str) -> str:
        """Encode `raw` with the configured transform role and return the token.

        Raises `TokenizationError` on transport failure, a non-200 status, or a
        response that does not carry `data.encoded_value`.
        """

        body = TokenRequest(value=raw).model_dump()
        try:
            resp = self._client.post(f"/v1/transform/encode/{self.role}", json=body)
        except httpx.HTTPError as exc:
            raise TokenizationError(f"unable to reach tokenization service: {exc.__class__.__name__}") from exc

        if resp.status_code != httpx.codes.OK:
            raise TokenizationError(
                f"tokenization service returned status {resp.status_code}, expected 200"
            )

        try:
            parsed = TokenResponse.model_validate_json(resp.content)
        except ValidationError as exc:
            raise TokenizationError(
                f"unexpected tokenization response: {exc.error_count()} validation error(s)"
            ) from None
        return parsed.data.encoded_value

    def close(self) -> None:
        self._client.close()
