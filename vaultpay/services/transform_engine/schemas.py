"""Wire schemas for the public API and the Vault transform endpoint."""

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class PaymentRequest(BaseModel):
    """Payload accepted by `POST /`.

    Card data is held as `SecretStr` so the model never renders it verbatim.
    """

    model_config = ConfigDict(extra="ignore")

    card_number: SecretStr
    expiration: str
    cv2: SecretStr

    @field_validator("card_number")
    @classmethod
    def _card_number_present(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("card_number must not be empty")
        return value


class PaymentResponse(BaseModel):
    transaction_id: int


class ErrorResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    vault: str
    db: str


class TokenRequest(BaseModel):
    """Body sent to the Vault transform encode endpoint."""

    value: str


class TokenResponseData(BaseModel):
    encoded_value: str = Field(min_length=1)


class TokenResponse(BaseModel):
    """Subset of the Vault encode response this service relies on."""

    data: TokenResponseData


class VaultHealth(BaseModel):
    """Subset of `GET /v1/sys/health` used to decide liveness."""

    initialized: bool
    sealed: bool
