"""Checkout DTOs for the Service Layer."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.checkout.constants import ATTEMPT_TOKEN_MAX_LENGTH


class CheckoutDTO(BaseModel):
    """One checkout request; ``attempt_token`` makes retries idempotent."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    attempt_token: str = Field(max_length=ATTEMPT_TOKEN_MAX_LENGTH)
    shipping_address: str
    payment_success: bool

    @field_validator("attempt_token", "shipping_address")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Must not be blank.")
        return v
