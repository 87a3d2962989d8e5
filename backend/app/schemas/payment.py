"""Payment Schemas — record validation for payment intents (no provider integration).

Invariants:
    - amount_cents is a strictly positive int: "5" and 5.0 are rejected, not coerced
    - currency exactly 3 characters
    - Fields accept snake_case names and camelCase aliases (bookingId, amountCents, ...)
"""

from datetime import datetime
from uuid import UUID

from pydantic import AnyUrl, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.domain_types import PaymentStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Payment(_CamelModel):
    id: UUID
    booking_id: UUID
    provider: str
    provider_ref: str | None = None
    amount_cents: int = Field(gt=0, strict=True)
    currency: str = Field(min_length=3, max_length=3)
    status: PaymentStatus
    failure_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class CreatePaymentIntent(_CamelModel):
    booking_id: UUID
    amount_cents: int = Field(gt=0, strict=True)
    currency: str = Field(min_length=3, max_length=3)
    return_url: AnyUrl | None = None


class PaymentIntentResponse(_CamelModel):
    intent_id: str
    client_secret: str | None = None
    status: PaymentStatus
    amount_cents: int = Field(strict=True)
    currency: str
