"""Promotion Handlers — promotion listing and promo-code validation for one experience.

Invariants:
    - getExperiencePromos lists active in-scope promotions only, split into
      eligible (with estimated discount) and conditional (with the unmet reason)
    - validatePromoCode is case-insensitive; an unknown, out-of-scope or ineligible
      code returns valid:false with error_message (success stays true)
    - Amounts in results are MAD; max/estimated discounts of 0 are reported as null
"""

import uuid
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import cents_to_mad, mad_to_cents
from app.core.errors import ResourceNotFoundError
from app.core.promotions import (
    check_eligibility, compute_discount_cents, display_discount_value,
    in_scope, split_promotions,
)
from app.schemas.tool_inputs import (
    ExperiencePromosInput, ValidatePromoCodeInput, parse_tool_input,
)
from app.services.catalog_queries import get_experience
from app.services.promotion_queries import (
    active_promotions, booking_context, find_by_code, promotions_for,
)


def _mad_or_none(cents: int | None) -> float | None:
    return cents_to_mad(cents) if cents else None


class PromotionHandlers:
    """getExperiencePromos, validatePromoCode."""

    def __init__(
        self, db: AsyncSession, now: datetime, user_id: uuid.UUID | None = None,
    ):
        self.db = db
        self.now = now
        self.user_id = user_id

    async def get_experience_promos(self, input_data: dict) -> dict:
        params = parse_tool_input(ExperiencePromosInput, input_data)
        exp = await get_experience(self.db, params.experience_id)
        if exp is None:
            raise ResourceNotFoundError("Experience", str(params.experience_id))

        ctx = await booking_context(
            self.db, self.now,
            user_id=params.user_id or self.user_id,
            amount_cents=mad_to_cents(params.amount_mad),
            check_in=params.check_in,
            nights=params.nights,
            guests=params.guests,
        )
        eligible, conditional = split_promotions(
            promotions_for(await active_promotions(self.db), exp), ctx,
        )
        return {
            "success": True,
            "eligible": [
                {
                    "id": str(promo.id),
                    "type": promo.promo_type,
                    "name": promo.name,
                    "description": promo.description,
                    "code": promo.code,
                    "discount_type": promo.discount_type,
                    "discount_value": display_discount_value(promo),
                    "max_discount_mad": _mad_or_none(promo.max_discount_cents),
                    "estimated_discount_mad": _mad_or_none(discount),
                    "badge_text": promo.badge_text,
                    "auto_apply": promo.auto_apply,
                }
                for promo, discount in eligible
            ],
            "conditional": [
                {
                    "id": str(promo.id),
                    "type": promo.promo_type,
                    "name": promo.name,
                    "description": promo.description,
                    "code": promo.code,
                    "reason": reason,
                }
                for promo, reason in conditional
            ],
        }

    async def validate_promo_code(self, input_data: dict) -> dict:
        params = parse_tool_input(ValidatePromoCodeInput, input_data)
        exp = await get_experience(self.db, params.experience_id)
        if exp is None:
            raise ResourceNotFoundError("Experience", str(params.experience_id))

        promo = await find_by_code(self.db, params.code)
        if promo is None:
            return {"success": True, "valid": False, "error_message": "Invalid promo code"}
        if not in_scope(promo, exp.id, exp.host_id):
            return {
                "success": True,
                "valid": False,
                "error_message": "Promo code is not valid for this experience",
            }

        amount_cents = mad_to_cents(params.amount_mad) or 0
        ctx = await booking_context(
            self.db, self.now,
            user_id=params.user_id or self.user_id,
            amount_cents=amount_cents,
            check_in=params.check_in,
            nights=params.nights,
            guests=params.guests,
        )
        reason = check_eligibility(promo, ctx)
        if reason is not None:
            return {"success": True, "valid": False, "error_message": reason}

        discount = compute_discount_cents(promo, amount_cents)
        return {
            "success": True,
            "valid": True,
            "promotion_id": str(promo.id),
            "discount_mad": cents_to_mad(discount),
            "original_total_mad": params.amount_mad,
            "new_total_mad": cents_to_mad(amount_cents - discount),
            "savings_mad": cents_to_mad(discount),
        }
