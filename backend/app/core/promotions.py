"""Promotions — pure eligibility rules and discount arithmetic.

Invariants:
    - check_eligibility evaluates conditions in a FIXED order and returns the first
      unmet one as the reason; None means eligible
    - Unknown inputs never satisfy a condition that depends on them
      (no user → first-booking and per-user limits unmet; no date → early-bird unmet)
    - compute_discount_cents is in [0, amount_cents]; cap applied before the amount clamp
    - discount_value: percentage points for "percentage", cents for "fixed"

Design Decisions:
    - Replaces the hosted get_experience_promos / validate_promo_code RPCs with Python:
      rules become unit-testable without a Postgres instance
    - PromotionLike Protocol: core never imports the ORM model
    - Reasons are short English phrases; the assistant translates them for the guest
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from app.core.dates import days_until, ensure_utc
from app.core.domain_types import (
    DiscountType, PromoScope, PromoType, cents_to_mad,
)
from app.core.repository_protocols import PromotionLike


@dataclass(frozen=True)
class BookingContext:
    """What is known about the prospective booking when promotions are evaluated."""
    now: datetime
    amount_cents: int | None = None
    check_in: date | None = None
    nights: int | None = None
    guests: int | None = None
    user_id: str | None = None
    user_booking_count: int | None = None
    user_promo_uses: Mapping[str, int] = field(default_factory=dict)


def in_scope(promo: PromotionLike, experience_id: Any, host_id: Any) -> bool:
    if promo.scope == PromoScope.GLOBAL.value:
        return True
    if promo.scope == PromoScope.HOST.value:
        return host_id is not None and str(promo.host_id) == str(host_id)
    if promo.scope == PromoScope.EXPERIENCE.value:
        return str(promo.experience_id) == str(experience_id)
    return False


def is_live(promo: PromotionLike, now: datetime) -> bool:
    """Active, inside its validity window and not exhausted."""
    if not promo.is_active:
        return False
    now = ensure_utc(now)
    valid_from = ensure_utc(promo.valid_from)
    valid_until = ensure_utc(promo.valid_until)
    if valid_from is not None and now < valid_from:
        return False
    if valid_until is not None and now > valid_until:
        return False
    return promo.max_uses is None or promo.uses_count < promo.max_uses


def _requires_first_booking(promo: PromotionLike) -> bool:
    return bool(promo.first_booking_only) or promo.promo_type == PromoType.FIRST_BOOKING.value


def check_eligibility(promo: PromotionLike, ctx: BookingContext) -> str | None:
    """First unmet condition as a reason, or None when eligible."""
    if not promo.is_active:
        return "Promotion is not active"

    now = ensure_utc(ctx.now)
    valid_from = ensure_utc(promo.valid_from)
    valid_until = ensure_utc(promo.valid_until)
    if valid_from is not None and now < valid_from:
        return "Promotion has not started yet"
    if valid_until is not None and now > valid_until:
        return "Promotion has expired"

    if promo.max_uses is not None and promo.uses_count >= promo.max_uses:
        return "Promotion usage limit reached"

    if _requires_first_booking(promo):
        if ctx.user_id is None or ctx.user_booking_count is None:
            return "Sign in required: reserved for a first booking"
        if ctx.user_booking_count > 0:
            return "Only valid for a first booking"

    if promo.max_uses_per_user is not None:
        if ctx.user_id is None:
            return "Sign in required to check usage limit"
        if ctx.user_promo_uses.get(str(promo.id), 0) >= promo.max_uses_per_user:
            return "Promotion already used the maximum number of times"

    if promo.min_amount_cents:
        if ctx.amount_cents is None or ctx.amount_cents < promo.min_amount_cents:
            return f"Minimum amount of {cents_to_mad(promo.min_amount_cents):g} MAD"

    if promo.min_nights:
        if ctx.nights is None or ctx.nights < promo.min_nights:
            return f"Minimum stay of {promo.min_nights} nights"

    if promo.min_guests:
        if ctx.guests is None or ctx.guests < promo.min_guests:
            return f"Minimum of {promo.min_guests} guests"

    if promo.early_bird_days is not None:
        if ctx.check_in is None:
            return "Check-in date required"
        if days_until(ctx.check_in, now.date()) < promo.early_bird_days:
            return f"Book at least {promo.early_bird_days} days in advance"

    if promo.last_minute_days is not None:
        if ctx.check_in is None:
            return "Check-in date required"
        lead = days_until(ctx.check_in, now.date())
        if lead < 0 or lead > promo.last_minute_days:
            return f"Only for arrivals within {promo.last_minute_days} days"

    return None


def compute_discount_cents(promo: PromotionLike, amount_cents: int | None) -> int:
    if not amount_cents or amount_cents <= 0:
        return 0
    if promo.discount_type == DiscountType.PERCENTAGE.value:
        discount = int(round(amount_cents * float(promo.discount_value) / 100))
    else:
        discount = int(round(float(promo.discount_value)))
    if promo.max_discount_cents is not None:
        discount = min(discount, promo.max_discount_cents)
    return max(0, min(discount, amount_cents))


def display_discount_value(promo: PromotionLike) -> float:
    """Percentage points as-is; fixed amounts converted to MAD."""
    if promo.discount_type == DiscountType.FIXED.value:
        return cents_to_mad(int(round(float(promo.discount_value))))
    return float(promo.discount_value)


def split_promotions(
    promos: Iterable[PromotionLike], ctx: BookingContext,
) -> tuple[list[tuple[PromotionLike, int]], list[tuple[PromotionLike, str]]]:
    """(eligible with estimated discount, conditional with reason).

    Eligible promotions are ordered by priority then discount, best first.
    """
    eligible: list[tuple[PromotionLike, int]] = []
    conditional: list[tuple[PromotionLike, str]] = []
    for promo in promos:
        reason = check_eligibility(promo, ctx)
        if reason is None:
            eligible.append((promo, compute_discount_cents(promo, ctx.amount_cents)))
        else:
            conditional.append((promo, reason))
    eligible.sort(key=lambda pair: (pair[0].priority or 0, pair[1]), reverse=True)
    return eligible, conditional


def promotion_summary(promos: Iterable[PromotionLike]) -> dict:
    active = [p for p in promos if p.is_active]
    return {
        "has_promo": bool(active),
        "promo_count": len(active),
        "auto_apply_available": any(p.auto_apply for p in active),
    }


def promo_badge(promos: Iterable[PromotionLike]) -> PromotionLike | None:
    """Highest-priority active promotion, used for search-result badges."""
    active = [p for p in promos if p.is_active]
    if not active:
        return None
    return max(active, key=lambda p: (p.priority or 0, bool(p.auto_apply)))


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()
