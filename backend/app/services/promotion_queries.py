"""Promotion Queries — loads promotions and guest history for eligibility checks.

Invariants:
    - Only is_active promotions are ever returned; scope filtering uses core.in_scope
    - Guest history counts bookings that reached checkout (pending_payment and later,
      cancelled/refunded excluded); drafts never count as a "previous booking"
    - Anonymous callers get user_booking_count=None (dependent conditions stay unmet)
"""

import uuid
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import BookingStatus
from app.core.promotions import BookingContext, in_scope, normalize_code
from app.models.booking import Booking
from app.models.experience import Experience
from app.models.promotion import Promotion

# Bookings that count as a guest's booking history
_HISTORY_STATUSES = (
    BookingStatus.PENDING_PAYMENT.value,
    BookingStatus.CONFIRMED.value,
    BookingStatus.COMPLETED.value,
)


async def active_promotions(db: AsyncSession) -> list[Promotion]:
    result = await db.execute(
        select(Promotion).where(Promotion.is_active.is_(True)),
    )
    return list(result.scalars().all())


def promotions_for(promos: list[Promotion], exp: Experience) -> list[Promotion]:
    return [p for p in promos if in_scope(p, exp.id, exp.host_id)]


async def find_by_code(db: AsyncSession, code: str) -> Promotion | None:
    """Case-insensitive code lookup (codes are stored upper-case by convention)."""
    normalized = normalize_code(code)
    if not normalized:
        return None
    result = await db.execute(
        select(Promotion)
        .where(func.upper(Promotion.code) == normalized)
        .order_by(Promotion.is_active.desc(), Promotion.created_at.desc())
        .limit(1),
    )
    return result.scalar_one_or_none()


async def booking_context(
    db: AsyncSession,
    now: datetime,
    user_id: uuid.UUID | None = None,
    amount_cents: int | None = None,
    check_in: date | None = None,
    nights: int | None = None,
    guests: int | None = None,
) -> BookingContext:
    """BookingContext enriched with the guest's booking and promotion history."""
    booking_count = None
    promo_uses: dict[str, int] = {}
    if user_id is not None:
        count_result = await db.execute(
            select(func.count(Booking.id)).where(
                Booking.guest_id == user_id,
                Booking.status.in_(_HISTORY_STATUSES),
            ),
        )
        booking_count = int(count_result.scalar_one())

        uses_result = await db.execute(
            select(Booking.promotion_id, func.count(Booking.id))
            .where(
                Booking.guest_id == user_id,
                Booking.promotion_id.is_not(None),
                Booking.status.in_(_HISTORY_STATUSES),
            )
            .group_by(Booking.promotion_id),
        )
        promo_uses = {str(pid): int(n) for pid, n in uses_result.all()}

    return BookingContext(
        now=now,
        amount_cents=amount_cents,
        check_in=check_in,
        nights=nights,
        guests=guests,
        user_id=str(user_id) if user_id is not None else None,
        user_booking_count=booking_count,
        user_promo_uses=promo_uses,
    )
