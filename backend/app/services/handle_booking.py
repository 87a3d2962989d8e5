"""Booking Handlers — draft booking intents prepared by the assistant for checkout.

Invariants:
    - An authenticated user is required (AuthenticationRequiredError → requires_auth)
    - Every item's experience must exist and be published; every item must quote
      successfully, otherwise NOTHING is written
    - One draft booking (first item as main) + one draft booking_item per entry,
      committed in a single transaction
    - A promotion code is applied per item only when it is in scope and eligible;
      drafts never touch uses_count, which counts paid bookings only
    - Lodging items store the effective room selection (cheapest room when none given)

Design Decisions:
    - Quotes computed in Python (core/pricing.py) instead of the hosted
      get_booking_quote RPC: the same arithmetic backs tests and production
    - Atomicity via one SQLAlchemy unit of work instead of insert-then-compensate
"""

import dataclasses
import logging
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.core.availability import slot_is_bookable
from app.core.dates import nights_between
from app.core.domain_types import BookingStatus, ExperienceType, SlotStatus
from app.core.errors import AuthenticationRequiredError, BookingRuleError, DatabaseError
from app.core.pricing import (
    Quote, RoomSelection, finalize_quote, lodging_subtotal_cents,
    per_person_subtotal_cents, sum_quotes,
)
from app.core.promotions import (
    BookingContext, check_eligibility, compute_discount_cents, in_scope,
)
from app.models.booking import Booking, BookingItem
from app.models.experience import ActivitySession, Experience, TripDeparture
from app.models.promotion import Promotion
from app.schemas.tool_inputs import (
    BookingItemInput, CreateBookingIntentInput, parse_tool_input,
)
from app.services.catalog_queries import get_experience
from app.services.promotion_queries import booking_context, find_by_code

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class _QuotedItem:
    item: BookingItemInput
    exp: Experience
    quote: Quote
    rooms: list[dict] | None
    promotion_note: str | None = None


class BookingHandlers:
    """createBookingIntent."""

    def __init__(
        self, db: AsyncSession, settings: Settings, now: datetime,
        user_id: uuid.UUID | None = None,
    ):
        self.db = db
        self.settings = settings
        self.now = now
        self.user_id = user_id

    async def create_booking_intent(self, input_data: dict) -> dict:
        if self.user_id is None:
            raise AuthenticationRequiredError("User not authenticated. Please sign in to book.")
        params = parse_tool_input(CreateBookingIntentInput, input_data)

        promo = None
        if params.promotion_code:
            promo = await find_by_code(self.db, params.promotion_code)
        history = await booking_context(self.db, self.now, user_id=self.user_id)

        quoted: list[_QuotedItem] = []
        for item in params.items:
            exp = await get_experience(self.db, item.experience_id)
            if exp is None:
                raise BookingRuleError(f"Experience not found: {item.experience_id}")
            if not exp.is_published:
                raise BookingRuleError(
                    f'Experience "{exp.title}" is not available for booking',
                )
            try:
                quoted.append(await self._quote(exp, item, promo, history))
            except BookingRuleError as e:
                raise BookingRuleError(
                    f'Failed to get quote for "{exp.title}": {e.message}',
                ) from e

        booking = self._build_booking(quoted, params.promotion_code)

        self.db.add(booking)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to create booking intent: %s", e)
            raise DatabaseError("Failed to create booking", "commit") from e

        logger.info(
            "Booking intent created",
            extra={"tool_name": "createBookingIntent"},
        )
        return self._summary(booking, quoted)

    # ─── Quoting ─────────────────────────────────────────────────

    async def _quote(
        self, exp: Experience, item: BookingItemInput,
        promo: Promotion | None, history: BookingContext,
    ) -> _QuotedItem:
        nights = nights_between(item.from_date, item.to_date)
        rooms = None

        if exp.type == ExperienceType.LODGING.value:
            prices = {str(r.id): r.price_cents for r in exp.active_rooms}
            selections = [
                RoomSelection(room_type_id=str(r.room_type_id), quantity=r.quantity)
                for r in (item.rooms or [])
            ]
            min_stay = exp.lodging.min_stay_nights if exp.lodging is not None else 1
            subtotal, effective = lodging_subtotal_cents(
                prices, selections, nights, min_stay or 1,
            )
            rooms = [
                {"room_type_id": s.room_type_id, "quantity": s.quantity}
                for s in effective
            ]
        else:
            unit = await self._unit_price(exp, item)
            subtotal = per_person_subtotal_cents(unit, item.adults, item.children)

        discount, promotion_id, note = self._promotion_discount(
            exp, item, promo, history, subtotal, nights,
        )
        quote = finalize_quote(
            subtotal, discount,
            fee_rate=self.settings.booking_fee_rate,
            tax_rate=self.settings.booking_tax_rate,
            nights=nights,
            currency=self.settings.booking_currency,
            promotion_id=promotion_id,
        )
        return _QuotedItem(item=item, exp=exp, quote=quote, rooms=rooms, promotion_note=note)

    async def _unit_price(self, exp: Experience, item: BookingItemInput) -> int | None:
        """Departure/session override, else the base per-person price."""
        base = exp.trip.price_cents if exp.trip is not None else None
        seats_needed = item.adults + item.children

        if exp.type == ExperienceType.TRIP.value and item.departure_id is not None:
            dep = await self._slot(TripDeparture, item.departure_id, exp.id)
            if dep is None:
                raise BookingRuleError("Departure not found for this trip")
            if not slot_is_bookable(dep.seats_available, seats_needed):
                raise BookingRuleError("Not enough seats left on this departure")
            return dep.price_override_cents or base

        if exp.type == ExperienceType.ACTIVITY.value and item.session_id is not None:
            session = await self._slot(ActivitySession, item.session_id, exp.id)
            if session is None:
                raise BookingRuleError("Session not found for this activity")
            if not slot_is_bookable(session.capacity_available, seats_needed):
                raise BookingRuleError("Not enough places left in this session")
            return session.price_override_cents or base

        return base

    async def _slot(self, model, slot_id: uuid.UUID, experience_id: uuid.UUID):
        result = await self.db.execute(
            select(model).where(
                model.id == slot_id,
                model.experience_id == experience_id,
                model.status == SlotStatus.SCHEDULED.value,
            ),
        )
        return result.scalar_one_or_none()

    def _promotion_discount(
        self, exp: Experience, item: BookingItemInput, promo: Promotion | None,
        history: BookingContext, subtotal: int, nights: int,
    ) -> tuple[int, str | None, str | None]:
        """(discount_cents, promotion_id, note when the code was not applied)."""
        if promo is None:
            return 0, None, None
        if not in_scope(promo, exp.id, exp.host_id):
            return 0, None, "Promo code is not valid for this experience"
        ctx = dataclasses.replace(
            history,
            amount_cents=subtotal,
            check_in=item.from_date,
            nights=nights,
            guests=item.adults + item.children,
        )
        reason = check_eligibility(promo, ctx)
        if reason is not None:
            return 0, None, reason
        return compute_discount_cents(promo, subtotal), str(promo.id), None

    # ─── Persistence ─────────────────────────────────────────────

    def _build_booking(self, quoted: list[_QuotedItem], promotion_code: str | None) -> Booking:
        main = quoted[0]
        booking = Booking(
            id=uuid.uuid4(),
            guest_id=self.user_id,
            experience_id=main.exp.id,
            host_id=main.exp.host_id,
            from_date=main.item.from_date,
            to_date=main.item.to_date,
            adults=main.item.adults,
            children=main.item.children,
            infants=main.item.infants,
            rooms=main.rooms,
            departure_id=main.item.departure_id,
            session_id=main.item.session_id,
            price_subtotal_cents=main.quote.subtotal_cents,
            price_discount_cents=main.quote.discount_cents,
            price_fees_cents=main.quote.fees_cents,
            price_taxes_cents=main.quote.taxes_cents,
            price_total_cents=main.quote.total_cents,
            currency=main.quote.currency,
            status=BookingStatus.DRAFT.value,
            guest_notes=main.item.guest_notes,
            promotion_id=(
                uuid.UUID(main.quote.promotion_id) if main.quote.promotion_id else None
            ),
            booking_metadata={"promotion_code": promotion_code, "created_by_ai": True},
        )
        booking.items = [
            BookingItem(
                experience_id=q.exp.id,
                host_id=q.exp.host_id,
                from_date=q.item.from_date,
                to_date=q.item.to_date,
                adults=q.item.adults,
                children=q.item.children,
                infants=q.item.infants,
                rooms=q.rooms,
                departure_id=q.item.departure_id,
                session_id=q.item.session_id,
                price_subtotal_cents=q.quote.subtotal_cents,
                price_discount_cents=q.quote.discount_cents,
                price_fees_cents=q.quote.fees_cents,
                price_taxes_cents=q.quote.taxes_cents,
                price_total_cents=q.quote.total_cents,
                currency=q.quote.currency,
                status=BookingStatus.DRAFT.value,
                guest_notes=q.item.guest_notes,
                order_index=index,
                item_metadata=(
                    {"promotion_id": q.quote.promotion_id} if q.quote.promotion_id else {}
                ),
            )
            for index, q in enumerate(quoted)
        ]
        return booking

    def _summary(self, booking: Booking, quoted: list[_QuotedItem]) -> dict:
        totals = sum_quotes(q.quote for q in quoted)
        checkout_url = f"/checkout/{booking.id}"
        items = []
        for q in quoted:
            entry = {
                "experience_title": q.exp.title,
                "experience_type": q.exp.type,
                "from_date": q.item.from_date.isoformat(),
                "to_date": q.item.to_date.isoformat(),
                "adults": q.item.adults,
                "children": q.item.children,
                "infants": q.item.infants,
                "nights": q.quote.nights,
                "rooms": q.rooms,
                "subtotal_cents": q.quote.subtotal_cents,
                "discount_cents": q.quote.discount_cents,
                "total_cents": q.quote.total_cents,
            }
            if q.promotion_note:
                entry["promotion_note"] = q.promotion_note
            items.append(entry)
        return {
            "success": True,
            "message": "Booking intent created successfully",
            "booking_id": str(booking.id),
            "checkout_url": checkout_url,
            "summary": {
                "booking_id": str(booking.id),
                "checkout_url": checkout_url,
                "total_cents": totals["total"],
                "discount_cents": totals["discount"],
                "currency": self.settings.booking_currency,
                "items": items,
            },
        }
