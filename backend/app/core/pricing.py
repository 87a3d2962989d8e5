"""Pricing — booking quotes computed from catalog prices, promotion and fee rates.

Invariants:
    - All amounts are integer cents; rounding happens once per component
    - total = (subtotal - discount) + fees + taxes
    - fees and taxes are computed on the DISCOUNTED subtotal
    - Lodging: Σ room price × quantity × nights; no rooms selected → cheapest room × 1
    - Trip/activity: unit price × (adults + children); infants travel free
    - Invalid requests raise BookingRuleError (never return a partial quote)
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from app.core.errors import BookingRuleError


@dataclass(frozen=True)
class RoomSelection:
    room_type_id: str
    quantity: int


@dataclass(frozen=True)
class Quote:
    subtotal_cents: int
    discount_cents: int
    fees_cents: int
    taxes_cents: int
    total_cents: int
    nights: int
    currency: str = "MAD"
    promotion_id: str | None = None


def lodging_subtotal_cents(
    room_prices: Mapping[str, int],
    selections: Sequence[RoomSelection],
    nights: int,
    min_stay_nights: int = 1,
) -> tuple[int, list[RoomSelection]]:
    """Subtotal and the effective room selection (defaults to cheapest room)."""
    if not room_prices:
        raise BookingRuleError("No room types configured for this lodging")
    if nights < 1:
        raise BookingRuleError("Check-out must be after check-in")
    if nights < max(1, min_stay_nights):
        raise BookingRuleError(f"Minimum stay is {min_stay_nights} nights")

    effective = list(selections)
    if not effective:
        cheapest = min(room_prices, key=lambda rid: room_prices[rid])
        effective = [RoomSelection(room_type_id=cheapest, quantity=1)]

    subtotal = 0
    for selection in effective:
        if selection.quantity < 1:
            raise BookingRuleError("Room quantity must be at least 1")
        price = room_prices.get(selection.room_type_id)
        if price is None:
            raise BookingRuleError(f"Unknown room type: {selection.room_type_id}")
        subtotal += price * selection.quantity * nights
    return subtotal, effective


def per_person_subtotal_cents(
    unit_price_cents: int | None, adults: int, children: int,
) -> int:
    if unit_price_cents is None:
        raise BookingRuleError("No price configured for this experience")
    if adults < 1:
        raise BookingRuleError("At least one adult is required")
    return unit_price_cents * (adults + max(0, children))


def finalize_quote(
    subtotal_cents: int,
    discount_cents: int,
    fee_rate: float,
    tax_rate: float,
    nights: int = 0,
    currency: str = "MAD",
    promotion_id: str | None = None,
) -> Quote:
    discount = max(0, min(discount_cents, subtotal_cents))
    discounted = subtotal_cents - discount
    fees = int(round(discounted * fee_rate))
    taxes = int(round(discounted * tax_rate))
    return Quote(
        subtotal_cents=subtotal_cents,
        discount_cents=discount,
        fees_cents=fees,
        taxes_cents=taxes,
        total_cents=discounted + fees + taxes,
        nights=nights,
        currency=currency,
        promotion_id=promotion_id,
    )


def sum_quotes(quotes: Iterable[Quote]) -> dict[str, int]:
    """Booking-level totals across item quotes."""
    totals = {"subtotal": 0, "discount": 0, "fees": 0, "taxes": 0, "total": 0}
    for q in quotes:
        totals["subtotal"] += q.subtotal_cents
        totals["discount"] += q.discount_cents
        totals["fees"] += q.fees_cents
        totals["taxes"] += q.taxes_cents
        totals["total"] += q.total_cents
    return totals
