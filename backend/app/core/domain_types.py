"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ExperienceId, BookingId, ConversationId wrap UUIDs — never use bare UUID in domain logic
    - Money is always integer cents (Cents); MAD values exposed to the model are cents / 100
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (ADR: Anthropic tool_result is JSON)
    - Enum values match the hosted Postgres column values exactly
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

ExperienceId = NewType("ExperienceId", UUID)
BookingId = NewType("BookingId", UUID)
ConversationId = NewType("ConversationId", UUID)
UserId = NewType("UserId", UUID)


# ─── Value Types ─────────────────────────────────────────────────

Cents = NewType("Cents", int)


def cents_to_mad(cents: int | None) -> float | None:
    """Integer cents → MAD amount (None and 0 stay falsy-compatible)."""
    if cents is None:
        return None
    return cents / 100


def mad_to_cents(amount_mad: float | None) -> int | None:
    if amount_mad is None:
        return None
    return int(round(amount_mad * 100))


# ─── Enums ───────────────────────────────────────────────────────

class ExperienceType(str, Enum):
    """Experience kinds — lodging priced per night, trip/activity per person."""
    LODGING = "lodging"
    TRIP = "trip"
    ACTIVITY = "activity"


class ExperienceStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class SlotStatus(str, Enum):
    """Trip departure / activity session status."""
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class BookingStatus(str, Enum):
    """Booking lifecycle — draft is what the assistant creates."""
    DRAFT = "draft"
    PENDING_PAYMENT = "pending_payment"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    REFUNDED = "refunded"


# Booking states that hold inventory (rooms, seats)
BLOCKING_BOOKING_STATUSES = frozenset({
    BookingStatus.PENDING_PAYMENT.value,
    BookingStatus.CONFIRMED.value,
})


class PaymentStatus(str, Enum):
    PENDING = "pending"
    REQUIRES_ACTION = "requires_action"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PromoType(str, Enum):
    FIRST_BOOKING = "first_booking"
    PROMO_CODE = "promo_code"
    LOYALTY_REWARD = "loyalty_reward"
    REFERRAL = "referral"


class PromoScope(str, Enum):
    GLOBAL = "global"
    HOST = "host"
    EXPERIENCE = "experience"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ExperienceSort(str, Enum):
    """Listing sort orders exposed by GET /api/experiences."""
    NEWEST = "newest"
    POPULAR = "popular"
    RATING = "rating"
    PRICE_HIGH = "price_high"
    PRICE_LOW = "price_low"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class AgentTool(str, Enum):
    """Assistant tool names as stored in ai_agent_config_versions.enabled_tools."""
    SEARCH_EXPERIENCES = "searchExperiences"
    GET_EXPERIENCE_DETAILS = "getExperienceDetails"
    CHECK_AVAILABILITY = "checkAvailability"
    GET_EXPERIENCE_PROMOS = "getExperiencePromos"
    VALIDATE_PROMO_CODE = "validatePromoCode"
    FIND_SIMILAR = "findSimilar"
    REQUEST_USER_LOCATION = "requestUserLocation"
    GET_LINKED_EXPERIENCES = "getLinkedExperiences"
    CREATE_BOOKING_INTENT = "createBookingIntent"


# Declaration order is the order tools are offered to the model
KNOWN_AGENT_TOOLS: tuple[str, ...] = tuple(t.value for t in AgentTool)
