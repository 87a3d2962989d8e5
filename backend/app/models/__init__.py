"""ORM Models — SQLAlchemy declarative models mirroring the hosted Okeyo schema.

Invariants:
    - All models inherit from Base (db/base.py)
    - Experience is the catalog aggregate root; bookings and promotions reference it

Design Decisions:
    - One file per aggregate for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs (ADR: standard SQLAlchemy pattern)
"""

from app.models.host import Host, Profile  # noqa: F401
from app.models.experience import (  # noqa: F401
    Experience,
    ExperienceTrip,
    ExperienceLodging,
    LodgingRoomType,
    TripItineraryItem,
    TripDeparture,
    ActivitySession,
    ExperienceLink,
)
from app.models.catalog import (  # noqa: F401
    Amenity,
    ExperienceAmenity,
    Category,
    ExperienceCategory,
    Review,
)
from app.models.promotion import Promotion  # noqa: F401
from app.models.booking import Booking, BookingItem  # noqa: F401
from app.models.conversation import AIConversation, AIMessage  # noqa: F401
from app.models.agent_config import AgentConfig, AgentConfigVersion  # noqa: F401
