"""Tool Dispatch — explicit routing from tool_name to handler function.

Invariants:
    - Every tool->handler mapping is visible — no getattr magic, no auto-discovery
    - Unknown tools return an UNKNOWN_TOOL error result (never raises)
    - Handlers instantiated per-dispatch with shared DB session, clock and user

Design Decisions:
    - Explicit dict over getattr: every mapping visible in one place
      (ADR: ExMA no convention-over-config)
    - Split handlers by concern: max ~4 methods per class
      (ADR: ExMA no god objects)
    - Handler exceptions propagate; AgentRunner._execute_tool_safe is the
      single error boundary that turns them into tool results
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.core.domain_types import AgentTool
from app.services.handle_booking import BookingHandlers
from app.services.handle_discovery import DiscoveryHandlers
from app.services.handle_experience import ExperienceHandlers
from app.services.handle_promotions import PromotionHandlers

logger = logging.getLogger(__name__)


class ToolDispatch:
    """Routes tool_name -> handler. Explicit registration, no auto-discovery."""

    def __init__(
        self, db: AsyncSession, settings: Settings,
        user_id: uuid.UUID | None = None, now: datetime | None = None,
    ):
        now = now or datetime.now(timezone.utc)
        discovery = DiscoveryHandlers(db, settings, now)
        experience = ExperienceHandlers(db, settings, now)
        promotions = PromotionHandlers(db, now, user_id)
        booking = BookingHandlers(db, settings, now, user_id)

        # ADR: every mapping explicit — adding a tool requires editing this dict
        self._handlers = {
            # Discovery
            AgentTool.SEARCH_EXPERIENCES.value: discovery.search_experiences,
            AgentTool.FIND_SIMILAR.value: discovery.find_similar,
            AgentTool.GET_LINKED_EXPERIENCES.value: discovery.get_linked_experiences,
            AgentTool.REQUEST_USER_LOCATION.value: discovery.request_user_location,

            # Experience details
            AgentTool.GET_EXPERIENCE_DETAILS.value: experience.get_experience_details,
            AgentTool.CHECK_AVAILABILITY.value: experience.check_availability,

            # Promotions
            AgentTool.GET_EXPERIENCE_PROMOS.value: promotions.get_experience_promos,
            AgentTool.VALIDATE_PROMO_CODE.value: promotions.validate_promo_code,

            # Booking
            AgentTool.CREATE_BOOKING_INTENT.value: booking.create_booking_intent,
        }

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers)

    async def execute(self, tool_name: str, input_data: dict) -> dict:
        """Route tool_name to handler. Returns result dict."""
        handler = self._handlers.get(tool_name)
        if not handler:
            logger.warning("Unknown tool requested", extra={"tool_name": tool_name})
            return {
                "success": False,
                "error": f"Tool '{tool_name}' does not exist.",
                "error_code": "UNKNOWN_TOOL",
            }
        logger.info("Executing tool", extra={"tool_name": tool_name})
        return await handler(input_data or {})
