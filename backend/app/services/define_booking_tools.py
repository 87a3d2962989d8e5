"""Define Booking Tools — Anthropic tool schemas for promotions and booking intents.

Invariants:
    - All schemas follow Anthropic tool_use format
    - createBookingIntent requires at least one item; adults >= 1, room quantity >= 1

Design Decisions:
    - The authenticated user is NOT a tool argument for createBookingIntent:
      it comes from the request's access token, never from the model
"""

_EXPERIENCE_ID = {
    "type": "string",
    "format": "uuid",
    "description": "UUID of the experience",
}

_PROMO_CONTEXT = {
    "user_id": {
        "type": "string",
        "format": "uuid",
        "description": "UUID of the user (if logged in)",
    },
    "check_in": {
        "type": "string",
        "description": "Check-in date in YYYY-MM-DD format",
    },
    "nights": {
        "type": "integer",
        "description": "Number of nights (for lodging)",
    },
    "guests": {
        "type": "integer",
        "description": "Number of guests",
    },
    "amount_mad": {
        "type": "number",
        "description": "Booking amount in MAD before discount",
    },
}

TOOLS_BOOKING = [
    {
        "name": "getExperiencePromos",
        "description": """Get all applicable promotions for an experience with eligibility details.
Shows both eligible promotions and conditional ones with unmet requirements.
Useful for displaying promo information to users.""",
        "input_schema": {
            "type": "object",
            "properties": {
                "experience_id": _EXPERIENCE_ID,
                **_PROMO_CONTEXT,
            },
            "required": ["experience_id"],
        },
    },
    {
        "name": "validatePromoCode",
        "description": """Validate a promo code entered by the user and calculate the discount.
Returns whether the code is valid, the discount amount, and the new total.""",
        "input_schema": {
            "type": "object",
            "properties": {
                "code": {
                    "type": "string",
                    "description": "Promo code to validate",
                },
                "experience_id": _EXPERIENCE_ID,
                **_PROMO_CONTEXT,
            },
            "required": ["code", "experience_id", "amount_mad"],
        },
    },
    {
        "name": "createBookingIntent",
        "description": """Create a booking intent when user wants to reserve/book experience(s).
This prepares a booking with all details collected from the conversation.
Supports multi-experience bookings (main experience + linked experiences).
Returns a booking summary for user confirmation before payment.

Use this when:
- User says "je réserve", "je veux réserver", "je prends ça"
- User confirms they want to proceed with booking
- You have all required details (dates, guests, rooms for lodging)

The tool will:
1. Validate each experience
2. Calculate pricing (subtotal, discount, fees, taxes, total)
3. Create draft booking intent
4. Return summary for display in chat""",
        "input_schema": {
            "type": "object",
            "properties": {
                "items": {
                    "type": "array",
                    "minItems": 1,
                    "description": "Booking items (main experience + linked experiences)",
                    "items": {
                        "type": "object",
                        "properties": {
                            "experience_id": {
                                "type": "string",
                                "format": "uuid",
                                "description": "Experience UUID",
                            },
                            "from_date": {
                                "type": "string",
                                "description": "Check-in/start date (YYYY-MM-DD)",
                            },
                            "to_date": {
                                "type": "string",
                                "description": "Check-out/end date (YYYY-MM-DD)",
                            },
                            "adults": {
                                "type": "integer",
                                "minimum": 1,
                                "description": "Number of adults",
                            },
                            "children": {
                                "type": "integer",
                                "minimum": 0,
                                "default": 0,
                                "description": "Number of children",
                            },
                            "infants": {
                                "type": "integer",
                                "minimum": 0,
                                "default": 0,
                                "description": "Number of infants",
                            },
                            "rooms": {
                                "type": "array",
                                "description": "Room selections for lodging",
                                "items": {
                                    "type": "object",
                                    "properties": {
                                        "room_type_id": {
                                            "type": "string",
                                            "format": "uuid",
                                            "description": "Room type ID",
                                        },
                                        "quantity": {
                                            "type": "integer",
                                            "minimum": 1,
                                            "description": "Number of rooms of this type",
                                        },
                                    },
                                    "required": ["room_type_id", "quantity"],
                                },
                            },
                            "departure_id": {
                                "type": "string",
                                "format": "uuid",
                                "description": "Specific departure ID for trips",
                            },
                            "session_id": {
                                "type": "string",
                                "format": "uuid",
                                "description": "Specific session ID for activities",
                            },
                            "guest_notes": {
                                "type": "string",
                                "description": "Special requests or notes",
                            },
                        },
                        "required": ["experience_id", "from_date", "to_date", "adults"],
                    },
                },
                "promotion_code": {
                    "type": "string",
                    "description": "Promotion/discount code if user provided one",
                },
            },
            "required": ["items"],
        },
    },
]
