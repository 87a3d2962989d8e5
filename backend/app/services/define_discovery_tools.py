"""Define Discovery Tools — Anthropic tool schemas for catalog exploration.

Invariants:
    - All schemas follow Anthropic tool_use format
    - Tool names match AgentTool values (the names stored in agent configs)
    - Dates are YYYY-MM-DD strings; prices are MAD

Design Decisions:
    - Tool schemas in dedicated files: explicit, no auto-discovery
    - searchExperiences handles city typos and progressive fallback itself:
      the description tells the model it does not need to retry with variants
"""

_EXPERIENCE_ID = {
    "type": "string",
    "format": "uuid",
    "description": "UUID of the experience",
}

TOOLS_DISCOVERY = [
    {
        "name": "searchExperiences",
        "description": """Search for experiences (lodging, trips, activities) in Morocco.
This tool combines keyword relevance ranking with filters like location, price, dates, and promotions.
Use this when users ask to find, search, or discover experiences.
The tool automatically handles city name variants and does progressive fallback searches if no results are found.""",
        "input_schema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query from user in natural language",
                },
                "type": {
                    "type": "string",
                    "enum": ["lodging", "trip", "activity"],
                    "description": "Type of experience to search for",
                },
                "city": {
                    "type": "string",
                    "description": 'Filter by city name (e.g., "Marrakech", "Chefchaouen")',
                },
                "region": {
                    "type": "string",
                    "description": 'Filter by region/area name (e.g., "Imlil", "Ouirgane", "Lala Takerkousst")',
                },
                "max_price_mad": {
                    "type": "number",
                    "description": "Maximum price in MAD (Moroccan Dirham)",
                },
                "min_rating": {
                    "type": "number",
                    "minimum": 0,
                    "maximum": 5,
                    "description": "Minimum average rating (0-5)",
                },
                "guests": {
                    "type": "integer",
                    "description": "Number of guests/participants",
                },
                "date_from": {
                    "type": "string",
                    "description": "Check-in date or activity date (YYYY-MM-DD format)",
                },
                "date_to": {
                    "type": "string",
                    "description": "Check-out date (YYYY-MM-DD format, for lodging)",
                },
                "user_lat": {
                    "type": "number",
                    "description": "User latitude for distance-based search",
                },
                "user_lng": {
                    "type": "number",
                    "description": "User longitude for distance-based search",
                },
                "max_distance_km": {
                    "type": "number",
                    "description": "Maximum distance in kilometers from user location",
                },
                "sort_by_distance": {
                    "type": "boolean",
                    "description": "Sort results by distance from user",
                },
                "only_with_promo": {
                    "type": "boolean",
                    "description": "Only show experiences with active promotions",
                },
                "only_auto_apply": {
                    "type": "boolean",
                    "description": "Only show experiences with auto-apply promotions",
                },
                "limit": {
                    "type": "integer",
                    "default": 10,
                    "description": "Maximum number of results to return",
                },
            },
            "required": ["query"],
        },
    },
    {
        "name": "getExperienceDetails",
        "description": """Get comprehensive details about a specific experience including:
- Full description and media
- Host information
- Type-specific details (room types for lodging, itinerary for trips, etc.)
- Amenities
- Recent reviews
- Active promotions
Use this when users want to know more about a specific experience.""",
        "input_schema": {
            "type": "object",
            "properties": {
                "experience_id": {
                    **_EXPERIENCE_ID,
                    "description": "UUID of the experience to get details for",
                },
            },
            "required": ["experience_id"],
        },
    },
    {
        "name": "checkAvailability",
        "description": """Check availability for an experience on specific dates.
For lodging: checks room availability between date_from and date_to.
For trips: checks upcoming departures after date_from.
For activities: checks upcoming sessions after date_from.
Returns available options with pricing.""",
        "input_schema": {
            "type": "object",
            "properties": {
                "experience_id": _EXPERIENCE_ID,
                "date_from": {
                    "type": "string",
                    "description": "Start date in YYYY-MM-DD format",
                },
                "date_to": {
                    "type": "string",
                    "description": "End date in YYYY-MM-DD format (for lodging)",
                },
                "guests": {
                    "type": "integer",
                    "description": "Number of guests/participants",
                },
            },
            "required": ["experience_id", "date_from"],
        },
    },
    {
        "name": "findSimilar",
        "description": """Find similar experiences based on text similarity with a reference experience.
Useful when users ask for alternatives or similar options to a specific experience.""",
        "input_schema": {
            "type": "object",
            "properties": {
                "experience_id": {
                    **_EXPERIENCE_ID,
                    "description": "UUID of the reference experience",
                },
                "same_region": {
                    "type": "boolean",
                    "description": "Only find experiences in the same region",
                },
                "same_type": {
                    "type": "boolean",
                    "description": "Only find experiences of the same type",
                },
                "limit": {
                    "type": "integer",
                    "default": 5,
                    "description": "Maximum number of similar experiences to return",
                },
            },
            "required": ["experience_id"],
        },
    },
    {
        "name": "requestUserLocation",
        "description": """Request the user's location to enable distance-based search and recommendations.
Use this when the user asks for nearby experiences or wants to sort by distance.
This returns a special marker that the frontend will interpret to show a location permission request.""",
        "input_schema": {
            "type": "object",
            "properties": {
                "reason": {
                    "type": "string",
                    "description": 'Explanation of why location is needed (e.g., "to find experiences near you", "to calculate distances")',
                },
            },
            "required": ["reason"],
        },
    },
    {
        "name": "getLinkedExperiences",
        "description": """Get experiences linked to a specific experience.
Linked experiences are related offerings that complement the main experience.
For example: a lodge may be linked to nearby activities/treks, an activity may be linked to lodging.
Use this when user shows interest in an experience to suggest complementary options.""",
        "input_schema": {
            "type": "object",
            "properties": {
                "experience_id": {
                    **_EXPERIENCE_ID,
                    "description": "UUID of the experience to get linked experiences for",
                },
            },
            "required": ["experience_id"],
        },
    },
]
