"""Services Layer — tool handlers, agent runner, tool dispatch and catalog reads.

Invariants:
    - Handlers split by concern (discovery, experience, promotions, booking)
    - Tool dispatch uses explicit dict mapping (no auto-discovery)

Design Decisions:
    - One handler file per concern for locality (ADR: ExMA no god objects)
"""
