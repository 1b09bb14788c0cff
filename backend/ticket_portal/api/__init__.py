"""API Layer — FastAPI route composition, gating and error handlers.

Invariants:
    - Route groups registered explicitly in a fixed order (no auto-discovery)
    - All endpoints owned by this layer return structured JSON responses

Design Decisions:
    - Domain handlers are external routers composed here, never implemented here
"""
