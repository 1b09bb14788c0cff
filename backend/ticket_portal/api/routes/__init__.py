"""Route Modules — one file per concern owned by the portal itself.

Invariants:
    - Each module defines its own APIRouter; the mount prefix is decided by the route table
    - Routes never contain business logic

Design Decisions:
    - Explicit registration in api/route_composer.py over auto-discovery (ADR: ExMA anti-pattern)
"""
