"""Infrastructure Layer — datastore client, transport security and logging.

Invariants:
    - Infrastructure never imports from api/
    - All driver exceptions mapped to TicketPortalError subclasses at this boundary

Design Decisions:
    - Thin wrappers over raw clients (ADR: ExMA single responsibility)
"""
