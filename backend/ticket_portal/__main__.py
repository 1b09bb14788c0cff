"""Allow ``python -m ticket_portal``."""

from ticket_portal.server import main

main()
