"""Ordering bounded context — order placement, stock ledger and order lifecycle.

Orders, their line items and the stock column of every product live in this
one domain, so a single unit of work covers the order header, the items and
every stock movement an order causes.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
ordering = Domain(name="ordering")
