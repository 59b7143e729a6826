"""Settlement bounded context — Commission Rules, Order Ledger and Payouts.

Handles commission rule management and resolution, the immutable per-item
order ledger (event-sourced orders), payment webhook processing, ticket order
confirmation, and seller revenue reporting.
"""

import structlog
from protean.domain import Domain

settlement = Domain(name="settlement")

logger = structlog.get_logger(__name__)
