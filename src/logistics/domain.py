"""Logistics bounded context — Cross-border Shipment to Invoice Lifecycle.

Takes a customer booking through operations review, weight and
classification verification, finance completion and delivery handoff.
Uses CQRS: records are mutable documents, and the external carrier mirrors
local state through event-driven, best-effort synchronization.
"""

from protean.domain import Domain

from logistics.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

logistics = Domain(name="logistics")
