"""Backfill AWB numbers for bookings that were stored without one.

The route comes from the booking's explicit ``service_code``; bookings with
an unrecognised code get an unprefixed AWB.
"""

from collections import Counter

import structlog
from protean import handle
from protean.fields import Integer
from protean.utils.globals import current_domain
from protean.utils.query import Q

from logistics.booking.booking import Booking
from logistics.domain import logistics
from logistics.identifiers import generate_unique_tracking_number
from logistics.routes import route_for

logger = structlog.get_logger(__name__)


@logistics.command(part_of="Booking")
class AssignMissingTrackingNumbers:
    limit = Integer(min_value=1)


@logistics.command_handler(part_of=Booking)
class AssignMissingTrackingNumbersHandler:
    @handle(AssignMissingTrackingNumbers)
    def assign_missing_tracking_numbers(self, command):
        repo = current_domain.repository_for(Booking)
        bookings = repo._dao.query.filter(Q(awb__isnull=True) | Q(awb="")).limit(command.limit).all().items
        logger.info("Found bookings without AWB", count=len(bookings))

        routes = Counter()
        for booking in bookings:
            route = route_for(booking.service_code)
            booking.assign_awb(generate_unique_tracking_number(route))
            repo.add(booking)
            routes[route.value if route else "UNKNOWN"] += 1

        logger.info("AWB backfill complete", generated=len(bookings), routes=dict(routes))
        return {"generated": len(bookings), "routes": dict(routes)}
