"""Retention sweeper — permanently deletes records past their retention window.

Retention windows:
    reviewed bookings       30 days
    rejected bookings       15 days
    invoice requests        30 days
    delivery assignments    30 days
    invoices                never deleted

QR payment handles are fields of their DeliveryAssignment, so they expire
with it and have no category of their own.

Every candidate passes two independent age checks before deletion: the
query cutoff (now - (window + 1) days, truncated to midnight UTC) and a
per-record whole-day age of at least window + 1 days. Only one pass runs at
a time; a trigger that arrives mid-pass is skipped. Deleted invoice
requests are evicted from the summary cache.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import structlog
from protean.utils.globals import current_domain

from logistics.booking.booking import Booking, ReviewStatus
from logistics.delivery_assignment.delivery_assignment import DeliveryAssignment
from logistics.invoice.invoice import Invoice
from logistics.invoice_request.invoice_request import InvoiceRequest
from logistics.projections.invoice_request_summary import evict_summary

logger = structlog.get_logger(__name__)

SAFETY_MARGIN_DAYS = 1


@dataclass(frozen=True)
class RetentionCategory:
    name: str
    aggregate: type
    retention_days: int
    filters: dict


RETENTION_CATEGORIES = (
    RetentionCategory("bookings_reviewed", Booking, 30, {"review_status": ReviewStatus.REVIEWED.value}),
    RetentionCategory("bookings_rejected", Booking, 15, {"review_status": ReviewStatus.REJECTED.value}),
    RetentionCategory("invoice_requests", InvoiceRequest, 30, {}),
    RetentionCategory("delivery_assignments", DeliveryAssignment, 30, {}),
)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class RetentionSweeper:
    def __init__(self, clock: Callable[[], datetime] = _utc_now, categories=RETENTION_CATEGORIES):
        self.clock = clock
        self.categories = categories
        self.last_run: datetime | None = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    # -------------------------------------------------------------------
    # Age checks
    # -------------------------------------------------------------------
    def get_cutoff_date(self, retention_days: int) -> datetime:
        """Midnight UTC of the day ``retention_days`` + 1 days ago."""
        cutoff = self.clock() - timedelta(days=retention_days + SAFETY_MARGIN_DAYS)
        return cutoff.replace(hour=0, minute=0, second=0, microsecond=0)

    def is_old_enough(self, created_at: datetime | None, retention_days: int) -> bool:
        """Whole days since ``created_at`` must reach ``retention_days`` + 1."""
        if created_at is None:
            return False
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        age_in_days = (self.clock() - created_at) // timedelta(days=1)
        return age_in_days >= retention_days + SAFETY_MARGIN_DAYS

    # -------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------
    def _candidates(self, category: RetentionCategory) -> list:
        cutoff = self.get_cutoff_date(category.retention_days)
        dao = current_domain.repository_for(category.aggregate)._dao
        return dao.query.filter(created_at__lt=cutoff, **category.filters).limit(None).all().items

    def delete_expired(self, category: RetentionCategory) -> int:
        dao = current_domain.repository_for(category.aggregate)._dao
        verified = [
            record for record in self._candidates(category) if self.is_old_enough(record.created_at, category.retention_days)
        ]
        for record in verified:
            dao.delete(record)
            if category.aggregate is InvoiceRequest:
                evict_summary(record.id)

        if verified:
            logger.info(
                "Deleted expired records",
                category=category.name,
                count=len(verified),
                minimum_age_days=category.retention_days + SAFETY_MARGIN_DAYS,
            )
        return len(verified)

    def delete_old_otps(self) -> int:
        """OTPs stay with their booking as audit data; never deleted on their own."""
        logger.info("OTP deletion is disabled, all OTPs are preserved")
        return 0

    def _invoice_count(self) -> int:
        return current_domain.repository_for(Invoice)._dao.query.all().total

    # -------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------
    def run_cleanup(self) -> dict | None:
        """Run one retention pass. Returns None when a pass is already running."""
        if not self._lock.acquire(blocking=False):
            logger.warning("Retention cleanup already running, skipping")
            return None

        started = time.monotonic()
        try:
            logger.info("Starting retention cleanup", started_at=self.clock().isoformat())
            stats = {category.name: 0 for category in self.categories}
            stats["otps"] = 0
            stats["errors"] = 0
            stats["invoices_before"] = self._invoice_count()

            for category in self.categories:
                try:
                    stats[category.name] = self.delete_expired(category)
                except Exception as exc:
                    stats["errors"] += 1
                    logger.error(
                        "Retention category failed",
                        category=category.name,
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )

            stats["otps"] = self.delete_old_otps()
            stats["invoices_after"] = self._invoice_count()
            if stats["invoices_after"] < stats["invoices_before"]:
                logger.error(
                    "Invoice count dropped during retention cleanup",
                    invoices_before=stats["invoices_before"],
                    invoices_after=stats["invoices_after"],
                )

            stats["duration_seconds"] = round(time.monotonic() - started, 3)
            self.last_run = self.clock()
            logger.info("Retention cleanup complete", **stats)
            return stats
        finally:
            self._lock.release()

    def get_stats(self) -> dict:
        """Records past each category's cutoff, without deleting anything."""
        stats = {category.name: len(self._candidates(category)) for category in self.categories}
        stats["invoices"] = self._invoice_count()
        stats["last_run"] = self.last_run.isoformat() if self.last_run else None
        stats["is_running"] = self.is_running
        return stats


_default_sweeper: RetentionSweeper | None = None


def get_sweeper() -> RetentionSweeper:
    global _default_sweeper
    if _default_sweeper is None:
        _default_sweeper = RetentionSweeper()
    return _default_sweeper


def run_cleanup() -> dict | None:
    """Single entry point for schedulers."""
    return get_sweeper().run_cleanup()
