"""Retention cleanup — command and handler.

Triggered by an external scheduler (cron, K8s CronJob) through the
maintenance API endpoint, or by ``manage.py retention-cleanup``.
"""

from protean import handle
from protean.fields import Boolean

from logistics.booking.booking import Booking
from logistics.domain import logistics
from logistics.retention.sweeper import get_sweeper


@logistics.command(part_of="Booking")
class RunRetentionCleanup:
    """Delete records past their retention window."""

    dry_run = Boolean(default=False)


@logistics.command_handler(part_of=Booking)
class RetentionCleanupHandler:
    @handle(RunRetentionCleanup)
    def run_retention_cleanup(self, command):
        sweeper = get_sweeper()
        if command.dry_run:
            return sweeper.get_stats()
        return sweeper.run_cleanup()
