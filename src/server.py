"""Protean Engine runner for the logistics domain.

Starts Engine workers that process events asynchronously:
- OutboxProcessor: polls outbox table, publishes events to the broker
- StreamSubscriptions: invokes the carrier sync handler and the summary projector

Retention sweeps are not scheduled here; cron runs ``python src/manage.py
retention-cleanup`` or calls ``POST /retention/run``.

Usage:
    python src/server.py
    python src/server.py --debug
"""

import argparse

from protean.server.engine import Engine


def _get_domain():
    """Import and initialize the logistics domain."""
    from logistics.domain import logistics

    logistics.init()
    return logistics


def main():
    parser = argparse.ArgumentParser(description="Logistics Engine runner")
    parser.add_argument("--debug", action="store_true", help="Verbose engine logging")
    args = parser.parse_args()

    Engine(_get_domain(), debug=args.debug).run()


if __name__ == "__main__":
    main()
