"""Run lifecycle sweeps from a shell cron instead of the HTTP triggers.

Standalone script. Each sweep runs and commits in its own session, so a
failing sweep does not undo the ones before it.

Usage:
    python -m scripts.run_lifecycle_sweeps                 # all sweeps
    python -m scripts.run_lifecycle_sweeps jobs reminders  # a subset

Sweeps, in run order:
    jobs           expire elapsed listings
    subscriptions  expire elapsed subscriptions
    reminders      queue expiry reminder emails
    notifications  deliver one batch of queued notifications
"""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jobmarket.core.config import settings
from jobmarket.core.database import make_engine, make_session_factory
from jobmarket.core.email import get_email_sender
from jobmarket.core.errors import ConfigurationError
from jobmarket.services.job_expiration import process_expirations
from jobmarket.services.notification_queue import (
    process_notification_queue,
    queue_job_expiration_notifications,
)
from jobmarket.services.subscription_lifecycle import expire_old_subscriptions

logger = logging.getLogger(__name__)

SWEEPS: tuple[str, ...] = ("jobs", "subscriptions", "reminders", "notifications")


@dataclass
class SweepReport:
    """Counts from one script run.

    Attributes:
        completed: Sweeps that ran to completion.
        failed: Sweeps that reported a failure or could not start.
        counts: Per-sweep headline number (expired, queued, sent).
    """

    completed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)


async def _run_one(session: AsyncSession, sweep: str) -> int | None:
    """Run one sweep. Returns its headline count, or None on failure."""
    if sweep == "jobs":
        result = await process_expirations(session)
        return None if result is None else result.expired_count

    if sweep == "subscriptions":
        outcome = await expire_old_subscriptions(session)
        return outcome.expired_count if outcome.success else None

    if sweep == "reminders":
        return await queue_job_expiration_notifications(session)

    sender = get_email_sender()
    queue_result = await process_notification_queue(session, sender)
    return None if queue_result.error else queue_result.processed


async def run_sweeps(
    factory: async_sessionmaker[AsyncSession],
    sweeps: Sequence[str] = SWEEPS,
) -> SweepReport:
    """Run the requested sweeps in order, one committed session each.

    Args:
        factory: Session factory bound to the target database.
        sweeps: Sweep names (see SWEEPS). Unknown names are rejected by
            the CLI parser.

    Returns:
        SweepReport with completed and failed sweeps.
    """
    report = SweepReport()
    for sweep in sweeps:
        async with factory() as session:
            try:
                count = await _run_one(session, sweep)
            except ConfigurationError as exc:
                logger.error("Sweep %s not configured: %s", sweep, exc.message)
                report.failed.append(sweep)
                continue
            await session.commit()

        if count is None:
            logger.error("Sweep %s failed", sweep)
            report.failed.append(sweep)
        else:
            logger.info("Sweep %s complete: %d", sweep, count)
            report.completed.append(sweep)
            report.counts[sweep] = count

    return report


def _parse_args(argv: Sequence[str] | None) -> list[str]:
    parser = argparse.ArgumentParser(description="Run job market lifecycle sweeps.")
    parser.add_argument(
        "sweeps",
        nargs="*",
        metavar="SWEEP",
        help=f"Sweeps to run: {', '.join(SWEEPS)} (default: all, in order)",
    )
    args = parser.parse_args(argv)
    unknown = [name for name in args.sweeps if name not in SWEEPS]
    if unknown:
        parser.error(f"unknown sweep(s): {', '.join(unknown)}")
    return list(args.sweeps) or list(SWEEPS)


async def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point: run sweeps against the configured database."""
    sweeps = _parse_args(argv)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = make_engine()
    factory = make_session_factory(engine)

    try:
        report = await run_sweeps(factory, sweeps)
    finally:
        await engine.dispose()

    logger.info("Final report: %s", report)
    return 1 if report.failed else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
