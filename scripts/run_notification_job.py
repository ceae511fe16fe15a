"""Run one of the scheduled notification jobs on demand."""

from __future__ import annotations

import argparse
import logging

from sqlalchemy.exc import SQLAlchemyError

from app.application.jobs import reap_expired_notifications, send_digests
from app.domain.entities import DigestFrequency
from app.infrastructure.database import SessionLocal, initialize_database

JOBS = ("reaper", "daily-digest", "weekly-digest")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run a notification batch job once, outside the scheduler.",
    )
    parser.add_argument("job", choices=JOBS, help="Job to run")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level instead of INFO",
    )
    return parser.parse_args()


def main() -> None:
    """Run the selected job and print what it did."""

    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    initialize_database()

    session = SessionLocal()
    try:
        if args.job == "reaper":
            deleted = reap_expired_notifications(session)
            print(f"Expired notifications deleted: {deleted}")
            return

        frequency = DigestFrequency.DAILY if args.job == "daily-digest" else DigestFrequency.WEEKLY
        summary = send_digests(session, frequency)
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Database error while running {args.job}: {exc}") from exc
    finally:
        session.close()

    print(
        f"{frequency.value.capitalize()} digests:\n"
        f"  Users considered: {summary.users_considered}\n"
        f"  Digests sent: {summary.digests_sent}\n"
        f"  Notifications included: {summary.notifications_included}\n"
        f"  Failures: {summary.failures}"
    )


if __name__ == "__main__":
    main()
