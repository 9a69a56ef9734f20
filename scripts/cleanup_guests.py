"""Run the guest expiry sweep once. Meant for cron or another external scheduler.

    */15 * * * *  python scripts/cleanup_guests.py
"""
from __future__ import annotations

import argparse

from eduhub.core.config import get_settings
from eduhub.core.logging import configure_logging
from eduhub.db.session import SessionLocal
from eduhub.services.guests import cleanup_expired_guest_sessions


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Delete expired guest sessions and demote expired guests.")
    parser.add_argument("--log-level", default=get_settings().log_level)
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    with SessionLocal() as db:
        result = cleanup_expired_guest_sessions(db)

    print(f"Guest sessions deleted: {result.sessions_deleted}")
    print(f"Guests demoted: {result.guests_demoted}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
