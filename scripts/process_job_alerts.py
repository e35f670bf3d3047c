"""Run one job alert pass from cron or a scheduler.

Notifications are posted to the API's /notifications/send endpoint with the
service token, so the API must be reachable at PUBLIC_BASE_URL.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path


def _bootstrap_import_path() -> None:
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


_bootstrap_import_path()

from jobboard.config import settings  # noqa: E402
from jobboard.database import SessionLocal  # noqa: E402
from jobboard import models  # noqa: F401,E402
from jobboard.services.alert_matcher import process_job_alerts  # noqa: E402
from jobboard.services.notification_dispatcher import HttpNotificationDispatcher  # noqa: E402


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Match active job alerts against recently published jobs.")
    parser.add_argument(
        "--window-hours",
        type=int,
        default=settings.alert_window_hours,
        help="Only jobs published within this many hours are considered.",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    dispatcher = HttpNotificationDispatcher.from_settings(settings)
    with SessionLocal() as db:
        result = asyncio.run(process_job_alerts(db, dispatcher, window_hours=args.window_hours))

    print(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
