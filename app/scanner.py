"""Scanner CLI: one decoded barcode per line on stdin (keyboard-wedge scanner or a decoder pipe)."""

import argparse
import sys

from app.services.factory import build_cart_store, build_partition_store
from app.services.notification_service import NotificationService
from app.services.scan_service import ScanSession


def run(lines, session: ScanSession, out=sys.stdout) -> int:
    """Feeds lines into the session, returns the number of failed scans."""
    failures = 0
    for line in lines:
        text = line.strip()
        if not text:
            continue
        outcome = session.on_decoded(text)
        if outcome is None:
            break
        if outcome.status == "error":
            failures += 1
            print(f"ERROR {outcome.kind}: {outcome.message}", file=out)
        else:
            print(f"OK {outcome.message}", file=out)
    return failures


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Scan Cart - feed decoded barcodes into the shared cart"
    )
    parser.add_argument(
        "--storage",
        choices=["memory", "sql", "redis"],
        default=None,
        help="Storage backend (default: STORAGE_BACKEND from env)",
    )
    parser.add_argument(
        "--no-async-notifications",
        action="store_true",
        help="Do not hand outcomes to the Celery worker",
    )

    args = parser.parse_args()

    store = build_cart_store(store=build_partition_store(args.storage))
    notifier = NotificationService(dispatch_async=not args.no_async_notifications)
    session = ScanSession(store, notifier)

    try:
        run(sys.stdin, session)
    except KeyboardInterrupt:
        pass
    finally:
        session.close()
        store.repo.store.close()


if __name__ == "__main__":
    main()
