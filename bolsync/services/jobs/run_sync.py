"""
CLI Entry Point for scheduled bol.com syncs
Called by cron, runs the pass in-process (no worker needed)

    python -m bolsync.services.jobs.run_sync main       # 0 2 * * *
    python -m bolsync.services.jobs.run_sync complete   # */5 * * * *
    python -m bolsync.services.jobs.run_sync extended   # 0 */6 * * *
"""
import sys
import logging

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

USAGE = "Usage: python -m bolsync.services.jobs.run_sync <main|complete|extended>"


def main():
    from bolsync.models.schemas.sync import SyncType
    from bolsync.services.jobs.tasks import run_sync_blocking

    if len(sys.argv) != 2 or sys.argv[1] not in {t.value for t in SyncType}:
        print(USAGE, file=sys.stderr)
        sys.exit(2)

    sync_type = SyncType(sys.argv[1])
    logger.info(f"⏰ bol.com {sync_type.value} sync cron job started")

    try:
        run_sync_blocking(sync_type)
        logger.info(f"✅ bol.com {sync_type.value} sync cron job completed")
        sys.exit(0)

    except Exception as e:
        logger.error(f"❌ bol.com {sync_type.value} sync cron job failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
