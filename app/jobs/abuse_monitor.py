"""
Studio Split - Scheduled Abuse Monitor
Periodic abuse scan of recently active providers
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import SessionLocal
from app.models.models import Booking
from app.services.abuse_detection import AbuseScanError, AbuseScanner, AbuseThresholds
from app.services.notify import notification_service

logger = logging.getLogger(__name__)

ACTIVITY_WINDOW = timedelta(hours=24)


def run_scheduled_abuse_scan(
    session_factory: Callable[[], Session] = SessionLocal,
    clock: Callable[[], datetime] = datetime.utcnow
) -> Dict[str, int]:
    """
    Scan every provider with bookings created in the last 24 hours.

    Each user gets its own session; a failed scan is logged and the batch
    moves on.

    Returns:
        Counts of users scanned, flagged, frozen and failed
    """
    run_id = uuid.uuid4().hex[:12]
    trigger_type = f"scheduled:{run_id}"
    thresholds = AbuseThresholds.from_settings(get_settings())
    since = clock() - ACTIVITY_WINDOW

    db = session_factory()
    try:
        provider_ids = [
            row[0] for row in db.query(Booking.provider_id)
            .filter(Booking.created_at >= since)
            .distinct()
            .all()
        ]
    finally:
        db.close()

    summary = {"scanned": 0, "flagged": 0, "frozen": 0, "failed": 0}
    logger.info(f"Abuse monitor {run_id}: scanning {len(provider_ids)} providers")

    for provider_id in provider_ids:
        db = session_factory()
        try:
            scanner = AbuseScanner(db, thresholds=thresholds, clock=clock, notifications=notification_service)
            result = scanner.scan_user(provider_id, trigger_type)
            summary["scanned"] += 1
            if result.actions_required:
                summary["flagged"] += 1
            if result.newly_frozen:
                summary["frozen"] += 1
        except (AbuseScanError, ValueError) as e:
            summary["failed"] += 1
            logger.error(f"Abuse monitor {run_id}: scan of {provider_id} failed: {e}")
        except Exception:
            summary["failed"] += 1
            logger.exception(f"Abuse monitor {run_id}: unexpected error scanning {provider_id}")
        finally:
            db.close()

    logger.info(f"Abuse monitor {run_id} finished: {summary}")
    return summary


def create_scheduler(interval_minutes: Optional[int] = None) -> AsyncIOScheduler:
    """Build the scheduler running the abuse monitor on an interval."""
    interval_minutes = interval_minutes or get_settings().abuse_scan_interval_minutes

    scheduler = AsyncIOScheduler(
        job_defaults={
            "coalesce": True,  # collapse missed runs into one
            "max_instances": 1,
            "misfire_grace_time": 300
        },
        timezone="UTC"
    )
    scheduler.add_job(
        run_scheduled_abuse_scan,
        trigger=IntervalTrigger(minutes=interval_minutes),
        id="abuse_monitor",
        name="Abuse Monitor",
        replace_existing=True,
    )
    return scheduler
