"""
Studio Split - Abuse Detection Service
Heuristic abuse scanning of provider accounts

A scan runs five independent checks against one user's recent history.
Each check isolates its own failures: an exception inside a check is logged
and counts as "no flags", so the remaining checks still run. Any flag puts
the user in the review queue; any high-severity flag also freezes the
account straight away.
"""
import logging
import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from pydantic import BaseModel
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.models.models import AbuseFlagRecord, AppUser, AuditLog, Booking, Review
from app.schemas.abuse import AbuseFlag, AbuseFlagType, ScanResult, Severity
from app.services.notify import NotificationService

logger = logging.getLogger(__name__)

FREEZE_REASON = "Automated abuse detection - high severity flags"

Clock = Callable[[], datetime]


class AbuseScanError(Exception):
    """A scan failed outside the individual checks."""


class AbuseThresholds(BaseModel):
    """Limits the checks compare against."""
    max_same_client_bookings: int = 5
    same_client_window_days: int = 30
    max_refund_rate: float = 0.3
    high_refund_rate: float = 0.5
    min_refund_sample: int = 10
    refund_window_days: int = 90
    min_time_between_bookings: timedelta = timedelta(hours=2)
    max_bookings_per_day: int = 10
    suspicious_review_pattern: int = 5
    reviews_inspected: int = 10
    new_account_age: timedelta = timedelta(days=7)
    new_account_share: float = 0.7
    high_activity_bookings: int = 10
    young_account_days: int = 30

    @classmethod
    def from_settings(cls, settings: Settings) -> "AbuseThresholds":
        return cls(
            max_same_client_bookings=settings.abuse_max_same_client_bookings,
            max_refund_rate=settings.abuse_max_refund_rate,
            min_refund_sample=settings.abuse_min_refund_sample,
            min_time_between_bookings=timedelta(hours=settings.abuse_min_hours_between_bookings),
            max_bookings_per_day=settings.abuse_max_bookings_per_day,
            suspicious_review_pattern=settings.abuse_suspicious_review_streak,
        )


class AbuseDataSource:
    """Read/write queries an abuse scan needs, over one session."""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: str) -> Optional[AppUser]:
        return self.db.get(AppUser, user_id)

    def bookings_for_provider(
        self,
        provider_id: str,
        since: datetime,
        statuses: Optional[List[str]] = None
    ) -> List[Booking]:
        """Bookings created since a point in time, newest first."""
        query = self.db.query(Booking).filter(
            Booking.provider_id == provider_id,
            Booking.created_at >= since
        )
        if statuses:
            query = query.filter(Booking.status.in_(statuses))
        return query.order_by(Booking.created_at.desc()).all()

    def recent_visible_reviews(self, target_id: str, limit: int) -> List[Review]:
        return self.db.query(Review).filter(
            Review.target_id == target_id,
            Review.visible.is_(True)
        ).order_by(Review.created_at.desc()).limit(limit).all()

    def record_flags(self, user_id: str, flags: List[AbuseFlag], trigger_type: str) -> AbuseFlagRecord:
        record = AbuseFlagRecord(
            user_id=user_id,
            flags=[flag.model_dump(mode="json") for flag in flags],
            trigger_type=trigger_type,
            status="pending_review",
            reviewed_at=None,
            reviewed_by=None,
            resolution=None,
        )
        self.db.add(record)
        return record

    def freeze_user(self, user_id: str, reason: str, frozen_at: datetime) -> bool:
        """
        Freeze an account unless it is already frozen.

        Returns:
            True if this call froze the account
        """
        result = self.db.execute(
            update(AppUser)
            .where(AppUser.id == user_id, AppUser.tier_frozen.isnot(True))
            .values(tier_frozen=True, freeze_reason=reason, frozen_at=frozen_at)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount > 0


class AbuseScanner:
    """Runs the abuse checks for one user and applies the escalation policy."""

    def __init__(
        self,
        db: Session,
        thresholds: Optional[AbuseThresholds] = None,
        clock: Optional[Clock] = None,
        source: Optional[AbuseDataSource] = None,
        notifications: Optional[NotificationService] = None
    ):
        self.db = db
        self.thresholds = thresholds or AbuseThresholds.from_settings(get_settings())
        self.clock = clock or datetime.utcnow
        self.source = source or AbuseDataSource(db)
        self.notifications = notifications

    def scan_user(self, user_id: str, trigger_type: str = "manual") -> ScanResult:
        """
        Scan one user, queue any flags for review and freeze on high severity.

        Args:
            user_id: Account to scan
            trigger_type: 'manual' or a scheduled trigger id

        Returns:
            ScanResult

        Raises:
            ValueError: If user_id is empty
            AbuseScanError: If loading the user or persisting the outcome fails;
                nothing is saved
        """
        if not user_id:
            raise ValueError("userId is required")

        logger.info(f"Running abuse detection for user {user_id} (trigger: {trigger_type})")

        try:
            flags = self.analyze_user(user_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error loading user {user_id} for abuse scan: {e}")
            raise AbuseScanError("Failed to detect abuse patterns") from e

        should_freeze = any(flag.severity == Severity.HIGH for flag in flags)
        newly_frozen = False

        if flags:
            try:
                self.source.record_flags(user_id, flags, trigger_type)
                if should_freeze:
                    newly_frozen = self.source.freeze_user(user_id, FREEZE_REASON, self.clock())
                    if newly_frozen:
                        self.db.add(AuditLog(
                            action="account_frozen",
                            target=user_id,
                            meta={"reason": FREEZE_REASON, "trigger_type": trigger_type},
                        ))
                # Review record and freeze land together or not at all
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Error saving abuse scan for {user_id}: {e}")
                raise AbuseScanError("Failed to detect abuse patterns") from e

            logger.info(f"User {user_id} flagged for review with {len(flags)} flags")
            if newly_frozen:
                logger.warning(f"User {user_id} account frozen: {FREEZE_REASON}")
                if self.notifications:
                    self.notifications.notify_account_frozen(self.db, user_id, FREEZE_REASON)

        return ScanResult(
            success=True,
            flags=flags,
            actions_required=bool(flags),
            account_frozen=should_freeze,
            newly_frozen=newly_frozen,
        )

    def analyze_user(self, user_id: str) -> List[AbuseFlag]:
        """Run every check and concatenate the flags in check order."""
        user = self.source.get_user(user_id)
        if user is None:
            logger.info(f"Abuse analysis skipped: user {user_id} not found")
            return []

        now = self.clock()
        flags: List[AbuseFlag] = []
        flags += self._run_check("same client abuse", self.check_same_client_abuse, user_id, now)
        flags += self._run_check("refund farming", self.check_refund_farming, user_id, now)
        flags += self._run_check("booking velocity", self.check_booking_velocity_abuse, user_id, now)
        flags += self._run_check("review patterns", self.check_suspicious_review_pattern, user_id, now)
        flags += self._run_check("fake account patterns", self.check_fake_account_pattern, user, now)

        logger.info(f"Abuse analysis for {user_id}: {len(flags)} flags detected")
        return flags

    def _run_check(self, name: str, check, *args) -> List[AbuseFlag]:
        try:
            return check(*args)
        except Exception as e:
            if isinstance(e, SQLAlchemyError):
                self.db.rollback()
            logger.error(f"Error checking {name}: {e}", exc_info=True)
            return []

    def check_same_client_abuse(self, user_id: str, now: datetime) -> List[AbuseFlag]:
        """Too many completed/confirmed bookings from one client in 30 days."""
        limit = self.thresholds.max_same_client_bookings
        since = now - timedelta(days=self.thresholds.same_client_window_days)

        bookings = self.source.bookings_for_provider(user_id, since, statuses=["completed", "confirmed"])
        client_counts = Counter(
            booking.client_id
            for booking in sorted(bookings, key=lambda b: b.created_at)
            if booking.client_id
        )

        flags = []
        for client_id, count in client_counts.items():
            if count > limit:
                flags.append(AbuseFlag(
                    type=AbuseFlagType.SAME_CLIENT_ABUSE,
                    severity=Severity.HIGH if count > limit * 2 else Severity.MEDIUM,
                    description=f"{count} bookings from same client ({client_id}) in {self.thresholds.same_client_window_days} days",
                    metadata={"client_id": client_id, "count": count, "threshold": limit},
                ))
        return flags

    def check_refund_farming(self, user_id: str, now: datetime) -> List[AbuseFlag]:
        """Share of cancelled-and-refunded bookings over 90 days."""
        since = now - timedelta(days=self.thresholds.refund_window_days)
        bookings = self.source.bookings_for_provider(user_id, since)

        total_bookings = len(bookings)
        if total_bookings < self.thresholds.min_refund_sample:
            return []

        refunded_bookings = sum(
            1 for booking in bookings
            if booking.status == "cancelled" and booking.refunded
        )
        refund_rate = refunded_bookings / total_bookings
        if refund_rate <= self.thresholds.max_refund_rate:
            return []

        return [AbuseFlag(
            type=AbuseFlagType.REFUND_FARMING,
            severity=Severity.HIGH if refund_rate > self.thresholds.high_refund_rate else Severity.MEDIUM,
            description=f"High refund rate: {refund_rate * 100:.1f}% ({refunded_bookings}/{total_bookings})",
            metadata={
                "refund_rate": refund_rate,
                "refunded_bookings": refunded_bookings,
                "total_bookings": total_bookings,
            },
        )]

    def check_booking_velocity_abuse(self, user_id: str, now: datetime) -> List[AbuseFlag]:
        """
        Daily booking cap, plus minimum spacing between consecutive bookings.

        Only the first pair closer than the minimum spacing is reported.
        """
        bookings = self.source.bookings_for_provider(user_id, now - timedelta(days=1))
        bookings = sorted(bookings, key=lambda b: b.created_at, reverse=True)
        limit = self.thresholds.max_bookings_per_day
        min_gap = self.thresholds.min_time_between_bookings

        flags = []
        if len(bookings) > limit:
            flags.append(AbuseFlag(
                type=AbuseFlagType.VELOCITY_ABUSE,
                severity=Severity.MEDIUM,
                description=f"{len(bookings)} bookings in 24 hours (limit: {limit})",
                metadata={"bookings_in_24h": len(bookings), "limit": limit},
            ))

        for newer, older in zip(bookings, bookings[1:]):
            gap = newer.created_at - older.created_at
            if gap < min_gap:
                flags.append(AbuseFlag(
                    type=AbuseFlagType.VELOCITY_ABUSE,
                    severity=Severity.LOW,
                    description=f"Bookings created {round(gap.total_seconds() / 60)} minutes apart",
                    metadata={
                        "time_diff_seconds": gap.total_seconds(),
                        "min_required_seconds": min_gap.total_seconds(),
                    },
                ))
                break

        return flags

    def check_suspicious_review_pattern(self, user_id: str, now: datetime) -> List[AbuseFlag]:
        """
        Unbroken run of recent 5-star reviews, mostly from brand-new accounts.

        The walk stops at the first review that is not 5 stars.
        """
        reviews = self.source.recent_visible_reviews(user_id, self.thresholds.reviews_inspected)

        consecutive_perfect = 0
        new_client_perfect = 0
        for review in reviews:
            if review.rating != 5:
                break
            consecutive_perfect += 1

            author = self.source.get_user(review.author_id)
            if author is not None and author.created_at is not None:
                if now - author.created_at < self.thresholds.new_account_age:
                    new_client_perfect += 1

        if consecutive_perfect < self.thresholds.suspicious_review_pattern:
            return []
        if new_client_perfect < math.floor(consecutive_perfect * self.thresholds.new_account_share):
            return []

        return [AbuseFlag(
            type=AbuseFlagType.SUSPICIOUS_REVIEWS,
            severity=Severity.MEDIUM,
            description=f"{consecutive_perfect} consecutive 5-star reviews, {new_client_perfect} from new accounts",
            metadata={
                "consecutive_perfect": consecutive_perfect,
                "new_client_perfect": new_client_perfect,
            },
        )]

    def check_fake_account_pattern(self, user: AppUser, now: datetime) -> List[AbuseFlag]:
        """High activity on an empty profile, and high activity on a young account."""
        completed = user.completed_bookings or 0
        if completed <= self.thresholds.high_activity_bookings:
            return []

        flags = []
        if not user.bio and not user.media:
            flags.append(AbuseFlag(
                type=AbuseFlagType.FAKE_ACCOUNT_PATTERN,
                severity=Severity.LOW,
                description="High booking activity with minimal profile information",
                metadata={"completed_bookings": completed},
            ))

        created_at = user.created_at or now
        account_age_days = (now - created_at).total_seconds() / 86400
        if account_age_days < self.thresholds.young_account_days:
            flags.append(AbuseFlag(
                type=AbuseFlagType.FAKE_ACCOUNT_PATTERN,
                severity=Severity.LOW,
                description=f"Very new account ({round(account_age_days)} days) with high activity",
                metadata={"account_age_days": account_age_days, "completed_bookings": completed},
            ))

        return flags
