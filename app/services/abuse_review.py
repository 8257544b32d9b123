"""
Studio Split - Abuse Review Service
Admin handling of the abuse review queue
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.models import AbuseFlagRecord, AppUser, AuditLog

logger = logging.getLogger(__name__)


class AbuseReviewService:
    """Lists, resolves and unfreezes flagged accounts."""

    def __init__(self, db: Session):
        self.db = db

    def list_flag_records(self, status: Optional[str] = "pending_review", user_id: Optional[str] = None) -> List[AbuseFlagRecord]:
        query = self.db.query(AbuseFlagRecord)
        if status:
            query = query.filter(AbuseFlagRecord.status == status)
        if user_id:
            query = query.filter(AbuseFlagRecord.user_id == user_id)
        return query.order_by(AbuseFlagRecord.created_at.desc()).all()

    def resolve(
        self,
        record: AbuseFlagRecord,
        reviewer_id: str,
        resolution: str,
        unfreeze: bool = False,
        now: Optional[datetime] = None
    ) -> AbuseFlagRecord:
        """Close a review queue entry, optionally lifting the account freeze."""
        if record.status != "pending_review":
            raise ValueError("This flag record has already been reviewed")

        record.status = "resolved"
        record.reviewed_by = reviewer_id
        record.reviewed_at = now or datetime.utcnow()
        record.resolution = resolution

        self.db.add(AuditLog(
            actor_user_id=reviewer_id,
            action="abuse_flags_resolved",
            target=record.user_id,
            meta={"record_id": record.id, "resolution": resolution},
        ))

        if unfreeze:
            user = self.db.get(AppUser, record.user_id)
            if user is not None:
                self._unfreeze(user, reviewer_id)

        self.db.commit()
        self.db.refresh(record)
        logger.info(f"Abuse record {record.id} resolved by {reviewer_id}")
        return record

    def unfreeze_user(self, user: AppUser, reviewer_id: str) -> AppUser:
        if not user.tier_frozen:
            raise ValueError("Account is not frozen")
        self._unfreeze(user, reviewer_id)
        self.db.commit()
        self.db.refresh(user)
        return user

    def _unfreeze(self, user: AppUser, reviewer_id: str) -> None:
        if not user.tier_frozen:
            return
        self.db.add(AuditLog(
            actor_user_id=reviewer_id,
            action="account_unfrozen",
            target=user.id,
            meta={"previous_reason": user.freeze_reason},
        ))
        user.tier_frozen = False
        user.freeze_reason = None
        user.frozen_at = None
        logger.info(f"User {user.id} unfrozen by {reviewer_id}")
