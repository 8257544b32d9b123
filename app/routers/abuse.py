"""
Studio Split - Abuse Moderation Router
Admin endpoints for abuse scans and the review queue
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.deps.auth import require_admin
from app.deps.services import get_abuse_scanner
from app.models.models import AbuseFlagRecord, AppUser
from app.schemas.abuse import AbuseFlagRecordResponse, ResolveRequest, ScanRequest, ScanResult
from app.schemas.user import UserResponse
from app.services.abuse_detection import AbuseScanError, AbuseScanner
from app.services.abuse_review import AbuseReviewService

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)


@router.post("/abuse/scan", response_model=ScanResult)
async def scan_user(
    body: ScanRequest,
    admin: AppUser = Depends(require_admin),
    scanner: AbuseScanner = Depends(get_abuse_scanner)
):
    """
    Run abuse detection for one user.

    Flags are queued for review; any high-severity flag freezes the account.
    """
    try:
        return scanner.scan_user(body.user_id, body.trigger_type)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except AbuseScanError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to detect abuse patterns"
        )


@router.get("/abuse/flags", response_model=List[AbuseFlagRecordResponse])
async def list_flag_records(
    status_filter: Optional[str] = "pending_review",
    user_id: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: AppUser = Depends(require_admin)
):
    """
    List review queue entries, pending ones by default.
    """
    return AbuseReviewService(db).list_flag_records(status=status_filter, user_id=user_id)


@router.post("/abuse/flags/{record_id}/resolve", response_model=AbuseFlagRecordResponse)
async def resolve_flag_record(
    record_id: str,
    body: ResolveRequest,
    db: Session = Depends(get_db),
    admin: AppUser = Depends(require_admin)
):
    """
    Resolve a review queue entry, optionally unfreezing the account.
    """
    record = db.get(AbuseFlagRecord, record_id)
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Flag record not found"
        )

    try:
        return AbuseReviewService(db).resolve(record, admin.id, body.resolution, unfreeze=body.unfreeze)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.post("/users/{user_id}/unfreeze", response_model=UserResponse)
async def unfreeze_user(
    user_id: str,
    db: Session = Depends(get_db),
    admin: AppUser = Depends(require_admin)
):
    """
    Lift an account freeze.
    """
    user = db.get(AppUser, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    try:
        return AbuseReviewService(db).unfreeze_user(user, admin.id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
