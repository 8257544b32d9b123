"""
Studio Split - Abuse Detection Schemas
Abuse flags, scan requests/results and the review queue
"""
from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


class AbuseFlagType(str, Enum):
    SAME_CLIENT_ABUSE = "same_client_abuse"
    REFUND_FARMING = "refund_farming"
    VELOCITY_ABUSE = "velocity_abuse"
    SUSPICIOUS_REVIEWS = "suspicious_reviews"
    FAKE_ACCOUNT_PATTERN = "fake_account_pattern"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AbuseFlag(BaseModel):
    """Evidence that an account may be violating platform policy."""
    type: AbuseFlagType
    severity: Severity
    description: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ScanRequest(BaseModel):
    """Schema for a manual abuse scan."""
    user_id: str = ""
    trigger_type: str = "manual"


class ScanResult(BaseModel):
    """Outcome of one abuse scan."""
    success: bool
    flags: List[AbuseFlag]
    actions_required: bool
    account_frozen: bool = False
    newly_frozen: bool = False  # frozen by this scan


class AbuseFlagRecordResponse(BaseModel):
    """Schema for a review queue entry."""
    id: str
    user_id: str
    flags: List[AbuseFlag]
    trigger_type: str
    status: str
    created_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    resolution: Optional[str] = None

    class Config:
        from_attributes = True


class ResolveRequest(BaseModel):
    """Schema for resolving a review queue entry."""
    resolution: str = Field(..., min_length=1, max_length=2000)
    unfreeze: bool = False
