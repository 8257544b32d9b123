"""
Studio Split - Refunds Router
Cancellation policy lookups
"""
from fastapi import APIRouter

from app.services.refund_calculator import get_cancellation_policy, get_policy_summary

router = APIRouter(prefix="/refunds", tags=["refunds"])


@router.get("/policy/{tier}")
async def get_policy(tier: str):
    """
    Cancellation policy for a creator tier (unknown tiers get the standard policy).
    """
    policy = get_cancellation_policy(tier)
    return {
        "policy": policy.model_dump(),
        "summary": get_policy_summary(policy.id)
    }
