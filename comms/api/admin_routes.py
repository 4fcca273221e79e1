"""COMMS — Admin API Routes."""

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from comms.config import settings
from comms.database import get_session
from comms.storage.seed import seed_test_data
from comms.core.logging import get_logger

logger = get_logger("api.admin")

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/seed")
async def seed(session: Session = Depends(get_session)):
    """Add demo social metrics for platform/business-unit pairs without data."""
    if not settings.allow_seed:
        raise HTTPException(status_code=403, detail="Seeding is disabled")
    try:
        added = seed_test_data(session)
    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        raise HTTPException(status_code=500, detail=f"Seeding failed: {str(e)}")
    return {"status": "success", "count": len(added), "results": added}
