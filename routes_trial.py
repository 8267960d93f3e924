from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config import Settings, get_settings
from database import get_db
from deps import get_now, to_iso
from errors import ApiError
from ledger import check_trial

router = APIRouter(prefix="/api/trial", tags=["trial"])


class TrialCheckRequest(BaseModel):
    deviceId: Optional[str] = None


@router.post("/check")
def trial_check(
    body: TrialCheckRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_now),
):
    """
    Register the trial for a device on first sight; afterwards return the
    stored deadline unchanged.
    """
    if not body.deviceId:
        raise ApiError(400, "missing_device_id", "Device ID is required")

    local_now = now.astimezone(ZoneInfo(settings.trial_timezone))
    status = check_trial(db, body.deviceId, local_now)

    return {
        "success": True,
        "daysRemaining": status.days_remaining,
        "expiresAt": to_iso(status.expires_at),
        "isNew": status.is_new,
    }
