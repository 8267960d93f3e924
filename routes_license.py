import hmac
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config import Settings, get_settings
from database import get_db
from deps import get_now
from errors import CATEGORY_STATUS, ActivationError, ActivationErrorKind, ApiError
from ledger import activate_license, recover_license, store_license
from license_codec import LicenseType
from logger import get_logger

router = APIRouter(prefix="/api", tags=["license"])

log = get_logger("routes.license")


class ActivateRequest(BaseModel):
    licenseCode: Optional[str] = None
    deviceId: Optional[str] = None


class StoreRequest(BaseModel):
    code: Optional[str] = None
    email: Optional[str] = None
    type: Optional[str] = None
    webhookSecret: Optional[str] = None


def activation_error_response(exc: ActivationError, device_id: str) -> ApiError:
    status = CATEGORY_STATUS[exc.category]
    if exc.kind is ActivationErrorKind.NOT_FOUND:
        return ApiError(status, "invalid_key", "License key not found")
    if exc.kind is ActivationErrorKind.ALREADY_ACTIVATED:
        return ApiError(
            status,
            "already_activated",
            "This license key has already been activated",
            activatedByThisDevice=exc.activated_by_device == device_id,
        )
    raise ValueError(f"unhandled activation error {exc.kind}")


@router.post("/activate")
def activate(
    body: ActivateRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Bind a license code to a device, once."""
    if not body.licenseCode or not body.deviceId:
        raise ApiError(400, "missing_params", "License code and device ID are required")

    try:
        info = activate_license(db, body.licenseCode, body.deviceId, now)
    except ActivationError as exc:
        log.info("Activation refused (%s) for device %s", exc.kind.value, body.deviceId)
        raise activation_error_response(exc, body.deviceId)

    return {"success": True, "email": info.email, "type": info.type}


@router.get("/license/recover")
def recover(deviceId: Optional[str] = None, db: Session = Depends(get_db)):
    if not deviceId:
        raise ApiError(400, "missing_device_id", "Device ID is required")

    info = recover_license(db, deviceId)
    if info is None:
        raise ApiError(404, "no_license", "No license activated on this device")

    return {"success": True, "code": info.code, "email": info.email, "type": info.type}


@router.post("/license/store")
def store(
    body: StoreRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Record a freshly minted code. Trusted issuers only."""
    expected = settings.license_webhook_secret
    provided = body.webhookSecret or ""
    if not expected or not hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8")):
        log.warning("Unauthorized license store attempt")
        raise ApiError(401, "unauthorized")

    if not body.code or not body.email or not body.type:
        raise ApiError(400, "missing_params")

    try:
        license_type = LicenseType(body.type)
    except ValueError:
        raise ApiError(400, "invalid_type", "License type must be 'std' or 'stu'")

    created = store_license(db, body.code, body.email, license_type)
    if not created:
        log.info("License store ignored, code already present")

    return {"success": True}
