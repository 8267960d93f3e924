"""
Activation ledger: license records and per-device trials.

Every transition that mutates shared state is decided by the database
(unique constraints and a conditional UPDATE), never by in-process locks,
so the guarantees hold across independent server instances.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from errors import ActivationError, ActivationErrorKind
from license_codec import LicenseType
from logger import get_logger
from models import License, Trial
from trial_clock import TRIAL_EXTRA_DAYS, compute_trial_deadline, days_remaining

log = get_logger("ledger")


@dataclass(frozen=True)
class LicenseInfo:
    code: str
    email: str
    type: str


@dataclass(frozen=True)
class TrialStatus:
    expires_at: datetime
    days_remaining: int
    is_new: bool


def _info(lic: License) -> LicenseInfo:
    return LicenseInfo(code=lic.code, email=lic.email, type=lic.type)


# =====================================================
#  LICENSES
# =====================================================

def store_license(db: Session, code: str, email: str, license_type: Union[LicenseType, str]) -> bool:
    """
    Create an issued, not yet activated record. Returns False when the code
    already exists; the existing record is left untouched.
    """
    if db.query(License.id).filter(License.code == code).first():
        return False

    lic = License(code=code, email=email, type=LicenseType(license_type).value)
    db.add(lic)
    try:
        db.commit()
    except IntegrityError:
        # another writer stored the same code first
        db.rollback()
        return False
    return True


def activate_license(db: Session, code: str, device_id: str, now: datetime) -> LicenseInfo:
    updated = (
        db.query(License)
        .filter(License.code == code, License.activated_at.is_(None))
        .update(
            {License.activated_at: now, License.activated_by_device: device_id},
            synchronize_session=False,
        )
    )
    db.commit()

    lic = db.query(License).filter(License.code == code).first()
    if lic is None:
        raise ActivationError(ActivationErrorKind.NOT_FOUND)

    if updated != 1:
        raise ActivationError(
            ActivationErrorKind.ALREADY_ACTIVATED,
            activated_by_device=lic.activated_by_device,
        )

    log.info("License activated for %s on device %s", lic.email, device_id)
    return _info(lic)


def recover_license(db: Session, device_id: str) -> Optional[LicenseInfo]:
    lic = (
        db.query(License)
        .filter(License.activated_by_device == device_id)
        .order_by(License.activated_at.desc())
        .first()
    )
    if lic is None:
        return None
    return _info(lic)


# =====================================================
#  TRIALS
# =====================================================

def _existing_trial(db: Session, device_id: str, now: datetime) -> Optional[TrialStatus]:
    trial = db.query(Trial).filter(Trial.device_id == device_id).first()
    if trial is None:
        return None
    return TrialStatus(
        expires_at=trial.expires_at,
        days_remaining=days_remaining(trial.expires_at, now),
        is_new=False,
    )


def check_trial(db: Session, device_id: str, now: datetime, extra_days: int = TRIAL_EXTRA_DAYS) -> TrialStatus:
    """
    Return the trial for device_id, creating it on first sight.
    The stored deadline is never recomputed.
    """
    status = _existing_trial(db, device_id, now)
    if status is not None:
        return status

    expires_at = compute_trial_deadline(now, extra_days)
    db.add(Trial(device_id=device_id, expires_at=expires_at))
    try:
        db.commit()
    except IntegrityError:
        # concurrent first check from the same device won the insert
        db.rollback()
        status = _existing_trial(db, device_id, now)
        if status is None:
            raise
        return status

    log.info("Trial started for device %s, expires %s", device_id, expires_at.isoformat())
    # read back so every caller sees the value exactly as persisted
    status = _existing_trial(db, device_id, now)
    return TrialStatus(expires_at=status.expires_at, days_remaining=status.days_remaining, is_new=True)
