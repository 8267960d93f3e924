import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from errors import ActivationError, ActivationErrorKind
from ledger import activate_license, check_trial, recover_license, store_license
from license_codec import LicenseType, encode
from models import License, Trial

NOW = datetime(2026, 10, 21, 10, 30, tzinfo=timezone.utc)
CODE = encode("buyer@example.com", LicenseType.STANDARD, "ledger-secret", 1760000000)


def test_store_creates_issued_record(db):
    assert store_license(db, CODE, "buyer@example.com", LicenseType.STANDARD) is True
    lic = db.query(License).filter(License.code == CODE).one()
    assert lic.email == "buyer@example.com"
    assert lic.type == "std"
    assert lic.activated_at is None
    assert lic.activated_by_device is None


def test_store_is_idempotent(db):
    assert store_license(db, CODE, "buyer@example.com", "std") is True
    assert store_license(db, CODE, "someone@else.com", "stu") is False
    rows = db.query(License).filter(License.code == CODE).all()
    assert len(rows) == 1
    assert rows[0].email == "buyer@example.com"
    assert rows[0].type == "std"


def test_store_rejects_unknown_type(db):
    with pytest.raises(ValueError):
        store_license(db, CODE, "buyer@example.com", "pro")


def test_activate_unknown_code(db):
    with pytest.raises(ActivationError) as excinfo:
        activate_license(db, "FENCE-missing", "dev-1", NOW)
    assert excinfo.value.kind is ActivationErrorKind.NOT_FOUND


def test_activate_once(db):
    store_license(db, CODE, "buyer@example.com", "std")
    info = activate_license(db, CODE, "dev-1", NOW)
    assert (info.email, info.type) == ("buyer@example.com", "std")

    lic = db.query(License).filter(License.code == CODE).one()
    assert lic.activated_at == NOW
    assert lic.activated_by_device == "dev-1"

    with pytest.raises(ActivationError) as excinfo:
        activate_license(db, CODE, "dev-2", NOW + timedelta(minutes=1))
    assert excinfo.value.kind is ActivationErrorKind.ALREADY_ACTIVATED
    assert excinfo.value.activated_by_device == "dev-1"

    # a retry from the winning device reports the same terminal state
    with pytest.raises(ActivationError) as excinfo:
        activate_license(db, CODE, "dev-1", NOW + timedelta(minutes=2))
    assert excinfo.value.activated_by_device == "dev-1"

    lic = db.query(License).filter(License.code == CODE).one()
    db.refresh(lic)
    assert lic.activated_at == NOW
    assert lic.activated_by_device == "dev-1"


def test_concurrent_activation_has_exactly_one_winner(session_factory):
    with session_factory() as db:
        store_license(db, CODE, "buyer@example.com", "std")

    barrier = threading.Barrier(2)

    def attempt(device_id):
        db = session_factory()
        try:
            barrier.wait()
            try:
                activate_license(db, CODE, device_id, NOW)
                return "ok", device_id
            except ActivationError as exc:
                return exc.kind, exc.activated_by_device
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = list(pool.map(attempt, ["dev-a", "dev-b"]))

    winners = [device for outcome, device in results if outcome == "ok"]
    losers = [(outcome, device) for outcome, device in results if outcome != "ok"]
    assert len(winners) == 1
    assert losers == [(ActivationErrorKind.ALREADY_ACTIVATED, winners[0])]

    with session_factory() as db:
        with pytest.raises(ActivationError) as excinfo:
            activate_license(db, CODE, "dev-c", NOW)
    assert excinfo.value.kind is ActivationErrorKind.ALREADY_ACTIVATED
    assert excinfo.value.activated_by_device == winners[0]


def test_recover_by_device(db):
    store_license(db, CODE, "buyer@example.com", "std")
    assert recover_license(db, "dev-1") is None

    activate_license(db, CODE, "dev-1", NOW)
    info = recover_license(db, "dev-1")
    assert info.code == CODE
    assert info.email == "buyer@example.com"
    assert info.type == "std"
    assert recover_license(db, "dev-2") is None


def test_check_trial_creates_then_returns_stored(db):
    first = check_trial(db, "dev-1", NOW)
    assert first.is_new is True
    assert first.expires_at == datetime(2026, 11, 8, 23, 59, 59, 999000, tzinfo=timezone.utc)
    assert first.days_remaining == 18

    later = NOW + timedelta(days=5)
    second = check_trial(db, "dev-1", later)
    assert second.is_new is False
    assert second.expires_at == first.expires_at
    assert second.days_remaining == 13

    assert db.query(Trial).count() == 1


def test_check_trial_never_recomputes(db):
    first = check_trial(db, "dev-1", NOW)
    # a later first-time computation would land on a different Sunday
    second = check_trial(db, "dev-1", NOW + timedelta(days=10))
    assert second.expires_at == first.expires_at


def test_expired_trial_reports_zero_days(db):
    check_trial(db, "dev-1", NOW)
    status = check_trial(db, "dev-1", NOW + timedelta(days=40))
    assert status.days_remaining == 0
    assert status.is_new is False


def test_concurrent_first_trial_checks_agree(session_factory):
    barrier = threading.Barrier(4)

    def attempt(offset):
        db = session_factory()
        try:
            barrier.wait()
            return check_trial(db, "dev-race", NOW + timedelta(seconds=offset))
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(attempt, range(4)))

    assert len({r.expires_at for r in results}) == 1
    assert sum(r.is_new for r in results) == 1

    with session_factory() as db:
        assert db.query(Trial).filter(Trial.device_id == "dev-race").count() == 1
