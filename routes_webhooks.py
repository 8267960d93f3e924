# routes_webhooks.py - Stripe payments -> license issuance
import json
import time

from fastapi import APIRouter, Request, Depends
from sqlalchemy.orm import Session

from config import Settings, get_settings
from database import get_db
from errors import ApiError, WebhookAuthError
from ledger import store_license
from license_codec import encode
from logger import get_logger
from webhook_auth import PURCHASE_COMPLETED, license_type_for_amount, verify_event

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

log = get_logger("routes.webhooks")


def get_epoch_seconds() -> int:
    return int(time.time())


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _invalid_payload(message: str) -> ApiError:
    return ApiError(400, "invalid_payload", message)


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    now: int = Depends(get_epoch_seconds),
):
    """
    Stripe webhook
    Handled events:
      - checkout.session.completed -> new license
    Everything else is only acknowledged.
    """
    raw = await request.body()
    signature = request.headers.get("Stripe-Signature")

    if not signature:
        log.warning("Stripe webhook without signature header")
        raise ApiError(400, "missing_signature", "Missing signature")

    try:
        verify_event(raw, signature, settings.stripe_webhook_secret, now, settings.webhook_tolerance_seconds)
    except WebhookAuthError as exc:
        log.warning("Rejected Stripe webhook: %s", exc)
        raise ApiError(400, exc.kind.value, "Invalid signature")

    try:
        event = json.loads(raw.decode("utf-8"))
    except ValueError:
        raise _invalid_payload("Event body is not JSON")

    if not isinstance(event, dict) or event.get("type") != PURCHASE_COMPLETED:
        return {"received": True}

    data = event.get("data")
    session = data.get("object") if isinstance(data, dict) else None
    if not isinstance(session, dict):
        raise _invalid_payload("Event has no checkout session")

    details = session.get("customer_details") or {}
    customer_email = details.get("email") if isinstance(details, dict) else None

    if not customer_email or not isinstance(customer_email, str):
        log.error("No customer email in checkout session")
        raise ApiError(400, "missing_email", "No customer email")

    amount = session.get("amount_total") or 0
    if not _is_int(amount):
        raise _invalid_payload("amount_total must be an integer")
    license_type = license_type_for_amount(amount, settings.student_amount_threshold)

    # redeliveries of one event mint the same code, so the store is a no-op
    created = event.get("created")
    issued_at = created if _is_int(created) else now

    code = encode(customer_email, license_type, settings.license_secret_key, issued_at)
    if store_license(db, code, customer_email, license_type):
        log.info("Issued %s license for %s, amount: %s", license_type.value, customer_email, amount)
    else:
        log.info("Redelivered event %s, license already issued", event.get("id"))
    return {"received": True}
