from typing import Dict, Optional, Union

from errors import AuthErrorKind, WebhookAuthError
from license_codec import LicenseType
from signing import sign, signatures_match

DEFAULT_TOLERANCE_SECONDS = 300
STUDENT_AMOUNT_THRESHOLD = 500

PURCHASE_COMPLETED = "checkout.session.completed"


def parse_signature_header(header: str) -> Dict[str, str]:
    """Parse "t=<ts>,v1=<hex>[,v0=...]" into a dict. Later duplicates win."""
    parts = {}
    for item in header.split(","):
        key, sep, value = item.partition("=")
        if not sep:
            continue
        parts[key.strip()] = value.strip()
    return parts


def verify_event(
    raw_body: Union[bytes, str],
    signature_header: str,
    secret: str,
    now: int,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
) -> None:
    """Raise WebhookAuthError unless the event was signed by `secret` recently."""
    parts = parse_signature_header(signature_header or "")
    timestamp = parts.get("t")
    expected_sig = parts.get("v1")

    if not timestamp or not expected_sig:
        raise WebhookAuthError(AuthErrorKind.MALFORMED_HEADER, "Missing timestamp or signature in header")

    try:
        ts = int(timestamp)
    except ValueError:
        raise WebhookAuthError(AuthErrorKind.MALFORMED_HEADER, "Non-numeric timestamp in header")

    if abs(now - ts) > tolerance:
        raise WebhookAuthError(AuthErrorKind.STALE_TIMESTAMP, "Webhook timestamp outside tolerance")

    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    signed_payload = f"{timestamp}.".encode("utf-8") + raw_body

    if not signatures_match(sign(secret, signed_payload), expected_sig):
        raise WebhookAuthError(AuthErrorKind.INVALID_SIGNATURE, "Invalid webhook signature")


def license_type_for_amount(amount: Optional[int], threshold: int = STUDENT_AMOUNT_THRESHOLD) -> LicenseType:
    """Amount in minor currency units; up to the threshold buys a student license."""
    if (amount or 0) <= threshold:
        return LicenseType.STUDENT
    return LicenseType.STANDARD
