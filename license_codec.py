"""
License code format:

    FENCE-<base64(<payload json>.<hex hmac-sha256>)>

The payload is compact JSON with keys in the fixed order e, t, c.
The signature covers the exact payload bytes, so the payload is never
re-serialized during verification.
"""
import base64
import binascii
import enum
import json
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from errors import DecodeErrorKind, LicenseDecodeError
from signing import sign, signatures_match

CODE_PREFIX = "FENCE-"
SEPARATOR = "."

_URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")


class LicenseType(str, enum.Enum):
    STANDARD = "std"
    STUDENT = "stu"


class LicensePayload(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    email: StrictStr = Field(alias="e")
    license_type: LicenseType = Field(alias="t")
    issued_at: StrictInt = Field(alias="c")

    def as_wire(self) -> dict:
        return {"e": self.email, "t": self.license_type.value, "c": self.issued_at}


def serialize_payload(email: str, license_type: Union[LicenseType, str], issued_at: int) -> str:
    payload = {"e": email, "t": LicenseType(license_type).value, "c": int(issued_at)}
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def encode(email: str, license_type: Union[LicenseType, str], secret_key: str, now_seconds: int) -> str:
    payload = serialize_payload(email, license_type, now_seconds)
    combined = payload + SEPARATOR + sign(secret_key, payload)
    return CODE_PREFIX + base64.b64encode(combined.encode("utf-8")).decode("ascii")


def _b64decode_lenient(data: str) -> bytes:
    # the desktop client accepts url-safe alphabet and stripped padding
    normalized = data.strip().translate(_URLSAFE_TO_STANDARD)
    normalized += "=" * (-len(normalized) % 4)
    return base64.b64decode(normalized, validate=True)


def decode(code: str, secret_key: str) -> LicensePayload:
    """
    Validate a license code and return its payload.
    Raises LicenseDecodeError; checks run prefix, encoding, structure,
    signature, payload schema, in that order.
    """
    if not isinstance(code, str) or not code.startswith(CODE_PREFIX):
        raise LicenseDecodeError(DecodeErrorKind.MALFORMED_PREFIX, "Invalid license format")

    encoded = code[len(CODE_PREFIX):]
    try:
        decoded = _b64decode_lenient(encoded).decode("utf-8")
    except (binascii.Error, ValueError):
        raise LicenseDecodeError(DecodeErrorKind.MALFORMED_ENCODING, "License is not valid base64 text")

    # emails may contain dots, the signature never does
    index = decoded.rfind(SEPARATOR)
    if index == -1:
        raise LicenseDecodeError(DecodeErrorKind.MALFORMED_STRUCTURE, "Invalid license structure")

    payload_str = decoded[:index]
    provided_sig = decoded[index + 1:]

    if not signatures_match(sign(secret_key, payload_str), provided_sig):
        raise LicenseDecodeError(DecodeErrorKind.INVALID_SIGNATURE, "Invalid signature")

    try:
        return LicensePayload.model_validate(json.loads(payload_str))
    except (ValueError, ValidationError):
        raise LicenseDecodeError(DecodeErrorKind.INVALID_PAYLOAD, "Invalid license payload")
