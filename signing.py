import hmac
import hashlib
from typing import Union

Bytesish = Union[str, bytes]


def _to_bytes(value: Bytesish) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return value


def sign(secret: Bytesish, message: Bytesish) -> str:
    """HMAC-SHA256 of message under secret, as lowercase hex."""
    return hmac.new(_to_bytes(secret), _to_bytes(message), hashlib.sha256).hexdigest()


def signatures_match(expected: str, provided: str) -> bool:
    """Constant-time, case-insensitive comparison of two hex digests."""
    return hmac.compare_digest(
        expected.lower().encode("utf-8"),
        provided.lower().encode("utf-8"),
    )
