"""
HMAC-SHA256 verification for inbound Asaas callbacks.

The signature is computed over the raw request bytes, never over re-serialized
JSON. Every failure mode (missing header, missing secret, undecodable token,
length or digest mismatch) collapses to False so callers cannot leak which one
occurred.
"""
import base64
import binascii
import hashlib
import hmac
import re
from typing import Mapping

SIGNATURE_HEADERS = ("asaas-signature", "x-hub-signature", "x-hub-signature-256")

_PREFIX_RE = re.compile(r"^sha256=", re.IGNORECASE)
_HEX_RE = re.compile(r"^[0-9a-f]+$", re.IGNORECASE)
_B64_RE = re.compile(r"^[0-9a-z+/=]+$", re.IGNORECASE)


def extract_signature(headers: Mapping[str, str]) -> str | None:
    """First present, non-empty signature header wins."""
    for name in SIGNATURE_HEADERS:
        value = headers.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def decode_signature(signature: str | None) -> bytes | None:
    if not signature:
        return None
    token = _PREFIX_RE.sub("", signature.strip()).strip()
    if not token:
        return None

    if _HEX_RE.match(token) and len(token) % 2 == 0:
        return bytes.fromhex(token)

    if _B64_RE.match(token):
        try:
            # providers may strip the trailing '=' padding
            decoded = base64.b64decode(token + "=" * (-len(token) % 4), validate=True)
        except (binascii.Error, ValueError):
            return None
        return decoded or None

    return None


def compute_signature(secret: str, raw_body: bytes) -> bytes:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()


def verify(raw_body: bytes, signature_header: str | None, secret: str | None) -> bool:
    if not secret or not signature_header:
        return False

    provided = decode_signature(signature_header)
    if provided is None:
        return False

    expected = compute_signature(secret, raw_body or b"")
    # length is not secret; compare_digest only runs on equal-size inputs
    if len(provided) != len(expected):
        return False
    return hmac.compare_digest(provided, expected)
