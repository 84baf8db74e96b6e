"""Signature checks for identity-provider webhooks.

Webhooks are signed with the Svix scheme: the signed content is
``"{svix-id}.{svix-timestamp}.{raw body}"``, hashed with HMAC-SHA256 using the
base64 key that follows the ``whsec_`` prefix of the endpoint secret. The
``svix-signature`` header carries one or more space-separated ``v1,<base64>``
entries so secrets can be rotated.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import time
from typing import Mapping, Optional

SECRET_PREFIX = "whsec_"
SIGNATURE_VERSION = "v1"
REQUIRED_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")


class WebhookVerificationError(Exception):
    pass


def _decode_secret(secret: str) -> bytes:
    raw = secret[len(SECRET_PREFIX):] if secret.startswith(SECRET_PREFIX) else secret
    try:
        return base64.b64decode(raw)
    except (binascii.Error, ValueError) as exc:
        raise WebhookVerificationError("Webhook secret is not valid base64.") from exc


def sign_payload(secret: str, msg_id: str, timestamp: str, body: bytes) -> str:
    key = _decode_secret(secret)
    to_sign = f"{msg_id}.{timestamp}.".encode("utf-8") + body
    digest = hmac.new(key, to_sign, hashlib.sha256).digest()
    return f"{SIGNATURE_VERSION},{base64.b64encode(digest).decode('ascii')}"


def missing_headers(headers: Mapping[str, Optional[str]]) -> list[str]:
    return [name for name in REQUIRED_HEADERS if not headers.get(name)]


def verify_webhook(
    secret: str,
    body: bytes,
    headers: Mapping[str, Optional[str]],
    *,
    tolerance_seconds: int = 300,
    now: Optional[float] = None,
) -> None:
    """Raise WebhookVerificationError unless the headers sign ``body`` with ``secret``."""
    missing = missing_headers(headers)
    if missing:
        raise WebhookVerificationError(f"Missing required headers: {', '.join(missing)}")

    msg_id = headers["svix-id"] or ""
    timestamp = headers["svix-timestamp"] or ""
    try:
        sent_at = int(timestamp)
    except ValueError as exc:
        raise WebhookVerificationError("Invalid signature timestamp.") from exc

    current = time.time() if now is None else now
    if abs(current - sent_at) > tolerance_seconds:
        raise WebhookVerificationError("Signature timestamp outside the allowed window.")

    expected = sign_payload(secret, msg_id, timestamp, body).split(",", 1)[1]
    for entry in (headers["svix-signature"] or "").split(" "):
        version, _, signature = entry.partition(",")
        if version != SIGNATURE_VERSION or not signature:
            continue
        if hmac.compare_digest(signature.encode("latin-1", "replace"), expected.encode("ascii")):
            return
    raise WebhookVerificationError("No matching signature found.")
