"""HMAC-SHA256 signed, time-limited download references for save blobs.

The turn server hands the current player a URL carrying a token instead of
the raw blob key. The download route verifies the signature and expiry
locally before serving the file.

Token format: base64url(json_payload_bytes).base64url(hmac_sha256_signature)
"""

import base64
import binascii
import hashlib
import hmac
import json
import math
import time
from dataclasses import asdict, dataclass

import structlog

logger = structlog.get_logger()

_TOKEN_PARTS = 2  # base64url(payload).base64url(signature)

DEFAULT_DOWNLOAD_TTL_SECONDS = 60
MAX_DOWNLOAD_TTL_SECONDS = 3600
CLOCK_SKEW_SECONDS = 30


@dataclass
class DownloadTicket:
    """Payload carried inside a signed download token."""

    key: str  # blob key
    filename: str  # suggested client-side file name
    issued_at: float
    expires_at: float


def create_download_token(
    key: str,
    filename: str,
    secret: str,
    ttl_seconds: int = DEFAULT_DOWNLOAD_TTL_SECONDS,
) -> str:
    """Create and sign a download ticket for a blob key."""
    if not 0 < ttl_seconds <= MAX_DOWNLOAD_TTL_SECONDS:
        raise ValueError(f"ttl_seconds must be 1-{MAX_DOWNLOAD_TTL_SECONDS}, got {ttl_seconds}")
    now = time.time()
    ticket = DownloadTicket(key=key, filename=filename, issued_at=now, expires_at=now + ttl_seconds)
    return sign_download_ticket(ticket, secret)


def sign_download_ticket(ticket: DownloadTicket, secret: str) -> str:
    payload_bytes = json.dumps(asdict(ticket), sort_keys=True).encode()
    sig = hmac.new(secret.encode(), payload_bytes, hashlib.sha256).digest()
    payload_b64 = base64.urlsafe_b64encode(payload_bytes).decode()
    sig_b64 = base64.urlsafe_b64encode(sig).decode()
    return f"{payload_b64}.{sig_b64}"


def verify_download_token(token: str, secret: str) -> DownloadTicket | None:
    """Verify HMAC signature and expiry. Returns the ticket or None on any failure."""
    parts = token.split(".")
    if len(parts) != _TOKEN_PARTS:
        return None

    try:
        payload_bytes = base64.urlsafe_b64decode(parts[0])
        provided_sig = base64.urlsafe_b64decode(parts[1])
    except (ValueError, binascii.Error):
        return None

    expected_sig = hmac.new(secret.encode(), payload_bytes, hashlib.sha256).digest()
    if not hmac.compare_digest(provided_sig, expected_sig):
        logger.debug("download token signature mismatch")
        return None

    try:
        ticket = DownloadTicket(**json.loads(payload_bytes))
    except (json.JSONDecodeError, TypeError):
        logger.debug("download token malformed payload")
        return None

    if not _timestamps_valid(ticket):
        return None
    return ticket


def _is_finite_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _timestamps_valid(ticket: DownloadTicket) -> bool:
    if not _is_finite_number(ticket.issued_at) or not _is_finite_number(ticket.expires_at):
        return False

    now = time.time()
    if ticket.issued_at > now + CLOCK_SKEW_SECONDS:
        logger.debug("download token issued in the future")
        return False
    if ticket.expires_at <= ticket.issued_at:
        return False
    if ticket.expires_at - ticket.issued_at > MAX_DOWNLOAD_TTL_SECONDS + CLOCK_SKEW_SECONDS:
        logger.debug("download token lifetime too long")
        return False
    if now > ticket.expires_at:
        logger.debug("download token expired")
        return False
    return True
