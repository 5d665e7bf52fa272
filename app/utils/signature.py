"""Slack request signature verification."""
import hashlib
import hmac
import time
from typing import Optional

from app.errors import AuthenticationError

SIGNATURE_VERSION = "v0"
DEFAULT_MAX_AGE_SECONDS = 300


def compute_signature(body: bytes, timestamp: str, secret: str) -> str:
    """
    Compute the expected signature for a request body.

    Args:
        body: Raw request body
        timestamp: Value of the timestamp header
        secret: Shared signing secret

    Returns:
        Signature string in the form "v0=<hex digest>"

    Example:
        >>> compute_signature(b"a=1", "1700000000", "secret").startswith("v0=")
        True
    """
    base = f"{SIGNATURE_VERSION}:{timestamp}:".encode("utf-8") + body
    digest = hmac.new(secret.encode("utf-8"), base, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def verify_slack_signature(
    body: bytes,
    signature: Optional[str],
    timestamp: Optional[str],
    secret: str,
    max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS,
    now: Optional[float] = None,
) -> bool:
    """
    Verify that a request was signed by Slack.

    Must run before the body is interpreted as a command.

    Args:
        body: Raw request body, exactly as received
        signature: X-Slack-Signature header value
        timestamp: X-Slack-Request-Timestamp header value
        secret: Shared signing secret
        max_age_seconds: Replay window
        now: Current unix time (defaults to time.time())

    Returns:
        True if the signature is valid

    Raises:
        AuthenticationError: If a header is missing, the timestamp is outside
            the replay window, or the signature does not match
    """
    if not signature or not timestamp:
        raise AuthenticationError("Missing signature headers")

    try:
        request_time = int(timestamp)
    except ValueError:
        raise AuthenticationError("Invalid request timestamp")

    if now is None:
        now = time.time()

    if abs(now - request_time) > max_age_seconds:
        raise AuthenticationError("Request timestamp outside the replay window")

    expected = compute_signature(body, timestamp, secret)
    if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
        raise AuthenticationError("Invalid signature")

    return True
