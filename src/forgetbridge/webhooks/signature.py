"""
HMAC verification of delete-request notifications.

The sender signs ``"{timestamp}.{description}"`` with HMAC-SHA256 using the
shared webhook secret and puts the base64 digest in the embed footer.
"""

import base64
import hashlib
import hmac

from forgetbridge.shared.exceptions import (
    AuthenticationFailedError,
    AuthenticationMisconfiguredError,
)
from forgetbridge.shared.logging import get_logger

logger = get_logger(__name__)

MISSING_TIMESTAMP = "null"


def compute_signature(secret: str, timestamp: str | None, description: str) -> str:
    """Return the base64 HMAC-SHA256 of ``"{timestamp}.{description}"``.

    Args:
        secret: Shared webhook secret.
        timestamp: Timestamp from the footer; ``None`` is signed as ``null``.
        description: Embed description, byte-for-byte as received.

    Returns:
        Base64-encoded digest.
    """
    message = f"{MISSING_TIMESTAMP if timestamp is None else timestamp}.{description}"
    digest = hmac.new(
        secret.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(
    description: str,
    timestamp: str | None,
    signature: str | None,
    secret: str | None,
) -> None:
    """Allow or reject a notification.

    - no secret and no signature: allowed, authentication is disabled
    - secret and signature: allowed only if the HMAC matches
    - exactly one of them: rejected as misconfigured

    Raises:
        AuthenticationFailedError: Signature does not match.
        AuthenticationMisconfiguredError: Only one of secret/signature present.
    """
    if not secret and not signature:
        logger.info("Webhook authentication disabled; no secret and no signature")
        return

    if secret and signature:
        expected = compute_signature(secret, timestamp, description)
        if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
            logger.warning("Webhook signature mismatch", extra={"timestamp": timestamp})
            raise AuthenticationFailedError("Invalid signature")
        return

    logger.warning(
        "Webhook authentication misconfigured",
        extra={"secret_configured": bool(secret), "signature_present": bool(signature)},
    )
    raise AuthenticationMisconfiguredError("Authentication configuration is invalid")
