"""
Domain exceptions shared across the webhook, erasure and storage layers.
"""

from typing import Any


class ForgetBridgeError(Exception):
    """Base exception for all application errors."""


class NotFoundError(ForgetBridgeError):
    """A referenced record does not exist."""


class MalformedPayloadError(ForgetBridgeError):
    """Inbound webhook body is structurally invalid."""


class AuthenticationError(ForgetBridgeError):
    """Webhook could not be authenticated."""


class AuthenticationFailedError(AuthenticationError):
    """Signature was supplied but does not match the configured secret."""


class AuthenticationMisconfiguredError(AuthenticationError):
    """Exactly one of secret and signature is present."""


class DataStoreDeleteError(ForgetBridgeError):
    """A delete call against the external DataStore API failed.

    Carries whatever the remote side returned so it can be written to the
    error log verbatim. All attributes are ``None`` for transport failures
    and credential errors, where no response exists.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        status_text: str | None = None,
        response_body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text
        self.response_body = response_body

    def details(self) -> dict[str, Any]:
        """Failure details in the shape stored alongside the error message."""
        return {
            "status": self.status_code,
            "statusText": self.status_text,
            "data": self.response_body,
        }
