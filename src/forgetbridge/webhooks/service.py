"""
Delete-request pipeline: payload check, authentication, parsing, dispatch.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import ValidationError

from forgetbridge.config import Settings
from forgetbridge.erasure.dispatcher import DeletionDispatcher
from forgetbridge.erasure.models import DeletionIntent, DispatchReport
from forgetbridge.shared.exceptions import MalformedPayloadError
from forgetbridge.shared.logging import get_logger
from forgetbridge.storage.repository import ErasureRepositoryProtocol
from forgetbridge.webhooks.parser import (
    first_universe_id,
    is_deletion_request,
    parse_deletion_intent,
    parse_footer,
)
from forgetbridge.webhooks.schemas import WebhookPayload
from forgetbridge.webhooks.signature import verify_signature

logger = get_logger(__name__)


class DeleteRequestStatus(str, Enum):
    """How a webhook invocation was handled."""

    NOT_A_DELETION_REQUEST = "not_a_deletion_request"
    DISPATCHED = "dispatched"


@dataclass(frozen=True)
class DeleteRequestResult:
    status: DeleteRequestStatus
    intent: DeletionIntent | None = None
    report: DispatchReport | None = None


class DeleteRequestService:
    """Handles one delete-request webhook invocation."""

    def __init__(
        self,
        repository: ErasureRepositoryProtocol,
        dispatcher: DeletionDispatcher,
        settings: Settings,
    ) -> None:
        """Initialize service.

        Args:
            repository: Store for global settings and the receipt log entry.
            dispatcher: Executes the per-rule deletes.
            settings: Application settings.
        """
        self._repository = repository
        self._dispatcher = dispatcher
        self._settings = settings

    async def handle(self, body: Any) -> DeleteRequestResult:
        """Process a raw webhook body.

        Args:
            body: Decoded JSON body.

        Returns:
            Result describing what was done. Per-rule failures are only
            visible in the report and the error log.

        Raises:
            MalformedPayloadError: Body is structurally invalid.
            AuthenticationError: Signature check rejected the request.
        """
        payload = self._validate(body)
        embed = payload.embeds[0]  # type: ignore[index]
        footer_text: str = embed.footer.text  # type: ignore[union-attr,assignment]
        description = embed.description or ""

        if not is_deletion_request(description):
            logger.info("Non-delete webhook received", extra={"title": embed.title})
            return DeleteRequestResult(status=DeleteRequestStatus.NOT_A_DELETION_REQUEST)

        footer = parse_footer(footer_text)
        secret = await self._resolve_secret()
        verify_signature(description, footer.timestamp, footer.signature, secret)

        if self._settings.record_webhook_receipt:
            await self._record_receipt(body, description)

        intent = parse_deletion_intent(description)
        if intent is None:
            logger.info(
                "Delete request markers present but user or game ids missing",
                extra={"description": description},
            )
            return DeleteRequestResult(status=DeleteRequestStatus.NOT_A_DELETION_REQUEST)

        logger.info(
            "Dispatching deletion request",
            extra={"user_id": intent.user_id, "universe_ids": list(intent.universe_ids)},
        )
        report = await self._dispatcher.dispatch(intent)
        return DeleteRequestResult(
            status=DeleteRequestStatus.DISPATCHED,
            intent=intent,
            report=report,
        )

    def _validate(self, body: Any) -> WebhookPayload:
        if not isinstance(body, dict):
            raise MalformedPayloadError("Invalid payload: embeds missing")
        try:
            payload = WebhookPayload.model_validate(body)
        except ValidationError as exc:
            raise MalformedPayloadError("Invalid payload") from exc

        if not payload.embeds:
            raise MalformedPayloadError("Invalid payload: embeds missing")
        footer = payload.embeds[0].footer
        if footer is None or not footer.text:
            raise MalformedPayloadError("Invalid payload: footer data missing")
        return payload

    async def _resolve_secret(self) -> str | None:
        settings_row = await self._repository.get_global_settings()
        if settings_row is not None and settings_row.webhook_auth_key:
            return settings_row.webhook_auth_key
        return self._settings.webhook_auth_key or None

    async def _record_receipt(self, body: dict[str, Any], description: str) -> None:
        try:
            await self._repository.create_error_log(
                "Webhook POST received: " + json.dumps(body, ensure_ascii=False, default=str),
                first_universe_id(description),
            )
            await self._repository.commit()
        except Exception:
            await self._repository.rollback()
            logger.exception("Failed to log webhook POST")
