"""
FastAPI router for the delete-request webhook.

Once a request is authenticated the caller always gets ``{"success": true}``;
per-rule failures are recorded in the error log only.
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from forgetbridge.erasure.datastore_client import DataStoreClient
from forgetbridge.erasure.dispatcher import DeletionDispatcher
from forgetbridge.shared.database import get_db_session
from forgetbridge.shared.exceptions import AuthenticationError, MalformedPayloadError
from forgetbridge.shared.logging import get_logger
from forgetbridge.storage.repository import ErasureRepository
from forgetbridge.webhooks.schemas import WebhookAck, WebhookErrorResponse
from forgetbridge.webhooks.service import DeleteRequestService

logger = get_logger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhooks"])


def get_datastore_client(request: Request) -> DataStoreClient:
    return request.app.state.datastore_client


def get_delete_request_service(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db_session)],
    datastore_client: Annotated[DataStoreClient, Depends(get_datastore_client)],
) -> DeleteRequestService:
    """Dependency wiring one service per request."""
    repository = ErasureRepository(session)
    return DeleteRequestService(
        repository=repository,
        dispatcher=DeletionDispatcher(repository, datastore_client),
        settings=request.app.state.settings,
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=WebhookErrorResponse(error=message).model_dump(),
    )


@router.post(
    "/delete-request",
    response_model=WebhookAck,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": WebhookErrorResponse},
        401: {"model": WebhookErrorResponse},
        500: {"model": WebhookErrorResponse},
    },
    summary="Receive a right-to-erasure notification",
)
async def receive_delete_request(
    request: Request,
    service: Annotated[DeleteRequestService, Depends(get_delete_request_service)],
) -> Any:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid payload: body is not JSON")

    try:
        await service.handle(body)
    except MalformedPayloadError as exc:
        logger.warning("Rejected malformed webhook payload", extra={"reason": str(exc)})
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))
    except AuthenticationError as exc:
        return _error(status.HTTP_401_UNAUTHORIZED, str(exc))
    except Exception:
        logger.exception("Webhook processing error")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Webhook processing error")

    return WebhookAck()
