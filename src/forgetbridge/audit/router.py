"""
Read-only API over the deletion history and error log.
"""

import hmac
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from forgetbridge.audit.schemas import (
    ErrorLogListResponse,
    ErrorLogResponse,
    HistoryListResponse,
    HistoryResponse,
)
from forgetbridge.shared.database import get_db_session
from forgetbridge.shared.logging import get_logger
from forgetbridge.storage.repository import ErasureRepository

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["audit"])

_bearer = HTTPBearer(auto_error=False)


async def require_admin_token(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> None:
    """Guard audit endpoints with the static admin token.

    Raises:
        HTTPException: 503 when no token is configured, 401 otherwise on mismatch.
    """
    expected = request.app.state.settings.admin_api_token
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Audit API disabled",
        )
    if credentials is None or not hmac.compare_digest(
        credentials.credentials.encode("utf-8"), expected.encode("utf-8")
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> ErasureRepository:
    return ErasureRepository(session)


@router.get(
    "/histories",
    response_model=HistoryListResponse,
    dependencies=[Depends(require_admin_token)],
    summary="List deletion history, newest first",
)
async def list_histories(
    repository: Annotated[ErasureRepository, Depends(get_repository)],
    game_id: Annotated[str | None, Query(description="Restrict to one game")] = None,
) -> HistoryListResponse:
    histories = await repository.get_histories(game_id=game_id)
    items = [HistoryResponse.from_model(h) for h in histories]
    return HistoryListResponse(items=items, total=len(items))


@router.get(
    "/histories/by-user/{user_id}",
    response_model=HistoryListResponse,
    dependencies=[Depends(require_admin_token)],
    summary="List deletion history for one user",
)
async def list_histories_by_user(
    user_id: str,
    repository: Annotated[ErasureRepository, Depends(get_repository)],
) -> HistoryListResponse:
    histories = await repository.get_histories_by_user_id(user_id)
    items = [HistoryResponse.from_model(h) for h in histories]
    return HistoryListResponse(items=items, total=len(items))


@router.get(
    "/histories/{history_id}",
    response_model=HistoryResponse,
    dependencies=[Depends(require_admin_token)],
)
async def get_history(
    history_id: str,
    repository: Annotated[ErasureRepository, Depends(get_repository)],
) -> HistoryResponse:
    history = await repository.get_history(history_id)
    if history is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="History not found")
    return HistoryResponse.from_model(history)


@router.get(
    "/error-logs",
    response_model=ErrorLogListResponse,
    dependencies=[Depends(require_admin_token)],
    summary="List error log entries, newest first",
)
async def list_error_logs(
    repository: Annotated[ErasureRepository, Depends(get_repository)],
    universe_id: Annotated[str | None, Query(description="Restrict to one universe")] = None,
) -> ErrorLogListResponse:
    entries = await repository.get_error_logs(universe_id=universe_id)
    items = [ErrorLogResponse.from_model(e) for e in entries]
    return ErrorLogListResponse(items=items, total=len(items))
