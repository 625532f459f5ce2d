"""Per-user key-value sync endpoints used by Diet Sync clients."""

import logging
from functools import lru_cache
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import BaseModel

from dietsync.db.gateway import PersistenceGateway
from dietsync.db.supabase import SupabaseGateway
from dietsync.errors import BadRequestError, NotFoundError, SyncError
from dietsync.models.bundle import SyncKey, dump_value, parse_value

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Sync"])


class SyncWriteRequest(BaseModel):
    """Body of POST /sync."""
    key: Optional[str] = None
    data: Any = None


class SyncReadResponse(BaseModel):
    """Stored value for a key, or null if it was never stored."""
    data: Any = None


class SyncWriteResponse(BaseModel):
    success: bool


@lru_cache()
def get_gateway() -> PersistenceGateway:
    """Store behind the API."""
    return SupabaseGateway()


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """User id forwarded by the identity provider."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return x_user_id


def _parse_key(raw: Optional[str]) -> SyncKey:
    if not raw:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing key")
    try:
        return SyncKey.parse(raw)
    except BadRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _http_error(error: SyncError) -> HTTPException:
    if error.status_code >= 500:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal Server Error",
        )
    return HTTPException(status_code=error.status_code, detail=str(error))


@router.get("/sync", response_model=SyncReadResponse)
async def read_synced_data(
    key: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    """Get the stored value of one key for the current user."""
    sync_key = _parse_key(key)
    try:
        data = await gateway.fetch(user_id, sync_key)
    except NotFoundError:
        data = None
    except SyncError as e:
        logger.error(f"Error fetching {sync_key.value} for {user_id}: {e}")
        raise _http_error(e)

    return SyncReadResponse(data=data)


@router.post("/sync", response_model=SyncWriteResponse)
async def write_synced_data(
    request: SyncWriteRequest,
    user_id: str = Depends(get_current_user_id),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    """Replace the stored value of one key for the current user."""
    sync_key = _parse_key(request.key)
    try:
        value = parse_value(sync_key, request.data)
    except BadRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        await gateway.upsert(user_id, sync_key, dump_value(sync_key, value))
    except SyncError as e:
        logger.error(f"Error updating {sync_key.value} for {user_id}: {e}")
        raise _http_error(e)

    return SyncWriteResponse(success=True)
