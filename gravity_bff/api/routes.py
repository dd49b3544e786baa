"""
Stream API routes.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request

from .auth import get_current_user_id
from .models import ErrorCode, ErrorResponse
from ..models.stream import PriorityItem, StreamFilter, StreamPage
from ..services.stream import StreamService, validate_filter

logger = logging.getLogger(__name__)

router = APIRouter()


def get_stream_service(request: Request) -> StreamService:
    """Dependency returning the stream service bound to this app."""
    return request.app.state.stream_service


@router.get(
    "/stream",
    response_model=StreamPage,
    summary="List priority stream",
    description="Get one page of the user's priority stream, newest first.",
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def list_stream(
    filter_token: Optional[str] = Query(
        None, alias="filter", description="Filter: all, high or unread"
    ),
    limit: Optional[int] = Query(None, description="Page size (1-100, default 20)"),
    cursor: Optional[str] = Query(None, description="Cursor from a previous page"),
    user_id: str = Depends(get_current_user_id),
    service: StreamService = Depends(get_stream_service),
):
    """List stream items."""
    stream_filter = StreamFilter.ALL if filter_token is None else validate_filter(filter_token)
    return await service.get_stream(user_id, stream_filter, limit=limit, cursor=cursor)


@router.get(
    "/stream/{item_id}",
    response_model=PriorityItem,
    summary="Get stream item",
    description="Get one priority item with participants and the full message thread.",
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_stream_item(
    item_id: str = Path(..., description="Priority item ID"),
    user_id: str = Depends(get_current_user_id),
    service: StreamService = Depends(get_stream_service),
):
    """Get stream item details."""
    item = await service.get_stream_item(user_id, item_id)
    if item is None:
        raise HTTPException(
            status_code=404,
            detail={
                "code": ErrorCode.NOT_FOUND,
                "message": "The requested priority item does not exist",
            },
        )
    return item
