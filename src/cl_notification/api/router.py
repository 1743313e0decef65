"""cl_notification REST endpoints.

GET  /notifications                        — newest first
GET  /notifications/unread-count
POST /notifications/read-all
POST /notifications/{notification_id}/read
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.cl_common.response import ApiResponse, respond
from src.cl_gateway.auth.dependencies import get_current_user, get_services
from src.cl_user.domain.models import UserProfile
from src.services import Services

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    result = await services.notifications.list_mine(current_user.id, limit)
    return respond(request, result.model_dump())


@router.get("/unread-count")
async def unread_count(
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.notifications.unread_count(current_user.id)
    return respond(request, result.model_dump())


@router.post("/read-all")
async def mark_all_read(
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.notifications.mark_all_read(current_user.id)
    return respond(request, result.model_dump())


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.notifications.mark_read(notification_id, current_user.id)
    return respond(request, result.model_dump())
