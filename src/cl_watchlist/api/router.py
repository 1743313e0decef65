"""cl_watchlist REST endpoints.

GET    /watchlist
PUT    /watchlist/{offer_id}   — idempotent add
DELETE /watchlist/{offer_id}
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.cl_common.response import ApiResponse, respond
from src.cl_gateway.auth.dependencies import get_current_user, get_services
from src.cl_user.domain.models import UserProfile
from src.services import Services

router = APIRouter(prefix="/watchlist", tags=["watchlist"])


@router.get("")
async def list_watchlist(
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.watchlist.list_watchlist(current_user.id)
    return respond(request, result.model_dump())


@router.put("/{offer_id}")
async def add_to_watchlist(
    offer_id: str,
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.watchlist.add(current_user.id, offer_id)
    return respond(request, result.model_dump())


@router.delete("/{offer_id}")
async def remove_from_watchlist(
    offer_id: str,
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.watchlist.remove(current_user.id, offer_id)
    return respond(request, result.model_dump())
