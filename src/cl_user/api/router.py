"""GET /users/me — the caller's profile as this service sees it."""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.cl_common.response import ApiResponse, respond
from src.cl_gateway.auth.dependencies import get_current_user
from src.cl_user.domain.models import UserProfile

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me")
async def get_me(
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
) -> ApiResponse:
    data = {**asdict(current_user), "is_admin": current_user.is_admin}
    return respond(request, data)
