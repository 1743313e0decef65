"""cl_purchase REST endpoints.

POST /purchases                          — checkout
GET  /purchases/mine                     — as buyer
GET  /purchases/sales                    — as seller
GET  /purchases/{purchase_id}
POST /purchases/{purchase_id}/ship       — seller
POST /purchases/{purchase_id}/deliver    — buyer confirms receipt
POST /purchases/{purchase_id}/cancel     — buyer or admin

Admin approve/reject/complete live under /admin/purchases.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.cl_common.response import ApiResponse, respond
from src.cl_gateway.auth.dependencies import get_current_user, get_services
from src.cl_purchase.application.schemas import CheckoutRequest, CloseRequest, ShipRequest
from src.cl_user.domain.models import UserProfile
from src.services import Services

router = APIRouter(prefix="/purchases", tags=["purchases"])


@router.post("", status_code=201)
async def checkout(
    body: CheckoutRequest,
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.purchases.checkout(body, current_user)
    return respond(request, result.model_dump())


@router.get("/mine")
async def list_my_purchases(
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.purchases.list_as_buyer(current_user)
    return respond(request, result.model_dump())


@router.get("/sales")
async def list_my_sales(
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.purchases.list_as_seller(current_user)
    return respond(request, result.model_dump())


@router.get("/{purchase_id}")
async def get_purchase(
    purchase_id: str,
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.purchases.get_purchase(purchase_id, current_user)
    return respond(request, result.model_dump())


@router.post("/{purchase_id}/ship")
async def ship(
    purchase_id: str,
    body: ShipRequest,
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.purchases.ship(purchase_id, body, current_user)
    return respond(request, result.model_dump())


@router.post("/{purchase_id}/deliver")
async def confirm_delivery(
    purchase_id: str,
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.purchases.confirm_delivery(purchase_id, current_user)
    return respond(request, result.model_dump())


@router.post("/{purchase_id}/cancel")
async def cancel(
    purchase_id: str,
    body: CloseRequest,
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.purchases.cancel(purchase_id, body, current_user)
    return respond(request, result.model_dump())
