"""Admin REST API.

GET   /admin/stats
GET   /admin/offers                       — every offer, deleted included
PATCH /admin/offers/{offer_id}/status
GET   /admin/purchases?status=
POST  /admin/purchases/{id}/approve|reject|complete
GET   /admin/notifications/dead-letters
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.cl_common.response import ApiResponse, respond
from src.cl_gateway.auth.dependencies import get_services, require_admin
from src.cl_offer.application.schemas import ChangeOfferStatusRequest
from src.cl_purchase.application.schemas import ApproveRequest, CloseRequest
from src.cl_user.domain.models import UserProfile
from src.services import Services

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats")
async def stats(
    request: Request,
    admin: Annotated[UserProfile, Depends(require_admin)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    return respond(request, await services.admin.stats())


@router.get("/offers")
async def list_all_offers(
    request: Request,
    admin: Annotated[UserProfile, Depends(require_admin)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.offers.list_all()
    return respond(request, result.model_dump())


@router.patch("/offers/{offer_id}/status")
async def change_offer_status(
    offer_id: str,
    body: ChangeOfferStatusRequest,
    request: Request,
    admin: Annotated[UserProfile, Depends(require_admin)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.offers.change_status(offer_id, body)
    return respond(request, result.model_dump())


@router.get("/purchases")
async def list_all_purchases(
    request: Request,
    admin: Annotated[UserProfile, Depends(require_admin)],
    services: Annotated[Services, Depends(get_services)],
    status: str | None = Query(None, description="Filter by purchase status"),
) -> ApiResponse:
    result = await services.purchases.list_all(status)
    return respond(request, result.model_dump())


@router.post("/purchases/{purchase_id}/approve")
async def approve_purchase(
    purchase_id: str,
    body: ApproveRequest,
    request: Request,
    admin: Annotated[UserProfile, Depends(require_admin)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.purchases.approve(purchase_id, body, admin)
    return respond(request, result.model_dump())


@router.post("/purchases/{purchase_id}/reject")
async def reject_purchase(
    purchase_id: str,
    body: CloseRequest,
    request: Request,
    admin: Annotated[UserProfile, Depends(require_admin)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.purchases.reject(purchase_id, body, admin)
    return respond(request, result.model_dump())


@router.post("/purchases/{purchase_id}/complete")
async def complete_purchase(
    purchase_id: str,
    request: Request,
    admin: Annotated[UserProfile, Depends(require_admin)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.purchases.complete(purchase_id, admin)
    return respond(request, result.model_dump())


@router.get("/notifications/dead-letters")
async def dead_letters(
    request: Request,
    admin: Annotated[UserProfile, Depends(require_admin)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    return respond(request, services.admin.dead_letters())
