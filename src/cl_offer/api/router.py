"""cl_offer REST endpoints.

GET    /offers                         — browse/search purchasable offers
POST   /offers                         — create (caller becomes the supplier)
GET    /offers/mine                    — caller's offers, hidden ones included
GET    /offers/supplier/{supplier_id}  — a supplier's public offers
GET    /offers/{offer_id}
PATCH  /offers/{offer_id}              — seller edit
DELETE /offers/{offer_id}              — seller soft delete
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.cl_common.enums import OfferSort
from src.cl_common.response import ApiResponse, respond
from src.cl_gateway.auth.dependencies import get_current_user, get_services
from src.cl_offer.application.schemas import CreateOfferRequest, UpdateOfferRequest
from src.cl_offer.domain.search import OfferQuery
from src.cl_user.domain.models import UserProfile
from src.services import Services

router = APIRouter(prefix="/offers", tags=["offers"])


@router.get("")
async def browse_offers(
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    q: str = Query("", description="Search terms; every term must match"),
    category: str | None = Query(None),
    location: str | None = Query(None),
    min_price_cents: int | None = Query(None, ge=0),
    max_price_cents: int | None = Query(None, ge=0),
    min_quantity: int | None = Query(None, ge=1),
    verified_only: bool = Query(False),
    tag: str | None = Query(None),
    sort: OfferSort = Query(OfferSort.NEWEST),
) -> ApiResponse:
    query = OfferQuery(
        search=q,
        category=category,
        location=location,
        min_price_cents=min_price_cents,
        max_price_cents=max_price_cents,
        min_quantity=min_quantity,
        verified_only=verified_only,
        tag=tag,
        sort=sort,
    )
    result = await services.offers.browse(query)
    return respond(request, result.model_dump())


@router.post("", status_code=201)
async def create_offer(
    body: CreateOfferRequest,
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.offers.create_offer(body, current_user)
    return respond(request, result.model_dump())


@router.get("/mine")
async def list_my_offers(
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.offers.list_my_offers(current_user)
    return respond(request, result.model_dump())


@router.get("/supplier/{supplier_id}")
async def list_supplier_offers(
    supplier_id: str,
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.offers.list_supplier_offers(supplier_id)
    return respond(request, result.model_dump())


@router.get("/{offer_id}")
async def get_offer(
    offer_id: str,
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.offers.get_offer(offer_id, current_user)
    return respond(request, result.model_dump())


@router.patch("/{offer_id}")
async def update_offer(
    offer_id: str,
    body: UpdateOfferRequest,
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.offers.update_offer(offer_id, body, current_user)
    return respond(request, result.model_dump())


@router.delete("/{offer_id}")
async def delete_offer(
    offer_id: str,
    request: Request,
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ApiResponse:
    result = await services.offers.delete_offer(offer_id, current_user)
    return respond(request, result.model_dump())
