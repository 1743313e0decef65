from pydantic import BaseModel

from src.cl_offer.application.schemas import OfferResponse


class WatchlistResponse(BaseModel):
    offer_ids: list[str]
    items: list[OfferResponse]


class WatchlistChangeResponse(BaseModel):
    offer_id: str
    watching: bool
    changed: bool
