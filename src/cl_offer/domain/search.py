"""Browse filters, term search and sort orders over listed offers.

Listing queries only narrow by equality in the store; everything here runs
in memory over the already-purchasable set.
"""

from dataclasses import dataclass

from src.cl_common.enums import OfferSort
from src.cl_offer.domain.models import Offer


@dataclass
class OfferQuery:
    search: str = ""
    category: str | None = None
    location: str | None = None
    min_price_cents: int | None = None
    max_price_cents: int | None = None
    min_quantity: int | None = None
    verified_only: bool = False
    tag: str | None = None
    sort: OfferSort = OfferSort.NEWEST


def _haystack(offer: Offer) -> str:
    parts = [
        offer.title,
        offer.description,
        offer.category,
        offer.supplier_company,
        offer.offer_number,
        offer.id,
        *offer.tags,
    ]
    return " ".join(parts).lower()


def matches_terms(offer: Offer, search: str) -> bool:
    """Every whitespace-separated term must occur somewhere in the offer text."""
    terms = search.lower().split()
    if not terms:
        return True
    haystack = _haystack(offer)
    return all(term in haystack for term in terms)


def matches(offer: Offer, query: OfferQuery) -> bool:
    if query.min_price_cents is not None and offer.current_price_cents < query.min_price_cents:
        return False
    if query.max_price_cents is not None and offer.current_price_cents > query.max_price_cents:
        return False
    if query.min_quantity is not None and offer.quantity < query.min_quantity:
        return False
    if query.tag and query.tag.lower() not in (t.lower() for t in offer.tags):
        return False
    return matches_terms(offer, query.search)


def sort_offers(offers: list[Offer], sort: OfferSort) -> list[Offer]:
    if sort == OfferSort.PRICE:
        return sorted(offers, key=lambda o: (o.current_price_cents, o.offer_number))
    if sort == OfferSort.DISCOUNT:
        return sorted(offers, key=lambda o: (-o.discount_bps, o.offer_number))
    return sorted(offers, key=lambda o: o.created_at or "", reverse=True)
