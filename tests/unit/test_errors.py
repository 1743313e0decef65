"""Tests for cl_common.errors and cl_common.response."""

from types import SimpleNamespace

from src.cl_common.errors import (
    AppError,
    ConcurrentUpdateError,
    InsufficientInventoryError,
    InvalidPurchaseTransitionError,
    OfferNotFoundError,
    PurchaseNotFoundError,
    RateLimitError,
)
from src.cl_common.response import ApiResponse, error_body, respond


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1001, message="test"), Exception)


class TestSpecificErrors:
    def test_insufficient_inventory_carries_numbers(self) -> None:
        err = InsufficientInventoryError("offer-1", requested=7, available=3)
        assert err.code == 2002
        assert err.http_status == 422
        assert (err.requested, err.available) == (7, 3)
        assert "7" in err.message and "3" in err.message

    def test_offer_not_found(self) -> None:
        err = OfferNotFoundError("offer-9")
        assert err.code == 2001
        assert err.http_status == 404
        assert "offer-9" in err.message

    def test_purchase_not_found(self) -> None:
        assert PurchaseNotFoundError("p-1").code == 3001

    def test_invalid_transition(self) -> None:
        err = InvalidPurchaseTransitionError("p-1", "completed", "rejected")
        assert err.code == 3002
        assert "completed" in err.message and "rejected" in err.message

    def test_concurrent_update_is_conflict(self) -> None:
        err = ConcurrentUpdateError("offers", "offer-1")
        assert err.code == 9003
        assert err.http_status == 409

    def test_rate_limit(self) -> None:
        assert RateLimitError().http_status == 429


def _request(request_id: str | None) -> SimpleNamespace:
    return SimpleNamespace(state=SimpleNamespace(request_id=request_id))


class TestApiResponse:
    def test_respond_uses_middleware_request_id(self) -> None:
        resp = respond(_request("req_abc"), {"id": 1})  # type: ignore[arg-type]
        assert (resp.code, resp.message, resp.data) == (0, "success", {"id": 1})
        assert resp.request_id == "req_abc"

    def test_respond_without_request_id(self) -> None:
        assert respond(_request(None)).request_id.startswith("req_")  # type: ignore[arg-type]

    def test_error_body(self) -> None:
        body = error_body(OfferNotFoundError("o1"), _request("req_x"))  # type: ignore[arg-type]
        assert body["code"] == 2001
        assert body["data"] is None
        assert body["request_id"] == "req_x"

    def test_serializable(self) -> None:
        dumped = ApiResponse(data=[1, 2]).model_dump()
        assert set(dumped) == {"code", "message", "data", "timestamp", "request_id"}
