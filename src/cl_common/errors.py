"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Offer
  3xxx: Purchase
  4xxx: Notification
  9xxx: System / document store
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Admin privileges required", 403)


class UserNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1003, f"User not found: {user_id}", 404)


# --- 2xxx: Offer ---

class OfferNotFoundError(AppError):
    def __init__(self, offer_id: str) -> None:
        super().__init__(2001, f"Offer not found: {offer_id}", 404)


class InsufficientInventoryError(AppError):
    def __init__(self, offer_id: str, requested: int, available: int) -> None:
        self.offer_id = offer_id
        self.requested = requested
        self.available = available
        super().__init__(
            2002,
            f"Insufficient inventory for offer {offer_id}: "
            f"requested {requested}, available {available}",
            422,
        )


class OfferNotPurchasableError(AppError):
    def __init__(self, offer_id: str) -> None:
        super().__init__(2003, f"Offer is not available for purchase: {offer_id}", 422)


class OfferForbiddenError(AppError):
    def __init__(self, offer_id: str) -> None:
        super().__init__(2004, f"Not allowed to modify offer {offer_id}", 403)


class InvalidOfferError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2005, f"Invalid offer: {detail}", 422)


# --- 3xxx: Purchase ---

class PurchaseNotFoundError(AppError):
    def __init__(self, purchase_id: str) -> None:
        super().__init__(3001, f"Purchase not found: {purchase_id}", 404)


class InvalidPurchaseTransitionError(AppError):
    def __init__(self, purchase_id: str, current: str, target: str) -> None:
        super().__init__(
            3002,
            f"Purchase {purchase_id} cannot move from {current} to {target}",
            422,
        )


class InvalidPurchaseError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3003, f"Invalid purchase: {detail}", 422)


class PurchaseForbiddenError(AppError):
    def __init__(self, purchase_id: str) -> None:
        super().__init__(3004, f"Not allowed to act on purchase {purchase_id}", 403)


# --- 4xxx: Notification ---

class NotificationNotFoundError(AppError):
    def __init__(self, notification_id: str) -> None:
        super().__init__(4001, f"Notification not found: {notification_id}", 404)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class ConcurrentUpdateError(AppError):
    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(
            9003, f"Concurrent update on {collection}/{doc_id}, please retry", 409
        )


class DocumentNotFoundError(AppError):
    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(9004, f"Document not found: {collection}/{doc_id}", 404)


class DocumentExistsError(AppError):
    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(9005, f"Document already exists: {collection}/{doc_id}", 409)
