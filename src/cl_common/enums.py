"""Global enums — values are the strings persisted in documents."""

from enum import Enum


class Collection(str, Enum):
    OFFERS = "offers"
    PURCHASES = "purchases"
    USERS = "users"
    NOTIFICATIONS = "notifications"
    COUNTERS = "counters"


class OfferStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    REJECTED = "rejected"
    EXPIRED = "expired"
    SOLD = "sold"


class PurchaseStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class NotificationType(str, Enum):
    PURCHASE = "purchase"
    PAYMENT = "payment"
    WATCHLIST = "watchlist"
    ORDER_STATUS = "order_status"
    OFFER_SALES_STATUS = "offer_sales_status"
    PAYMENT_APPROVED = "payment_approved"
    SYSTEM = "system"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class OfferSort(str, Enum):
    NEWEST = "newest"
    PRICE = "price"
    DISCOUNT = "discount"
