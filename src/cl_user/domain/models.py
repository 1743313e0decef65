"""User profile domain model — the slice of the user document the marketplace reads."""

from dataclasses import dataclass, field

from src.cl_common.enums import UserRole


@dataclass
class UserProfile:
    id: str
    email: str = ""
    company: str = ""
    role: str = UserRole.USER.value
    is_verified: bool = False
    watchlist: list[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def display_company(self) -> str:
        return self.company or self.email or self.id


def dedupe_watchlist(offer_ids: list[str]) -> list[str]:
    """Watchlists are sets stored as sequences: keep first occurrence order."""
    return list(dict.fromkeys(offer_ids))
