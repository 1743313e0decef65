"""UserRepository — user documents and their watchlist arrays."""

from src.cl_common.document_store import Document, DocumentStore, FieldWrite, Filter
from src.cl_common.enums import Collection, UserRole
from src.cl_user.domain.models import UserProfile, dedupe_watchlist

_USERS = Collection.USERS.value


def _doc_to_user(doc: Document) -> UserProfile:
    f = doc.fields
    return UserProfile(
        id=doc.id,
        email=f.get("email", ""),
        company=f.get("company", ""),
        role=f.get("role", UserRole.USER.value),
        is_verified=bool(f.get("is_verified", False)),
        watchlist=dedupe_watchlist(list(f.get("watchlist") or [])),
    )


class UserRepository:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get_by_id(self, user_id: str) -> UserProfile | None:
        doc = await self._store.get_document(_USERS, user_id)
        return _doc_to_user(doc) if doc else None

    async def get_raw_watchlist(self, user_id: str) -> list[str] | None:
        """Watchlist exactly as stored (duplicates included), for compare-and-swap.

        None when the user document has no watchlist field yet.
        """
        doc = await self._store.get_document(_USERS, user_id)
        if doc is None or doc.get("watchlist") is None:
            return None
        return list(doc.get("watchlist"))

    async def replace_watchlist_if(
        self, user_id: str, watchlist: list[str], expected: list[str] | None
    ) -> bool:
        # expected None: the field must still be unset
        return await self._store.update_if(
            _USERS, user_id, {"watchlist": watchlist}, {"watchlist": expected}
        )

    async def list_watching(self, offer_id: str) -> list[Document]:
        return await self._store.query_documents(
            _USERS, [Filter("watchlist", "array_contains", offer_id)]
        )

    async def remove_from_watchlists(self, users: list[Document], offer_id: str) -> bool:
        """Drop offer_id from every given user's watchlist in one all-or-nothing batch.

        Each write is guarded on the watchlist the user document was read with;
        False (nothing written) when any of them changed since.
        """
        writes = []
        for user in users:
            snapshot = user.get("watchlist")
            writes.append(
                FieldWrite(
                    collection=_USERS,
                    doc_id=user.id,
                    fields={"watchlist": [oid for oid in snapshot or [] if oid != offer_id]},
                    expected={"watchlist": snapshot},
                )
            )
        return await self._store.batch_update_if(writes)
