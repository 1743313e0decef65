"""MemoryDocumentStore — in-process implementation of DocumentStore.

Used for local development (DOCUMENT_STORE=memory) and unit tests. Every
mutation runs under one asyncio.Lock so update_if and both batch writes are
atomic with respect to other coroutines. Reads yield to the event loop first,
so concurrent read-then-write callers interleave the way they would against a
networked store.
"""

import asyncio
import copy
from typing import Any

from src.cl_common.document_store import Document, FieldWrite, Filter, new_document_id
from src.cl_common.errors import DocumentExistsError, DocumentNotFoundError


def _holds(fields: dict[str, Any], expected: dict[str, Any]) -> bool:
    return all(fields.get(key) == value for key, value in expected.items())


class MemoryDocumentStore:
    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    async def get_document(self, collection: str, doc_id: str) -> Document | None:
        await asyncio.sleep(0)
        fields = self._collection(collection).get(doc_id)
        if fields is None:
            return None
        return Document(id=doc_id, fields=copy.deepcopy(fields))

    async def query_documents(
        self,
        collection: str,
        filters: list[Filter] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        await asyncio.sleep(0)
        docs = [
            Document(id=doc_id, fields=copy.deepcopy(fields))
            for doc_id, fields in self._collection(collection).items()
            if all(f.matches(fields) for f in filters or [])
        ]
        if order_by is not None:
            present = [d for d in docs if d.fields.get(order_by) is not None]
            missing = [d for d in docs if d.fields.get(order_by) is None]
            present.sort(key=lambda d: d.fields[order_by], reverse=descending)
            docs = present + missing
        if limit is not None:
            docs = docs[:limit]
        return docs

    async def add_document(
        self, collection: str, fields: dict[str, Any], doc_id: str | None = None
    ) -> str:
        doc_id = doc_id or new_document_id()
        async with self._lock:
            docs = self._collection(collection)
            if doc_id in docs:
                raise DocumentExistsError(collection, doc_id)
            docs[doc_id] = copy.deepcopy(fields)
        return doc_id

    async def set_fields(
        self, collection: str, doc_id: str, fields: dict[str, Any]
    ) -> None:
        async with self._lock:
            current = self._collection(collection).get(doc_id)
            if current is None:
                raise DocumentNotFoundError(collection, doc_id)
            current.update(copy.deepcopy(fields))

    async def update_if(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected: dict[str, Any],
    ) -> bool:
        async with self._lock:
            current = self._collection(collection).get(doc_id)
            if current is None:
                raise DocumentNotFoundError(collection, doc_id)
            if not _holds(current, expected):
                return False
            current.update(copy.deepcopy(fields))
            return True

    async def batch_set_fields(self, writes: list[FieldWrite]) -> None:
        async with self._lock:
            # Validate the whole batch before touching anything
            for w in writes:
                if w.doc_id not in self._collection(w.collection):
                    raise DocumentNotFoundError(w.collection, w.doc_id)
            for w in writes:
                self._collection(w.collection)[w.doc_id].update(copy.deepcopy(w.fields))

    async def batch_update_if(self, writes: list[FieldWrite]) -> bool:
        async with self._lock:
            docs = []
            for w in writes:
                current = self._collection(w.collection).get(w.doc_id)
                if current is None:
                    raise DocumentNotFoundError(w.collection, w.doc_id)
                if not _holds(current, w.expected):
                    return False
                docs.append(current)
            for current, w in zip(docs, writes):
                current.update(copy.deepcopy(w.fields))
            return True

    async def close(self) -> None:
        return None
