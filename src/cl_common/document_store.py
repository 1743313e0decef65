"""DocumentStore Protocol — the only persistence seam the marketplace code uses.

Documents are flat JSON field maps addressed by (collection, id). The verbs
mirror what a managed document database offers: point reads, filtered
queries, partial field writes, an all-or-nothing batch and an atomic
conditional update (compare-and-swap) for contended documents.

Conditional writes compare each expected field by equality; a field the
document does not have compares equal to None, so `{"flag": None}` guards
"never set".

Unit tests inject MemoryDocumentStore; production uses PostgresDocumentStore.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

FilterOp = Literal["==", "!=", "<", "<=", ">", ">=", "in", "array_contains"]

FILTER_OPS: frozenset[str] = frozenset(
    {"==", "!=", "<", "<=", ">", ">=", "in", "array_contains"}
)


@dataclass(frozen=True)
class Filter:
    field: str
    op: FilterOp
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter op: {self.op}")

    def matches(self, fields: dict[str, Any]) -> bool:
        """Evaluate this filter against a document's fields (missing field → no match)."""
        if self.field not in fields:
            return self.op == "!="
        current = fields[self.field]
        if self.op == "==":
            return bool(current == self.value)
        if self.op == "!=":
            return bool(current != self.value)
        if self.op == "in":
            return current in self.value
        if self.op == "array_contains":
            return isinstance(current, list) and self.value in current
        if current is None:
            return False
        try:
            if self.op == "<":
                return bool(current < self.value)
            if self.op == "<=":
                return bool(current <= self.value)
            if self.op == ">":
                return bool(current > self.value)
            return bool(current >= self.value)
        except TypeError:
            return False


@dataclass
class Document:
    id: str
    fields: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)


@dataclass(frozen=True)
class FieldWrite:
    """One entry of an all-or-nothing batch."""

    collection: str
    doc_id: str
    fields: dict[str, Any]
    expected: dict[str, Any] = field(default_factory=dict)


def new_document_id() -> str:
    """20-char random id, same shape as managed document databases hand out."""
    return uuid.uuid4().hex[:20]


class DocumentStore(Protocol):
    async def get_document(self, collection: str, doc_id: str) -> Document | None: ...

    async def query_documents(
        self,
        collection: str,
        filters: list[Filter] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]: ...

    async def add_document(
        self, collection: str, fields: dict[str, Any], doc_id: str | None = None
    ) -> str: ...

    async def set_fields(
        self, collection: str, doc_id: str, fields: dict[str, Any]
    ) -> None: ...

    async def update_if(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected: dict[str, Any],
    ) -> bool: ...

    async def batch_set_fields(self, writes: list[FieldWrite]) -> None: ...

    async def batch_update_if(self, writes: list[FieldWrite]) -> bool: ...

    async def close(self) -> None: ...
