"""PostgresDocumentStore — DocumentStore backed by a single JSONB table.

Table (see alembic/versions/001_create_documents.py):
    documents(collection, id, fields JSONB, created_at, updated_at)

Every method runs in its own short transaction. update_if is one
`UPDATE ... WHERE COALESCE(fields -> key, 'null') = :value ... RETURNING`, so the
compare and the write are applied atomically by PostgreSQL; 0 rows returned
means the expectation no longer holds (or the document does not exist).
batch_update_if runs one such UPDATE per write in a single transaction and
rolls all of them back when any guard fails.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.cl_common.document_store import Document, FieldWrite, Filter, new_document_id
from src.cl_common.errors import DocumentExistsError, DocumentNotFoundError

_GET_SQL = text("""
    SELECT id, fields
    FROM documents
    WHERE collection = :collection AND id = :id
""")

_INSERT_SQL = text("""
    INSERT INTO documents (collection, id, fields)
    VALUES (:collection, :id, CAST(:fields AS JSONB))
    ON CONFLICT (collection, id) DO NOTHING
    RETURNING id
""")

_SET_FIELDS_SQL = text("""
    UPDATE documents
    SET fields = fields || CAST(:fields AS JSONB),
        updated_at = NOW()
    WHERE collection = :collection AND id = :id
    RETURNING id
""")

_UPDATE_IF_SQL_PREFIX = """
    UPDATE documents
    SET fields = fields || CAST(:fields AS JSONB),
        updated_at = NOW()
    WHERE collection = :collection
      AND id = :id
"""

_EXISTS_SQL = text("""
    SELECT 1 FROM documents WHERE collection = :collection AND id = :id
""")

_COMPARISON_SQL = {"==": "=", "<": "<", "<=": "<=", ">": ">", ">=": ">="}


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str)


def _load_fields(raw: Any) -> dict[str, Any]:
    # asyncpg hands JSONB back as text unless a codec is registered
    if isinstance(raw, str):
        loaded: dict[str, Any] = json.loads(raw)
        return loaded
    return dict(raw or {})


def compile_filter(f: Filter, idx: int) -> tuple[str, dict[str, Any]]:
    """Translate one Filter into a SQL predicate over the JSONB column."""
    key, val = f"f{idx}", f"v{idx}"
    params: dict[str, Any] = {key: f.field}
    if f.op == "array_contains":
        params[val] = _dumps([f.value])
        return f"(fields -> :{key}) @> CAST(:{val} AS JSONB)", params
    if f.op == "in":
        params[val] = _dumps(list(f.value))
        return f"CAST(:{val} AS JSONB) @> jsonb_build_array(fields -> :{key})", params
    params[val] = _dumps(f.value)
    if f.op == "!=":
        return f"(fields -> :{key}) IS DISTINCT FROM CAST(:{val} AS JSONB)", params
    return f"(fields -> :{key}) {_COMPARISON_SQL[f.op]} CAST(:{val} AS JSONB)", params


def build_query_sql(
    filters: list[Filter],
    order_by: str | None,
    descending: bool,
    limit: int | None,
) -> tuple[str, dict[str, Any]]:
    clauses = ["collection = :collection"]
    params: dict[str, Any] = {}
    for idx, f in enumerate(filters):
        clause, clause_params = compile_filter(f, idx)
        clauses.append(clause)
        params.update(clause_params)
    sql = "SELECT id, fields FROM documents WHERE " + " AND ".join(clauses)
    if order_by is not None:
        params["order_field"] = order_by
        direction = "DESC" if descending else "ASC"
        sql += f" ORDER BY (fields -> :order_field) {direction} NULLS LAST, id"
    if limit is not None:
        params["limit"] = limit
        sql += " LIMIT :limit"
    return sql, params


class _GuardFailed(Exception):
    """Rolls back a conditional batch whose expectation no longer holds."""


def build_update_if_sql(expected: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    # jsonb equality per key; @> would treat arrays as subsets.
    # A missing key reads as JSON null, so None guards "never set".
    clauses = []
    params: dict[str, Any] = {}
    for idx, (field_name, value) in enumerate(expected.items()):
        params[f"ek{idx}"] = field_name
        params[f"ev{idx}"] = _dumps(value)
        clauses.append(
            f"  AND COALESCE(fields -> :ek{idx}, CAST('null' AS JSONB)) = CAST(:ev{idx} AS JSONB)"
        )
    sql = _UPDATE_IF_SQL_PREFIX + "\n".join(clauses) + "\n    RETURNING id"
    return sql, params


class PostgresDocumentStore:
    """Concrete store — conditional writes are atomic at the SQL level."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine = engine

    async def get_document(self, collection: str, doc_id: str) -> Document | None:
        async with self._session_factory() as session:
            result = await session.execute(_GET_SQL, {"collection": collection, "id": doc_id})
            row = result.fetchone()
        if row is None:
            return None
        return Document(id=row.id, fields=_load_fields(row.fields))

    async def query_documents(
        self,
        collection: str,
        filters: list[Filter] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        sql, params = build_query_sql(filters or [], order_by, descending, limit)
        params["collection"] = collection
        async with self._session_factory() as session:
            result = await session.execute(text(sql), params)
            rows = result.fetchall()
        return [Document(id=row.id, fields=_load_fields(row.fields)) for row in rows]

    async def add_document(
        self, collection: str, fields: dict[str, Any], doc_id: str | None = None
    ) -> str:
        doc_id = doc_id or new_document_id()
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                _INSERT_SQL,
                {"collection": collection, "id": doc_id, "fields": _dumps(fields)},
            )
            if result.fetchone() is None:
                raise DocumentExistsError(collection, doc_id)
        return doc_id

    async def set_fields(
        self, collection: str, doc_id: str, fields: dict[str, Any]
    ) -> None:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                _SET_FIELDS_SQL,
                {"collection": collection, "id": doc_id, "fields": _dumps(fields)},
            )
            if result.fetchone() is None:
                raise DocumentNotFoundError(collection, doc_id)

    async def update_if(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected: dict[str, Any],
    ) -> bool:
        sql, params = build_update_if_sql(expected)
        params.update({"collection": collection, "id": doc_id, "fields": _dumps(fields)})
        async with self._session_factory() as session, session.begin():
            result = await session.execute(text(sql), params)
            if result.fetchone() is not None:
                return True
            exists = await session.execute(_EXISTS_SQL, {"collection": collection, "id": doc_id})
            if exists.fetchone() is None:
                raise DocumentNotFoundError(collection, doc_id)
            return False

    async def batch_set_fields(self, writes: list[FieldWrite]) -> None:
        if not writes:
            return
        # Raising inside session.begin() rolls the whole batch back
        async with self._session_factory() as session, session.begin():
            for w in writes:
                result = await session.execute(
                    _SET_FIELDS_SQL,
                    {"collection": w.collection, "id": w.doc_id, "fields": _dumps(w.fields)},
                )
                if result.fetchone() is None:
                    raise DocumentNotFoundError(w.collection, w.doc_id)

    async def batch_update_if(self, writes: list[FieldWrite]) -> bool:
        if not writes:
            return True
        try:
            async with self._session_factory() as session, session.begin():
                for w in writes:
                    sql, params = build_update_if_sql(w.expected)
                    params.update(
                        {"collection": w.collection, "id": w.doc_id, "fields": _dumps(w.fields)}
                    )
                    result = await session.execute(text(sql), params)
                    if result.fetchone() is not None:
                        continue
                    exists = await session.execute(
                        _EXISTS_SQL, {"collection": w.collection, "id": w.doc_id}
                    )
                    if exists.fetchone() is None:
                        raise DocumentNotFoundError(w.collection, w.doc_id)
                    raise _GuardFailed()
        except _GuardFailed:
            return False
        return True

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
