import logging
from time import perf_counter
from typing import Any, Iterable, List, Mapping, Optional, Sequence

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from .config import settings
from .repos.record_store import RecordStoreError, RowId, check_table, parse_ordering

logger = logging.getLogger(__name__)

# start closed, we'll open in app lifespan
pool = ConnectionPool(conninfo=settings.database_url, max_size=10, open=False)


SCHEMA_STATEMENTS: Iterable[str] = (
    """
    CREATE TABLE IF NOT EXISTS projects (
        id BIGSERIAL PRIMARY KEY,
        project_code TEXT NOT NULL,
        project_sub_code TEXT NOT NULL DEFAULT '',
        project_full_code TEXT NOT NULL DEFAULT '',
        project_name TEXT NOT NULL DEFAULT '',
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS boq_activities (
        id BIGSERIAL PRIMARY KEY,
        project_code TEXT NOT NULL DEFAULT '',
        project_sub_code TEXT NOT NULL DEFAULT '',
        project_full_code TEXT NOT NULL DEFAULT '',
        activity_name TEXT NOT NULL,
        zone TEXT NOT NULL DEFAULT '',
        division TEXT NOT NULL DEFAULT '',
        unit TEXT NOT NULL DEFAULT '',
        planned_units DOUBLE PRECISION NOT NULL DEFAULT 0,
        total_units DOUBLE PRECISION NOT NULL DEFAULT 0,
        total_value DOUBLE PRECISION NOT NULL DEFAULT 0,
        rate DOUBLE PRECISION NOT NULL DEFAULT 0,
        "start" DATE,
        deadline DATE,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_boq_activities_project ON boq_activities(project_full_code, project_code)
    """,
    """
    CREATE TABLE IF NOT EXISTS kpi_records (
        id BIGSERIAL PRIMARY KEY,
        input_type TEXT,
        project_code TEXT NOT NULL DEFAULT '',
        project_sub_code TEXT NOT NULL DEFAULT '',
        project_full_code TEXT NOT NULL DEFAULT '',
        activity_name TEXT NOT NULL DEFAULT '',
        zone TEXT NOT NULL DEFAULT '',
        section TEXT NOT NULL DEFAULT '',
        unit TEXT NOT NULL DEFAULT '',
        quantity DOUBLE PRECISION NOT NULL DEFAULT 0,
        value DOUBLE PRECISION NOT NULL DEFAULT 0,
        actual_value DOUBLE PRECISION NOT NULL DEFAULT 0,
        rate DOUBLE PRECISION NOT NULL DEFAULT 0,
        target_date DATE,
        activity_date DATE,
        day TEXT NOT NULL DEFAULT '',
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_kpi_records_plan ON kpi_records(project_full_code, activity_name, input_type, target_date)
    """,
    """
    CREATE TABLE IF NOT EXISTS holidays (
        id BIGSERIAL PRIMARY KEY,
        date DATE NOT NULL,
        name TEXT NOT NULL DEFAULT '',
        is_recurring BOOLEAN NOT NULL DEFAULT FALSE,
        is_active BOOLEAN NOT NULL DEFAULT TRUE
    )
    """,
)


def open_pool() -> None:
    if pool.closed:
        pool.open()


def close_pool() -> None:
    if not pool.closed:
        pool.close()


def initialize_database() -> None:
    try:
        ensure_schema()
    except Exception:  # pragma: no cover - defensive guard
        logger.exception("Database initialization failed")
        raise


def ensure_schema() -> None:
    schema = sql.Identifier(settings.database_schema)
    with pool.connection() as conn:
        with conn.cursor() as cur:
            cur.execute(sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(schema))
            cur.execute(sql.SQL("SET search_path TO {}, public").format(schema))
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)
        conn.commit()


class PostgresRecordStore:
    """Record store backed by the shared psycopg connection pool."""

    def __init__(self, connection_pool: ConnectionPool = pool, schema: Optional[str] = None) -> None:
        self._pool = connection_pool
        self._schema = schema or settings.database_schema

    def _table(self, table: str) -> sql.Composable:
        return sql.Identifier(self._schema, check_table(table))

    def _run(self, statement: sql.Composable, params: Sequence[Any] = ()) -> List[dict]:
        start = perf_counter()
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(statement, params)
                    rows = cur.fetchall() if cur.description else []
                conn.commit()
        except psycopg.Error as exc:
            raise RecordStoreError(str(exc)) from exc
        elapsed = (perf_counter() - start) * 1000
        logger.debug("record_store rows=%s elapsed_ms=%.2f", len(rows), elapsed)
        return rows

    def query(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Sequence[str] = (),
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[dict]:
        params: List[Any] = []
        statement = sql.SQL("SELECT * FROM {}").format(self._table(table))

        conditions = []
        for column, expected in (filters or {}).items():
            if expected is None:
                conditions.append(sql.SQL("{} IS NULL").format(sql.Identifier(column)))
            else:
                conditions.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
                params.append(expected)
        if conditions:
            statement += sql.SQL(" WHERE ") + sql.SQL(" AND ").join(conditions)

        ordering = [
            sql.SQL("{} DESC" if descending else "{} ASC").format(sql.Identifier(column))
            for column, descending in parse_ordering(order_by)
        ]
        if ordering:
            statement += sql.SQL(" ORDER BY ") + sql.SQL(", ").join(ordering)
        if limit is not None:
            statement += sql.SQL(" LIMIT %s")
            params.append(limit)
        if offset:
            statement += sql.SQL(" OFFSET %s")
            params.append(offset)
        return self._run(statement, params)

    def insert(self, table: str, rows: Iterable[Mapping[str, Any]]) -> List[dict]:
        inserted: List[dict] = []
        for row in rows:
            payload = {key: value for key, value in row.items() if not (key == "id" and value is None)}
            columns = list(payload)
            statement = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
                self._table(table),
                sql.SQL(", ").join(sql.Identifier(column) for column in columns),
                sql.SQL(", ").join(sql.Placeholder() for _ in columns),
            )
            inserted.extend(self._run(statement, [payload[column] for column in columns]))
        return inserted

    def update(self, table: str, row_id: RowId, patch: Mapping[str, Any]) -> dict:
        changes = {key: value for key, value in patch.items() if key != "id"}
        if not changes:
            rows = self.query(table, filters={"id": row_id}, limit=1)
        else:
            statement = sql.SQL("UPDATE {} SET {} WHERE id = %s RETURNING *").format(
                self._table(table),
                sql.SQL(", ").join(sql.SQL("{} = %s").format(sql.Identifier(column)) for column in changes),
            )
            rows = self._run(statement, [*changes.values(), row_id])
        if not rows:
            raise RecordStoreError(f"{table} row {row_id!r} not found")
        return rows[0]

    def delete(self, table: str, row_id: RowId) -> None:
        statement = sql.SQL("DELETE FROM {} WHERE id = %s RETURNING id").format(self._table(table))
        if not self._run(statement, [row_id]):
            raise RecordStoreError(f"{table} row {row_id!r} not found")
