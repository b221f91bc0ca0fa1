from __future__ import annotations

import logging
from pathlib import Path
from types import TracebackType

import psycopg
from psycopg.rows import dict_row

try:
    from psycopg_pool import ConnectionPool

    HAS_POOL = True
except ImportError:
    HAS_POOL = False

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


class Database:
    """PostgreSQL access for the ledger schema (psycopg3, dict rows)."""

    def __init__(self, dsn: str) -> None:
        self._dsn = dsn
        self._pool: ConnectionPool | None = None
        self._conn: psycopg.Connection | None = None

    def connect(self) -> None:
        """Open a connection pool, or a single connection without psycopg_pool."""
        if not self._dsn:
            raise RuntimeError("No database DSN configured (set DATABASE_URL)")
        if HAS_POOL:
            self._pool = ConnectionPool(self._dsn, kwargs={"row_factory": dict_row})
            self._pool.wait()
            logger.info("Connection pool established")
        else:
            self._conn = psycopg.connect(self._dsn, row_factory=dict_row)
            logger.info("Single connection established (psycopg_pool not available)")

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _get_connection(self) -> psycopg.Connection:
        if self._pool is not None:
            return self._pool.getconn()
        if self._conn is not None:
            return self._conn
        raise RuntimeError("Database not connected. Call connect() first.")

    def _put_connection(self, conn: psycopg.Connection) -> None:
        if self._pool is not None:
            self._pool.putconn(conn)

    def execute(self, query: str, params: tuple | None = None) -> list[dict]:
        """Run one statement and commit. Returns rows as dicts (empty for writes)."""
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(query, params)
                rows = cur.fetchall() if cur.description is not None else []
                conn.commit()
                return [dict(row) for row in rows]
        except psycopg.Error:
            conn.rollback()
            raise
        finally:
            self._put_connection(conn)

    def execute_one(self, query: str, params: tuple | None = None) -> dict | None:
        """First row of a query, or None."""
        rows = self.execute(query, params)
        return rows[0] if rows else None

    def execute_many(self, query: str, params_seq: list[tuple]) -> int:
        """Run a statement per parameter tuple in one transaction. Returns affected rows."""
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                count = 0
                for params in params_seq:
                    cur.execute(query, params)
                    count += cur.rowcount if cur.rowcount >= 0 else 0
                conn.commit()
                return count
        except psycopg.Error:
            conn.rollback()
            raise
        finally:
            self._put_connection(conn)

    def run_migrations(self, migrations_dir: str | Path = MIGRATIONS_DIR) -> list[str]:
        """Apply pending *.sql files in name order. Returns the files applied."""
        applied_now: list[str] = []
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS _migrations (
                        filename TEXT PRIMARY KEY,
                        applied_at TIMESTAMPTZ DEFAULT NOW()
                    )
                """)
                conn.commit()

                cur.execute("SELECT filename FROM _migrations ORDER BY filename")
                applied = {row["filename"] for row in cur.fetchall()}

                for sql_file in sorted(Path(migrations_dir).glob("*.sql")):
                    if sql_file.name in applied:
                        logger.debug("Skipping already applied migration: %s", sql_file.name)
                        continue

                    logger.info("Applying migration: %s", sql_file.name)
                    cur.execute(sql_file.read_text())
                    cur.execute(
                        "INSERT INTO _migrations (filename) VALUES (%s)",
                        (sql_file.name,),
                    )
                    conn.commit()
                    applied_now.append(sql_file.name)
        finally:
            self._put_connection(conn)
        return applied_now

    def health_check(self) -> bool:
        try:
            row = self.execute_one("SELECT 1 AS ok")
            return row is not None and row.get("ok") == 1
        except Exception:
            logger.exception("Health check failed")
            return False

    def __enter__(self) -> Database:
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
