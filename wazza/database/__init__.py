from .migrations import setupDB
from .schema import schema

import os
from contextlib import contextmanager
from typing import Any, Tuple, Dict
from pathlib import Path
from urllib.parse import unquote, urlparse

from retry import retry

from enum import StrEnum, auto
import sqlite3, pymysql, psycopg2
import psycopg2.extras
import pymysql.cursors

from typing import Generator, Literal, ClassVar, Type

from wazza.utils.logging import get_logger

logger = get_logger(__name__)

class Backend(StrEnum):
    SQLITE = auto()
    POSTGRESQL = auto()
    MYSQL = auto()


class Cursor:
    """
    Backend-neutral cursor. Queries are written with ``?`` placeholders and
    translated to ``%s`` for psycopg2/PyMySQL.
    """

    def __init__(self, cursor: Any, backend: Backend) -> None:
        self._cursor = cursor
        self.backend = backend

    def _sql(self, query: str) -> str:
        if self.backend == Backend.SQLITE:
            return query
        return query.replace("?", "%s")

    def execute(self, query: str, params: tuple | list | None = None) -> "Cursor":
        self._cursor.execute(self._sql(query), tuple(params or ()))
        return self

    def fetchone(self) -> Dict[str, Any] | None:
        row = self._cursor.fetchone()
        return dict(row) if row is not None else None

    def fetchall(self) -> list[Dict[str, Any]]:
        return [dict(row) for row in self._cursor.fetchall()]

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount

    def insert(self, table: str, data: Dict[str, Any]) -> int:
        """INSERT one row and return its generated id."""
        columns = ", ".join(data.keys())
        placeholders = ", ".join("?" for _ in data)
        query = f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"
        if self.backend == Backend.POSTGRESQL:
            self.execute(f"{query} RETURNING id", tuple(data.values()))
            return self.fetchone()["id"]
        self.execute(query, tuple(data.values()))
        return self._cursor.lastrowid

    def close(self) -> None:
        self._cursor.close()


class DBClient:
    """
    Connection factory for the configured backend. Every unit of work opens
    its own connection: ``connection()`` for reads, ``transaction()`` for
    writes that must commit or roll back together.
    """
    OperationalError: ClassVar[Tuple[Type[BaseException], ...]] = (
        sqlite3.OperationalError,
        psycopg2.OperationalError,
        pymysql.err.OperationalError,
    )
    IntegrityError: ClassVar[Tuple[Type[BaseException], ...]] = (
        sqlite3.IntegrityError,
        psycopg2.IntegrityError,
        pymysql.err.IntegrityError,
    )

    SCHEMES: ClassVar[Dict[str, Backend]] = {
        "sqlite": Backend.SQLITE,
        "postgresql": Backend.POSTGRESQL,
        "postgres": Backend.POSTGRESQL,
        "mysql": Backend.MYSQL,
        "mariadb": Backend.MYSQL,
    }

    def __init__(self) -> None:
        self.uri: str | None = None
        self.backend: Backend | None = None

    def init_app(self, app) -> None:
        uri = app.config.get("DATABASE_URI") or os.getenv("DATABASE_URL")
        if not uri:
            raise RuntimeError("No database configured, set DATABASE_URL")
        scheme = uri.split("://", 1)[0].lower()
        if scheme not in self.SCHEMES:
            raise ValueError(f"Unsupported DATABASE_URI scheme: {scheme}")
        self.uri = uri
        self.backend = self.SCHEMES[scheme]
        app.extensions["db"] = self
        logger.info("Database backend: %s", self.backend)

    def sync_schema(self) -> None:
        setupDB(schema, self)

    def _connect_sqlite(self) -> Tuple[Any, Any]:
        path = self.uri.split(":///", 1)[-1] or ":memory:"
        if path != ":memory:":
            path = str(Path(path).expanduser().resolve())
            os.makedirs(os.path.dirname(path), exist_ok=True)
        conn = sqlite3.connect(path, timeout=30, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        return conn, conn.cursor()

    def _connect_postgresql(self) -> Tuple[Any, Any]:
        conn = psycopg2.connect(self.uri, connect_timeout=10, cursor_factory=psycopg2.extras.RealDictCursor)
        conn.set_session(autocommit=False)
        cur = conn.cursor()
        cur.execute("SET client_min_messages TO WARNING")
        return conn, cur

    def _connect_mysql(self) -> Tuple[Any, Any]:
        parsed = urlparse(self.uri)
        conn = pymysql.connect(
            host=parsed.hostname or "localhost",
            port=parsed.port or 3306,
            user=unquote(parsed.username or ""),
            password=unquote(parsed.password or ""),
            database=parsed.path.lstrip("/") or None,
            charset="utf8mb4",
            autocommit=False,
            connect_timeout=10,
            cursorclass=pymysql.cursors.DictCursor,
        )
        return conn, conn.cursor()

    @retry(tries=3, delay=1, backoff=2, exceptions=OperationalError, logger=logger)
    def _connect(self) -> Tuple[Any, Cursor]:
        """Open a connection, retrying transient failures with backoff."""
        if self.backend is None:
            raise RuntimeError("DBClient not initialized. Call init_app() first.")
        conn, raw = getattr(self, f"_connect_{self.backend}")()
        return conn, Cursor(raw, self.backend)

    @contextmanager
    def connection(self, autocommit: bool = True) -> Generator[Tuple[Any, Cursor], None, None]:
        """
        with db.connection() as (conn, cur):
            rows = cur.execute("SELECT * FROM product_table WHERE business_id = ?", (1,)).fetchall()

        Commits on a clean exit when ``autocommit``; rolls back on any error.
        """
        conn, cur = self._connect()
        try:
            yield conn, cur
            if autocommit:
                conn.commit()
        except BaseException as e:
            conn.rollback()
            if isinstance(e, self.OperationalError):
                logger.warning(f"Database unavailable or locked: {e}")
            elif isinstance(e, self.IntegrityError):
                logger.info(f"Integrity error, rolled back: {e}")
            raise
        finally:
            cur.close()
            conn.close()

    @contextmanager
    def transaction(self) -> Generator[Cursor, None, None]:
        """
        One unit of work: commits when the block exits cleanly, rolls back
        on any exception (application errors included).
        """
        with self.connection(autocommit=True) as (conn, cur):
            if self.backend == Backend.SQLITE:
                # take the write lock up front so read-then-update is atomic
                cur.execute("BEGIN IMMEDIATE")
            yield cur

    def execute(
        self,
        query: str,
        params: tuple | list | None = None,
        fetch: Literal["all", "one", "none"] = "all",
    ) -> Any:
        """Run one statement in its own connection."""
        with self.connection() as (conn, cur):
            cur.execute(query, params or ())
            if fetch == "all":
                return cur.fetchall()
            if fetch == "one":
                return cur.fetchone()
            return cur.rowcount

    def ping(self) -> bool:
        try:
            return self.execute("SELECT 1 AS ok", fetch="one") is not None
        except self.OperationalError as e:
            logger.error(f"Database ping failed: {e}")
            return False

    @staticmethod
    def is_duplicate(exc: Exception, column: str | None = None) -> bool:
        """True when ``exc`` is a unique-constraint violation (on ``column``)."""
        msg = str(exc).lower()
        if not any(marker in msg for marker in ("unique", "duplicate")):
            return False
        return column is None or column.lower() in msg


db = DBClient()
