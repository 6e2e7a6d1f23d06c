"""
Startup schema sync for the declarative tables in ``schema.py``.
Creates missing tables (with constraints and indexes) and adds columns that
are new since the table was created. Nothing is ever dropped or altered.
"""
import re
from typing import Any, Dict, List

from wazza.utils.logging import get_logger

log = get_logger(__name__)

TABLE_OPTIONS = ("FOREIGN KEY", "UNIQUE", "INDEX")

# schema type -> backend type
TYPE_MAP: Dict[str, Dict[str, str]] = {
    "INTEGER": {"sqlite": "INTEGER", "postgresql": "INTEGER", "mysql": "INT"},
    "TEXT": {"sqlite": "TEXT", "postgresql": "TEXT", "mysql": "TEXT"},
    "VARCHAR": {"sqlite": "TEXT", "postgresql": "VARCHAR(255)", "mysql": "VARCHAR(255)"},
    "FLOAT": {"sqlite": "REAL", "postgresql": "DOUBLE PRECISION", "mysql": "DOUBLE"},
    "TIMESTAMP": {"sqlite": "TEXT", "postgresql": "TIMESTAMP", "mysql": "TIMESTAMP NULL"},
    "BOOL": {"sqlite": "INTEGER", "postgresql": "BOOLEAN", "mysql": "TINYINT(1)"},
}

AUTO_ID = {
    "sqlite": "INTEGER PRIMARY KEY AUTOINCREMENT",
    "postgresql": "SERIAL PRIMARY KEY",
    "mysql": "INT AUTO_INCREMENT PRIMARY KEY",
}

COLUMNS_QUERY = {
    "postgresql": """
        SELECT column_name, data_type FROM information_schema.columns
        WHERE table_name = ? AND table_schema = current_schema()
        ORDER BY ordinal_position
    """,
    "mysql": """
        SELECT column_name AS column_name, data_type AS data_type FROM information_schema.columns
        WHERE table_name = ? AND table_schema = DATABASE()
        ORDER BY ordinal_position
    """,
}

TABLE_QUERY = {
    "sqlite": "SELECT 1 AS found FROM sqlite_master WHERE type = 'table' AND name = ?",
    "postgresql": "SELECT 1 AS found FROM information_schema.tables WHERE table_name = ? AND table_schema = current_schema()",
    "mysql": "SELECT 1 AS found FROM information_schema.tables WHERE table_name = ? AND table_schema = DATABASE()",
}


def _column_sql(definition: str, backend: str) -> str:
    """
    Translate one schema column definition. Only the leading type word is
    mapped; defaults and CHECK constraints are left as written.
    """
    base, _, rest = definition.strip().partition(" ")
    upper_rest = rest.upper()
    if "PRIMARY KEY" in upper_rest and ("AUTOINCREMENT" in upper_rest or "AUTO_INCREMENT" in upper_rest):
        return AUTO_ID[backend]
    mapped = TYPE_MAP.get(base.upper(), {}).get(backend, base)
    return f"{mapped} {rest}".strip()


def _strip(definition: str, *keywords: str) -> str:
    for keyword in keywords:
        definition = re.sub(rf"\b{keyword}\b", "", definition, flags=re.IGNORECASE)
    return " ".join(definition.split())


def get_columns(cur: Any, table_name: str) -> Dict[str, str]:
    if cur.backend == "sqlite":
        rows = cur.execute(f"PRAGMA table_info({table_name})").fetchall()
        return {row["name"].lower(): row["type"].lower() for row in rows}
    if cur.backend not in COLUMNS_QUERY:
        raise ValueError(f"Unsupported backend: {cur.backend}")
    rows = cur.execute(COLUMNS_QUERY[cur.backend], (table_name,)).fetchall()
    return {row["column_name"].lower(): row["data_type"].lower() for row in rows}


def _table_exists(cur: Any, table_name: str) -> bool:
    return cur.execute(TABLE_QUERY[cur.backend], (table_name,)).fetchone() is not None


def _create_table(cur: Any, table_name: str, columns: Dict[str, Any]) -> None:
    parts = [
        f"{name} {_column_sql(definition, cur.backend)}"
        for name, definition in columns.items()
        if name.upper() not in TABLE_OPTIONS
    ]
    if columns.get("UNIQUE"):
        parts.append(f"UNIQUE ({', '.join(columns['UNIQUE'])})")
    for fk in columns.get("FOREIGN KEY", []):
        clause = f"FOREIGN KEY ({fk['key']}) REFERENCES {fk['parent_table']}({fk['parent_key']})"
        parts.append(f"{clause} {fk.get('instruction', '')}".strip())
    cur.execute(f"CREATE TABLE {table_name} ({', '.join(parts)})")

    for index in columns.get("INDEX", []):
        # fresh table, so no IF NOT EXISTS (MySQL has none for indexes)
        cur.execute(f"CREATE INDEX idx_{table_name}_{'_'.join(index)} ON {table_name} ({', '.join(index)})")


def _add_missing_columns(cur: Any, table_name: str, columns: Dict[str, Any]) -> int:
    existing = get_columns(cur, table_name)
    added = 0
    for name, definition in columns.items():
        if name.upper() in TABLE_OPTIONS or name.lower() in existing:
            continue
        column = _strip(_column_sql(definition, cur.backend), "UNIQUE")
        if re.search(r"\bNOT NULL\b", column, re.IGNORECASE) and not re.search(r"\bDEFAULT\b", column, re.IGNORECASE):
            column = _strip(column, "NOT NULL")
            log.warning(f"Added {table_name}.{name} as nullable; backfill it before enforcing NOT NULL")
        cur.execute(f"ALTER TABLE {table_name} ADD COLUMN {name} {column}")
        log.info(f"Added column {table_name}.{name}")
        added += 1
    return added


def setupDB(schema: List[Dict[str, Any]], db: Any) -> None:
    """Create missing tables and columns in one transaction."""
    if not schema:
        raise ValueError("No schema to sync")

    created, added = [], 0
    with db.connection(autocommit=False) as (conn, cur):
        for table in schema:
            name, columns = table["table_name"], table["table_columns"]
            if _table_exists(cur, name):
                added += _add_missing_columns(cur, name, columns)
            else:
                _create_table(cur, name, columns)
                created.append(name)
        conn.commit()

    if created:
        log.info(f"Created tables: {', '.join(created)}")
    log.info(f"Schema in sync ({len(schema)} tables, {added} columns added)")
