"""
Machinetags Store - SQLite tag store.

Reference implementation of the taggable collaborator: a records table,
a tags table carrying the parsed machine tag components, and a polymorphic
taggings table linking the two. Tag lists are applied atomically and
tagged-with queries run through the SQL compiler.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Iterator

from machinetags.backends.sql import SQLCompiler
from machinetags.core.finder import ConditionBuilder, FinderOptions, TaggableSchema
from machinetags.core.tag import parse_machine_tag
from machinetags.core.tag_list import TagList, TagListOptions
from machinetags.core.tag_sync import TagChangeSet
from machinetags.exceptions import NotFoundException, StoreException

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = TaggableSchema(table_name="records", taggable_type="Record")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SqliteTagStore:
    """
    Tags records stored in SQLite.

    One connection is shared behind a lock, so ``:memory:`` databases work
    and every public call is serialized.
    """

    def __init__(
        self,
        database_path: str = ":memory:",
        schema: TaggableSchema | None = None,
        options: TagListOptions | None = None,
        compiler: SQLCompiler | None = None,
    ):
        self.database_path = database_path
        self.schema = schema or DEFAULT_SCHEMA
        self.options = options or TagListOptions()
        self.builder = ConditionBuilder(self.schema)
        self.compiler = compiler or SQLCompiler()
        self._lock = RLock()
        self._conn = sqlite3.connect(database_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")

    @contextmanager
    def transaction(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Run a block in one transaction, wrapping sqlite errors."""
        with self._lock:
            try:
                with self._conn:
                    yield self._conn
            except sqlite3.Error as e:
                logger.error(f"[store] {operation} failed: {e}")
                raise StoreException(operation, str(e)) from e

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def create_schema(self) -> None:
        """Create the records, tags and taggings tables if missing."""
        s = self.schema
        with self.transaction("create_schema") as conn:
            conn.executescript(f"""
                CREATE TABLE IF NOT EXISTS {s.table_name} (
                    {s.primary_key} INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT,
                    created_at TEXT
                );

                CREATE TABLE IF NOT EXISTS {s.tags_table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    namespace TEXT,
                    predicate TEXT,
                    value TEXT,
                    created_at TEXT
                );

                CREATE TABLE IF NOT EXISTS {s.taggings_table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    tag_id INTEGER NOT NULL REFERENCES {s.tags_table}(id) ON DELETE CASCADE,
                    taggable_type TEXT NOT NULL,
                    taggable_id INTEGER NOT NULL,
                    created_at TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_{s.taggings_table}_taggable
                ON {s.taggings_table}(taggable_type, taggable_id);

                CREATE INDEX IF NOT EXISTS idx_{s.taggings_table}_tag
                ON {s.taggings_table}(tag_id);

                CREATE INDEX IF NOT EXISTS idx_{s.tags_table}_namespace
                ON {s.tags_table}(namespace, predicate, value);
            """)
        logger.info(f"[store] schema ready for {s.table_name} in {self.database_path}")

    # =========================================================================
    # Records
    # =========================================================================

    def create_record(self, title: str | None = None) -> int:
        s = self.schema
        with self.transaction("create_record") as conn:
            cursor = conn.execute(
                f"INSERT INTO {s.table_name} (title, created_at) VALUES (?, ?)",
                (title, _now()),
            )
            return cursor.lastrowid

    def get_record(self, record_id: int) -> dict[str, Any]:
        with self.transaction("get_record") as conn:
            return self._require_record(conn, record_id)

    def _require_record(self, conn: sqlite3.Connection, record_id: int) -> dict[str, Any]:
        s = self.schema
        row = conn.execute(
            f"SELECT * FROM {s.table_name} WHERE {s.primary_key} = ?",
            (record_id,),
        ).fetchone()
        if row is None:
            raise NotFoundException(s.taggable_type, record_id)
        return dict(row)

    # =========================================================================
    # Tag lists
    # =========================================================================

    def _read_tag_list(self, conn: sqlite3.Connection, record_id: int) -> TagList:
        s = self.schema
        rows = conn.execute(
            f"""
            SELECT t.name FROM {s.taggings_table} tg
            JOIN {s.tags_table} t ON t.id = tg.tag_id
            WHERE tg.taggable_type = ? AND tg.taggable_id = ?
            ORDER BY tg.id
            """,
            (s.taggable_type, record_id),
        ).fetchall()
        return TagList([row["name"] for row in rows], TagListOptions(no_duplicates=self.options.no_duplicates))

    def get_tag_list(self, record_id: int) -> TagList:
        """Latest tag list for a record, in tagging order."""
        with self.transaction("get_tag_list") as conn:
            self._require_record(conn, record_id)
            return self._read_tag_list(conn, record_id)

    def quick_mode_tag_list(self, record_id: int) -> str:
        return self.get_tag_list(record_id).to_quick_mode_string()

    def _find_or_create_tag(self, conn: sqlite3.Connection, name: str) -> int:
        s = self.schema
        row = conn.execute(f"SELECT id FROM {s.tags_table} WHERE name = ?", (name,)).fetchone()
        if row is not None:
            return row["id"]

        machine_tag = parse_machine_tag(name)
        cursor = conn.execute(
            f"""
            INSERT INTO {s.tags_table} (name, namespace, predicate, value, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                name,
                machine_tag.namespace if machine_tag else None,
                machine_tag.predicate if machine_tag else None,
                machine_tag.value if machine_tag else None,
                _now(),
            ),
        )
        return cursor.lastrowid

    def save_tags(self, record_id: int, raw: Any, options: TagListOptions | None = None) -> TagChangeSet:
        """
        Replace a record's tags with ``raw``.

        Parsing happens before the transaction opens so malformed input
        never touches the database. Unused taggings are removed and new
        ones added in the same transaction.
        """
        s = self.schema
        desired = raw if isinstance(raw, TagList) else TagList(raw, options or self.options)

        with self.transaction("save_tags") as conn:
            self._require_record(conn, record_id)
            current = self._read_tag_list(conn, record_id)
            changes = TagChangeSet.between(current, desired)

            removed = changes.removed.to_string_list()
            if removed:
                placeholders = ",".join(["?"] * len(removed))
                conn.execute(
                    f"""
                    DELETE FROM {s.taggings_table}
                    WHERE taggable_type = ? AND taggable_id = ?
                    AND tag_id IN (SELECT id FROM {s.tags_table} WHERE name IN ({placeholders}))
                    """,
                    [s.taggable_type, record_id] + removed,
                )

            for name in changes.added:
                tag_id = self._find_or_create_tag(conn, name)
                conn.execute(
                    f"""
                    INSERT INTO {s.taggings_table} (tag_id, taggable_type, taggable_id, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (tag_id, s.taggable_type, record_id, _now()),
                )

        logger.info(
            f"[store] saved tags for {s.taggable_type} {record_id}: "
            f"+{len(changes.added)} -{len(changes.removed)}"
        )
        return changes

    # =========================================================================
    # Queries
    # =========================================================================

    def find_tagged_with(self, tags: Any, options: FinderOptions | None = None, **overrides: Any) -> list[dict[str, Any]]:
        """
        Records tagged with ``tags``.

        Example:
            store.find_tagged_with("gem:")                    # any tag in namespace gem
            store.find_tagged_with("gem:, ruby", match_all=True)
        """
        tag_filter = self.builder.build_filter(tags, options, **overrides)
        if tag_filter.is_empty:
            return []

        query = self.compiler.compile(tag_filter.to_select())
        logger.debug(f"[store] find_tagged_with sql={query.sql} params={query.params}")
        with self.transaction("find_tagged_with") as conn:
            rows = conn.execute(query.sql, query.params).fetchall()
        return [dict(row) for row in rows]

    def list_tags(self, namespace: str | None = None) -> list[dict[str, Any]]:
        """Stored tags with the number of taggings using each."""
        s = self.schema
        where = "WHERE t.namespace = ?" if namespace else ""
        params = (namespace,) if namespace else ()
        with self.transaction("list_tags") as conn:
            rows = conn.execute(
                f"""
                SELECT t.id, t.name, t.namespace, t.predicate, t.value,
                       COUNT(tg.id) AS taggings_count
                FROM {s.tags_table} t
                LEFT JOIN {s.taggings_table} tg ON tg.tag_id = t.id
                {where}
                GROUP BY t.id
                ORDER BY t.name
                """,
                params,
            ).fetchall()
        return [dict(row) for row in rows]
