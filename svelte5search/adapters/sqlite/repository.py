"""
SQLite Index Store - Corpus storage with FTS5 search.

Features:
- Async operations via aiosqlite
- External-content FTS5 tables kept in sync by triggers
- Explicit transactions (BEGIN IMMEDIATE / COMMIT / ROLLBACK)
- Highlighting and native BM25 rank per match
- Index verification and rebuild
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiosqlite

from svelte5search.config.errors import IndexConsistencyError, QueryError, StorageError
from svelte5search.domains.corpus.models import (
    RECORD_TYPES,
    CorpusItem,
    CorpusRecord,
    ItemKind,
    SyncMetadata,
)

logger = logging.getLogger(__name__)

__all__ = ["SQLiteIndexStore"]

TABLES: dict[ItemKind, str] = {
    ItemKind.KNOWLEDGE: "knowledge",
    ItemKind.EXAMPLES: "examples",
}

COLUMNS: dict[ItemKind, tuple[str, ...]] = {
    ItemKind.KNOWLEDGE: ("question", "answer"),
    ItemKind.EXAMPLES: ("instruction", "input", "output"),
}

# Punctuation splits tokens, so "$state" and "on:click" index as plain words
TOKEN_SEPARATORS = " !\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~"


def _tokenizer_option() -> str:
    args = "unicode61 separators '" + TOKEN_SEPARATORS.replace("'", "''") + "'"
    return '"' + args.replace('"', '""') + '"'


def _schema_sql() -> str:
    tokenize = _tokenizer_option()
    return f"""
        -- Knowledge Q&A
        CREATE TABLE IF NOT EXISTS knowledge (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            question TEXT NOT NULL UNIQUE,
            answer TEXT NOT NULL,
            content_hash TEXT,
            version INTEGER DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        -- Code-pattern examples
        CREATE TABLE IF NOT EXISTS examples (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            instruction TEXT NOT NULL UNIQUE,
            input TEXT NOT NULL,
            output TEXT NOT NULL,
            content_hash TEXT,
            version INTEGER DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        -- Sync bookkeeping
        CREATE TABLE IF NOT EXISTS metadata (
            key TEXT PRIMARY KEY,
            value TEXT,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        -- Domain synonyms (JSON array per term)
        CREATE TABLE IF NOT EXISTS synonyms (
            term TEXT PRIMARY KEY,
            synonyms TEXT NOT NULL
        );

        -- FTS5 virtual tables for full-text search
        CREATE VIRTUAL TABLE IF NOT EXISTS knowledge_fts USING fts5(
            question,
            answer,
            content='knowledge',
            content_rowid='id',
            tokenize={tokenize}
        );

        CREATE VIRTUAL TABLE IF NOT EXISTS examples_fts USING fts5(
            instruction,
            input,
            output,
            content='examples',
            content_rowid='id',
            tokenize={tokenize}
        );

        -- Triggers to keep FTS in sync
        CREATE TRIGGER IF NOT EXISTS knowledge_ai AFTER INSERT ON knowledge BEGIN
            INSERT INTO knowledge_fts(rowid, question, answer)
            VALUES (new.id, new.question, new.answer);
        END;

        CREATE TRIGGER IF NOT EXISTS knowledge_ad AFTER DELETE ON knowledge BEGIN
            INSERT INTO knowledge_fts(knowledge_fts, rowid, question, answer)
            VALUES ('delete', old.id, old.question, old.answer);
        END;

        CREATE TRIGGER IF NOT EXISTS knowledge_au AFTER UPDATE ON knowledge BEGIN
            INSERT INTO knowledge_fts(knowledge_fts, rowid, question, answer)
            VALUES ('delete', old.id, old.question, old.answer);
            INSERT INTO knowledge_fts(rowid, question, answer)
            VALUES (new.id, new.question, new.answer);
        END;

        CREATE TRIGGER IF NOT EXISTS examples_ai AFTER INSERT ON examples BEGIN
            INSERT INTO examples_fts(rowid, instruction, input, output)
            VALUES (new.id, new.instruction, new.input, new.output);
        END;

        CREATE TRIGGER IF NOT EXISTS examples_ad AFTER DELETE ON examples BEGIN
            INSERT INTO examples_fts(examples_fts, rowid, instruction, input, output)
            VALUES ('delete', old.id, old.instruction, old.input, old.output);
        END;

        CREATE TRIGGER IF NOT EXISTS examples_au AFTER UPDATE ON examples BEGIN
            INSERT INTO examples_fts(examples_fts, rowid, instruction, input, output)
            VALUES ('delete', old.id, old.instruction, old.input, old.output);
            INSERT INTO examples_fts(rowid, instruction, input, output)
            VALUES (new.id, new.instruction, new.input, new.output);
        END;
    """


class SQLiteIndexStore:
    """
    SQLite store for the corpus and its lexical index.

    Example:
        >>> store = SQLiteIndexStore("data/svelte5search.db")
        >>> await store.initialize()
        >>> async with store.transaction():
        ...     await store.insert_item(KnowledgeItem(question="...", answer="..."))
        >>> rows = await store.query(ItemKind.KNOWLEDGE, '"state"', limit=5)
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection: aiosqlite.Connection | None = None
        self._initialized = False
        self._index_trusted = True

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection."""
        if self._connection is None:
            # Autocommit mode; transactions are opened explicitly
            self._connection = await aiosqlite.connect(str(self.db_path), isolation_level=None)
            self._connection.row_factory = aiosqlite.Row
        return self._connection

    async def _ready_connection(self) -> aiosqlite.Connection:
        if not self._initialized:
            raise StorageError(
                "Index store used before initialize()",
                details={"db_path": str(self.db_path)},
            )
        return await self._get_connection()

    @property
    def index_trusted(self) -> bool:
        """False once a divergence was detected and until a rebuild succeeds."""
        return self._index_trusted

    async def initialize(self, synonyms: Mapping[str, Sequence[str]] | None = None) -> None:
        """
        Initialize database schema.

        Args:
            synonyms: Optional synonym dictionary to persist alongside the corpus
        """
        conn = await self._get_connection()
        await conn.executescript(_schema_sql())
        self._initialized = True

        if synonyms:
            await self.save_synonyms(synonyms)

        logger.info("Database initialized: %s", self.db_path)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Run the enclosed writes atomically; any exception rolls all of them back."""
        conn = await self._ready_connection()
        await conn.execute("BEGIN IMMEDIATE")
        try:
            yield
        except BaseException:
            await conn.execute("ROLLBACK")
            logger.warning("Transaction rolled back: %s", self.db_path)
            raise
        else:
            await conn.execute("COMMIT")

    # --- Primary rows ---

    async def fetch_hashes(self, kind: ItemKind) -> dict[str, tuple[int, str | None]]:
        """Map unique key -> (id, content_hash)."""
        conn = await self._ready_connection()
        key = COLUMNS[kind][0]
        cursor = await conn.execute(f"SELECT id, {key}, content_hash FROM {TABLES[kind]}")
        rows = await cursor.fetchall()
        return {row[key]: (row["id"], row["content_hash"]) for row in rows}

    async def insert_item(self, item: CorpusItem) -> int:
        """
        Insert an item. The insert trigger indexes it.

        Returns:
            Row ID
        """
        conn = await self._ready_connection()
        columns = COLUMNS[item.kind]
        placeholders = ", ".join("?" for _ in columns)

        cursor = await conn.execute(
            f"""
            INSERT INTO {TABLES[item.kind]} ({", ".join(columns)}, content_hash, version)
            VALUES ({placeholders}, ?, 1)
            """,
            (*item.field_values(), item.content_hash),
        )
        return cursor.lastrowid

    async def update_item(self, record_id: int, item: CorpusItem) -> None:
        """Replace an item's content in place. The update trigger re-indexes it."""
        conn = await self._ready_connection()
        assignments = ", ".join(f"{column} = ?" for column in COLUMNS[item.kind])

        await conn.execute(
            f"""
            UPDATE {TABLES[item.kind]}
            SET {assignments},
                content_hash = ?,
                version = version + 1,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (*item.field_values(), item.content_hash, record_id),
        )

    async def get_record(self, kind: ItemKind, key: str) -> CorpusRecord | None:
        """Get a stored row by its unique key."""
        conn = await self._ready_connection()
        cursor = await conn.execute(
            f"SELECT * FROM {TABLES[kind]} WHERE {COLUMNS[kind][0]} = ?", (key,)
        )
        row = await cursor.fetchone()

        if row:
            return RECORD_TYPES[kind].model_validate(dict(row))
        return None

    async def list_records(self, kind: ItemKind) -> list[CorpusRecord]:
        """All stored rows of a kind, ordered by id."""
        conn = await self._ready_connection()
        cursor = await conn.execute(f"SELECT * FROM {TABLES[kind]} ORDER BY id")
        rows = await cursor.fetchall()
        return [RECORD_TYPES[kind].model_validate(dict(row)) for row in rows]

    async def count(self, kind: ItemKind) -> int:
        """Get row count for a kind."""
        conn = await self._ready_connection()
        cursor = await conn.execute(f"SELECT COUNT(*) FROM {TABLES[kind]}")
        row = await cursor.fetchone()
        return row[0] if row else 0

    # --- Metadata ---

    async def get_metadata(self) -> SyncMetadata:
        """Read sync bookkeeping."""
        conn = await self._ready_connection()
        cursor = await conn.execute("SELECT key, value FROM metadata")
        rows = await cursor.fetchall()
        return SyncMetadata.from_pairs({row["key"]: row["value"] for row in rows})

    async def set_metadata(self, metadata: SyncMetadata) -> None:
        """Upsert every set metadata key and drop the ones left unset."""
        conn = await self._ready_connection()
        pairs = metadata.to_pairs()
        await conn.executemany(
            "DELETE FROM metadata WHERE key = ?",
            [(key,) for key in SyncMetadata.model_fields if key not in pairs],
        )
        await conn.executemany(
            """
            INSERT INTO metadata (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = CURRENT_TIMESTAMP
            """,
            list(pairs.items()),
        )

    # --- Synonyms ---

    async def save_synonyms(self, synonyms: Mapping[str, Sequence[str]]) -> None:
        """Persist a synonym dictionary (term -> ordered synonyms)."""
        conn = await self._get_connection()
        await conn.executemany(
            "INSERT OR REPLACE INTO synonyms (term, synonyms) VALUES (?, ?)",
            [(term, json.dumps(list(values))) for term, values in synonyms.items()],
        )

    async def load_synonyms(self) -> dict[str, list[str]]:
        """Read the persisted synonym dictionary."""
        conn = await self._ready_connection()
        cursor = await conn.execute("SELECT term, synonyms FROM synonyms ORDER BY term")
        rows = await cursor.fetchall()
        return {row["term"]: json.loads(row["synonyms"]) for row in rows}

    # --- Search ---

    async def query(
        self,
        kind: ItemKind,
        expression: str,
        limit: int | None = None,
        markers: tuple[str, str] = ("<mark>", "</mark>"),
    ) -> list[dict[str, Any]]:
        """
        Full-text search using FTS5.

        Args:
            kind: Which corpus table to search
            expression: FTS5 MATCH expression
            limit: Maximum rows (None for all matches)
            markers: Opening/closing highlight markers

        Returns:
            Rows with ``rank`` (negative BM25, lower is better) and
            ``highlighted_<column>`` for every indexed column

        Raises:
            IndexConsistencyError: if the index is flagged as diverged
            QueryError: if FTS5 rejects the expression
        """
        if not self._index_trusted:
            raise IndexConsistencyError(
                "Full-text index needs a rebuild before it can be queried",
                details={"kind": kind.value},
            )

        conn = await self._ready_connection()
        table = TABLES[kind]
        fts = f"{table}_fts"
        highlights = ", ".join(
            f"highlight({fts}, {i}, ?, ?) AS highlighted_{column}"
            for i, column in enumerate(COLUMNS[kind])
        )
        sql = f"""
            SELECT t.*, {fts}.rank AS rank, {highlights}
            FROM {fts}
            JOIN {table} t ON t.id = {fts}.rowid
            WHERE {fts} MATCH ?
            ORDER BY {fts}.rank
            LIMIT ?
        """
        params = (*(markers * len(COLUMNS[kind])), expression, -1 if limit is None else limit)

        try:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
        except sqlite3.OperationalError as e:
            raise QueryError(
                f"Invalid search expression: {e}",
                details={"kind": kind.value, "expression": expression},
            ) from e

        return [dict(row) for row in rows]

    # --- Consistency ---

    async def verify_index(self) -> None:
        """
        Check every FTS table against its content table.

        Raises:
            IndexConsistencyError: on divergence; queries are refused until rebuild
        """
        conn = await self._ready_connection()

        for kind, table in TABLES.items():
            fts = f"{table}_fts"
            cursor = await conn.execute(f"SELECT COUNT(*) FROM {table}")
            primary = (await cursor.fetchone())[0]
            cursor = await conn.execute(f"SELECT COUNT(*) FROM {fts}_docsize")
            indexed = (await cursor.fetchone())[0]

            problem: str | None = None
            if primary != indexed:
                problem = f"{indexed} indexed rows for {primary} primary rows"
            else:
                try:
                    await conn.execute(f"INSERT INTO {fts}({fts}) VALUES ('integrity-check')")
                except sqlite3.DatabaseError as e:
                    problem = str(e)

            if problem:
                self._index_trusted = False
                logger.error("Index inconsistency in %s: %s", fts, problem)
                raise IndexConsistencyError(
                    f"Full-text index for {kind.value} diverged from its rows",
                    details={"kind": kind.value, "problem": problem},
                )

    async def rebuild_index(self) -> None:
        """Rebuild both FTS tables from their content tables."""
        async with self.transaction():
            conn = await self._get_connection()
            for table in TABLES.values():
                fts = f"{table}_fts"
                await conn.execute(f"INSERT INTO {fts}({fts}) VALUES ('rebuild')")

        self._index_trusted = True
        logger.info("Full-text index rebuilt: %s", self.db_path)

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
            self._initialized = False
