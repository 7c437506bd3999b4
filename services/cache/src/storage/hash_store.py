"""SQLite-backed store for blocklist hashes and cache metadata."""

import asyncio
import json
import os
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator, Dict, Iterable, Optional, Tuple, Union

import aiosqlite
import structlog
from common import StorageError
from common.constants import DEFAULT_DB_PATH, SCHEMA_VERSION
from schemas import HashRecord, MetadataEntry

logger = structlog.get_logger()

Record = Union[HashRecord, MetadataEntry]


class Collection(str, Enum):
    """Logical collections held by the store, one table each."""

    DOMAIN_HASHES = "domain_hashes"
    URL_HASHES = "url_hashes"
    METADATA = "metadata"


HASH_COLLECTIONS = (Collection.DOMAIN_HASHES, Collection.URL_HASHES)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS domain_hashes (
    hash TEXT PRIMARY KEY,
    type INTEGER NOT NULL,
    level INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_domain_hashes_type ON domain_hashes(type);
CREATE INDEX IF NOT EXISTS idx_domain_hashes_level ON domain_hashes(level);

CREATE TABLE IF NOT EXISTS url_hashes (
    hash TEXT PRIMARY KEY,
    type INTEGER NOT NULL,
    level INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_url_hashes_type ON url_hashes(type);
CREATE INDEX IF NOT EXISTS idx_url_hashes_level ON url_hashes(level);

CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

UPSERT_SQL = {
    Collection.DOMAIN_HASHES.value: "INSERT OR REPLACE INTO domain_hashes (hash, type, level) VALUES (?, ?, ?)",
    Collection.URL_HASHES.value: "INSERT OR REPLACE INTO url_hashes (hash, type, level) VALUES (?, ?, ?)",
    Collection.METADATA.value: "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
}

SELECT_SQL = {
    Collection.DOMAIN_HASHES.value: "SELECT hash, type, level FROM domain_hashes WHERE hash = ?",
    Collection.URL_HASHES.value: "SELECT hash, type, level FROM url_hashes WHERE hash = ?",
    Collection.METADATA.value: "SELECT key, value FROM metadata WHERE key = ?",
}


class HashStore:
    """Persistent store with three independently addressable collections.

    Every operation touches exactly one collection inside its own
    transaction. The connection is opened lazily through a single guard,
    so ``initialize()`` is optional and may be called any number of times.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """
        Initialize store handle.

        Args:
            db_path: SQLite database file, or ":memory:" for a private in-memory store
        """
        self.db_path = db_path
        self._conn: Optional[aiosqlite.Connection] = None
        self._init_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def __aenter__(self) -> "HashStore":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _error_context(self, operation: str, collection: Optional[str] = None) -> Dict[str, Any]:
        context = {"operation": operation, "db_path": self.db_path}
        if collection is not None:
            context["collection"] = collection
        return context

    async def initialize(self) -> None:
        """
        Open the database and create missing collections and indexes.

        Raises:
            StorageError: If the database cannot be opened or migrated
        """
        async with self._init_lock:
            if self._conn is not None:
                return

            try:
                if self.db_path != ":memory:":
                    directory = os.path.dirname(self.db_path)
                    if directory:
                        os.makedirs(directory, exist_ok=True)

                conn = await aiosqlite.connect(self.db_path)
                try:
                    await conn.execute("PRAGMA journal_mode=WAL;")
                    await conn.execute("PRAGMA synchronous=NORMAL;")
                    await conn.execute("PRAGMA busy_timeout=30000;")
                    await conn.executescript(SCHEMA_SQL)
                    await self._migrate(conn)
                    await conn.commit()
                except BaseException:
                    await conn.close()
                    raise

            except (aiosqlite.Error, OSError) as e:
                logger.error("Failed to open hash store", db_path=self.db_path, error=str(e))
                raise StorageError(
                    message="Failed to open hash store",
                    context=self._error_context("initialize"),
                    original_error=e,
                )

            self._conn = conn
            logger.info("Hash store opened", db_path=self.db_path, schema_version=SCHEMA_VERSION)

    async def _migrate(self, conn: aiosqlite.Connection) -> None:
        async with conn.execute("PRAGMA user_version;") as cursor:
            row = await cursor.fetchone()
        version = row[0] if row else 0

        if version > SCHEMA_VERSION:
            raise StorageError(
                message="Database schema is newer than this release",
                context={"db_path": self.db_path, "found": version, "supported": SCHEMA_VERSION},
            )
        if version < SCHEMA_VERSION:
            # Version 1 is the initial layout created by SCHEMA_SQL.
            await conn.execute(f"PRAGMA user_version = {int(SCHEMA_VERSION)};")

    async def _ensure_open(self) -> aiosqlite.Connection:
        if self._conn is None:
            await self.initialize()
        return self._conn

    async def close(self) -> None:
        """Close the connection; the handle can be initialized again."""
        async with self._init_lock:
            if self._conn is None:
                return
            conn, self._conn = self._conn, None
            await conn.close()
            logger.debug("Hash store closed", db_path=self.db_path)

    def _table(self, collection: Union[Collection, str]) -> str:
        try:
            return Collection(collection).value
        except ValueError:
            raise StorageError(
                message=f"Unknown collection '{collection}'",
                context={"valid": [c.value for c in Collection]},
            )

    @asynccontextmanager
    async def _transaction(self, operation: str, table: str) -> AsyncIterator[aiosqlite.Connection]:
        conn = await self._ensure_open()
        async with self._write_lock:
            try:
                yield conn
                await conn.commit()
            except aiosqlite.Error as e:
                await self._rollback(conn)
                logger.error("Storage write failed", operation=operation, collection=table, error=str(e))
                raise StorageError(
                    message=f"Storage {operation} failed",
                    context=self._error_context(operation, table),
                    original_error=e,
                )
            except BaseException:
                await self._rollback(conn)
                raise

    async def _rollback(self, conn: aiosqlite.Connection) -> None:
        try:
            await conn.rollback()
        except aiosqlite.Error as e:
            logger.warning("Rollback failed", db_path=self.db_path, error=str(e))

    @staticmethod
    def _to_row(table: str, record: Record) -> Tuple[Any, ...]:
        if table == Collection.METADATA.value:
            if not isinstance(record, MetadataEntry):
                raise TypeError(f"metadata expects MetadataEntry, got {type(record).__name__}")
            return (record.key, json.dumps(record.value))

        if not isinstance(record, HashRecord):
            raise TypeError(f"{table} expects HashRecord, got {type(record).__name__}")
        return (record.hash, record.type, record.level)

    async def clear_collection(self, collection: Union[Collection, str]) -> None:
        """
        Remove every record from one collection.

        Raises:
            StorageError: If the collection is inaccessible
        """
        table = self._table(collection)
        async with self._transaction("clear", table) as conn:
            await conn.execute(f"DELETE FROM {table}")
        logger.debug("Collection cleared", collection=table)

    async def put(self, collection: Union[Collection, str], record: Record) -> None:
        """
        Insert or replace one record by its primary key.

        Raises:
            StorageError: On I/O failure
        """
        await self.put_many(collection, [record])

    async def put_many(self, collection: Union[Collection, str], records: Iterable[Record]) -> int:
        """
        Insert or replace records in one transaction.

        Returns:
            Number of rows written (duplicates included)

        Raises:
            StorageError: On I/O failure
        """
        table = self._table(collection)
        rows = [self._to_row(table, record) for record in records]
        if not rows:
            return 0

        async with self._transaction("put", table) as conn:
            await conn.executemany(UPSERT_SQL[table], rows)
        return len(rows)

    async def get(self, collection: Union[Collection, str], key: str) -> Optional[Record]:
        """
        Look up one record by primary key.

        Returns:
            The record, or None if the key is absent

        Raises:
            StorageError: On I/O failure only
        """
        table = self._table(collection)
        conn = await self._ensure_open()

        try:
            async with conn.execute(SELECT_SQL[table], (key,)) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageError(
                message="Storage get failed",
                context=self._error_context("get", table),
                original_error=e,
            )

        if row is None:
            return None

        if table == Collection.METADATA.value:
            try:
                value = json.loads(row[1])
            except ValueError as e:
                raise StorageError(
                    message="Stored metadata value is not valid JSON",
                    context={**self._error_context("get", table), "key": key},
                    original_error=e,
                )
            return MetadataEntry(key=row[0], value=value)

        return HashRecord(hash=row[0], type=row[1], level=row[2])

    async def count(self, collection: Union[Collection, str]) -> int:
        """Number of records in one collection."""
        table = self._table(collection)
        conn = await self._ensure_open()

        try:
            async with conn.execute(f"SELECT COUNT(*) FROM {table}") as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageError(
                message="Storage count failed",
                context=self._error_context("count", table),
                original_error=e,
            )
        return row[0]

    async def get_metadata(self, key: str, default: Any = None) -> Any:
        entry = await self.get(Collection.METADATA, key)
        return default if entry is None else entry.value

    async def set_metadata(self, key: str, value: Any) -> None:
        await self.put(Collection.METADATA, MetadataEntry(key=key, value=value))
