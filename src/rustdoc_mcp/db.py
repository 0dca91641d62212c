"""Persistent rustdoc store with FTS5 item search.

Holds the markdown of every crawled item, keyed by crate and ``::``-joined
item path (the crate root is the empty path). Item keys are indexed with
FTS5 for argument completion.

One store instance is shared by the whole process. It serializes access to
its SQLite connection itself and de-duplicates concurrent crawls of the
same crate, so callers never lock around it.
"""

import asyncio
import sqlite3
import threading
import time
from pathlib import Path

from loguru import logger

from rustdoc_mcp.crawler import CrawlProvider, crawl_crate
from rustdoc_mcp.errors import StoreIndexError, StoreMiss


def _now_ts() -> float:
    """Current timestamp as float."""
    return time.time()


def _item_key(crate_name: str, item_path: str) -> str:
    return f"{crate_name}::{item_path}" if item_path else crate_name


def _build_fts_queries(query: str) -> list[str]:
    """Build tiered FTS5 queries: PHRASE -> AND -> OR.

    ``::`` separators count as whitespace so ``tokio::sync::Mu`` matches
    keys token by token, with a prefix match on every term.
    """
    words = [w.strip() for w in query.replace("::", " ").split() if w.strip()]
    safe = [w.replace('"', '""') for w in words]

    if not safe:
        return []
    if len(safe) == 1:
        return [f'"{safe[0]}"*']

    return [
        # Tier 0: PHRASE, with the last term still a prefix
        '"' + " ".join(safe) + '"*',
        # Tier 1: AND
        " AND ".join(f'"{w}"*' for w in safe),
        # Tier 2: OR
        " OR ".join(f'"{w}"*' for w in safe),
    ]


class RustdocStore:
    """SQLite-backed store of crawled rustdoc items."""

    def __init__(self, db_path: Path, search_limit: int = 20, max_pages: int = 5000):
        self._db_path = db_path
        self._search_limit = search_limit
        self._max_pages = max_pages
        self._lock = threading.Lock()
        self._indexing: dict[str, asyncio.Task] = {}

        db_path.parent.mkdir(parents=True, exist_ok=True)
        # Calls arrive from worker threads; self._lock serializes them.
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode = WAL")
        self._conn.execute("PRAGMA synchronous = NORMAL")
        self._conn.execute("PRAGMA busy_timeout = 5000")

        self._create_tables()
        logger.debug(f"RustdocStore initialized at {db_path}")

    def _create_tables(self) -> None:
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS crates (
                name TEXT PRIMARY KEY,
                item_count INTEGER NOT NULL DEFAULT 0,
                indexed_at REAL NOT NULL
            )
        """)
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS items (
                crate TEXT NOT NULL,
                path TEXT NOT NULL,
                key TEXT NOT NULL,
                docs TEXT NOT NULL,
                PRIMARY KEY (crate, path)
            )
        """)

        # FTS5 (content-sync mode) over item keys only
        self._conn.execute("""
            CREATE VIRTUAL TABLE IF NOT EXISTS items_fts
            USING fts5(
                key,
                content=items,
                content_rowid=rowid,
                tokenize='unicode61'
            )
        """)
        self._conn.execute("""
            CREATE TRIGGER IF NOT EXISTS items_ai AFTER INSERT ON items BEGIN
                INSERT INTO items_fts(rowid, key) VALUES (new.rowid, new.key);
            END
        """)
        self._conn.execute("""
            CREATE TRIGGER IF NOT EXISTS items_ad AFTER DELETE ON items BEGIN
                INSERT INTO items_fts(items_fts, rowid, key)
                VALUES ('delete', old.rowid, old.key);
            END
        """)
        self._conn.execute("""
            CREATE TRIGGER IF NOT EXISTS items_au AFTER UPDATE ON items BEGIN
                INSERT INTO items_fts(items_fts, rowid, key)
                VALUES ('delete', old.rowid, old.key);
                INSERT INTO items_fts(rowid, key) VALUES (new.rowid, new.key);
            END
        """)
        self._conn.commit()

    # -----------------------------------------------------------------------
    # Load
    # -----------------------------------------------------------------------

    def _load_sync(self, crate_name: str, item_path: str) -> str:
        with self._lock:
            row = self._conn.execute(
                "SELECT docs FROM items WHERE crate = ? AND path = ?",
                (crate_name, item_path),
            ).fetchone()
        if row is None:
            logger.debug(f"Store MISS: {_item_key(crate_name, item_path)}")
            raise StoreMiss(f"no docs for {_item_key(crate_name, item_path)} in store")
        logger.debug(f"Store HIT: {_item_key(crate_name, item_path)}")
        return row["docs"]

    async def load(self, crate_name: str, item_path: str | None = None) -> str:
        """Return stored markdown for an item (crate root when path is empty).

        Raises:
            StoreMiss: The item was never indexed.
        """
        return await asyncio.to_thread(self._load_sync, crate_name, item_path or "")

    # -----------------------------------------------------------------------
    # Search
    # -----------------------------------------------------------------------

    def _search_sync(self, query: str, limit: int) -> list[tuple[str, str]]:
        results: list[tuple[str, str]] = []
        seen: set[tuple[str, str]] = set()

        with self._lock:
            for fts_query in _build_fts_queries(query):
                try:
                    rows = self._conn.execute(
                        """
                        SELECT i.crate, i.path
                        FROM items_fts f
                        JOIN items i ON i.rowid = f.rowid
                        WHERE items_fts MATCH ? AND i.path != ''
                        ORDER BY bm25(items_fts), length(i.key), i.key
                        LIMIT ?
                        """,
                        (fts_query, limit),
                    ).fetchall()
                except sqlite3.OperationalError as e:
                    logger.debug(f"FTS search error: {e}")
                    continue

                for row in rows:
                    match = (row["crate"], row["path"])
                    if match not in seen:
                        seen.add(match)
                        results.append(match)
                # Stop once the stricter tiers have filled the page
                if len(results) >= limit:
                    break

        return results[:limit]

    async def search(self, query: str, limit: int | None = None) -> list[tuple[str, str]]:
        """Return ``(crate, item_path)`` matches for a partial query, best first."""
        return await asyncio.to_thread(
            self._search_sync, query, limit or self._search_limit
        )

    # -----------------------------------------------------------------------
    # Index
    # -----------------------------------------------------------------------

    def _replace_crate(self, crate_name: str, docs: dict[str, str]) -> None:
        """Swap a crate's items in a single transaction."""
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute("DELETE FROM items WHERE crate = ?", (crate_name,))
                    self._conn.executemany(
                        "INSERT INTO items (crate, path, key, docs) VALUES (?, ?, ?, ?)",
                        [
                            (crate_name, path, _item_key(crate_name, path), markdown)
                            for path, markdown in docs.items()
                        ],
                    )
                    self._conn.execute(
                        """INSERT OR REPLACE INTO crates (name, item_count, indexed_at)
                           VALUES (?, ?, ?)""",
                        (crate_name, len(docs), _now_ts()),
                    )
            except sqlite3.Error as e:
                raise StoreIndexError(f"failed to store {crate_name}: {e}") from e

    async def _index(self, crate_name: str, provider: CrawlProvider) -> None:
        logger.info(f"Indexing {crate_name}...")
        docs = await crawl_crate(crate_name, provider, self._max_pages)
        await asyncio.to_thread(self._replace_crate, crate_name, docs)
        logger.info(f"Indexed {crate_name} ({len(docs)} items)")

    def _on_index_done(self, crate_name: str, task: asyncio.Task) -> None:
        if self._indexing.get(crate_name) is task:
            del self._indexing[crate_name]
        if not task.cancelled() and task.exception() is not None:
            # The awaiting caller reports the failure
            logger.debug(f"Indexing {crate_name} failed: {task.exception()}")

    async def index(self, crate_name: str, provider: CrawlProvider) -> None:
        """Crawl a crate through *provider* and replace its stored items.

        A crawl already running for the same crate is joined instead of
        started again. The crawl is shielded: a caller that gives up waiting
        does not interrupt it, and items are only swapped in once the whole
        crate has been crawled.

        Raises:
            StoreIndexError: The crawl or the write failed.
        """
        task = self._indexing.get(crate_name)
        if task is None:
            task = asyncio.create_task(self._index(crate_name, provider))
            self._indexing[crate_name] = task
            task.add_done_callback(lambda t: self._on_index_done(crate_name, t))
        else:
            logger.debug(f"Joining in-flight crawl of {crate_name}")
        await asyncio.shield(task)

    # -----------------------------------------------------------------------
    # Maintenance
    # -----------------------------------------------------------------------

    def list_crates(self) -> list[dict]:
        """List indexed crates with item counts."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT name, item_count, indexed_at FROM crates ORDER BY name"
            ).fetchall()
        return [dict(r) for r in rows]

    def remove_crate(self, crate_name: str) -> bool:
        """Remove a crate and all its items."""
        with self._lock, self._conn:
            cursor = self._conn.execute("DELETE FROM crates WHERE name = ?", (crate_name,))
            self._conn.execute("DELETE FROM items WHERE crate = ?", (crate_name,))
        return cursor.rowcount > 0

    def stats(self) -> dict:
        """Return database statistics."""
        with self._lock:
            crate_count = self._conn.execute("SELECT COUNT(*) FROM crates").fetchone()[0]
            item_count = self._conn.execute("SELECT COUNT(*) FROM items").fetchone()[0]
        return {"crates": crate_count, "items": item_count, "path": str(self._db_path)}

    def close(self) -> None:
        """Close database connection."""
        try:
            self._conn.close()
        except Exception:
            pass
