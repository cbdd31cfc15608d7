"""SQLite link store with normalized-URL deduplication."""

import json
import logging
import sqlite3
from collections import Counter
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

from ..extraction.urls import normalize_url
from .models import Bucket, DedupReport, LinkRecord, Para

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS links (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    url TEXT NOT NULL,
    normalized_url TEXT NOT NULL,
    title TEXT,
    description TEXT,
    source_note TEXT,

    para_bucket TEXT,
    para_name TEXT,
    para_reason TEXT,
    tags TEXT,
    subcategory TEXT,

    created_at TEXT NOT NULL,
    updated_at TEXT
);

-- One record per normalized URL; inserts go through INSERT OR IGNORE
CREATE UNIQUE INDEX IF NOT EXISTS idx_links_normalized_url ON links(normalized_url);
CREATE INDEX IF NOT EXISTS idx_links_url ON links(url);
CREATE INDEX IF NOT EXISTS idx_links_para_bucket ON links(para_bucket);
CREATE INDEX IF NOT EXISTS idx_links_created_at ON links(created_at);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Database:
    """SQLite database operations for link storage."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._init_schema()

    @contextmanager
    def _connection(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self.db_path, timeout=10)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self._connection() as conn:
            conn.executescript(SCHEMA_SQL)

    # ---- Ingestion ----

    def store_if_absent(
        self,
        url: str,
        title: str | None,
        description: str | None,
        source_note: str | None = None,
    ) -> int:
        """Insert a link unless one with the same normalized URL exists.

        Returns the id of the new or existing record. An existing record is
        never modified.
        """
        normalized = normalize_url(url)

        with self._connection() as conn:
            row = conn.execute("SELECT id FROM links WHERE url = ?", (url,)).fetchone()
            if row:
                logger.info(f"Link already exists: {url}")
                return row["id"]

            cursor = conn.execute(
                """
                INSERT OR IGNORE INTO links (url, normalized_url, title, description,
                                             source_note, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (url, normalized, title, description, source_note, _now()),
            )
            if cursor.rowcount == 1:
                logger.info(f"Stored new link {cursor.lastrowid}: {url}")
                return cursor.lastrowid  # type: ignore

            row = conn.execute(
                "SELECT id FROM links WHERE normalized_url = ?", (normalized,)
            ).fetchone()
            logger.info(f"Link already exists (normalized): {url}")
            return row["id"]

    def find_by_url(self, url: str) -> LinkRecord | None:
        """Find the record whose normalized URL matches this URL's."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM links WHERE normalized_url = ?", (normalize_url(url),)
            ).fetchone()
            return self._row_to_link(row) if row else None

    def apply_classification(
        self,
        link_id: int,
        para: Para,
        tags: list[str],
        subcategory: str | None,
    ) -> None:
        """Write a classification result onto a link."""
        with self._connection() as conn:
            conn.execute(
                """
                UPDATE links
                SET para_bucket = ?, para_name = ?, para_reason = ?,
                    tags = ?, subcategory = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    para.bucket.value,
                    para.name,
                    para.reason,
                    json.dumps(tags),
                    subcategory,
                    _now(),
                    link_id,
                ),
            )

    # ---- Category edits ----

    def update_link_category(
        self,
        link_id: int,
        bucket: Bucket | None = None,
        subcategory: str | None = None,
    ) -> bool:
        """Move a link to a bucket and/or subcategory.

        Setting a bucket on an unclassified link creates a para with null
        name and reason. Returns False if the link does not exist.
        """
        with self._connection() as conn:
            row = conn.execute("SELECT id FROM links WHERE id = ?", (link_id,)).fetchone()
            if row is None:
                logger.error(f"Link not found: {link_id}")
                return False

            if bucket is not None:
                conn.execute(
                    "UPDATE links SET para_bucket = ?, updated_at = ? WHERE id = ?",
                    (bucket.value, _now(), link_id),
                )
            if subcategory is not None:
                conn.execute(
                    "UPDATE links SET subcategory = ?, updated_at = ? WHERE id = ?",
                    (subcategory, _now(), link_id),
                )
            return True

    def rename_subcategory(self, bucket: Bucket, old: str, new: str) -> int:
        """Rename a group across all links in a bucket. Returns rows changed."""
        new = new.strip()
        if not new:
            logger.warning("rename_subcategory: new name is empty, skipping")
            return 0

        with self._connection() as conn:
            cursor = conn.execute(
                """
                UPDATE links SET subcategory = ?, updated_at = ?
                WHERE para_bucket = ? AND subcategory = ?
                """,
                (new, _now(), bucket.value, old),
            )
            return cursor.rowcount

    # ---- Maintenance ----

    def bulk_dedup(self) -> DedupReport:
        """Collapse records whose URLs normalize to the same key.

        Keys are recomputed from each record's URL, so rows written under
        older normalization rules are caught. The earliest-created record
        of each group survives and gets its stored key refreshed.
        """
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT id, url, normalized_url, created_at FROM links "
                "ORDER BY created_at ASC, id ASC"
            ).fetchall()

            groups: dict[str, list[sqlite3.Row]] = {}
            for row in rows:
                groups.setdefault(normalize_url(row["url"]), []).append(row)

            doomed = [
                row["id"] for members in groups.values() if len(members) > 1
                for row in members[1:]
            ]
            conn.executemany("DELETE FROM links WHERE id = ?", [(i,) for i in doomed])

            for key, members in groups.items():
                keeper = members[0]
                if keeper["normalized_url"] != key:
                    conn.execute(
                        "UPDATE OR IGNORE links SET normalized_url = ? WHERE id = ?",
                        (key, keeper["id"]),
                    )

            remaining = conn.execute("SELECT COUNT(*) FROM links").fetchone()[0]

        logger.info(f"Bulk dedup removed {len(doomed)} records, {remaining} remain")
        return DedupReport(removed=len(doomed), remaining=remaining)

    # ---- Reads ----

    def get_link_by_id(self, link_id: int) -> LinkRecord | None:
        """Get a link by ID."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM links WHERE id = ?", (link_id,)
            ).fetchone()
            return self._row_to_link(row) if row else None

    def list_by_bucket(self, bucket: Bucket, limit: int = 100) -> list[LinkRecord]:
        """Links in a bucket, newest first."""
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM links WHERE para_bucket = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (bucket.value, limit),
            ).fetchall()
            return [self._row_to_link(row) for row in rows]

    def search(self, query: str, limit: int = 50) -> list[LinkRecord]:
        """Case-insensitive substring search over title, description and URL."""
        pattern = f"%{query.lower()}%"
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM links
                WHERE LOWER(COALESCE(title, '')) LIKE ?
                   OR LOWER(COALESCE(description, '')) LIKE ?
                   OR LOWER(url) LIKE ?
                ORDER BY created_at DESC
                LIMIT ?
                """,
                (pattern, pattern, pattern, limit),
            ).fetchall()
            return [self._row_to_link(row) for row in rows]

    def get_all_tags(self) -> list[tuple[str, int]]:
        """Get all tags with their counts, most used first."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT tags FROM links WHERE tags IS NOT NULL"
            ).fetchall()

        counts: Counter[str] = Counter()
        for row in rows:
            counts.update(json.loads(row["tags"]))
        return counts.most_common()

    def get_stats(self) -> dict:
        """Get dashboard statistics."""
        week_ago = (datetime.now(timezone.utc) - timedelta(days=7)).isoformat()

        with self._connection() as conn:
            total = conn.execute("SELECT COUNT(*) FROM links").fetchone()[0]
            bucket_rows = conn.execute(
                """
                SELECT para_bucket, COUNT(*) AS count FROM links
                WHERE para_bucket IS NOT NULL
                GROUP BY para_bucket
                """
            ).fetchall()
            added_this_week = conn.execute(
                "SELECT COUNT(*) FROM links WHERE created_at >= ?", (week_ago,)
            ).fetchone()[0]
            recent_rows = conn.execute(
                "SELECT * FROM links ORDER BY created_at DESC, id DESC LIMIT 8"
            ).fetchall()

        bucket_counts = {bucket.value: 0 for bucket in Bucket}
        for row in bucket_rows:
            bucket_counts[row["para_bucket"]] = row["count"]

        return {
            "total": total,
            "bucket_counts": bucket_counts,
            "added_this_week": added_this_week,
            "top_tags": self.get_all_tags()[:10],
            "recent_links": [self._row_to_link(row) for row in recent_rows],
        }

    def _row_to_link(self, row: sqlite3.Row) -> LinkRecord:
        """Convert database row to LinkRecord."""
        para = None
        if row["para_bucket"]:
            para = Para(
                bucket=Bucket(row["para_bucket"]),
                name=row["para_name"],
                reason=row["para_reason"],
            )

        return LinkRecord(
            id=row["id"],
            url=row["url"],
            normalized_url=row["normalized_url"],
            title=row["title"],
            description=row["description"],
            source_note=row["source_note"],
            para=para,
            tags=json.loads(row["tags"]) if row["tags"] is not None else None,
            subcategory=row["subcategory"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else None,
        )
