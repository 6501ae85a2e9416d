"""SQLite-based row store for articles, article content and lead insights."""

import sqlite3
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from datetime import datetime
from typing import Iterator, List, Optional

from .models import ArticleRecord, ArticleContentRecord
from schemas.insights import UserInsight

logger = logging.getLogger(__name__)

# Session keys hash onto a fixed pool of locks
LOCK_STRIPES = 64

_ARTICLE_COLUMNS = ("id", "title", "slug", "snippet", "created_at", "updated_at")
_INSIGHT_COLUMNS = (
    "id", "session_user_id", "article_title", "category", "insight",
    "raw_message", "user_name", "contact_preference", "user_email",
    "user_phone", "created_at", "updated_at",
)


class SQLiteRowStore:
    """
    SQLite-backed row store.

    Supports the small set of primitives the backend needs per table:
    create, find by equality filter, update by id, and delete all.
    """

    def __init__(self, db_path: str = "data/afterlink.db"):
        """
        Initialize SQLite row store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._session_locks = [threading.Lock() for _ in range(LOCK_STRIPES)]
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize database schema."""
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS articles (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                slug TEXT NOT NULL,
                snippet TEXT NOT NULL DEFAULT '',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS article_content (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                article_id INTEGER NOT NULL,
                content TEXT NOT NULL,
                FOREIGN KEY (article_id) REFERENCES articles(id)
            )
        """)

        # One lead note per session
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS user_insights (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                session_user_id TEXT NOT NULL UNIQUE,
                article_title TEXT NOT NULL DEFAULT '',
                category TEXT NOT NULL DEFAULT 'other',
                insight TEXT NOT NULL DEFAULT '',
                raw_message TEXT NOT NULL DEFAULT '',
                user_name TEXT,
                contact_preference TEXT CHECK(contact_preference IN ('email', 'phone')),
                user_email TEXT,
                user_phone TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_articles_slug ON articles(slug)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_article_content_article ON article_content(article_id)"
        )

        conn.commit()
        conn.close()
        logger.info(f"Database initialized at {self.db_path}")

    @contextmanager
    def session_lock(self, key: str) -> Iterator[None]:
        """Serialize writers that share a key (one writer per session).

        Keys map onto a fixed pool of locks, so unrelated keys may
        occasionally share one. Not reentrant.
        """
        with self.lock_for(key):
            yield

    def lock_for(self, key: str) -> threading.Lock:
        return self._session_locks[hash(key) % LOCK_STRIPES]

    @staticmethod
    def _where(filters: dict, allowed: tuple) -> tuple:
        unknown = set(filters) - set(allowed)
        if unknown:
            raise ValueError(f"Unknown filter column(s): {', '.join(sorted(unknown))}")
        if not filters:
            return "", ()
        clause = " AND ".join(f"{column} = ?" for column in filters)
        return f"WHERE {clause}", tuple(filters.values())

    @staticmethod
    def _to_datetime(value) -> datetime:
        if not value:
            return datetime.now()
        if isinstance(value, datetime):
            return value
        return datetime.fromisoformat(value)

    # ------------------------------------------------------------------
    # Articles
    # ------------------------------------------------------------------

    def create_articles(self, records: List[ArticleRecord]) -> List[ArticleRecord]:
        """
        Insert article metadata rows.

        Args:
            records: Rows to insert (ids are ignored)

        Returns:
            The rows with store-assigned ids
        """
        conn = self._get_connection()
        cursor = conn.cursor()

        created = []
        now = datetime.now()
        for record in records:
            cursor.execute(
                """
                INSERT INTO articles (title, slug, snippet, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (record.title, record.slug, record.snippet, now.isoformat(), now.isoformat())
            )
            created.append(record.model_copy(update={
                "id": cursor.lastrowid,
                "created_at": now,
                "updated_at": now,
            }))

        conn.commit()
        conn.close()
        return created

    def find_articles(self, **filters) -> List[ArticleRecord]:
        """
        Find articles by column equality.

        Args:
            **filters: column=value pairs, e.g. ``title="Bubble Tea 101"``

        Returns:
            Matching rows ordered by id
        """
        where, params = self._where(filters, _ARTICLE_COLUMNS)

        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(f"SELECT * FROM articles {where} ORDER BY id", params)
        rows = cursor.fetchall()
        conn.close()

        return [
            ArticleRecord(
                id=row["id"],
                title=row["title"],
                slug=row["slug"],
                snippet=row["snippet"],
                created_at=self._to_datetime(row["created_at"]),
                updated_at=self._to_datetime(row["updated_at"]),
            )
            for row in rows
        ]

    def get_article(self, article_id: int) -> Optional[ArticleRecord]:
        rows = self.find_articles(id=article_id)
        return rows[0] if rows else None

    def update_article(self, record: ArticleRecord) -> ArticleRecord:
        """Update an article row by id."""
        if record.id is None:
            raise ValueError("Cannot update an article without an id")

        now = datetime.now()
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            """
            UPDATE articles SET title = ?, slug = ?, snippet = ?, updated_at = ?
            WHERE id = ?
            """,
            (record.title, record.slug, record.snippet, now.isoformat(), record.id)
        )
        conn.commit()
        conn.close()
        return record.model_copy(update={"updated_at": now})

    def delete_all_articles(self) -> int:
        """Delete all article metadata and content. Returns articles deleted."""
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute("DELETE FROM article_content")
        cursor.execute("DELETE FROM articles")
        deleted = cursor.rowcount
        conn.commit()
        conn.close()
        return deleted

    # ------------------------------------------------------------------
    # Article content
    # ------------------------------------------------------------------

    def create_article_content(self, article_id: int, content: str) -> ArticleContentRecord:
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            "INSERT INTO article_content (article_id, content) VALUES (?, ?)",
            (article_id, content)
        )
        record = ArticleContentRecord(id=cursor.lastrowid, article_id=article_id, content=content)
        conn.commit()
        conn.close()
        return record

    def find_article_content(self, article_id: int) -> Optional[ArticleContentRecord]:
        """Get the latest content row for an article."""
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT id, article_id, content FROM article_content
            WHERE article_id = ?
            ORDER BY id DESC
            LIMIT 1
            """,
            (article_id,)
        )
        row = cursor.fetchone()
        conn.close()

        if not row:
            return None
        return ArticleContentRecord(
            id=row["id"], article_id=row["article_id"], content=row["content"]
        )

    # ------------------------------------------------------------------
    # User insights
    # ------------------------------------------------------------------

    def _row_to_insight(self, row: sqlite3.Row) -> UserInsight:
        return UserInsight(
            id=row["id"],
            session_user_id=row["session_user_id"],
            article_title=row["article_title"],
            category=row["category"],
            insight=row["insight"],
            raw_message=row["raw_message"],
            user_name=row["user_name"],
            contact_preference=row["contact_preference"],
            user_email=row["user_email"],
            user_phone=row["user_phone"],
            created_at=self._to_datetime(row["created_at"]),
            updated_at=self._to_datetime(row["updated_at"]),
        )

    def create_insight(self, insight: UserInsight) -> UserInsight:
        """
        Insert a lead note.

        Raises:
            sqlite3.IntegrityError: If the session already has a note
        """
        now = datetime.now()
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute(
                """
                INSERT INTO user_insights (
                    session_user_id, article_title, category, insight, raw_message,
                    user_name, contact_preference, user_email, user_phone,
                    created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    insight.session_user_id, insight.article_title, insight.category,
                    insight.insight, insight.raw_message, insight.user_name,
                    insight.contact_preference, insight.user_email, insight.user_phone,
                    now.isoformat(), now.isoformat(),
                )
            )
            conn.commit()
            insight_id = cursor.lastrowid
        finally:
            conn.close()

        return insight.model_copy(update={"id": insight_id, "created_at": now, "updated_at": now})

    def find_insights(self, **filters) -> List[UserInsight]:
        """Find lead notes by column equality, most recently updated first."""
        where, params = self._where(filters, _INSIGHT_COLUMNS)

        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            f"SELECT * FROM user_insights {where} ORDER BY updated_at DESC, id DESC",
            params
        )
        rows = cursor.fetchall()
        conn.close()

        return [self._row_to_insight(row) for row in rows]

    def find_insight_by_session(self, session_user_id: str) -> Optional[UserInsight]:
        rows = self.find_insights(session_user_id=session_user_id)
        return rows[0] if rows else None

    def update_insight(self, insight: UserInsight) -> UserInsight:
        """Update a lead note by id."""
        if insight.id is None:
            raise ValueError("Cannot update an insight without an id")

        now = datetime.now()
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            """
            UPDATE user_insights
            SET article_title = ?, category = ?, insight = ?, raw_message = ?,
                user_name = ?, contact_preference = ?, user_email = ?, user_phone = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                insight.article_title, insight.category, insight.insight,
                insight.raw_message, insight.user_name, insight.contact_preference,
                insight.user_email, insight.user_phone, now.isoformat(), insight.id,
            )
        )
        conn.commit()
        conn.close()
        return insight.model_copy(update={"updated_at": now})

    def delete_all_insights(self) -> int:
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute("DELETE FROM user_insights")
        deleted = cursor.rowcount
        conn.commit()
        conn.close()
        return deleted
