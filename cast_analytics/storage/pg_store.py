"""
Postgres account/post store

使用 psycopg2-binary 讀取 accounts / posts。連線失敗直接拋出例外，不 fallback、不快取。
"""

from typing import List, Optional
from pathlib import Path
import logging
import psycopg2
from psycopg2.extras import RealDictCursor

from cast_analytics.errors import SourceUnavailableError
from cast_analytics.models import AccountRecord, PostRow

logger = logging.getLogger(__name__)


class PostgresStore:
    """Postgres 讀取後端（不 fallback，fail fast）"""

    def __init__(self, dsn: str, auto_init_schema: bool = False):
        """
        初始化 PostgresStore

        Args:
            dsn: Postgres connection string
            auto_init_schema: 是否自動建立 schema
        """
        self.dsn = dsn
        self.conn = None
        self._connect()

        if auto_init_schema:
            self.init_schema()

    def _connect(self):
        """建立資料庫連線（連線失敗直接拋出異常，不 fallback）"""
        try:
            self.conn = psycopg2.connect(self.dsn)
            self.conn.autocommit = False
            logger.info("✓ Connected to Postgres")
        except psycopg2.Error as e:
            logger.error(f"✗ Failed to connect to Postgres: {e}")
            raise SourceUnavailableError(f"Postgres connection failed (no fallback): {e}") from e

    def init_schema(self):
        """初始化資料庫 schema（若表不存在則建立）"""
        # 找到專案根目錄的 SQL 檔案
        project_root = Path(__file__).parent.parent.parent
        sql_file = project_root / "init_cast_analytics.sql"

        if not sql_file.exists():
            logger.warning(f"init_cast_analytics.sql not found at {sql_file}, creating tables programatically")
            self._execute_ddl(SCHEMA_DDL)
            return

        with open(sql_file, 'r', encoding='utf-8') as f:
            self._execute_ddl(f.read())

    def _execute_ddl(self, ddl: str):
        try:
            with self.conn.cursor() as cur:
                cur.execute(ddl)
            self.conn.commit()
            logger.info("✓ Schema initialized successfully")
        except psycopg2.Error as e:
            self.conn.rollback()
            logger.error(f"Failed to initialize schema: {e}")
            raise SourceUnavailableError(f"Schema initialization failed: {e}") from e

    def test_connection(self) -> bool:
        """SELECT 1 連線測試"""
        rows = self._fetch_all("SELECT 1 AS value", ())
        return bool(rows) and rows[0]["value"] == 1

    def get_account(self, account_id: str) -> Optional[AccountRecord]:
        """
        依 farcaster_id 讀取帳號

        Args:
            account_id: Farcaster ID

        Returns:
            AccountRecord；不存在則 None
        """
        sql = """
        SELECT farcaster_id, handle, display_name, is_premium, created_at
        FROM accounts
        WHERE farcaster_id = %s
        LIMIT 1
        """

        rows = self._fetch_all(sql, (account_id,))
        if not rows:
            return None

        row = rows[0]
        return AccountRecord(
            account_id=str(row["farcaster_id"]),
            handle=row["handle"] or "",
            display_name=row["display_name"] or row["handle"] or "",
            is_premium=bool(row["is_premium"]),
            created_at=row["created_at"]
        )

    def get_posts(self, account_id: str) -> List[PostRow]:
        """
        讀取帳號的所有貼文

        Args:
            account_id: Farcaster ID

        Returns:
            List of PostRow (依 id 排序)
        """
        sql = """
        SELECT p.id, p.farcaster_post_id, p.text, p.impressions, p.engagements, p.created_at
        FROM posts p
        JOIN accounts a ON p.account_id = a.id
        WHERE a.farcaster_id = %s
        ORDER BY p.id ASC
        """

        rows = self._fetch_all(sql, (account_id,))
        posts = [
            PostRow(
                id=row["id"],
                external_post_id=row["farcaster_post_id"],
                text=row["text"],
                impressions=row["impressions"],
                engagements=row["engagements"],
                created_at=row["created_at"]
            )
            for row in rows
        ]

        logger.info(f"Loaded {len(posts)} posts for account {account_id}")
        return posts

    def _fetch_all(self, sql: str, params: tuple) -> List[dict]:
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()
            self.conn.commit()
            return rows
        except psycopg2.Error as e:
            self.conn.rollback()
            logger.error(f"Query failed: {e}")
            raise SourceUnavailableError(f"Postgres query failed: {e}") from e

    def close(self):
        """關閉連線"""
        if self.conn:
            self.conn.close()
            logger.info("Postgres connection closed")


SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS accounts (
    id SERIAL PRIMARY KEY,
    farcaster_id TEXT NOT NULL UNIQUE,
    handle TEXT NOT NULL,
    display_name TEXT,
    is_premium BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMPTZ
);

CREATE TABLE IF NOT EXISTS posts (
    id SERIAL PRIMARY KEY,
    account_id INT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
    farcaster_post_id TEXT,
    text TEXT,
    impressions INT,
    engagements INT,
    created_at TIMESTAMPTZ NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_posts_account_id ON posts(account_id);
CREATE INDEX IF NOT EXISTS idx_posts_created_at ON posts(created_at);
"""
