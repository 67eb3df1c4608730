"""PostgreSQL storage implementation."""

import json
import logging
import os
import psycopg2
from psycopg2.extras import RealDictCursor

from core.interfaces import Storage, AudioStore
from core.config import AUDIO_CACHE_MAX_BYTES

logger = logging.getLogger(__name__)

PROGRESS_SLOT = 'default'


class PostgresStorage(Storage, AudioStore):
    """PostgreSQL-based storage implementation."""

    def __init__(self, config_file: str = None, db_url: str = None,
                 audio_max_bytes: int = AUDIO_CACHE_MAX_BYTES):
        self.config_file = config_file or os.path.expanduser('~/.config/parola/config.json')
        self.db_url = db_url or os.environ.get(
            'DATABASE_URL',
            'postgresql://localhost:5432/parola'
        )
        self.audio_max_bytes = audio_max_bytes
        self._conn = None
        self._initialized = False

    @property
    def conn(self):
        """Lazy connection initialization."""
        if self._conn is None or self._conn.closed:
            self._conn = psycopg2.connect(self.db_url)
            if not self._initialized:
                self._init_db()
                self._initialized = True
        return self._conn

    def _init_db(self):
        """Create tables if they don't exist."""
        with self._conn.cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key VARCHAR(100) PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cur.execute("""
                CREATE TABLE IF NOT EXISTS game_progress (
                    slot VARCHAR(100) PRIMARY KEY,
                    state JSONB NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cur.execute("""
                CREATE TABLE IF NOT EXISTS audio_cache (
                    cache_key VARCHAR(500) PRIMARY KEY,
                    data BYTEA NOT NULL,
                    size_bytes INTEGER NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    last_used TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_audio_cache_last_used
                ON audio_cache(last_used)
            """)
        self._conn.commit()

    def close(self):
        """Close the database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()

    def load_config(self) -> dict:
        if not os.path.exists(self.config_file):
            raise FileNotFoundError(
                f"Config file not found at {self.config_file}\n"
                f'Please create it with: {{"gemini_api_key": "YOUR_API_KEY_HERE"}}'
            )
        with open(self.config_file, 'r') as f:
            return json.load(f)

    def load_settings(self) -> dict | None:
        """Settings are stored one key per row, values JSON-encoded."""
        try:
            with self.conn.cursor() as cur:
                cur.execute("SELECT key, value FROM settings")
                rows = cur.fetchall()
            if not rows:
                return None
            return {key: json.loads(value) for key, value in rows}
        except Exception as e:
            logger.error(f"Error loading settings: {e}")
            return None

    def save_settings(self, settings: dict) -> None:
        try:
            with self.conn.cursor() as cur:
                for key, value in settings.items():
                    cur.execute("""
                        INSERT INTO settings (key, value, updated_at)
                        VALUES (%s, %s, CURRENT_TIMESTAMP)
                        ON CONFLICT (key)
                        DO UPDATE SET value = EXCLUDED.value, updated_at = CURRENT_TIMESTAMP
                    """, (key, json.dumps(value)))
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error saving settings: {e}")
            self.conn.rollback()
            raise

    def load_progress(self) -> dict | None:
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    "SELECT state FROM game_progress WHERE slot = %s",
                    (PROGRESS_SLOT,)
                )
                row = cur.fetchone()
                if row:
                    return row['state']
                return None
        except Exception as e:
            logger.error(f"Error loading progress: {e}")
            return None

    def save_progress(self, progress: dict) -> None:
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO game_progress (slot, state, updated_at)
                    VALUES (%s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (slot)
                    DO UPDATE SET state = EXCLUDED.state, updated_at = CURRENT_TIMESTAMP
                """, (PROGRESS_SLOT, json.dumps(progress)))
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error saving progress: {e}")
            self.conn.rollback()
            raise

    def clear_progress(self) -> None:
        try:
            with self.conn.cursor() as cur:
                cur.execute("DELETE FROM game_progress WHERE slot = %s", (PROGRESS_SLOT,))
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error clearing progress: {e}")
            self.conn.rollback()
            raise

    def get_audio(self, key: str) -> bytes | None:
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    UPDATE audio_cache SET last_used = CURRENT_TIMESTAMP
                    WHERE cache_key = %s
                    RETURNING data
                """, (key,))
                row = cur.fetchone()
            self.conn.commit()
            return bytes(row[0]) if row else None
        except Exception as e:
            logger.error(f"Error reading audio cache: {e}")
            self.conn.rollback()
            return None

    def save_audio(self, key: str, data: bytes) -> None:
        if len(data) > self.audio_max_bytes:
            logger.warning(f"Not caching {key}: {len(data)} bytes exceeds the {self.audio_max_bytes} byte budget")
            return
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO audio_cache (cache_key, data, size_bytes, last_used)
                    VALUES (%s, %s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (cache_key)
                    DO UPDATE SET data = EXCLUDED.data, size_bytes = EXCLUDED.size_bytes,
                                  last_used = CURRENT_TIMESTAMP
                """, (key, psycopg2.Binary(data), len(data)))
                # Least recently used rows past the byte budget
                cur.execute("""
                    DELETE FROM audio_cache WHERE cache_key IN (
                        SELECT cache_key FROM (
                            SELECT cache_key,
                                   SUM(size_bytes) OVER (ORDER BY last_used DESC, cache_key) AS running
                            FROM audio_cache
                        ) ranked
                        WHERE running > %s
                    )
                """, (self.audio_max_bytes,))
                if cur.rowcount:
                    logger.info(f"Evicted {cur.rowcount} entries from audio cache")
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error writing audio cache: {e}")
            self.conn.rollback()
            raise
