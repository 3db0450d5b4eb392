from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Final, Protocol

from sentiment_api.errors import PersistenceError
from sentiment_api.kafka_producer import AnalysisKafkaProducer, KafkaProducerConfig
from sentiment_api.settings import ServiceSettings

logger = logging.getLogger(__name__)

TABLE_NAME: Final[str] = "tb_sentiments"
MIN_TEXT_LENGTH: Final[int] = 5
MAX_TEXT_LENGTH: Final[int] = 5000


class AnalysisSink(Protocol):
    """Best-effort destination for finished analyses."""

    def save(self, text: str, sentiment: str, score: float) -> None: ...

    def close(self) -> None: ...


class NullAnalysisSink:
    """Sink for deployments that do not keep analyses."""

    def save(self, text: str, sentiment: str, score: float) -> None:
        logger.debug("Persistence disabled; dropping analysis: sentiment=%s score=%.4f", sentiment, score)

    def close(self) -> None:
        return None


class SqliteAnalysisStore:
    """
    Stores analyses in a local SQLite table.

    Row layout (`tb_sentiments`):
      id, text_content (5..5000 chars), sentiment_result, confidence_score [0, 1],
      analyzed_at (UTC ISO8601, set when the row is written)

    A short-lived connection is opened per save, so the store can be used
    from several worker threads.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_db(self) -> None:
        if self.db_path.parent and not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    text_content TEXT NOT NULL,
                    sentiment_result TEXT NOT NULL,
                    confidence_score REAL NOT NULL,
                    analyzed_at TEXT NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("SQLite analysis store ready: path=%s", self.db_path)

    def save(self, text: str, sentiment: str, score: float) -> None:
        """
        Insert one analysis row.

        Raises:
            PersistenceError: if the row violates the table constraints or SQLite fails.
        """
        _validate_row(text, sentiment, score)

        analyzed_at = datetime.now(timezone.utc).isoformat()
        try:
            conn = self._connect()
            try:
                conn.execute(
                    f"INSERT INTO {TABLE_NAME} (text_content, sentiment_result, confidence_score, analyzed_at) "
                    "VALUES (?, ?, ?, ?)",
                    (text, sentiment, float(score), analyzed_at),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to store analysis in {self.db_path}: {e}") from e

    def count(self) -> int:
        conn = self._connect()
        try:
            (n,) = conn.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}").fetchone()
        finally:
            conn.close()
        return int(n)

    def close(self) -> None:
        return None


def _validate_row(text: str, sentiment: str, score: float) -> None:
    if not text or not text.strip():
        raise PersistenceError("Text to store must not be blank")
    if not MIN_TEXT_LENGTH <= len(text) <= MAX_TEXT_LENGTH:
        raise PersistenceError(
            f"Text to store must have between {MIN_TEXT_LENGTH} and {MAX_TEXT_LENGTH} characters"
        )
    if not sentiment or not sentiment.strip():
        raise PersistenceError("Sentiment result is required")
    if not 0.0 <= score <= 1.0:
        raise PersistenceError(f"Confidence score must be within [0, 1], got {score}")


def build_sink(settings: ServiceSettings) -> AnalysisSink:
    """
    Build the configured sink.

    Backends: "sqlite" (default) | "kafka" | "none". A sink that cannot be
    built is replaced by NullAnalysisSink so startup never depends on storage.
    """
    backend = settings.persistence_backend.strip().lower()
    try:
        if backend == "sqlite":
            return SqliteAnalysisStore(settings.sentiment_db_path)
        if backend == "kafka":
            return AnalysisKafkaProducer(KafkaProducerConfig.from_env())
        if backend != "none":
            logger.warning("Unknown persistence backend=%s; analyses will not be stored.", backend)
    except Exception as e:
        logger.error("Failed to build persistence backend=%s err=%s; analyses will not be stored.", backend, e)
    return NullAnalysisSink()
