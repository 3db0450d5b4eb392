from __future__ import annotations

import json
import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from kafka import KafkaProducer
from kafka.errors import KafkaError

from sentiment_api.errors import PersistenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KafkaProducerConfig:
    """
    Where and how analyses are published.

    Environment variables:
      - KAFKA_BOOTSTRAP_SERVERS, KAFKA_TOPIC (required)
      - KAFKA_CLIENT_ID (default: "sentiment-api")
      - KAFKA_MAX_BLOCK_SEC: longest a request thread may wait inside `send()` (default: 1)
      - KAFKA_SECURITY_PROTOCOL + KAFKA_SASL_MECHANISM / KAFKA_SASL_USERNAME / KAFKA_SASL_PASSWORD
    """

    bootstrap_servers: str
    topic: str
    client_id: str = "sentiment-api"
    max_block_sec: float = 1.0

    security_protocol: str = "PLAINTEXT"
    sasl_mechanism: Optional[str] = None
    sasl_plain_username: Optional[str] = None
    sasl_plain_password: Optional[str] = None

    @staticmethod
    def from_env() -> "KafkaProducerConfig":
        bootstrap = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "").strip()
        topic = os.getenv("KAFKA_TOPIC", "").strip()
        if not bootstrap or not topic:
            raise ValueError("Missing Kafka env vars. Required: KAFKA_BOOTSTRAP_SERVERS, KAFKA_TOPIC")

        return KafkaProducerConfig(
            bootstrap_servers=bootstrap,
            topic=topic,
            client_id=os.getenv("KAFKA_CLIENT_ID", "").strip() or "sentiment-api",
            max_block_sec=float(os.getenv("KAFKA_MAX_BLOCK_SEC", "1")),
            security_protocol=os.getenv("KAFKA_SECURITY_PROTOCOL", "").strip().upper() or "PLAINTEXT",
            sasl_mechanism=os.getenv("KAFKA_SASL_MECHANISM", "").strip() or None,
            sasl_plain_username=os.getenv("KAFKA_SASL_USERNAME", "").strip() or None,
            sasl_plain_password=os.getenv("KAFKA_SASL_PASSWORD", "").strip() or None,
        )


def build_payload(text: str, sentiment: str, score: float) -> dict[str, Any]:
    return {
        "doc_id": uuid.uuid4().hex,
        "text_content": text,
        "sentiment_result": sentiment,
        "confidence_score": float(score),
        "analyzed_at": datetime.now(timezone.utc).isoformat(),
    }


class AnalysisKafkaProducer:
    """
    Analysis sink publishing one JSON message per analysis.

    `save()` only enqueues the message; delivery happens on the producer's
    I/O thread and failures are logged from the future's errback.
    """

    def __init__(self, cfg: KafkaProducerConfig, producer: KafkaProducer | None = None):
        self.cfg = cfg
        self._producer = producer or self._build_producer(cfg)

    def close(self) -> None:
        try:
            self._producer.flush(timeout=self.cfg.max_block_sec)
        finally:
            self._producer.close(timeout=self.cfg.max_block_sec)

    def save(self, text: str, sentiment: str, score: float) -> None:
        """
        Enqueue one analysis without waiting for the broker.

        Raises:
            PersistenceError: if the message could not be enqueued within `max_block_sec`.
        """
        payload = build_payload(text, sentiment, score)
        doc_id = payload["doc_id"]

        try:
            future = self._producer.send(self.cfg.topic, key=doc_id.encode("utf-8"), value=payload)
        except KafkaError as e:
            logger.error("Kafka enqueue failed: key=%s err=%s", doc_id, e)
            raise PersistenceError(f"Kafka produce failed: {e}") from e

        future.add_errback(_log_delivery_failure, doc_id)

    def _build_producer(self, cfg: KafkaProducerConfig) -> KafkaProducer:
        kwargs: dict[str, Any] = {
            "bootstrap_servers": [s.strip() for s in cfg.bootstrap_servers.split(",") if s.strip()],
            "client_id": cfg.client_id,
            "key_serializer": lambda k: k,  # already bytes
            "value_serializer": lambda v: json.dumps(v, ensure_ascii=False).encode("utf-8"),
            "max_block_ms": int(cfg.max_block_sec * 1000),
            "security_protocol": cfg.security_protocol,
        }

        if cfg.security_protocol in ("SASL_PLAINTEXT", "SASL_SSL"):
            if not (cfg.sasl_mechanism and cfg.sasl_plain_username and cfg.sasl_plain_password):
                raise ValueError(
                    "SASL selected but missing one of: KAFKA_SASL_MECHANISM, KAFKA_SASL_USERNAME, KAFKA_SASL_PASSWORD"
                )
            kwargs["sasl_mechanism"] = cfg.sasl_mechanism
            kwargs["sasl_plain_username"] = cfg.sasl_plain_username
            kwargs["sasl_plain_password"] = cfg.sasl_plain_password

        logger.info(
            "Kafka producer ready: bootstrap=%s topic=%s security=%s max_block=%.1fs",
            cfg.bootstrap_servers, cfg.topic, cfg.security_protocol, cfg.max_block_sec
        )
        return KafkaProducer(**kwargs)


def _log_delivery_failure(doc_id: str, exc: BaseException) -> None:
    logger.warning("Kafka delivery failed: key=%s err=%s", doc_id, exc)
