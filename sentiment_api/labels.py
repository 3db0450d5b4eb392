from __future__ import annotations

import logging
from typing import Final

from sentiment_api.errors import UnsupportedLabelError
from sentiment_api.sentiment_types import SentimentLabel

logger = logging.getLogger(__name__)

# Portuguese spellings come from label maps of models trained on pt-BR data.
RAW_LABEL_MAP: Final[dict[str, SentimentLabel]] = {
    "POSITIVE": "POSITIVE",
    "POSITIVO": "POSITIVE",
    "NEGATIVE": "NEGATIVE",
    "NEGATIVO": "NEGATIVE",
}


def normalize_label(raw_label: object) -> SentimentLabel:
    """
    Map a raw classifier label onto POSITIVE|NEGATIVE.

    Matching is case-insensitive and ignores surrounding whitespace.

    Raises:
        UnsupportedLabelError: for any other value, including non-strings.
    """
    if isinstance(raw_label, str):
        canonical = RAW_LABEL_MAP.get(raw_label.strip().upper())
        if canonical is not None:
            return canonical

    logger.warning("Unexpected sentiment label from model: raw=%r", raw_label)
    raise UnsupportedLabelError(raw_label)
