from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Final, Protocol

from sentiment_api.sentiment_types import InferenceResult

logger = logging.getLogger(__name__)

BASE_CONFIDENCE: Final[float] = 0.7
CONFIDENCE_STEP: Final[float] = 0.1
MAX_CONFIDENCE: Final[float] = 0.95
TIE_CONFIDENCE_LOW: Final[float] = 0.5
TIE_CONFIDENCE_HIGH: Final[float] = 0.7


class RandomSource(Protocol):
    def random(self) -> float: ...


@dataclass(frozen=True)
class KeywordLexicon:
    """
    Lowercase substrings that hint at a polarity.

    Cues are matched by plain substring containment, so stems such as
    "decepcion" cover every inflection.
    """

    positive: frozenset[str]
    negative: frozenset[str]

    def __post_init__(self) -> None:
        shared = self.positive & self.negative
        if shared:
            raise ValueError(f"Lexicon cues cannot be both positive and negative: {sorted(shared)}")


DEFAULT_LEXICON: Final[KeywordLexicon] = KeywordLexicon(
    positive=frozenset(
        {
            "muito bom", "muito boa", "ótimo", "otimo", "excelente", "maravilh", "adorei", "eu amei",
            "gostei", "perfeit", "recomendo", "incrível", "incrivel", "feliz",
            "good", "great", "excellent", "i love", "loved", "amazing", "awesome", "perfect", "happy",
        }
    ),
    negative=frozenset(
        {
            "ruim", "péssim", "pessim", "horrív", "horriv", "terrív", "terriv", "odiei",
            "detestei", "decepcion", "lixo", "triste",
            "terrible", "awful", "i hate", "hated", "horrible", "worst", "poor",
        }
    ),
)


class HeuristicClassifier:
    """
    Keyword-count fallback used when no model could be loaded.

    Rules:
    - each cue contained in the lowercased text counts once, repeats do not add
    - the side with more hits wins with min(0.7 + 0.1 * hits, 0.95)
    - ties (including no hits) -> POSITIVE with a confidence drawn from [0.5, 0.7)

    Never raises.
    """

    def __init__(self, lexicon: KeywordLexicon = DEFAULT_LEXICON, rng: RandomSource | None = None):
        self._lexicon = lexicon
        self._rng = rng or random.Random()

    def count_hits(self, text: str) -> tuple[int, int]:
        lowered = text.lower()
        positive = sum(1 for cue in self._lexicon.positive if cue in lowered)
        negative = sum(1 for cue in self._lexicon.negative if cue in lowered)
        return positive, negative

    def classify(self, text: str) -> InferenceResult:
        positive, negative = self.count_hits(text)

        if positive > negative:
            return InferenceResult(label="POSITIVE", confidence=_capped_confidence(positive))
        if negative > positive:
            return InferenceResult(label="NEGATIVE", confidence=_capped_confidence(negative))

        logger.debug("Heuristic tie: positive=%s negative=%s", positive, negative)
        return InferenceResult(label="POSITIVE", confidence=self._tie_confidence())

    def _tie_confidence(self) -> float:
        span = TIE_CONFIDENCE_HIGH - TIE_CONFIDENCE_LOW
        value = TIE_CONFIDENCE_LOW + span * self._rng.random()
        # keep the upper bound exclusive under float rounding
        return min(value, math.nextafter(TIE_CONFIDENCE_HIGH, 0.0))


def _capped_confidence(hits: int) -> float:
    return round(min(BASE_CONFIDENCE + CONFIDENCE_STEP * hits, MAX_CONFIDENCE), 2)
