from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, NamedTuple


SentimentLabel = Literal["POSITIVE", "NEGATIVE"]
ServiceMode = Literal["model", "heuristic"]


@dataclass(frozen=True)
class InferenceResult:
    """
    Raw outcome of one classification call.

    - label: label as produced by the classifier (not yet normalized)
    - confidence: probability associated with that label, in [0, 1]
    """

    label: str
    confidence: float


class ModelOutputs(NamedTuple):
    """Per-input predicted labels and label -> probability mappings."""

    labels: list[str]
    probabilities: list[dict[str, float]]


@dataclass(frozen=True)
class SentimentRecord:
    """
    Response-facing analysis result.

    - sentiment: POSITIVE|NEGATIVE
    - score: confidence in [0, 1]
    - text: the original input, unmodified
    """

    sentiment: SentimentLabel
    score: float
    text: str

    def to_dict(self) -> dict[str, object]:
        return {"sentiment": self.sentiment, "score": self.score, "text": self.text}
