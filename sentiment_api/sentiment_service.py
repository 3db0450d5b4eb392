from __future__ import annotations

import logging

from sentiment_api.heuristic import HeuristicClassifier
from sentiment_api.inference import InferenceEngine
from sentiment_api.labels import normalize_label
from sentiment_api.model_handle import ModelHandle
from sentiment_api.persistence import AnalysisSink, NullAnalysisSink, build_sink
from sentiment_api.sentiment_types import InferenceResult, SentimentRecord, ServiceMode
from sentiment_api.settings import ServiceSettings

logger = logging.getLogger(__name__)


class SentimentService:
    """
    Classifies one text per call and hands the result to a sink.

    - mode is "model" when the handle was loaded, "heuristic" otherwise;
      it is fixed at construction and never re-checked
    - the returned record keeps the input text untouched
    - model-path errors propagate; sink errors are logged and discarded
    """

    def __init__(
        self,
        handle: ModelHandle,
        *,
        engine: InferenceEngine | None = None,
        heuristic: HeuristicClassifier | None = None,
        sink: AnalysisSink | None = None,
    ):
        self._handle = handle
        self._engine = engine or InferenceEngine()
        self._heuristic = heuristic or HeuristicClassifier()
        self._sink = sink or NullAnalysisSink()
        self._mode: ServiceMode = "model" if handle.available else "heuristic"

        if self._mode == "heuristic":
            logger.warning("Sentiment model unavailable; using keyword heuristic for all requests.")
        else:
            logger.info("Sentiment service running in model mode: path=%s", handle.source)

    @property
    def mode(self) -> ServiceMode:
        return self._mode

    @property
    def model_available(self) -> bool:
        return self._mode == "model"

    def analyze(self, text: str) -> InferenceResult:
        if self._mode == "model":
            return self._engine.infer(self._handle, text)
        return self._heuristic.classify(text)

    def analyze_and_persist(self, text: str) -> SentimentRecord:
        """
        Analyze a text, store the outcome on a best-effort basis, return the record.

        Raises:
            ModelAnalysisError: if the model path fails or yields an unsupported label.
        """
        result = self.analyze(text)
        sentiment = normalize_label(result.label)
        record = SentimentRecord(sentiment=sentiment, score=result.confidence, text=text)

        try:
            self._sink.save(text, record.sentiment, record.score)
        except Exception as e:
            logger.warning("Failed to store analysis (continuing): %s", e)

        return record

    def close(self) -> None:
        try:
            self._sink.close()
        except Exception as e:
            logger.error("Error while closing analysis sink: %s", e)
        self._handle.close()


def build_service(settings: ServiceSettings) -> SentimentService:
    """Open the model artifact and the configured sink; wire them into a service."""
    handle = ModelHandle.open(settings.sentiment_model_path, device=settings.sentiment_device)
    return SentimentService(
        handle,
        engine=InferenceEngine(max_length=settings.sentiment_max_length),
        sink=build_sink(settings),
    )
