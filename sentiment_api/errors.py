from __future__ import annotations

from typing import Any


class ModelAnalysisError(Exception):
    """Base error for a failed model-path analysis of a single text."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class TensorPreparationError(ModelAnalysisError):
    """Input text could not be converted into the model's expected tensors."""


class InferenceExecutionError(ModelAnalysisError):
    """The forward pass failed or produced outputs of an unexpected shape."""


class UnsupportedLabelError(ModelAnalysisError):
    """The model produced a label outside the accepted canonical set."""

    def __init__(self, raw_label: Any):
        super().__init__(f"Model returned unsupported sentiment: {raw_label!r}")
        self.raw_label = raw_label


class ModelNotLoadedError(RuntimeError):
    """Inference was requested on a handle that never became available."""


class PersistenceError(Exception):
    """A sink failed to store an analysis."""
