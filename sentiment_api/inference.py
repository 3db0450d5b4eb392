from __future__ import annotations

import logging
from typing import Any, Mapping

import torch

from sentiment_api.errors import InferenceExecutionError, ModelNotLoadedError, TensorPreparationError
from sentiment_api.model_handle import ModelHandle
from sentiment_api.sentiment_types import InferenceResult, ModelOutputs

logger = logging.getLogger(__name__)


class InferenceEngine:
    """
    Runs a single text through a loaded classifier.

    Protocol:
    - one-element batch, tokenized to tensors keyed by the model's declared input names
    - one forward pass, softmax over the logits
    - model outputs are read as (labels, label -> probability mappings) and validated
    - the predicted label is returned raw; normalization happens downstream

    Any failure is raised as TensorPreparationError or InferenceExecutionError
    with the underlying cause chained.
    """

    def __init__(self, max_length: int = 256):
        if max_length <= 0:
            raise ValueError("max_length must be > 0")
        self._max_length = max_length

    def infer(self, handle: ModelHandle, text: str) -> InferenceResult:
        if not handle.available:
            raise ModelNotLoadedError("Inference requested but no sentiment model is loaded")

        input_name = handle.input_name
        with handle.session() as (tokenizer, model):
            encoded = self._prepare_inputs(tokenizer, text, input_name, handle.device)
            outputs = self._run(model, encoded)

        return _extract_prediction(outputs)

    def _prepare_inputs(
        self,
        tokenizer: Any,
        text: str,
        input_name: str | None,
        device: torch.device,
    ) -> dict[str, torch.Tensor]:
        try:
            enc = tokenizer(
                [text],
                truncation=True,
                max_length=self._max_length,
                return_tensors="pt",
            )
            encoded = {k: v.to(device) for k, v in enc.items()}
        except Exception as e:
            logger.error("Failed to prepare tensor for inference: %s", e)
            raise TensorPreparationError(f"Failed to prepare tensor for inference: {e}", e) from e

        if input_name not in encoded:
            logger.error("Tokenizer output is missing model input: expected=%s got=%s", input_name, list(encoded))
            raise TensorPreparationError(
                f"Failed to prepare tensor for inference: missing model input {input_name!r}"
            )
        return encoded

    def _run(self, model: Any, encoded: Mapping[str, torch.Tensor]) -> ModelOutputs:
        try:
            with torch.inference_mode():
                logits = model(**encoded).logits  # (1, num_labels)
                probs = torch.softmax(logits, dim=-1).cpu().tolist()

            id2label = model.config.id2label
            labels: list[str] = []
            probabilities: list[dict[str, float]] = []
            for row in probs:
                mapping = {str(id2label[i]): float(p) for i, p in enumerate(row)}
                labels.append(str(id2label[max(range(len(row)), key=row.__getitem__)]))
                probabilities.append(mapping)
        except Exception as e:
            logger.error("Failed to run inference: %s", e)
            raise InferenceExecutionError(f"Failed to run inference: {e}", e) from e

        return ModelOutputs(labels=labels, probabilities=probabilities)


def _extract_prediction(outputs: ModelOutputs) -> InferenceResult:
    """
    Read the single prediction out of the model outputs.

    Raises:
        InferenceExecutionError: if the outputs do not hold exactly one label and
            one probability mapping containing that label with a value in [0, 1].
    """
    if len(outputs.labels) != 1 or len(outputs.probabilities) != 1:
        raise InferenceExecutionError(
            "Failed to run inference: expected one prediction, "
            f"got labels={len(outputs.labels)} probabilities={len(outputs.probabilities)}"
        )

    label = outputs.labels[0]
    distribution = outputs.probabilities[0]
    if label not in distribution:
        raise InferenceExecutionError(f"Failed to run inference: no probability for label {label!r}")

    confidence = float(distribution[label])
    if not 0.0 <= confidence <= 1.0:
        raise InferenceExecutionError(f"Failed to run inference: probability out of range: {confidence}")

    return InferenceResult(label=label, confidence=confidence)
