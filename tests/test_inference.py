from __future__ import annotations

from types import SimpleNamespace

import pytest

from fakes import FakeModel, FakeTokenizer, stub_handle
from sentiment_api.errors import (
    InferenceExecutionError,
    ModelNotLoadedError,
    TensorPreparationError,
)
from sentiment_api.inference import InferenceEngine, _extract_prediction
from sentiment_api.model_handle import ModelHandle
from sentiment_api.sentiment_types import ModelOutputs


def test_infer_returns_predicted_label_and_its_probability():
    handle = stub_handle([0.93, 0.07], {0: "NEGATIVE", 1: "POSITIVE"})
    result = InferenceEngine().infer(handle, "this is bad")

    assert result.label == "NEGATIVE"
    assert result.confidence == pytest.approx(0.93, abs=1e-6)


def test_infer_keeps_raw_model_label():
    handle = stub_handle([0.1, 0.9], {0: "negativo", 1: "positivo"})
    result = InferenceEngine().infer(handle, "produto muito bom")
    assert result.label == "positivo"


def test_infer_sends_single_element_batch():
    tokenizer = FakeTokenizer()
    model = FakeModel([0.3, 0.7], {0: "NEGATIVE", 1: "POSITIVE"})
    handle = ModelHandle(tokenizer=tokenizer, model=model)

    InferenceEngine().infer(handle, "one text only")
    assert tokenizer.calls == [["one text only"]]
    assert model.calls == 1


def test_infer_on_unavailable_handle_fails_fast():
    with pytest.raises(ModelNotLoadedError):
        InferenceEngine().infer(ModelHandle.unavailable(), "hello there")


def test_tokenizer_failure_becomes_tensor_preparation_error():
    def broken_tokenizer(*args, **kwargs):
        raise TypeError("text input must be of type str")

    broken_tokenizer.model_input_names = ["input_ids"]
    handle = ModelHandle(tokenizer=broken_tokenizer, model=FakeModel([0.5, 0.5], {0: "NEGATIVE", 1: "POSITIVE"}))

    with pytest.raises(TensorPreparationError, match="text input must be of type str") as exc_info:
        InferenceEngine().infer(handle, "hello there")
    assert isinstance(exc_info.value.__cause__, TypeError)


def test_missing_declared_input_becomes_tensor_preparation_error():
    tokenizer = FakeTokenizer()
    tokenizer.model_input_names = ["pixel_values"]
    handle = ModelHandle(tokenizer=tokenizer, model=FakeModel([0.5, 0.5], {0: "NEGATIVE", 1: "POSITIVE"}))

    with pytest.raises(TensorPreparationError, match="pixel_values"):
        InferenceEngine().infer(handle, "hello there")


def test_forward_pass_failure_becomes_inference_execution_error():
    class _ExplodingModel:
        config = SimpleNamespace(id2label={0: "NEGATIVE", 1: "POSITIVE"})

        def __call__(self, **inputs):
            raise RuntimeError("CUDA out of memory")

    handle = ModelHandle(tokenizer=FakeTokenizer(), model=_ExplodingModel())
    with pytest.raises(InferenceExecutionError, match="CUDA out of memory"):
        InferenceEngine().infer(handle, "hello there")


def test_incomplete_label_map_becomes_inference_execution_error():
    handle = stub_handle([0.4, 0.6], {0: "NEGATIVE"})
    with pytest.raises(InferenceExecutionError):
        InferenceEngine().infer(handle, "hello there")


def test_lock_is_released_after_failure():
    handle = stub_handle([0.4, 0.6], {0: "NEGATIVE"})
    with pytest.raises(InferenceExecutionError):
        InferenceEngine().infer(handle, "hello there")

    handle.close()
    assert handle.available is False


@pytest.mark.parametrize(
    "outputs",
    [
        ModelOutputs(labels=[], probabilities=[]),
        ModelOutputs(labels=["A", "B"], probabilities=[{"A": 1.0}, {"B": 1.0}]),
        ModelOutputs(labels=["A"], probabilities=[{"B": 1.0}]),
        ModelOutputs(labels=["A"], probabilities=[{"A": 1.5}]),
    ],
)
def test_extract_prediction_rejects_unexpected_shapes(outputs):
    with pytest.raises(InferenceExecutionError):
        _extract_prediction(outputs)


def test_engine_rejects_non_positive_max_length():
    with pytest.raises(ValueError):
        InferenceEngine(max_length=0)
