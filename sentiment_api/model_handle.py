from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import torch
from transformers import AutoModelForSequenceClassification, AutoTokenizer

logger = logging.getLogger(__name__)

VERSION_MISMATCH_MARKERS = (
    "does not recognize this architecture",
    "unrecognized model",
    "unrecognized configuration class",
    "requires a newer",
)


def _select_device(device: str) -> torch.device:
    if device == "cpu":
        return torch.device("cpu")
    if device == "cuda":
        return torch.device("cuda")
    # auto
    return torch.device("cuda" if torch.cuda.is_available() else "cpu")


def _load_model_and_tokenizer(model_path: str):
    """
    Load tokenizer and sequence-classification model from a local directory.

    Raises:
        OSError: if model files are missing or path is invalid.
        ValueError: if the checkpoint targets an architecture this transformers
            release does not know.
    """
    logger.info("Loading sentiment model: path=%s", model_path)
    tokenizer = AutoTokenizer.from_pretrained(model_path)
    model = AutoModelForSequenceClassification.from_pretrained(model_path)
    return model, tokenizer


def _is_version_mismatch(exc: Exception) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in VERSION_MISMATCH_MARKERS)


class ModelHandle:
    """
    Owns the loaded classifier (tokenizer + model) for the process lifetime.

    - built once at startup via `open`, which never raises
    - an unavailable handle stays unavailable, it is never reloaded
    - `session()` serializes model access; fast tokenizers are not safe for concurrent calls
    - `close()` releases the model once and is safe on an unavailable handle
    """

    def __init__(
        self,
        tokenizer: Any = None,
        model: Any = None,
        device: torch.device | None = None,
        source: str | None = None,
    ):
        self._tokenizer = tokenizer
        self._model = model
        self._device = device or torch.device("cpu")
        self._source = source
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def unavailable(cls, source: str | None = None) -> "ModelHandle":
        return cls(source=source)

    @classmethod
    def open(cls, model_path: str | None, *, device: str = "auto") -> "ModelHandle":
        """Try to load the model artifact; degrade to an unavailable handle on any failure."""
        if not model_path or not model_path.strip():
            logger.warning("No sentiment model path configured; keyword heuristic will be used.")
            return cls.unavailable()

        path = Path(model_path)
        if not path.exists():
            logger.error("Sentiment model artifact NOT found: path=%s", path.resolve())
            return cls.unavailable(model_path)

        try:
            torch_device = _select_device(device)
            model, tokenizer = _load_model_and_tokenizer(str(path))
            model = model.to(torch_device)
            model.eval()
        except Exception as e:
            if _is_version_mismatch(e):
                logger.error(
                    "Sentiment model version mismatch: path=%s err=%s "
                    "(the checkpoint needs a newer transformers release or must be re-exported)",
                    model_path,
                    e,
                )
            else:
                logger.exception("Failed to load sentiment model: path=%s err=%s", model_path, e)
            return cls.unavailable(model_path)

        handle = cls(tokenizer=tokenizer, model=model, device=torch_device, source=model_path)
        logger.info(
            "Sentiment model ready: path=%s device=%s input=%s",
            model_path,
            torch_device.type,
            handle.input_name,
        )
        return handle

    @property
    def available(self) -> bool:
        return self._model is not None and self._tokenizer is not None and not self._closed

    @property
    def input_name(self) -> str | None:
        if not self.available:
            return None
        names = getattr(self._tokenizer, "model_input_names", None) or ["input_ids"]
        return names[0]

    @property
    def source(self) -> str | None:
        return self._source

    @property
    def device(self) -> torch.device:
        return self._device

    @contextmanager
    def session(self) -> Iterator[tuple[Any, Any]]:
        """Yield (tokenizer, model) while holding the handle's lock."""
        with self._lock:
            yield self._tokenizer, self._model

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            model, self._model = self._model, None
            self._tokenizer = None

        if model is None:
            return
        try:
            del model
            if self._device.type == "cuda":
                torch.cuda.empty_cache()
            logger.info("Sentiment model released: path=%s", self._source)
        except Exception as e:
            logger.error("Error while releasing sentiment model: path=%s err=%s", self._source, e)
