"""FastAPI application for the sentiment service.

Endpoints:
- POST /sentiment: {"text": ...} -> {"sentiment", "score", "text"}
- GET /health: service mode and model availability

Client errors are answered as 400 with a `{"mensagem": ...}` body, matching
what existing front-ends of this API already parse.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Final, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from sentiment_api.errors import ModelAnalysisError, ModelNotLoadedError
from sentiment_api.persistence import MAX_TEXT_LENGTH, MIN_TEXT_LENGTH
from sentiment_api.sentiment_service import SentimentService, build_service
from sentiment_api.settings import ServiceSettings, load_settings

logger = logging.getLogger(__name__)

EMPTY_TEXT_MESSAGE: Final[str] = "O texto para análise não pode estar vazio"
TEXT_LENGTH_MESSAGE: Final[str] = (
    f"O texto deve ter entre {MIN_TEXT_LENGTH} e {MAX_TEXT_LENGTH} caracteres"
)
MALFORMED_BODY_MESSAGE: Final[str] = "Corpo da requisição ausente ou inválido"
PROCESSING_ERROR_PREFIX: Final[str] = "Erro ao processar requisição: "


class SentimentRequest(BaseModel):
    text: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("text")
    @classmethod
    def _check_text(cls, value: Optional[str]) -> str:
        if value is None or not value.strip():
            raise ValueError(EMPTY_TEXT_MESSAGE)
        if not MIN_TEXT_LENGTH <= len(value) <= MAX_TEXT_LENGTH:
            raise ValueError(TEXT_LENGTH_MESSAGE)
        return value


class SentimentResponse(BaseModel):
    sentiment: str
    score: float
    text: str


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"mensagem": message})


def _first_error_message(errors: list[dict[str, Any]]) -> str:
    if not errors:
        return "Dados de entrada inválidos"

    first = errors[0]
    loc = tuple(first.get("loc", ()))
    if first.get("type") == "json_invalid" or loc == ("body",):
        return MALFORMED_BODY_MESSAGE

    ctx = first.get("ctx") or {}
    if "error" in ctx:
        return str(ctx["error"])
    field = loc[-1] if loc else "body"
    return f"Campo '{field}' inválido"


def get_service(request: Request) -> SentimentService:
    return request.app.state.service


def create_app(
    settings: ServiceSettings | None = None,
    service: SentimentService | None = None,
) -> FastAPI:
    """
    Build the API.

    When `service` is given it is used as-is and left open on shutdown;
    otherwise the service is built from settings at startup and closed on shutdown.
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = service is None
        app.state.service = service or build_service(settings)
        logger.info("Sentiment API started: mode=%s", app.state.service.mode)
        try:
            yield
        finally:
            if owned:
                app.state.service.close()
            logger.info("Sentiment API stopped")

    app = FastAPI(title="Sentiment API", version="1.0.0", lifespan=lifespan)
    if service is not None:
        app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
        expose_headers=["Authorization", "Content-Type"],
        max_age=3600,
    )

    @app.exception_handler(RequestValidationError)
    async def _on_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, _first_error_message(list(exc.errors())))

    @app.exception_handler(ModelAnalysisError)
    async def _on_analysis_error(request: Request, exc: ModelAnalysisError) -> JSONResponse:
        return _error(400, f"{PROCESSING_ERROR_PREFIX}{exc}")

    @app.exception_handler(ModelNotLoadedError)
    async def _on_model_not_loaded(request: Request, exc: ModelNotLoadedError) -> JSONResponse:
        logger.error("Model-path inference without a loaded model: %s", exc)
        return _error(500, f"{PROCESSING_ERROR_PREFIX}{exc}")

    @app.get("/health")
    def health(svc: SentimentService = Depends(get_service)) -> dict[str, Any]:
        return {"status": "ok", "mode": svc.mode, "model_available": svc.model_available}

    @app.post("/sentiment", response_model=SentimentResponse)
    def analyze_sentiment(
        payload: SentimentRequest,
        svc: SentimentService = Depends(get_service),
    ) -> dict[str, Any]:
        record = svc.analyze_and_persist(payload.text)
        return record.to_dict()

    return app
