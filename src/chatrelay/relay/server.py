"""FastAPI application exposing the chat relay over HTTP."""

import logging
from collections.abc import AsyncIterator
from contextlib import aclosing, asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from ..catalog import MODEL_PRESETS
from ..errors import ChatRelayError, UnsupportedProviderError
from .config import RelaySettings, load_settings
from .events import encode_sse
from .registry import ProviderRegistry
from .schemas import ChatCompletionResponse, ChatRequest, CompletionMessage, ErrorResponse
from .service import ChatRelay

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _internal_error() -> JSONResponse:
    return JSONResponse(status_code=500, content=ErrorResponse().model_dump())


def build_relay(settings: RelaySettings) -> ChatRelay:
    """Create the provider registry and relay from settings."""
    return ChatRelay(
        ProviderRegistry.from_settings(settings),
        persona=settings.persona,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )


def create_app(
    settings: RelaySettings | None = None,
    relay: ChatRelay | None = None,
) -> FastAPI:
    """Return a configured FastAPI application.

    Args:
        settings: Relay settings (read from the environment when omitted)
        relay: Pre-built relay, e.g. one backed by fake providers in tests
    """
    if relay is None:
        settings = settings or load_settings()
        relay = build_relay(settings)
    cors_origins = settings.cors_origins if settings is not None else ["*"]

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await relay.registry.close()

    app = FastAPI(title="Chat Relay", version="0.1.0", lifespan=lifespan)
    app.state.relay = relay
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(UnsupportedProviderError)
    async def unsupported_provider(request: Request, exc: UnsupportedProviderError) -> JSONResponse:
        logger.warning("Rejected request: %s", exc)
        return _internal_error()

    @app.exception_handler(ChatRelayError)
    async def relay_error(request: Request, exc: ChatRelayError) -> JSONResponse:
        logger.error("Relay error: %s", exc)
        return _internal_error()

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return _internal_error()

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "ok": True,
            "providers": [name.value for name in relay.registry.available],
        }

    @app.get("/models")
    async def models() -> dict[str, Any]:
        providers = {
            name.value: relay.registry.resolve(name).model
            for name in relay.registry.available
        }
        return {
            "providers": providers,
            "presets": [preset.model_dump(mode="json") for preset in MODEL_PRESETS.values()],
        }

    @app.post("/chat")
    async def chat(req: ChatRequest) -> StreamingResponse:
        # Fail before the stream opens so dispatch errors get a plain 500
        relay.registry.resolve(req.provider)
        conversation = [turn.to_chat_message() for turn in req.messages]

        async def event_stream() -> AsyncIterator[str]:
            # A client disconnect cancels this generator; aclosing then
            # closes the relay stream, which closes the upstream call.
            async with aclosing(relay.stream(conversation, req.provider, req.model)) as events:
                async for event in events:
                    yield encode_sse(event)

        return StreamingResponse(
            event_stream(),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    @app.post("/chat/complete", response_model=ChatCompletionResponse)
    async def chat_complete(req: ChatRequest) -> ChatCompletionResponse:
        conversation = [turn.to_chat_message() for turn in req.messages]
        response = await relay.complete(conversation, req.provider, req.model)
        return ChatCompletionResponse(
            messages=[CompletionMessage(content=response.content)],
            token_usage=response.usage,
        )

    return app
