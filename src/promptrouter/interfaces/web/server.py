"""promptrouter WebInterface: thin HTTP boundary over the RouteLLMPrompt operation."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST
from pydantic import BaseModel, ConfigDict
from starlette.responses import Response

from promptrouter.core.exceptions import ErrorCode, PromptRouterError
from promptrouter.lifecycle import Runtime

logger = logging.getLogger(__name__)


class PromptPayload(BaseModel):
    prompt: str | None = None

    model_config = ConfigDict(extra='allow')


def envelope(data: Any = None, message: str = "ok") -> dict[str, Any]:
    return {"message": message, "data": data, "exit_code": 0}


def error_envelope(reason: str, error_code: int) -> dict[str, Any]:
    return {"message": reason, "error_code": error_code, "data": None, "exit_code": 1}


def _extract_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    if authorization.startswith("Bearer "):
        return authorization.removeprefix("Bearer ").strip()
    return authorization.strip()


class WebInterface:
    def __init__(self, runtime: Runtime, host: str | None = None, port: int | None = None):
        self.runtime = runtime
        self.host = host
        self.port = port
        self._server = None
        self.app = self._build_app()

    def _build_app(self) -> FastAPI:
        @asynccontextmanager
        async def lifespan(app: FastAPI):
            """Load both models before serving; drain the inference workers on exit."""
            await self.runtime.bootstrap()
            try:
                yield
            finally:
                await self.runtime.shutdown()

        app = FastAPI(title="promptrouter", lifespan=lifespan)
        self._register_exception_handlers(app)
        self._register_routes(app)
        return app

    def _register_exception_handlers(self, app: FastAPI) -> None:
        @app.exception_handler(PromptRouterError)
        async def prompt_router_error_handler(request: Request, exc: PromptRouterError):
            return JSONResponse(
                status_code=exc.http_status,
                content=error_envelope(exc.reason, int(exc.error_code)),
            )

        @app.exception_handler(RequestValidationError)
        async def invalid_payload_handler(request: Request, exc: RequestValidationError):
            logger.debug("Rejected malformed payload: %s", exc.errors())
            return JSONResponse(
                status_code=400,
                content=error_envelope("invalid.payload", int(ErrorCode.INVALID_PAYLOAD)),
            )

    def _register_routes(self, app: FastAPI) -> None:
        @app.post("/api/core/llm/prompt")
        async def route_llm_prompt(
            payload: PromptPayload,
            organization_id: str | None = Header(None, alias="OrganizationID"),
            router_id: str | None = Header(None, alias="RouterID"),
            authorization: str | None = Header(None),
        ):
            if not self.runtime.is_accepting_work():
                return JSONResponse(
                    status_code=503,
                    content=error_envelope("service.unavailable", int(ErrorCode.INTERNAL_ERROR)),
                )
            result = await self.runtime.context.service.route_llm_prompt(
                organization_id, router_id, _extract_token(authorization), payload.prompt
            )
            return envelope(result.to_dict())

        @app.get("/service/health")
        async def health():
            context = self.runtime.context
            body = {
                "accepting_work": self.runtime.is_accepting_work(),
                "classification": bool(context and context.classifier.ready),
                "similarity": bool(context and context.similarity.ready),
            }
            if self.runtime.is_ready():
                return envelope(body)
            return JSONResponse(status_code=503, content=envelope(body, message="degraded"))

        @app.get("/metrics")
        async def metrics():
            context = self.runtime.context
            if context is None:
                return Response(status_code=503)
            return Response(content=context.metrics.render(), media_type=CONTENT_TYPE_LATEST)

    async def start(self) -> None:
        import uvicorn

        settings = self.runtime.context.settings if self.runtime.context else None
        host = self.host or (settings.web.host if settings else "0.0.0.0")
        port = self.port or (settings.web.port if settings else 8080)
        config = uvicorn.Config(self.app, host=host, port=port, log_config=None)
        self._server = uvicorn.Server(config)
        await self._server.serve()

    async def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True


def create_app(runtime: Runtime | None = None, config_path: str | None = None) -> FastAPI:
    """Build the FastAPI app; the runtime bootstraps inside the app lifespan."""
    return WebInterface(runtime or Runtime(config_path=config_path)).app
