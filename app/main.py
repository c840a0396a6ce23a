from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response

from config.settings import Settings, get_settings
from relay.errors import InputError, RelayError, UpstreamStatusError
from relay.schemas import ChatTurn
from relay.service import RelayService
from relay.upstream import UpstreamClient


logger = logging.getLogger("kodofeeds")

STATIC_DIR = Path(__file__).resolve().parent / "static"


def _read_static(name: str) -> str:
    return (STATIC_DIR / name).read_text(encoding="utf-8")


def _error_response(exc: RelayError) -> JSONResponse:
    if isinstance(exc, UpstreamStatusError):
        return JSONResponse(status_code=exc.status_code, content=exc.body)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def create_app(settings: Optional[Settings] = None, upstream: Optional[UpstreamClient] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="[%(asctime)s] %(levelname)s - %(message)s",
    )
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set; /chat will answer 500 until it is")

    service = RelayService(settings, upstream=upstream or UpstreamClient(settings))
    widget_js = _read_static("widget.js").replace(
        "__FALLBACK_ENDPOINT__", settings.widget_fallback_endpoint
    )
    test_page = _read_static("test.html")
    demo_page = _read_static("widget_demo.html")

    app = FastAPI(title=f"{settings.assistant_name} Chat Relay", version="1.0.0")
    app.state.settings = settings
    app.state.relay = service

    # Permissive by default so the widget can be embedded on any site.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RelayError)
    async def relay_error_handler(_request: Request, exc: RelayError) -> JSONResponse:
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def invalid_body_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejecting unparseable chat body: %s", exc.errors())
        return _error_response(InputError())

    @app.get("/", response_class=PlainTextResponse)
    def health() -> str:
        return f"{settings.assistant_name} chat server OK"

    @app.get("/test", response_class=HTMLResponse)
    def test_page_route() -> str:
        return test_page

    @app.get("/widget.js")
    def widget() -> Response:
        return Response(content=widget_js, media_type="application/javascript")

    @app.get("/widget-demo", response_class=HTMLResponse)
    def widget_demo() -> str:
        return demo_page

    @app.post("/chat")
    async def chat(turn: Optional[ChatTurn] = None) -> JSONResponse:
        result = await service.handle(turn or ChatTurn())
        return JSONResponse(content=result.to_body())

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logger.info("%s chat server on :%s", settings.assistant_name, settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())
