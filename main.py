from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from config import Settings, load_settings
from database import build_engine, build_session_factory, init_db
from models import utc_now
from routers.auth import router as auth_router
from utils.errors import AuthError, Internal, ValidationError
from utils.mailer import Mailer, build_mailer
from utils.security import TokenSigner


_log = logging.getLogger("notes")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def create_app(
    settings: Optional[Settings] = None,
    *,
    mailer: Optional[Mailer] = None,
    engine: Optional[Engine] = None,
    clock: Callable[[], datetime] = utc_now,
) -> FastAPI:
    settings = settings or load_settings()

    if not logging.getLogger().handlers:
        logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    app = FastAPI(title="Notes App Backend")

    engine = engine or build_engine(settings.database_url)
    init_db(engine)
    app.state.settings = settings
    app.state.session_factory = build_session_factory(engine)
    app.state.mailer = mailer or build_mailer(settings.mail)
    app.state.token_signer = TokenSigner(secret=settings.jwt_secret, algorithm=settings.jwt_alg)
    app.state.clock = clock

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        _log.info("rid=%s method=%s path=%s status=%s", rid, request.method, request.url.path, response.status_code)
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        if isinstance(exc, Internal):
            _log.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _error(ValidationError.status_code, "Invalid request body")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        _log.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(Internal.status_code, Internal.message)

    app.include_router(auth_router, prefix="/api")

    @app.get("/")
    def root():
        return {"status": "Backend running"}

    return app


def run() -> None:
    settings = load_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
