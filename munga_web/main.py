"""FastAPI application for the INTELIGENT MUNGA terminal backend"""

import os
from contextlib import asynccontextmanager
from typing import Dict, Optional, Type

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from munga import __version__
from munga.app import MungaApp
from munga.utils.exceptions import (
    AIServiceError,
    AuthFlowStateError,
    CodeDeliveryError,
    DuplicateEmailError,
    ExportError,
    IncompleteFormError,
    InvalidCodeError,
    InvalidEmailError,
    MissingHandleError,
    MungaError,
    NotAuthenticatedError,
    UserNotFoundError,
)
from munga.utils.logger import get_logger
from .api import router as api_router
from .auth_routes import router as auth_router

logger = get_logger(__name__)

# Most specific first; anything else under MungaError is a 500
ERROR_STATUS: Dict[Type[MungaError], int] = {
    UserNotFoundError: 404,
    DuplicateEmailError: 409,
    MissingHandleError: 422,
    InvalidEmailError: 422,
    InvalidCodeError: 401,
    AuthFlowStateError: 409,
    CodeDeliveryError: 502,
    NotAuthenticatedError: 401,
    IncompleteFormError: 422,
    ExportError: 400,
    AIServiceError: 502,
}


def status_for(error: MungaError) -> int:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status_code
    return 500


async def munga_error_handler(request: Request, exc: MungaError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("API_ERROR", path=request.url.path, error_type=type(exc).__name__, error=str(exc))
    else:
        logger.info("API_REJECTED", path=request.url.path, error_type=type(exc).__name__, status=status_code)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


def create_app(munga_app: Optional[MungaApp] = None) -> FastAPI:
    """
    Build the API.

    Passing `munga_app` serves an already initialized core (tests, embedding);
    otherwise the core is built and initialized on startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "munga", None) is None:
            app.state.munga = MungaApp().initialize()
        munga: MungaApp = app.state.munga
        munga.start_background()
        logger.info("WEB", action="startup_complete", version=__version__)
        try:
            yield
        finally:
            logger.info("WEB", action="shutdown")
            try:
                munga.stop_background()
            except Exception as e:
                logger.warning("WEB", action="watchdog_stop_failed", error=str(e))

    app = FastAPI(
        title="INTELIGENT MUNGA",
        description="AI analyst terminal backend",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.munga = munga_app

    cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(MungaError, munga_error_handler)
    app.include_router(api_router)
    app.include_router(auth_router)
    return app


app = create_app()
