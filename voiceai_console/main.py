"""
FastAPI Application Entry Point
Serves the admin console view layer on top of the ConsoleContext.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from voiceai_console.api.v1.routes import api_router
from voiceai_console.context import ConsoleContext
from voiceai_console.core.config import Settings
from voiceai_console.core.errors import (
    ApiError,
    AuthenticationError,
    DemoLimitError,
    NetworkError,
    PollingTimeoutError,
    ValidationError,
    VerificationError,
)
from voiceai_console.domain.services.session_controller import LOGIN_PATH

load_dotenv()

logging.basicConfig(
    level=Settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Map console errors onto HTTP responses."""

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(request: Request, exc: AuthenticationError):
        logger.info(f"Unauthenticated request to {request.url.path}: {exc.message}")
        return RedirectResponse(url=LOGIN_PATH, status_code=303)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=422,
            content={"detail": exc.message, "field_errors": exc.field_errors}
        )

    @app.exception_handler(VerificationError)
    async def verification_error_handler(request: Request, exc: VerificationError):
        return JSONResponse(status_code=400, content={"detail": exc.message})

    @app.exception_handler(DemoLimitError)
    async def demo_limit_handler(request: Request, exc: DemoLimitError):
        return JSONResponse(status_code=403, content={"detail": exc.message})

    @app.exception_handler(PollingTimeoutError)
    async def polling_timeout_handler(request: Request, exc: PollingTimeoutError):
        logger.warning(f"Upload processing timed out after {exc.attempts} polls")
        return JSONResponse(status_code=504, content={"detail": exc.message})

    @app.exception_handler(NetworkError)
    async def network_error_handler(request: Request, exc: NetworkError):
        return JSONResponse(status_code=502, content={"detail": exc.message})

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(context: Optional[ConsoleContext] = None) -> FastAPI:
    """
    Build the console application.

    Args:
        context: Pre-built ConsoleContext (tests inject one); built from
            the environment at startup when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting VoiceAI console...")
        console = context or ConsoleContext()
        app.state.context = console
        await console.start()
        logger.info("VoiceAI console started")

        yield

        logger.info("Shutting down VoiceAI console...")
        try:
            await console.close()
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")
        logger.info("VoiceAI console shutdown complete")

    app = FastAPI(
        title="VoiceAI Console",
        description="Admin console for voice agents, leads, calls and CallIQ analytics",
        version="1.0.0",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/console")

    @app.get("/")
    async def root():
        return {"message": "VoiceAI Console", "status": "running"}

    @app.get("/health")
    async def health_check(request: Request):
        console: ConsoleContext = request.app.state.context
        return {
            "status": "healthy",
            "authenticated": console.session.is_authenticated,
            "cached_queries": len(console.cache.keys()),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
