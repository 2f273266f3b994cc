from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi_pagination import add_pagination
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_settings
from app.exceptions import ConversationServiceError
from app.infra.logging_config import LoggingConfig, get_logger
from app.routers import (
    ai_agent_router,
    conversations_router,
    import_router,
    system,
    whatsapp_router,
)

logger = get_logger("api")


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as {"error": message}."""

    @app.exception_handler(ConversationServiceError)
    async def conversation_service_error_handler(
        request: Request, exc: ConversationServiceError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "%s %s failed: %s", request.method, request.url.path, exc.message
            )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})


def create_app(testing: bool = False) -> FastAPI:
    settings = get_settings()
    if not testing:
        LoggingConfig()

    app = FastAPI(title=settings.app_name, version="0.1.0")

    register_exception_handlers(app)

    app.include_router(system.router)
    app.include_router(conversations_router.router)
    app.include_router(ai_agent_router.router)
    app.include_router(import_router.router)
    app.include_router(whatsapp_router.router)

    add_pagination(app)
    return app


app = create_app()
