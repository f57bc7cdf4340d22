import logging
from contextlib import asynccontextmanager
from typing import Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from todo_auth.app.services.rate_limiter import RateLimiter

from .error import ClientError, ServerError
from .middleware import register_middlewares

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    if exc.base_error.details:
        error_dict["errors"] = exc.base_error.details
    return JSONResponse(
        status_code=exc.status_code, content=error_dict, headers=exc.headers
    )


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code} {exc.base_error.message}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=error_dict
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors: Dict[str, List[str]] = {}
    for item in exc.errors():
        # loc is ("body", "email") for body fields
        location = [str(part) for part in item.get("loc", ()) if part != "body"]
        field = ".".join(location) or "body"
        errors.setdefault(field, []).append(item.get("msg", "Invalid value"))
    logger.warning(f"Request validation failed: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "code": "VALIDATION_ERROR",
            "message": "One or more validation errors occurred",
            "errors": errors,
        },
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    from todo_auth.depends import init_db

    await init_db()
    yield


def create_app(ApplicationConfig) -> FastAPI:
    from todo_auth.depends import get_token_issuer

    # Refuse to start with unusable JWT settings
    get_token_issuer()

    app = FastAPI(title="Todo Auth API", version="0.1.0", lifespan=lifespan)

    if ApplicationConfig.RATE_LIMIT_ENABLED:
        app.state.rate_limiter = RateLimiter(
            ApplicationConfig.RATE_LIMIT_AUTH_PERMIT_LIMIT,
            ApplicationConfig.RATE_LIMIT_AUTH_WINDOW_SECONDS,
        )

    register_middlewares(app, ApplicationConfig)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from todo_auth.api.routes import auth, health_check

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(auth.router, tags=["Authentication"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    return app
