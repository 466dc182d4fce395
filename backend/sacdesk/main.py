import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from sacdesk.api.router import api_router
from sacdesk.core.config import settings
from sacdesk.core.exceptions import Forbidden, NotFound, PersistenceFailure, ValidationError
from sacdesk.core.limiter import limiter
from sacdesk.db import init_db

logger = logging.getLogger(__name__)

# Domain error -> HTTP status
ERROR_STATUS = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (Forbidden, status.HTTP_403_FORBIDDEN),
    (PersistenceFailure, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_application() -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.PROJECT_NAME, version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
        return response

    def get_cors_headers(request: Request) -> dict:
        """CORS headers for error responses built outside the middleware."""
        origin = request.headers.get("origin")
        if origin and origin in settings.BACKEND_CORS_ORIGINS:
            return {
                "Access-Control-Allow-Origin": origin,
                "Access-Control-Allow-Credentials": "true",
            }
        return {}

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers={**(exc.headers or {}), **get_cors_headers(request)},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": jsonable_errors(exc)},
            headers=get_cors_headers(request),
        )

    def make_domain_handler(status_code: int):
        async def domain_exception_handler(request: Request, exc):
            if status_code >= 500:
                logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
            return JSONResponse(
                status_code=status_code,
                content={"detail": exc.message},
                headers=get_cors_headers(request),
            )

        return domain_exception_handler

    for error_class, status_code in ERROR_STATUS:
        app.add_exception_handler(error_class, make_domain_handler(status_code))

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.on_event("startup")
    def _startup() -> None:
        init_db()
        logger.info(f"{settings.PROJECT_NAME} started ({settings.ENVIRONMENT})")

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances that JSON cannot encode
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


app = create_application()
