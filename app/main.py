import time
import traceback
import uuid
from contextlib import asynccontextmanager
from os import environ

import logfire
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from fastapi_cache import FastAPICache
from fastapi_cache.backends.redis import RedisBackend
from granian import Granian
from livekit.api.twirp_client import TwirpError
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.api.v1.errors import app_error_handler, twirp_error_handler
from app.api.v1.routers.stream_ingress import router as stream_ingress_router
from app.api.webhooks.livekit import router as livekit_webhook_router
from app.app_config import get_app_environ_config
from app.schemas.init_schemas import init_schema
from app.shared.api.utils import E_INVALID_PARAMS, ApiSuccess, api_failure, init_logger
from app.shared.storage.redis import get_redis_manager
from app.utils.app_errors import AppError, AppErrorCode

cfg = get_app_environ_config()


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore
        start_time = time.time()
        request_id = str(uuid.uuid4())[:8]

        logger.info(f"[{request_id}] {request.method} {request.url.path}")

        try:
            response = await call_next(request)

            process_time = (time.time() - start_time) * 1000

            logger.info(
                f"[{request_id}] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Duration: {process_time:.2f}ms"
            )

            return response

        except Exception as exc:
            process_time = (time.time() - start_time) * 1000

            logger.error(
                f"[{request_id}] Unhandled exception in {request.method} {request.url.path} - "
                f"Duration: {process_time:.2f}ms - "
                f"Error: {type(exc).__name__}: {exc}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            failure = api_failure(
                errcode=AppErrorCode.E_INTERNAL_ERROR.value,
                errmesg=f"Internal server error (request_id: {request_id})",
            )
            return ORJSONResponse(
                status_code=500,
                content=failure.model_dump(),
            )


async def app_validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()

    logger.warning(
        "Validation error: path={} method={} errors={}",
        request.url.path,
        request.method,
        errors,
    )

    failure = api_failure(E_INVALID_PARAMS, errmesg=str(errors))

    return ORJSONResponse(status_code=422, content=failure.model_dump())


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger(level=cfg.LOG_LEVEL, debug=cfg.DEBUG)

    logger.info("Application startup...")

    server.state.redis_manager = get_redis_manager()

    # Initialize MongoDB schemas and Beanie ODM
    await init_schema()

    FastAPICache.init(
        RedisBackend(server.state.redis_manager.get_client(cfg.REDIS_LABEL)),
        prefix=cfg.API_CACHE_PREFIX,
    )

    if cfg.LOGFIRE_ENABLE:
        logger.info("Logfire initializing")

        logfire.configure(
            token=cfg.LOGFIRE_TOKEN,
            service_name="ingress-control",
            service_version=environ.get("BUILD_COMMIT") or "dev",
        )

        logger.info("Logfire instrument fastapi")
        logfire.instrument_fastapi(server, capture_headers=True)

        logger.info("Logfire instrument mongo")
        logfire.instrument_pymongo(capture_statement=cfg.DEBUG)

        logger.info("Logfire instrument pydantic")
        logfire.instrument_pydantic()

    yield

    logger.info("Application shutdown...")

    await server.state.redis_manager.close_all()


app = FastAPI(
    version="1.0",
    title="Ingress Control API",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.include_router(stream_ingress_router, prefix="/api/v1")
app.include_router(livekit_webhook_router)


@app.get("/health")
async def health() -> ApiSuccess:
    return ApiSuccess()


app.add_middleware(HTTPLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,  # type: ignore
    allow_origins=cfg.API_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(
    SessionMiddleware,
    secret_key=cfg.SESSION_SECRET,  # type: ignore
    same_site="lax",
    https_only=not cfg.DEBUG,
)

app.add_exception_handler(RequestValidationError, app_validation_exception_handler)  # type: ignore
app.add_exception_handler(AppError, app_error_handler)  # type: ignore
app.add_exception_handler(TwirpError, twirp_error_handler)  # type: ignore


def build_granian_kwargs():
    kwargs = {
        "interface": "asgi",
        "address": cfg.API_HOST,
        "port": cfg.API_PORT,
        "workers": cfg.API_WORKERS,
        "reload": cfg.DEBUG,
    }

    return kwargs


if __name__ == "__main__":
    granian_kwargs = build_granian_kwargs()
    Granian("app.main:app", **granian_kwargs).serve()
