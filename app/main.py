import time
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from dotenv import load_dotenv

# Load environment variables from .env file before anything else
load_dotenv()

from app.core.config import settings
from app.core.logging import setup_logging, request_id_ctx
from app.core.db import init_models, dispose_engine
from app.core.exceptions import ServiceError
from app.api.router import api_router
from app.platform.provider_registry import ProviderRegistry


setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()
    logger.info(f"{settings.APP_NAME} started (env={settings.ENV}, storage={settings.OBJECT_STORAGE_PROVIDER})")
    yield
    await dispose_engine()

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
app.state.providers = ProviderRegistry(settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    process_time = (time.time() - start_time) * 1000
    formatted_process_time = f"{process_time:.2f}ms"
    client = request.client.host if request.client else "-"

    logger.info(
        f"Request: {request.method} {request.url.path} from {client} - Response: {response.status_code} - Time: {formatted_process_time}"
    )

    return response

# registered last so it runs first and the request id is set for log_requests
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id", "-")
    token = request_id_ctx.set(rid)
    try:
        return await call_next(request)
    finally:
        request_id_ctx.reset(token)

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} for request {request.method} {request.url.path}: {exc.detail}", exc_info=exc.__cause__)
    else:
        logger.info(f"{exc.kind} for request {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.critical(f"Unhandled exception for request {request.method} {request.url.path}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "server_error", "detail": "An internal server error occurred."},
    )

@app.get("/", include_in_schema=False)
async def root():
    return PlainTextResponse("Bhajan Service is Running...")

app.include_router(api_router, prefix=settings.API_PREFIX)
