import time
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

# Load environment variables from .env file before anything else
load_dotenv()

from app.core.config import settings
from app.core.errors import AppError, NotFound, ValidationError
from app.core.logging import setup_logging, request_id_ctx
from app.api.router import api_router
from app.modules.ai.client import GeminiClient
from app.modules.ai.service import AIService
from app.modules.patients.repository import PatientRepository
from app.modules.records.repository import ClinicalRecordRepository
from app.platform.ports.chat_sessions import ChatSessionPort
from app.platform.ports.document_store import DocumentStorePort
from app.platform.provider_registry import registry

setup_logging()
logger = logging.getLogger(__name__)

def create_app(
    store: DocumentStorePort | None = None,
    ai_client: GeminiClient | None = None,
    chat_sessions: ChatSessionPort | None = None,
) -> FastAPI:
    app = FastAPI(title=settings.APP_NAME)

    store = store or registry.document_store()
    patients = PatientRepository(store)
    app.state.store = store
    app.state.patients = patients
    app.state.records = ClinicalRecordRepository(store, patients)
    app.state.ai = AIService(
        ai_client or GeminiClient(
            settings.AI_API_URL,
            settings.AI_API_KEY,
            timeout=settings.AI_TIMEOUT_SECONDS,
            max_output_tokens=settings.AI_MAX_OUTPUT_TOKENS,
        ),
        patients,
        chat_sessions or registry.chat_sessions(),
        context_limit=settings.AI_CONTEXT_LIMIT,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = (time.time() - start_time) * 1000
        logger.info(
            f"Request: {request.method} {request.url.path} - Response: {response.status_code} - Time: {process_time:.2f}ms"
        )
        return response

    # registered last so it wraps the request log above
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        rid = request.headers.get("x-request-id", "-")
        token = request_id_ctx.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        if rid != "-":
            response.headers["x-request-id"] = rid
        return response

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        messages = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
        err = ValidationError(messages or ["Invalid request"])
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            err = NotFound(f"No route for {request.method} {request.url.path}")
            return JSONResponse(status_code=404, content=err.to_dict())
        return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail), "error": "HTTPException"})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.critical(f"Unhandled exception for request {request.method} {request.url.path}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"message": "An internal server error occurred."},
        )

    @app.on_event("startup")
    async def on_startup():
        init = getattr(app.state.store, "init", None)
        if init is not None:
            await init()

    @app.on_event("shutdown")
    async def on_shutdown():
        await registry.close()

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app

app = create_app()
